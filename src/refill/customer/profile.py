"""Customer profile maintenance — change a customer's phone or name."""

import re

from protean.exceptions import ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from refill.customer.customer import Customer
from refill.customer.registration import ensure_phone_available, phone_lock_keys
from refill.domain import refill
from refill.shared.phone import PhoneNumber
from shared.locks import lock_keys_resolver

MAX_PHONE_DIGITS = 9


@refill.command(part_of="Customer")
class UpdateCustomerPhone:
    customer_id = Identifier(required=True)
    phone = String(max_length=30)


@refill.command(part_of="Customer")
class UpdateCustomerName:
    customer_id = Identifier(required=True)
    name = String(max_length=200)


@lock_keys_resolver(UpdateCustomerPhone)
def _claimed_phone(command):
    return phone_lock_keys(command.phone)


@refill.command_handler(part_of=Customer)
class CustomerProfileHandler:
    @handle(UpdateCustomerPhone)
    def update_phone(self, command):
        # Lookups by phone assume national numbers, so edits are capped at 9 digits
        if len(re.sub(r"\D", "", command.phone or "")) > MAX_PHONE_DIGITS:
            raise ValidationError({"phone": [f"Phone number must have at most {MAX_PHONE_DIGITS} digits"]})
        phone = PhoneNumber.create(command.phone)

        repo = current_domain.repository_for(Customer)
        customer = repo.get(command.customer_id)
        ensure_phone_available(phone, customer.id)

        customer.change_phone(phone)
        repo.add(customer)
        return customer.to_summary()

    @handle(UpdateCustomerName)
    def update_name(self, command):
        repo = current_domain.repository_for(Customer)
        customer = repo.get(command.customer_id)
        customer.rename(command.name)
        repo.add(customer)
        return customer.to_summary()
