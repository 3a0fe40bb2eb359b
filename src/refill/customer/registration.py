"""CreateCustomer — add a customer at the counter.

Phone numbers are unique after normalization, so "926 060 863" and
"926060863" name the same customer.
"""

import structlog
from protean.exceptions import InvalidOperationError, ValidationError
from protean.fields import String
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from refill.customer.customer import Customer
from refill.domain import refill
from refill.shared.phone import PhoneNumber
from shared.locks import lock_keys_resolver
from shared.query import fetch_first

logger = structlog.get_logger(__name__)


@refill.command(part_of="Customer")
class CreateCustomer:
    name = String(max_length=200)
    phone = String(max_length=30)


def phone_lock_keys(raw: str | None) -> list[str]:
    """Lock key for claiming the normalized phone ``raw``, if it is a valid phone."""
    try:
        return [f"phone:{PhoneNumber.create(raw).number}"]
    except ValidationError:
        return []


@lock_keys_resolver(CreateCustomer)
def _claimed_phone(command):
    return phone_lock_keys(command.phone)


def ensure_phone_available(phone: PhoneNumber, customer_id=None) -> None:
    """Fail if another customer already owns ``phone``."""
    holder = fetch_first(current_domain.repository_for(Customer), phone=phone.number)
    if holder is not None and str(holder.id) != str(customer_id):
        raise InvalidOperationError("Customer with this phone already exists")


@refill.command_handler(part_of=Customer)
class RegisterCustomerHandler:
    @handle(CreateCustomer)
    def create_customer(self, command):
        phone = PhoneNumber.create(command.phone)
        ensure_phone_available(phone)

        customer = Customer.register(command.name, phone)
        current_domain.repository_for(Customer).add(customer)

        logger.info("Customer registered", customer_id=str(customer.id))
        return customer.to_summary()
