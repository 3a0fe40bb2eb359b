"""Customer aggregate — the owner of refill orders.

Phone numbers are stored as normalized digit strings and are unique
across customers.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, String

from refill.customer.events import CustomerPhoneChanged, CustomerRegistered, CustomerRenamed
from refill.domain import refill
from refill.shared.phone import PhoneNumber


def _clean_name(name: str | None) -> str:
    if name is None or not name.strip():
        raise ValidationError({"name": ["Customer name cannot be empty"]})
    return name.strip()


@refill.aggregate
class Customer:
    name = String(required=True, max_length=200)
    phone = String(required=True, max_length=20, unique=True)
    created_at = DateTime()

    @classmethod
    def register(cls, name: str, phone: PhoneNumber):
        now = datetime.now(UTC)
        customer = cls(name=_clean_name(name), phone=phone.number, created_at=now)
        customer.raise_(
            CustomerRegistered(
                customer_id=str(customer.id),
                name=customer.name,
                phone=customer.phone,
                registered_at=now,
            )
        )
        return customer

    def change_phone(self, phone: PhoneNumber) -> None:
        if phone.number == self.phone:
            return

        previous = self.phone
        self.phone = phone.number
        self.raise_(
            CustomerPhoneChanged(
                customer_id=str(self.id),
                previous_phone=previous,
                new_phone=self.phone,
            )
        )

    def rename(self, name: str) -> None:
        self.name = _clean_name(name)
        self.raise_(CustomerRenamed(customer_id=str(self.id), name=self.name))

    def to_summary(self) -> dict:
        return {
            "customer_id": str(self.id),
            "name": self.name,
            "phone": self.phone,
        }
