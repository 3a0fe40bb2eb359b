"""Customer domain events."""

from protean.fields import DateTime, Identifier, String

from refill.domain import refill


@refill.event(part_of="Customer")
class CustomerRegistered:
    """A new customer was registered at the counter."""

    __version__ = 1

    customer_id = Identifier(required=True)
    name = String(required=True)
    phone = String(required=True)
    registered_at = DateTime(required=True)


@refill.event(part_of="Customer")
class CustomerPhoneChanged:
    __version__ = 1

    customer_id = Identifier(required=True)
    previous_phone = String(required=True)
    new_phone = String(required=True)


@refill.event(part_of="Customer")
class CustomerRenamed:
    __version__ = 1

    customer_id = Identifier(required=True)
    name = String(required=True)
