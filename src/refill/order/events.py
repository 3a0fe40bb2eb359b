"""Refill order domain events."""

from protean.fields import DateTime, Identifier, Integer

from refill.domain import refill


@refill.event(part_of="RefillOrder")
class OrderOpened:
    """A customer started a new refill order."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    opened_at = DateTime(required=True)


@refill.event(part_of="RefillOrder")
class CylinderAddedToOrder:
    __version__ = 1

    order_id = Identifier(required=True)
    cylinder_id = Identifier(required=True)
    cylinder_count = Integer(required=True)


@refill.event(part_of="RefillOrder")
class OrderBecameReadyForPickup:
    """Every cylinder of the order is full. Raised once per order."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    cylinder_count = Integer(required=True)
    ready_at = DateTime(required=True)


@refill.event(part_of="RefillOrder")
class OrderCompleted:
    """Every cylinder of the order was delivered back to the customer."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    cylinder_count = Integer(required=True)
    completed_at = DateTime(required=True)


@refill.event(part_of="RefillOrder")
class OrderCustomerNotified:
    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    notified_at = DateTime(required=True)
