"""RefillOrder aggregate — a customer's batch of cylinders moving through fill-and-return.

State Machine:
    OPEN → READY_FOR_PICKUP → COMPLETED

Each CylinderRef mirrors the state of its cylinder. The mirror is a cache:
it is refreshed from the authoritative Cylinder records before every
status decision, never read on its own.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import InvalidOperationError
from protean.fields import DateTime, HasMany, Identifier, String

from refill.cylinder.cylinder import CylinderState
from refill.domain import refill
from refill.order.events import (
    CylinderAddedToOrder,
    OrderBecameReadyForPickup,
    OrderCompleted,
    OrderCustomerNotified,
    OrderOpened,
)


class OrderStatus(Enum):
    OPEN = "Open"
    READY_FOR_PICKUP = "ReadyForPickup"
    COMPLETED = "Completed"


_VALID_TRANSITIONS = {
    OrderStatus.OPEN: {OrderStatus.READY_FOR_PICKUP},
    OrderStatus.READY_FOR_PICKUP: {OrderStatus.COMPLETED},
    OrderStatus.COMPLETED: set(),  # terminal
}


@refill.entity(part_of="RefillOrder")
class CylinderRef:
    """Membership of a cylinder in an order, with its mirrored state."""

    cylinder_id = Identifier(required=True)
    state = String(
        max_length=20,
        choices=CylinderState,
        default=CylinderState.RECEIVED.value,
    )
    added_at = DateTime()


@refill.aggregate
class RefillOrder:
    customer_id = Identifier(required=True)
    status = String(
        max_length=20,
        choices=OrderStatus,
        default=OrderStatus.OPEN.value,
    )
    cylinders = HasMany(CylinderRef)
    created_at = DateTime()
    completed_at = DateTime()
    notified_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, customer_id: str):
        now = datetime.now(UTC)
        order = cls(
            customer_id=customer_id,
            status=OrderStatus.OPEN.value,
            created_at=now,
        )
        order.raise_(OrderOpened(order_id=str(order.id), customer_id=str(customer_id), opened_at=now))
        return order

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def _assert_status(self, expected: OrderStatus, action: str) -> None:
        if OrderStatus(self.status) != expected:
            raise InvalidOperationError(f"Cannot {action}. Current status: {self.status}")

    def _transition_to(self, target: OrderStatus) -> None:
        current = OrderStatus(self.status)
        if target not in _VALID_TRANSITIONS[current]:
            raise InvalidOperationError(f"Cannot transition from {current.value} to {target.value}")
        self.status = target.value

    def ref_for(self, cylinder_id) -> CylinderRef | None:
        return next((ref for ref in (self.cylinders or []) if str(ref.cylinder_id) == str(cylinder_id)), None)

    def contains(self, cylinder_id) -> bool:
        return self.ref_for(cylinder_id) is not None

    @property
    def cylinder_ids(self) -> list[str]:
        refs = sorted(self.cylinders or [], key=lambda r: r.added_at or self.created_at)
        return [str(ref.cylinder_id) for ref in refs]

    @property
    def is_open(self) -> bool:
        return self.status == OrderStatus.OPEN.value

    @property
    def needs_notification(self) -> bool:
        return self.status == OrderStatus.READY_FOR_PICKUP.value and self.notified_at is None

    # -------------------------------------------------------------------
    # Membership
    # -------------------------------------------------------------------
    def add_cylinder(self, cylinder) -> None:
        """Attach a cylinder. Exclusivity across orders is checked by the caller."""
        self._assert_status(OrderStatus.OPEN, "add cylinder to order")
        if self.contains(cylinder.id):
            raise InvalidOperationError("Cylinder already added to this order")

        self.add_cylinders(
            CylinderRef(
                cylinder_id=str(cylinder.id),
                state=cylinder.state,
                added_at=datetime.now(UTC),
            )
        )
        self.raise_(
            CylinderAddedToOrder(
                order_id=str(self.id),
                cylinder_id=str(cylinder.id),
                cylinder_count=len(self.cylinders),
            )
        )

    def detach_cylinder(self, cylinder_id) -> bool:
        """Drop a cylinder's membership regardless of status (administrative removal)."""
        ref = self.ref_for(cylinder_id)
        if ref is None:
            return False
        self.remove_cylinders(ref)
        return True

    # -------------------------------------------------------------------
    # Rollup
    # -------------------------------------------------------------------
    def refresh_cylinder_states(self, cylinders) -> None:
        """Copy the authoritative state of each supplied cylinder onto its ref.

        Refs whose cylinder is not in ``cylinders`` keep their cached state.
        """
        states = {str(c.id): c.state for c in cylinders}
        for ref in self.cylinders or []:
            state = states.get(str(ref.cylinder_id))
            if state is not None and ref.state != state:
                ref.state = state

    def check_and_update_status(self, cylinders) -> bool:
        """Promote Open → ReadyForPickup once every member cylinder is Ready.

        No-op unless the order is Open. Returns True when the order was
        promoted by this call.
        """
        if not self.is_open:
            return False

        self.refresh_cylinder_states(cylinders)

        refs = self.cylinders or []
        if not refs or any(ref.state != CylinderState.READY.value for ref in refs):
            return False

        self._transition_to(OrderStatus.READY_FOR_PICKUP)
        self.raise_(
            OrderBecameReadyForPickup(
                order_id=str(self.id),
                customer_id=str(self.customer_id),
                cylinder_count=len(refs),
                ready_at=datetime.now(UTC),
            )
        )
        return True

    def all_delivered(self) -> bool:
        refs = self.cylinders or []
        return bool(refs) and all(ref.state == CylinderState.DELIVERED.value for ref in refs)

    def complete(self) -> None:
        self._assert_status(OrderStatus.READY_FOR_PICKUP, "complete order")
        if not self.all_delivered():
            raise InvalidOperationError("Cannot complete order. Not all cylinders are delivered")

        now = datetime.now(UTC)
        self._transition_to(OrderStatus.COMPLETED)
        self.completed_at = now
        self.raise_(
            OrderCompleted(
                order_id=str(self.id),
                customer_id=str(self.customer_id),
                cylinder_count=len(self.cylinders),
                completed_at=now,
            )
        )

    def mark_as_notified(self) -> None:
        """Stamp the pickup notification time. Repeated calls overwrite it."""
        self._assert_status(OrderStatus.READY_FOR_PICKUP, "mark order as notified")
        self.notified_at = datetime.now(UTC)
        self.raise_(
            OrderCustomerNotified(
                order_id=str(self.id),
                customer_id=str(self.customer_id),
                notified_at=self.notified_at,
            )
        )

    # -------------------------------------------------------------------
    # Read helpers
    # -------------------------------------------------------------------
    def progress(self) -> dict:
        refs = self.cylinders or []
        return {
            "total": len(refs),
            "ready": sum(1 for r in refs if r.state == CylinderState.READY.value),
            "delivered": sum(1 for r in refs if r.state == CylinderState.DELIVERED.value),
        }

    def to_summary(self) -> dict:
        return {
            "order_id": str(self.id),
            "customer_id": str(self.customer_id),
            "status": self.status,
            "created_at": self.created_at,
            "cylinder_count": len(self.cylinders or []),
        }
