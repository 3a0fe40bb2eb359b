"""Pickup — hand cylinders back to the customer and record pickup notifications."""

import structlog
from protean.exceptions import InvalidOperationError
from protean.fields import Identifier
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from refill.cylinder.cylinder import Cylinder
from refill.domain import refill
from refill.history.history import CylinderEventType, append_history
from refill.order.order import OrderStatus, RefillOrder
from refill.order.rollup import sync_order_status

logger = structlog.get_logger(__name__)


@refill.command(part_of="RefillOrder")
class DeliverCylinder:
    order_id = Identifier(required=True)
    cylinder_id = Identifier(required=True)


@refill.command(part_of="RefillOrder")
class MarkOrderNotified:
    order_id = Identifier(required=True)


@refill.command_handler(part_of=RefillOrder)
class PickupHandler:
    @handle(DeliverCylinder)
    def deliver_cylinder(self, command):
        repo = current_domain.repository_for(RefillOrder)
        order = repo.get(command.order_id)

        if order.status != OrderStatus.READY_FOR_PICKUP.value:
            raise InvalidOperationError(f"Order is not ready for pickup. Current status: {order.status}")
        if not order.contains(command.cylinder_id):
            raise InvalidOperationError("Cylinder does not belong to this order")

        cylinder_repo = current_domain.repository_for(Cylinder)
        cylinder = cylinder_repo.get(command.cylinder_id)
        cylinder.mark_delivered()
        cylinder_repo.add(cylinder)
        append_history(cylinder.id, CylinderEventType.DELIVERED, "Cylinder delivered to customer", order.id)

        sync_order_status(order, changed=[cylinder])
        if order.all_delivered():
            try:
                order.complete()
                logger.info("Order completed", order_id=str(order.id))
            except InvalidOperationError as exc:
                logger.info("Order already completed", order_id=str(order.id), reason=str(exc))
        repo.add(order)

        progress = order.progress()
        return {
            "cylinder_id": str(cylinder.id),
            "state": cylinder.state,
            "order_id": str(order.id),
            "order_status": order.status,
            "total": progress["total"],
            "delivered": progress["delivered"],
            "is_order_complete": order.status == OrderStatus.COMPLETED.value,
        }

    @handle(MarkOrderNotified)
    def mark_notified(self, command):
        repo = current_domain.repository_for(RefillOrder)
        order = repo.get(command.order_id)
        order.mark_as_notified()
        repo.add(order)
        return {"order_id": str(order.id), "notified_at": order.notified_at}
