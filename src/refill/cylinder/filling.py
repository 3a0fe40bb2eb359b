"""Cylinder filling — mark cylinders full, one at a time or for a whole order, and report problems."""

import structlog
from protean.exceptions import InvalidOperationError, ObjectNotFoundError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from refill.cylinder.cylinder import Cylinder, CylinderState
from refill.domain import refill
from refill.history.history import CylinderEventType, append_history
from refill.order.order import OrderStatus, RefillOrder
from refill.order.rollup import member_cylinders, owning_order_keys, sync_order_status
from shared.locks import identity_key, lock_keys_resolver

logger = structlog.get_logger(__name__)


@refill.command(part_of="Cylinder")
class MarkCylinderReady:
    cylinder_id = Identifier(required=True)


@refill.command(part_of="Cylinder")
class ReportCylinderProblem:
    cylinder_id = Identifier(required=True)
    problem_type = String(required=True, max_length=50)
    notes = Text()


@refill.command(part_of="RefillOrder")
class MarkCylindersReadyBatch:
    """Mark every cylinder of an order that is not yet Ready as full."""

    order_id = Identifier(required=True)


@lock_keys_resolver(MarkCylinderReady, ReportCylinderProblem)
def _owning_orders(command):
    return owning_order_keys(command.cylinder_id)


@lock_keys_resolver(MarkCylindersReadyBatch)
def _member_cylinders(command):
    try:
        order = current_domain.repository_for(RefillOrder).get(command.order_id)
    except ObjectNotFoundError:
        return []
    return [identity_key("cylinder_id", cylinder_id) for cylinder_id in order.cylinder_ids]


def _owning_order(cylinder_id) -> RefillOrder | None:
    repo = current_domain.repository_for(RefillOrder)
    order = repo.open_order_containing(cylinder_id)
    if order is None:
        order = next(iter(repo.orders_containing(cylinder_id)), None)
    return order


@refill.command_handler(part_of=Cylinder)
class FillingHandler:
    @handle(MarkCylinderReady)
    def mark_ready(self, command):
        repo = current_domain.repository_for(Cylinder)
        cylinder = repo.get(command.cylinder_id)

        order = _owning_order(cylinder.id)
        if order is None:
            raise InvalidOperationError("Cylinder does not belong to any order")

        cylinder.mark_ready()
        repo.add(cylinder)
        append_history(cylinder.id, CylinderEventType.MARKED_READY, "Cylinder marked as full", order.id)

        sync_order_status(order, changed=[cylinder])
        current_domain.repository_for(RefillOrder).add(order)

        progress = order.progress()
        return {
            "cylinder_id": str(cylinder.id),
            "state": cylinder.state,
            "order_id": str(order.id),
            "order_status": order.status,
            "total": progress["total"],
            "ready": progress["ready"],
            "is_order_complete": order.status == OrderStatus.READY_FOR_PICKUP.value,
        }

    @handle(ReportCylinderProblem)
    def report_problem(self, command):
        repo = current_domain.repository_for(Cylinder)
        cylinder = repo.get(command.cylinder_id)

        stored_notes = cylinder.report_problem(command.problem_type, command.notes)
        repo.add(cylinder)

        order_repo = current_domain.repository_for(RefillOrder)
        order = order_repo.open_order_containing(cylinder.id)
        append_history(
            cylinder.id,
            CylinderEventType.PROBLEM_REPORTED,
            stored_notes,
            order.id if order else None,
        )
        if order is not None:
            sync_order_status(order, changed=[cylinder])
            order_repo.add(order)

        logger.info(
            "Cylinder problem reported",
            cylinder_id=str(cylinder.id),
            problem_type=command.problem_type,
        )
        return {
            "cylinder_id": str(cylinder.id),
            "state": cylinder.state,
            "type": command.problem_type,
            "notes": stored_notes,
        }


@refill.command_handler(part_of=RefillOrder)
class BatchFillingHandler:
    @handle(MarkCylindersReadyBatch)
    def mark_ready_batch(self, command):
        order_repo = current_domain.repository_for(RefillOrder)
        order = order_repo.get(command.order_id)

        cylinders = member_cylinders(order)
        candidates = [c for c in cylinders if c.state != CylinderState.READY.value]
        if not candidates:
            raise InvalidOperationError("No cylinders to mark as ready in this order")

        repo = current_domain.repository_for(Cylinder)
        marked_count = 0
        for cylinder in candidates:
            try:
                cylinder.mark_ready()
            except InvalidOperationError as exc:
                logger.warning(
                    "Skipping cylinder in batch",
                    order_id=str(order.id),
                    cylinder_id=str(cylinder.id),
                    error=str(exc),
                )
                continue

            repo.add(cylinder)
            append_history(
                cylinder.id,
                CylinderEventType.MARKED_READY,
                "Cylinder marked as full (batch)",
                order.id,
            )
            marked_count += 1

        sync_order_status(order, changed=cylinders)
        order_repo.add(order)

        progress = order.progress()
        return {
            "order_id": str(order.id),
            "marked_count": marked_count,
            "order_status": order.status,
            "total": progress["total"],
            "ready": progress["ready"],
            "is_order_complete": order.status == OrderStatus.READY_FOR_PICKUP.value,
        }
