"""Cylinder intake — bring cylinders into an Open order.

A scanned token is resolved against existing cylinders (sequential number
first, label token second); receiving creates brand-new cylinders with
fresh sequential numbers. A cylinder may sit in at most one Open order.
"""

import structlog
from protean.exceptions import InvalidOperationError, ValidationError
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from refill.cylinder.cylinder import Cylinder
from refill.cylinder.labelling import ensure_label_available, label_lock_keys
from refill.cylinder.sequence import SEQUENCE_LOCK_KEY, allocate_sequential_numbers
from refill.domain import refill
from refill.history.history import CylinderEventType, append_history
from refill.order.order import RefillOrder
from refill.shared.label import LabelToken
from shared.locks import identity_key, lock_keys_resolver

logger = structlog.get_logger(__name__)

MAX_BATCH_QUANTITY = 50


@refill.command(part_of="RefillOrder")
class ScanCylinderToOrder:
    order_id = Identifier(required=True)
    qr_token = String(max_length=100)


@refill.command(part_of="RefillOrder")
class ReceiveCylinder:
    """Register a new cylinder straight into an order."""

    __lock_keys__ = (SEQUENCE_LOCK_KEY,)

    order_id = Identifier(required=True)
    label_token = String(max_length=100)


@refill.command(part_of="RefillOrder")
class ReceiveCylinders:
    """Register ``quantity`` new, unlabelled cylinders into an order."""

    __lock_keys__ = (SEQUENCE_LOCK_KEY,)

    order_id = Identifier(required=True)
    quantity = Integer()


def resolve_scanned_cylinder(raw: str | None) -> Cylinder | None:
    """Find the cylinder a scanned token refers to.

    "#0007" and "0007" mean sequential number 7. Anything that is not a
    positive number, or a number no cylinder carries, is looked up as a
    label token.
    """
    if raw is None or not raw.strip():
        raise ValidationError({"qr_token": ["Scanned token cannot be empty"]})

    repo = current_domain.repository_for(Cylinder)
    number = raw.strip().lstrip("#0")
    if number.isascii() and number.isdigit():
        cylinder = repo.find_by_sequential_number(int(number))
        if cylinder is not None:
            return cylinder

    return repo.find_by_label(LabelToken.create(raw))


@lock_keys_resolver(ScanCylinderToOrder)
def _scanned_cylinder(command):
    try:
        cylinder = resolve_scanned_cylinder(command.qr_token)
    except ValidationError:
        return []
    return [identity_key("cylinder_id", cylinder.id)] if cylinder is not None else []


@lock_keys_resolver(ReceiveCylinder)
def _claimed_label(command):
    return label_lock_keys(command.label_token)


def _optional_label(raw: str | None) -> LabelToken | None:
    if raw is None or not raw.strip():
        return None
    return LabelToken.create(raw)


def _receive(order: RefillOrder, sequential_number: int, token: LabelToken | None = None) -> Cylinder:
    cylinder = Cylinder.receive(sequential_number, token)
    order.add_cylinder(cylinder)
    current_domain.repository_for(Cylinder).add(cylinder)

    append_history(cylinder.id, CylinderEventType.RECEIVED, "Cylinder received", order.id)
    if token is not None:
        append_history(
            cylinder.id,
            CylinderEventType.LABEL_ASSIGNED,
            f"Label assigned: {token.value}",
            order.id,
        )
    return cylinder


@refill.command_handler(part_of=RefillOrder)
class IntakeHandler:
    @handle(ScanCylinderToOrder)
    def scan_cylinder(self, command):
        repo = current_domain.repository_for(RefillOrder)
        order = repo.get(command.order_id)

        cylinder = resolve_scanned_cylinder(command.qr_token)
        if cylinder is None:
            raise ValidationError({"qr_token": ["Cylinder not found"]})

        if repo.open_order_containing(cylinder.id, exclude_order_id=order.id) is not None:
            raise InvalidOperationError("Cylinder is already in another open order")

        order.add_cylinder(cylinder)
        repo.add(order)

        logger.info(
            "Cylinder scanned into order",
            order_id=str(order.id),
            cylinder_id=str(cylinder.id),
            sequential_number=cylinder.sequential_number,
        )
        return cylinder.to_summary()

    @handle(ReceiveCylinder)
    def receive_cylinder(self, command):
        repo = current_domain.repository_for(RefillOrder)
        order = repo.get(command.order_id)

        token = _optional_label(command.label_token)
        if token is not None:
            ensure_label_available(token)

        (number,) = allocate_sequential_numbers(1)
        cylinder = _receive(order, number, token)
        repo.add(order)

        logger.info(
            "Cylinder received",
            order_id=str(order.id),
            cylinder_id=str(cylinder.id),
            sequential_number=number,
        )
        return cylinder.to_summary()

    @handle(ReceiveCylinders)
    def receive_cylinders(self, command):
        quantity = command.quantity or 0
        if quantity < 1 or quantity > MAX_BATCH_QUANTITY:
            raise ValidationError({"quantity": [f"Quantity must be between 1 and {MAX_BATCH_QUANTITY}"]})

        repo = current_domain.repository_for(RefillOrder)
        order = repo.get(command.order_id)

        cylinders = [_receive(order, number) for number in allocate_sequential_numbers(quantity)]
        repo.add(order)

        logger.info("Cylinders received", order_id=str(order.id), count=len(cylinders))
        return {
            "order_id": str(order.id),
            "cylinders": [c.to_summary() for c in cylinders],
            "cylinder_count": len(order.cylinders),
        }
