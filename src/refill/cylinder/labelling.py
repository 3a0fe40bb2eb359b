"""AssignLabel — attach a scanned QR label to a cylinder.

A label token identifies exactly one cylinder; the uniqueness check runs
here because it spans cylinders.
"""

import structlog
from protean.exceptions import InvalidOperationError, ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from refill.cylinder.cylinder import Cylinder
from refill.domain import refill
from refill.history.history import CylinderEventType, append_history
from refill.order.order import RefillOrder
from refill.shared.label import LabelToken
from shared.locks import lock_keys_resolver

logger = structlog.get_logger(__name__)


@refill.command(part_of="Cylinder")
class AssignLabel:
    cylinder_id = Identifier(required=True)
    qr_token = String(max_length=100)


def label_lock_keys(raw: str | None) -> list[str]:
    """Lock key for claiming the normalized label ``raw``, if it is a valid label."""
    try:
        return [f"label:{LabelToken.create(raw).value}"]
    except ValidationError:
        return []


@lock_keys_resolver(AssignLabel)
def _claimed_label(command):
    return label_lock_keys(command.qr_token)


def ensure_label_available(token: LabelToken, cylinder_id=None) -> None:
    """Fail if ``token`` is held by a cylinder other than ``cylinder_id``."""
    holder = current_domain.repository_for(Cylinder).find_by_label(token)
    if holder is not None and str(holder.id) != str(cylinder_id):
        raise InvalidOperationError("This label is already in use by another cylinder")


@refill.command_handler(part_of=Cylinder)
class LabellingHandler:
    @handle(AssignLabel)
    def assign_label(self, command):
        token = LabelToken.create(command.qr_token)

        repo = current_domain.repository_for(Cylinder)
        cylinder = repo.get(command.cylinder_id)
        ensure_label_available(token, cylinder.id)

        previous = cylinder.label_token
        if cylinder.assign_label(token):
            repo.add(cylinder)

            if previous:
                details = f"Label changed: {previous} → {token.value}"
            else:
                details = f"Label assigned: {token.value}"
            order = current_domain.repository_for(RefillOrder).open_order_containing(cylinder.id)
            append_history(
                cylinder.id,
                CylinderEventType.LABEL_ASSIGNED,
                details,
                order.id if order else None,
            )
            logger.info("Label assigned", cylinder_id=str(cylinder.id), label_token=token.value)

        return {
            "cylinder_id": str(cylinder.id),
            "label_token": cylinder.label_token,
            "previous_label_token": previous,
        }
