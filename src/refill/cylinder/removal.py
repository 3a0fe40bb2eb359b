"""DeleteCylinder — administrative removal of a cylinder and everything that points at it."""

import structlog
from protean.fields import Identifier
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from refill.cylinder.cylinder import Cylinder
from refill.domain import refill
from refill.history.history import CylinderHistoryEntry
from refill.order.order import RefillOrder
from refill.order.rollup import owning_order_keys
from shared.locks import lock_keys_resolver
from shared.query import fetch_all

logger = structlog.get_logger(__name__)


@refill.command(part_of="Cylinder")
class DeleteCylinder:
    cylinder_id = Identifier(required=True)


@lock_keys_resolver(DeleteCylinder)
def _owning_orders(command):
    return owning_order_keys(command.cylinder_id)


@refill.command_handler(part_of=Cylinder)
class CylinderRemovalHandler:
    @handle(DeleteCylinder)
    def delete_cylinder(self, command):
        repo = current_domain.repository_for(Cylinder)
        cylinder = repo.get(command.cylinder_id)

        # History first, then order memberships, then the cylinder itself
        history_repo = current_domain.repository_for(CylinderHistoryEntry)
        entries = fetch_all(history_repo, cylinder_id=str(cylinder.id))
        for entry in entries:
            history_repo._dao.delete(entry)

        order_repo = current_domain.repository_for(RefillOrder)
        for order in order_repo.orders_containing(cylinder.id):
            order.detach_cylinder(cylinder.id)
            order_repo.add(order)

        repo._dao.delete(cylinder)

        logger.info(
            "Cylinder deleted",
            cylinder_id=str(cylinder.id),
            sequential_number=cylinder.sequential_number,
            history_entries=len(entries),
        )
        return {"cylinder_id": str(cylinder.id)}
