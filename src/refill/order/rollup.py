"""Status rollup — derive an order's status from its member cylinders.

Always works from the authoritative Cylinder records. Cylinders changed
earlier in the same unit of work are passed in explicitly so their new
state is used instead of the persisted one.
"""

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from refill.cylinder.cylinder import Cylinder
from refill.order.order import RefillOrder
from shared.locks import identity_key

logger = structlog.get_logger(__name__)


def member_cylinders(order: RefillOrder, changed=()) -> list[Cylinder]:
    overrides = {str(c.id): c for c in changed}
    repo = current_domain.repository_for(Cylinder)

    cylinders = []
    for cylinder_id in order.cylinder_ids:
        if cylinder_id in overrides:
            cylinders.append(overrides[cylinder_id])
            continue
        try:
            cylinders.append(repo.get(cylinder_id))
        except ObjectNotFoundError:
            logger.warning(
                "Order references a missing cylinder",
                order_id=str(order.id),
                cylinder_id=cylinder_id,
            )
    return cylinders


def owning_order_keys(cylinder_id) -> list[str]:
    """Lock keys of every order the cylinder belongs to."""
    orders = current_domain.repository_for(RefillOrder).orders_containing(cylinder_id)
    return [identity_key("order_id", order.id) for order in orders]


def sync_order_status(order: RefillOrder, changed=()) -> bool:
    """Refresh the order's cylinder refs and promote it if every cylinder is Ready.

    The refs are refreshed whatever the order status, so progress counts
    stay accurate after the order has left Open.
    """
    cylinders = member_cylinders(order, changed)
    order.refresh_cylinder_states(cylinders)
    promoted = order.check_and_update_status(cylinders)
    if promoted:
        logger.info(
            "Order ready for pickup",
            order_id=str(order.id),
            customer_id=str(order.customer_id),
        )
    return promoted
