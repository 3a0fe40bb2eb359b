"""CreateOrder — open a refill order for a customer.

Idempotent: a customer has at most one Open order in practice, and asking
for a new one while it exists returns the existing order.
"""

import structlog
from protean.fields import Identifier
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from refill.customer.customer import Customer
from refill.domain import refill
from refill.order.order import RefillOrder

logger = structlog.get_logger(__name__)


@refill.command(part_of="RefillOrder")
class CreateOrder:
    customer_id = Identifier(required=True)


@refill.command_handler(part_of=RefillOrder)
class CreateOrderHandler:
    @handle(CreateOrder)
    def create_order(self, command):
        customer = current_domain.repository_for(Customer).get(command.customer_id)

        repo = current_domain.repository_for(RefillOrder)
        existing = repo.open_order_of_customer(customer.id)
        if existing is not None:
            logger.info("Reusing open order", order_id=str(existing.id), customer_id=str(customer.id))
            return existing.to_summary()

        order = RefillOrder.create(customer_id=str(customer.id))
        repo.add(order)

        logger.info("Order created", order_id=str(order.id), customer_id=str(customer.id))
        return order.to_summary()
