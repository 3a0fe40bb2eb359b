"""DeleteCustomer — remove a customer that has never placed an order."""

import structlog
from protean.exceptions import InvalidOperationError
from protean.fields import Identifier
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from refill.customer.customer import Customer
from refill.domain import refill
from refill.order.order import RefillOrder
from shared.query import fetch_first

logger = structlog.get_logger(__name__)


@refill.command(part_of="Customer")
class DeleteCustomer:
    customer_id = Identifier(required=True)


@refill.command_handler(part_of=Customer)
class CustomerRemovalHandler:
    @handle(DeleteCustomer)
    def delete_customer(self, command):
        repo = current_domain.repository_for(Customer)
        customer = repo.get(command.customer_id)

        # Orders of any status keep the audit trail of their cylinders
        order_repo = current_domain.repository_for(RefillOrder)
        if fetch_first(order_repo, customer_id=str(customer.id)) is not None:
            raise InvalidOperationError("Cannot delete a customer with order history")

        repo._dao.delete(customer)
        logger.info("Customer deleted", customer_id=str(customer.id))
        return {"customer_id": str(customer.id)}
