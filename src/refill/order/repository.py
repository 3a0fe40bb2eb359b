"""Repository lookups for the RefillOrder aggregate."""

from refill.domain import refill
from refill.order.order import OrderStatus, RefillOrder
from shared.query import fetch_all


def _newest_first(orders: list[RefillOrder]) -> list[RefillOrder]:
    return sorted(orders, key=lambda o: o.created_at, reverse=True)


@refill.repository(part_of=RefillOrder)
class RefillOrderRepository:
    def orders_of_customer(self, customer_id) -> list[RefillOrder]:
        """All orders of a customer, newest first."""
        return _newest_first(fetch_all(self, customer_id=str(customer_id)))

    def open_order_of_customer(self, customer_id) -> RefillOrder | None:
        """The customer's most recently created Open order, if any."""
        orders = fetch_all(self, customer_id=str(customer_id), status=OrderStatus.OPEN.value)
        return next(iter(_newest_first(orders)), None)

    def orders_with_status(self, status: OrderStatus) -> list[RefillOrder]:
        return sorted(fetch_all(self, status=status.value), key=lambda o: o.created_at)

    def orders_containing(self, cylinder_id) -> list[RefillOrder]:
        """Every order the cylinder belongs to, newest first."""
        return _newest_first([o for o in fetch_all(self) if o.contains(cylinder_id)])

    def open_order_containing(self, cylinder_id, exclude_order_id=None) -> RefillOrder | None:
        for order in self.orders_with_status(OrderStatus.OPEN):
            if exclude_order_id is not None and str(order.id) == str(exclude_order_id):
                continue
            if order.contains(cylinder_id):
                return order
        return None
