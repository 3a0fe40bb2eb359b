"""Read paths over the refill context.

Plain functions over repositories for the counter, filling station and
pickup screens. None of them write.
"""

import re
from datetime import UTC, datetime, timedelta

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from refill.customer.customer import Customer
from refill.cylinder.cylinder import Cylinder, CylinderState
from refill.history.history import CylinderEventType, CylinderHistoryEntry, history_for
from refill.order.order import OrderStatus, RefillOrder
from refill.order.rollup import member_cylinders
from refill.shared.label import LabelToken
from shared.query import fetch_all

SEARCH_LIMIT = 50


def _aware(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _customer_or_none(customer_id) -> Customer | None:
    try:
        return current_domain.repository_for(Customer).get(customer_id)
    except ObjectNotFoundError:
        return None


def _cylinder_or_none(cylinder_id) -> Cylinder | None:
    try:
        return current_domain.repository_for(Cylinder).get(cylinder_id)
    except ObjectNotFoundError:
        return None


def _cylinder_detail(cylinder: Cylinder) -> dict:
    return {
        **cylinder.to_summary(),
        "occurrence_notes": cylinder.occurrence_notes,
        "created_at": cylinder.created_at,
    }


def _history(cylinder_id) -> list[dict]:
    return [entry.to_dict_summary() for entry in history_for(cylinder_id)]


def _matches(customer: Customer, term: str) -> bool:
    term = term.strip().lower()
    digits = re.sub(r"\D", "", term)
    return term in customer.name.lower() or bool(digits and digits in customer.phone)


# ---------------------------------------------------------------------------
# Customer lookup
# ---------------------------------------------------------------------------
def search_customers(query: str | None) -> list[dict]:
    """Customers whose name or phone contains ``query``, ordered by name."""
    if query is None or not query.strip():
        return []

    customers = fetch_all(current_domain.repository_for(Customer))
    found = sorted((c for c in customers if _matches(c, query)), key=lambda c: c.name.lower())
    return [c.to_summary() for c in found[:SEARCH_LIMIT]]


def customer_cylinders(customer_id) -> dict | None:
    """A customer with every order (newest first) and each order's cylinders and their history."""
    customer = _customer_or_none(customer_id)
    if customer is None:
        return None

    orders = []
    for order in current_domain.repository_for(RefillOrder).orders_of_customer(customer.id):
        orders.append(
            {
                "order_id": str(order.id),
                "status": order.status,
                "created_at": order.created_at,
                "completed_at": order.completed_at,
                "cylinders": [
                    {**_cylinder_detail(c), "history": _history(c.id)} for c in member_cylinders(order)
                ],
            }
        )
    return {**customer.to_summary(), "orders": orders}


# ---------------------------------------------------------------------------
# Cylinder lookup
# ---------------------------------------------------------------------------
def cylinder_history(cylinder_id) -> dict | None:
    cylinder = _cylinder_or_none(cylinder_id)
    if cylinder is None:
        return None
    return {**_cylinder_detail(cylinder), "history": _history(cylinder.id)}


def cylinder_by_token(token: str | None) -> dict | None:
    """Look a cylinder up by its label, with its latest order and owner."""
    if token is None or not token.strip():
        return None

    cylinder = current_domain.repository_for(Cylinder).find_by_label(LabelToken.create(token))
    if cylinder is None:
        return None

    result = {
        **_cylinder_detail(cylinder),
        "history": _history(cylinder.id),
        "order_id": None,
        "order_status": None,
        "customer_name": None,
        "customer_phone": None,
    }

    orders = current_domain.repository_for(RefillOrder).orders_containing(cylinder.id)
    if orders:
        latest = orders[0]
        result["order_id"] = str(latest.id)
        result["order_status"] = latest.status
        customer = _customer_or_none(latest.customer_id)
        if customer is not None:
            result["customer_name"] = customer.name
            result["customer_phone"] = customer.phone
    return result


# ---------------------------------------------------------------------------
# Filling station and pickup counter
# ---------------------------------------------------------------------------
def filling_queue() -> list[dict]:
    """Cylinders waiting to be filled, oldest order first."""
    queue = []
    for order in current_domain.repository_for(RefillOrder).orders_with_status(OrderStatus.OPEN):
        cylinders = member_cylinders(order)
        customer = _customer_or_none(order.customer_id)
        ready = sum(1 for c in cylinders if c.state == CylinderState.READY.value)

        for cylinder in cylinders:
            if cylinder.state != CylinderState.RECEIVED.value:
                continue
            queue.append(
                {
                    **cylinder.to_summary(),
                    "order_id": str(order.id),
                    "order_created_at": order.created_at,
                    "customer_name": customer.name if customer else None,
                    "customer_phone": customer.phone if customer else None,
                    "order_total": len(cylinders),
                    "order_ready": ready,
                }
            )
    return queue


def ready_for_pickup(search: str | None = None) -> list[dict]:
    """Orders waiting at the counter, oldest first, optionally filtered by customer."""
    results = []
    for order in current_domain.repository_for(RefillOrder).orders_with_status(OrderStatus.READY_FOR_PICKUP):
        customer = _customer_or_none(order.customer_id)
        if search and search.strip() and (customer is None or not _matches(customer, search)):
            continue

        cylinders = member_cylinders(order)
        results.append(
            {
                "order_id": str(order.id),
                "customer_id": str(order.customer_id),
                "customer_name": customer.name if customer else None,
                "customer_phone": customer.phone if customer else None,
                "created_at": order.created_at,
                "notified_at": order.notified_at,
                "needs_notification": order.needs_notification,
                "cylinders": [c.to_summary() for c in cylinders],
                "total": len(cylinders),
                "delivered": sum(1 for c in cylinders if c.state == CylinderState.DELIVERED.value),
            }
        )
    return results


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------
def dashboard_stats(now: datetime | None = None) -> dict:
    now = _aware(now) or datetime.now(UTC)
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    week_ago = now - timedelta(days=7)

    orders = fetch_all(current_domain.repository_for(RefillOrder))
    cylinders = fetch_all(current_domain.repository_for(Cylinder))
    fills = fetch_all(
        current_domain.repository_for(CylinderHistoryEntry),
        event_type=CylinderEventType.MARKED_READY.value,
    )

    def count_orders(status: OrderStatus) -> int:
        return sum(1 for o in orders if o.status == status.value)

    def count_cylinders(state: CylinderState) -> int:
        return sum(1 for c in cylinders if c.state == state.value)

    completed = [_aware(o.completed_at) for o in orders if o.status == OrderStatus.COMPLETED.value and o.completed_at]
    filled = [_aware(entry.occurred_at) for entry in fills]

    return {
        "orders_open": count_orders(OrderStatus.OPEN),
        "orders_ready_for_pickup": count_orders(OrderStatus.READY_FOR_PICKUP),
        "orders_awaiting_notification": sum(1 for o in orders if o.needs_notification),
        "orders_completed_today": sum(1 for at in completed if at >= today),
        "orders_completed_this_week": sum(1 for at in completed if at >= week_ago),
        "cylinders_received": count_cylinders(CylinderState.RECEIVED),
        "cylinders_ready": count_cylinders(CylinderState.READY),
        "cylinders_with_problem": count_cylinders(CylinderState.PROBLEM),
        "cylinders_filled_today": sum(1 for at in filled if at >= today),
        "cylinders_filled_this_week": sum(1 for at in filled if at >= week_ago),
        "total_customers": len(fetch_all(current_domain.repository_for(Customer))),
    }
