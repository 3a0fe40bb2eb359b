"""Shared BDD fixtures and step definitions for the Refill domain."""

import pytest
from pytest_bdd import parsers, then
from refill.order.events import CylinderAddedToOrder, OrderBecameReadyForPickup, OrderCompleted

# Map event name strings to classes for dynamic lookup in Then steps
_ORDER_EVENT_CLASSES = {
    "CylinderAddedToOrder": CylinderAddedToOrder,
    "OrderBecameReadyForPickup": OrderBecameReadyForPickup,
    "OrderCompleted": OrderCompleted,
}


@pytest.fixture()
def cylinders():
    """Cylinders taking part in the scenario, in drop-off order."""
    return []


@pytest.fixture()
def error():
    """Container for captured errors."""
    return {"exc": None}


@pytest.fixture()
def outcome():
    """Container for the last command result."""
    return {"result": None}


@then(parsers.cfparse("exactly {count:d} {event_type} event is raised"))
def _(order, count, event_type):
    event_cls = _ORDER_EVENT_CLASSES[event_type]
    raised = [e for e in order._events if isinstance(e, event_cls)]
    assert len(raised) == count, f"Events: {[type(e).__name__ for e in order._events]}"
