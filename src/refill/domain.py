"""Refill bounded context — Customers, Cylinders and Refill Orders.

Tracks reusable gas cylinders through the shop workflow: a customer drops
off cylinders (an order), each cylinder is filled, the order is held for
pickup once every cylinder is full, and cylinders are delivered back.
Uses CQRS with a per-cylinder audit ledger.
"""

from protean.domain import Domain

from shared.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

refill = Domain(name="refill")
