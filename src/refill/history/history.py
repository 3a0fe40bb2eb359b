"""Cylinder history ledger — append-only audit trail of cylinder lifecycle events.

Entries are written by the command handlers alongside every cylinder
transition and are never mutated. They are removed only together with
their cylinder (administrative deletion).
"""

from datetime import UTC, datetime
from enum import Enum

from protean.fields import DateTime, Identifier, String
from protean.utils.globals import current_domain

from refill.domain import refill
from shared.query import fetch_all


class CylinderEventType(Enum):
    RECEIVED = "Received"
    LABEL_ASSIGNED = "LabelAssigned"
    MARKED_READY = "MarkedReady"
    DELIVERED = "Delivered"
    PROBLEM_REPORTED = "ProblemReported"


@refill.aggregate
class CylinderHistoryEntry:
    cylinder_id = Identifier(required=True)
    event_type = String(required=True, max_length=30, choices=CylinderEventType)
    details = String(max_length=500)
    order_id = Identifier()
    occurred_at = DateTime(required=True)

    @classmethod
    def record(
        cls,
        cylinder_id: str,
        event_type: CylinderEventType,
        details: str | None = None,
        order_id: str | None = None,
    ):
        return cls(
            cylinder_id=cylinder_id,
            event_type=event_type.value,
            details=details,
            order_id=order_id,
            occurred_at=datetime.now(UTC),
        )

    def to_dict_summary(self) -> dict:
        return {
            "event_type": self.event_type,
            "details": self.details,
            "order_id": str(self.order_id) if self.order_id else None,
            "occurred_at": self.occurred_at,
        }


def append_history(
    cylinder_id: str,
    event_type: CylinderEventType,
    details: str | None = None,
    order_id: str | None = None,
) -> CylinderHistoryEntry:
    """Append an entry to the ledger within the current unit of work."""
    entry = CylinderHistoryEntry.record(
        cylinder_id=str(cylinder_id),
        event_type=event_type,
        details=details,
        order_id=str(order_id) if order_id else None,
    )
    current_domain.repository_for(CylinderHistoryEntry).add(entry)
    return entry


def history_for(cylinder_id: str) -> list[CylinderHistoryEntry]:
    """Entries of one cylinder, newest first."""
    repo = current_domain.repository_for(CylinderHistoryEntry)
    entries = fetch_all(repo, cylinder_id=str(cylinder_id))
    return sorted(entries, key=lambda e: e.occurred_at, reverse=True)
