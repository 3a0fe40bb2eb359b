"""Cylinder aggregate — a reusable gas container moving through the refill workflow.

State Machine:
    RECEIVED → READY → DELIVERED
    {RECEIVED, READY, DELIVERED, PROBLEM} → PROBLEM

Problem is terminal by convention only: reporting a problem never checks
the current state, so a cylinder can re-enter Problem from anywhere.
Label uniqueness across cylinders is enforced by the commands that assign
labels, not here.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import InvalidOperationError, ValidationError
from protean.fields import DateTime, Integer, String, Text

from refill.cylinder.events import (
    CylinderDelivered,
    CylinderMarkedReady,
    CylinderReceived,
    LabelAssigned,
)
from refill.domain import refill
from refill.shared.label import LabelToken


class CylinderState(Enum):
    RECEIVED = "Received"
    READY = "Ready"
    DELIVERED = "Delivered"
    PROBLEM = "Problem"


_VALID_TRANSITIONS = {
    CylinderState.RECEIVED: {CylinderState.READY, CylinderState.PROBLEM},
    CylinderState.READY: {CylinderState.DELIVERED, CylinderState.PROBLEM},
    CylinderState.DELIVERED: {CylinderState.PROBLEM},
    CylinderState.PROBLEM: {CylinderState.PROBLEM},
}


@refill.aggregate
class Cylinder:
    sequential_number = Integer(required=True, min_value=1, unique=True)
    label_token = String(max_length=100)
    state = String(
        max_length=20,
        choices=CylinderState,
        default=CylinderState.RECEIVED.value,
    )
    occurrence_notes = Text()
    created_at = DateTime()

    @classmethod
    def receive(cls, sequential_number: int, label_token: LabelToken | None = None):
        """Register a new cylinder in Received state."""
        now = datetime.now(UTC)
        cylinder = cls(
            sequential_number=sequential_number,
            label_token=label_token.value if label_token else None,
            state=CylinderState.RECEIVED.value,
            created_at=now,
        )
        cylinder.raise_(
            CylinderReceived(
                cylinder_id=str(cylinder.id),
                sequential_number=sequential_number,
                label_token=cylinder.label_token,
                received_at=now,
            )
        )
        return cylinder

    def _assert_can_transition(self, target: CylinderState) -> None:
        current = CylinderState(self.state)
        if target not in _VALID_TRANSITIONS[current]:
            raise InvalidOperationError(f"Cannot mark cylinder as {target.value}. Current state: {current.value}")

    def mark_ready(self) -> None:
        self._assert_can_transition(CylinderState.READY)
        self.state = CylinderState.READY.value
        self.raise_(
            CylinderMarkedReady(
                cylinder_id=str(self.id),
                sequential_number=self.sequential_number,
                marked_at=datetime.now(UTC),
            )
        )

    def mark_delivered(self) -> None:
        self._assert_can_transition(CylinderState.DELIVERED)
        self.state = CylinderState.DELIVERED.value
        self.raise_(
            CylinderDelivered(
                cylinder_id=str(self.id),
                sequential_number=self.sequential_number,
                delivered_at=datetime.now(UTC),
            )
        )

    def report_problem(self, problem_type: str, notes: str) -> str:
        """Move the cylinder to Problem and record the occurrence notes.

        Returns the stored notes, formatted as ``[type] notes``. No event is
        raised; callers append the history entry themselves.
        """
        if notes is None or not notes.strip():
            raise ValidationError({"notes": ["Problem notes cannot be empty"]})

        self.state = CylinderState.PROBLEM.value
        self.occurrence_notes = f"[{problem_type}] {notes.strip()}"
        return self.occurrence_notes

    def assign_label(self, token: LabelToken) -> bool:
        """Attach ``token`` to the cylinder.

        Returns False (and raises nothing) when the cylinder already carries
        the same normalized token.
        """
        if self.label_token == token.value:
            return False

        previous = self.label_token
        self.label_token = token.value
        self.raise_(
            LabelAssigned(
                cylinder_id=str(self.id),
                label_token=token.value,
                previous_label_token=previous,
                assigned_at=datetime.now(UTC),
            )
        )
        return True

    def to_summary(self) -> dict:
        return {
            "cylinder_id": str(self.id),
            "sequential_number": self.sequential_number,
            "label_token": self.label_token,
            "state": self.state,
        }
