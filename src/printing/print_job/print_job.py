"""PrintJob aggregate — a request to print N cylinder labels.

State Machine:
    PENDING → DISPATCHED → PRINTED
    DISPATCHED → FAILED

Printed and Failed are terminal. A failed job is never retried; callers
create a new one.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import InvalidOperationError, ValidationError
from protean.fields import DateTime, Identifier, Integer, String

from printing.domain import printing
from printing.print_job.events import (
    PrintJobCreated,
    PrintJobDispatched,
    PrintJobFailed,
    PrintJobPrinted,
)


class PrintJobStatus(Enum):
    PENDING = "Pending"
    DISPATCHED = "Dispatched"
    PRINTED = "Printed"
    FAILED = "Failed"


_VALID_TRANSITIONS = {
    PrintJobStatus.PENDING: {PrintJobStatus.DISPATCHED},
    PrintJobStatus.DISPATCHED: {PrintJobStatus.PRINTED, PrintJobStatus.FAILED},
    PrintJobStatus.PRINTED: set(),  # terminal
    PrintJobStatus.FAILED: set(),  # terminal
}


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


@printing.aggregate
class PrintJob:
    store_id = Identifier(required=True)
    quantity = Integer(required=True)
    template_id = String(max_length=100)
    status = String(
        max_length=20,
        choices=PrintJobStatus,
        default=PrintJobStatus.PENDING.value,
    )
    error_message = String(max_length=500)
    created_at = DateTime()
    completed_at = DateTime()

    @classmethod
    def create(cls, store_id: str, quantity: int, template_id: str | None = None):
        if quantity is None or quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be greater than zero"]})

        now = datetime.now(UTC)
        job = cls(
            store_id=store_id,
            quantity=quantity,
            template_id=template_id,
            status=PrintJobStatus.PENDING.value,
            created_at=now,
        )
        job.raise_(
            PrintJobCreated(
                print_job_id=str(job.id),
                store_id=str(store_id),
                quantity=quantity,
                template_id=template_id,
                created_at=now,
            )
        )
        return job

    def _transition_to(self, target: PrintJobStatus) -> None:
        current = PrintJobStatus(self.status)
        if target not in _VALID_TRANSITIONS[current]:
            raise InvalidOperationError(f"Cannot mark as {target.value}. Current status: {current.value}")
        self.status = target.value

    def dispatch(self, customer_name: str | None = None, customer_phone: str | None = None) -> None:
        self._transition_to(PrintJobStatus.DISPATCHED)
        self.raise_(
            PrintJobDispatched(
                print_job_id=str(self.id),
                store_id=str(self.store_id),
                quantity=self.quantity,
                template_id=self.template_id,
                customer_name=customer_name,
                customer_phone=customer_phone,
                dispatched_at=datetime.now(UTC),
            )
        )

    def mark_printed(self) -> None:
        self._transition_to(PrintJobStatus.PRINTED)
        self.completed_at = datetime.now(UTC)
        self.raise_(PrintJobPrinted(print_job_id=str(self.id), printed_at=self.completed_at))

    def mark_failed(self, error_message: str) -> None:
        if error_message is None or not error_message.strip():
            raise ValidationError({"error_message": ["Error message cannot be empty"]})

        self._transition_to(PrintJobStatus.FAILED)
        self.error_message = error_message.strip()
        self.completed_at = datetime.now(UTC)
        self.raise_(
            PrintJobFailed(
                print_job_id=str(self.id),
                error_message=self.error_message,
                failed_at=self.completed_at,
            )
        )

    def to_snapshot(self) -> dict:
        return {
            "print_job_id": str(self.id),
            "store_id": str(self.store_id),
            "status": self.status,
            "quantity": self.quantity,
            "template_id": self.template_id,
            "error_message": self.error_message,
            "created_at": _iso(self.created_at),
            "completed_at": _iso(self.completed_at),
        }
