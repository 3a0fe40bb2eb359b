"""Print dispatcher port — abstract interface for handing jobs to a print worker.

Dispatch is fire-and-forget: nothing is returned, and the job's final
status arrives later through an acknowledgment command.
"""

from abc import ABC, abstractmethod


class PrintDispatcherPort(ABC):
    """Abstract interface for print dispatchers."""

    @abstractmethod
    def dispatch(
        self,
        job_id: str,
        quantity: int,
        template_id: str | None = None,
        customer_name: str | None = None,
        customer_phone: str | None = None,
        store_id: str | None = None,
    ) -> None:
        """Hand a print job to the worker."""
        ...
