"""Simulated dispatcher — auto-acknowledges jobs when no printer is configured.

Logs what would have been printed and marks the job Printed right away.
"""

import structlog
from protean.utils.globals import current_domain

from printing.dispatcher.port import PrintDispatcherPort
from printing.print_job.print_job import PrintJob

logger = structlog.get_logger(__name__)


class SimulatedPrintDispatcher(PrintDispatcherPort):
    def __init__(self):
        self.dispatched: list[str] = []

    def dispatch(
        self,
        job_id: str,
        quantity: int,
        template_id: str | None = None,
        customer_name: str | None = None,
        customer_phone: str | None = None,
        store_id: str | None = None,
    ) -> None:
        if customer_name:
            target = f"{customer_name} ({customer_phone or '-'})"
        else:
            target = f"store {store_id}"
        logger.info(
            f"[SIMULATED PRINT] Job {job_id}: {quantity} label(s) for {target}",
            print_job_id=job_id,
            template_id=template_id,
        )

        repo = current_domain.repository_for(PrintJob)
        job = repo.get(job_id)
        job.mark_printed()
        repo.add(job)

        self.dispatched.append(job_id)
