"""Internal dispatch handler — hands dispatched print jobs to the print worker.

Reacts to PrintJobDispatched events and calls the configured dispatcher.
Dispatch is fire-and-forget: a dispatcher error is logged and the job
stays Dispatched until someone acknowledges it.
"""

import structlog
from protean.utils.mixins import handle

from printing.dispatcher import get_dispatcher
from printing.domain import printing
from printing.print_job.events import PrintJobDispatched
from printing.print_job.print_job import PrintJob

logger = structlog.get_logger(__name__)


@printing.event_handler(part_of=PrintJob)
class PrintJobDispatcher:
    @handle(PrintJobDispatched)
    def on_print_job_dispatched(self, event: PrintJobDispatched) -> None:
        try:
            get_dispatcher().dispatch(
                job_id=str(event.print_job_id),
                quantity=event.quantity,
                template_id=event.template_id,
                customer_name=event.customer_name,
                customer_phone=event.customer_phone,
                store_id=str(event.store_id),
            )
        except Exception as e:
            logger.error(
                "Print dispatch failed",
                print_job_id=str(event.print_job_id),
                error=str(e),
            )
