"""CreatePrintJob — request a batch of cylinder labels.

The job is created Pending and moved to Dispatched in the same unit of
work; the PrintJobDispatched event then hands it to the dispatcher.
"""

import structlog
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from printing.domain import printing
from printing.print_job.print_job import PrintJob

logger = structlog.get_logger(__name__)


@printing.command(part_of="PrintJob")
class CreatePrintJob:
    store_id = Identifier(required=True)
    quantity = Integer()
    template_id = String(max_length=100)
    customer_name = String(max_length=200)
    customer_phone = String(max_length=30)


@printing.command_handler(part_of=PrintJob)
class CreatePrintJobHandler:
    @handle(CreatePrintJob)
    def create_print_job(self, command):
        repo = current_domain.repository_for(PrintJob)

        job = PrintJob.create(
            store_id=command.store_id,
            quantity=command.quantity,
            template_id=command.template_id,
        )
        repo.add(job)

        job.dispatch(customer_name=command.customer_name, customer_phone=command.customer_phone)
        repo.add(job)

        logger.info("Print job created", print_job_id=str(job.id), quantity=job.quantity)
        return job.to_snapshot()
