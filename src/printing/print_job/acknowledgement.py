"""Print worker acknowledgments — record the final outcome of a dispatched job.

Both commands are keyed by job id and safe to repeat: a second "printed"
acknowledgment returns the job unchanged.
"""

import structlog
from protean.fields import Identifier, String
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from printing.domain import printing
from printing.print_job.print_job import PrintJob, PrintJobStatus

logger = structlog.get_logger(__name__)


@printing.command(part_of="PrintJob")
class AckPrintJobPrinted:
    print_job_id = Identifier(required=True)


@printing.command(part_of="PrintJob")
class AckPrintJobFailed:
    print_job_id = Identifier(required=True)
    error = String(max_length=500)


@printing.command_handler(part_of=PrintJob)
class AcknowledgementHandler:
    @handle(AckPrintJobPrinted)
    def ack_printed(self, command):
        repo = current_domain.repository_for(PrintJob)
        job = repo.get(command.print_job_id)

        if job.status == PrintJobStatus.PRINTED.value:
            logger.info("Duplicate printed acknowledgment", print_job_id=str(job.id))
            return job.to_snapshot()

        job.mark_printed()
        repo.add(job)
        logger.info("Print job printed", print_job_id=str(job.id))
        return job.to_snapshot()

    @handle(AckPrintJobFailed)
    def ack_failed(self, command):
        repo = current_domain.repository_for(PrintJob)
        job = repo.get(command.print_job_id)

        job.mark_failed(command.error)
        repo.add(job)
        logger.warning("Print job failed", print_job_id=str(job.id), error=job.error_message)
        return job.to_snapshot()
