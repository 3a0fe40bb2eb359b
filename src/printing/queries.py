"""Read paths over print jobs."""

from protean.utils.globals import current_domain

from printing.print_job.print_job import PrintJob, PrintJobStatus
from shared.query import fetch_all


def list_print_jobs(status: PrintJobStatus | None = None) -> list[dict]:
    """Print jobs, newest first. Jobs stuck in Dispatched show up here."""
    repo = current_domain.repository_for(PrintJob)
    jobs = fetch_all(repo, status=status.value) if status else fetch_all(repo)
    return [job.to_snapshot() for job in sorted(jobs, key=lambda j: j.created_at, reverse=True)]
