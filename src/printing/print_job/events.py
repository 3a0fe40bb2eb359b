"""Print job domain events."""

from protean.fields import DateTime, Identifier, Integer, String

from printing.domain import printing


@printing.event(part_of="PrintJob")
class PrintJobCreated:
    __version__ = 1

    print_job_id = Identifier(required=True)
    store_id = Identifier(required=True)
    quantity = Integer(required=True)
    template_id = String()
    created_at = DateTime(required=True)


@printing.event(part_of="PrintJob")
class PrintJobDispatched:
    """The job was handed to the dispatcher.

    Carries the customer display fields printed on the labels; they are
    not stored on the job itself.
    """

    __version__ = 1

    print_job_id = Identifier(required=True)
    store_id = Identifier(required=True)
    quantity = Integer(required=True)
    template_id = String()
    customer_name = String()
    customer_phone = String()
    dispatched_at = DateTime(required=True)


@printing.event(part_of="PrintJob")
class PrintJobPrinted:
    __version__ = 1

    print_job_id = Identifier(required=True)
    printed_at = DateTime(required=True)


@printing.event(part_of="PrintJob")
class PrintJobFailed:
    __version__ = 1

    print_job_id = Identifier(required=True)
    error_message = String(required=True)
    failed_at = DateTime(required=True)
