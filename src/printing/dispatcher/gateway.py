"""Gateway dispatcher — publishes jobs to the external print worker.

Messages go to a broker stream the print gateway subscribes to. Delivery
is best effort: no confirmation, no retry. The job stays Dispatched until
the worker acknowledges it.
"""

import os

import structlog
from protean.utils.globals import current_domain

from printing.dispatcher.port import PrintDispatcherPort

logger = structlog.get_logger(__name__)

DEFAULT_STREAM = "printing::gateway"


class GatewayPrintDispatcher(PrintDispatcherPort):
    def __init__(self, stream: str | None = None, broker_name: str = "default"):
        self.stream = stream or os.environ.get("PRINT_GATEWAY_STREAM", DEFAULT_STREAM)
        self.broker_name = broker_name

    def dispatch(
        self,
        job_id: str,
        quantity: int,
        template_id: str | None = None,
        customer_name: str | None = None,
        customer_phone: str | None = None,
        store_id: str | None = None,
    ) -> None:
        message = {
            "type": "PrintJobCreated",
            "print_job_id": job_id,
            "store_id": store_id,
            "quantity": quantity,
            "template_id": template_id,
            "customer_name": customer_name,
            "customer_phone": customer_phone,
        }
        broker = current_domain.brokers[self.broker_name]
        broker.publish(self.stream, message)
        logger.info("Print job published to gateway", print_job_id=job_id, stream=self.stream)
