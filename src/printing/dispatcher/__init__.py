"""Print dispatcher abstraction — pluggable hand-off to the label print worker."""

import os

_dispatcher_instance = None


def get_dispatcher():
    """Return the configured print dispatcher (singleton).

    Uses the simulated dispatcher by default. Set ``PRINT_DISPATCHER=gateway``
    to publish jobs to the external print worker instead.
    """
    global _dispatcher_instance
    if _dispatcher_instance is None:
        adapter = os.environ.get("PRINT_DISPATCHER", "simulated")
        if adapter == "simulated":
            from printing.dispatcher.simulated import SimulatedPrintDispatcher

            _dispatcher_instance = SimulatedPrintDispatcher()
        elif adapter == "gateway":
            from printing.dispatcher.gateway import GatewayPrintDispatcher

            _dispatcher_instance = GatewayPrintDispatcher()
        else:
            raise ValueError(f"Unknown print dispatcher: {adapter}")
    return _dispatcher_instance


def reset_dispatcher():
    """Reset the dispatcher singleton (useful for testing)."""
    global _dispatcher_instance
    _dispatcher_instance = None
