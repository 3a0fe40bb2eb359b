"""Printing bounded context — Cylinder label print jobs.

Hands label-printing work to an external, possibly disconnected print
worker and reconciles its success or failure acknowledgments. The worker
is reached through a pluggable dispatcher selected at startup.
"""

from protean.domain import Domain

from shared.utils.logging import configure_logging

configure_logging()

printing = Domain(name="printing")
