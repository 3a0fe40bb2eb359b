"""Cylinder sequential numbers — a single-row counter aggregate.

Numbers are strictly increasing; gaps are allowed. The counter is read,
advanced and saved inside the same unit of work that inserts the new
cylinders, and ``Cylinder.sequential_number`` is unique at the
persistence layer, so a racing allocation fails instead of duplicating.
"""

from protean.exceptions import ObjectNotFoundError
from protean.fields import Integer, String
from protean.utils.globals import current_domain

from refill.cylinder.cylinder import Cylinder
from refill.domain import refill
from shared.query import fetch_all

SEQUENCE_NAME = "cylinder"
SEQUENCE_LOCK_KEY = "cylinder-sequence"


@refill.aggregate
class CylinderSequence:
    name = String(identifier=True, max_length=50)
    last_value = Integer(default=0, min_value=0)

    def advance(self) -> int:
        self.last_value = (self.last_value or 0) + 1
        return self.last_value


def _max_persisted_number() -> int:
    cylinders = fetch_all(current_domain.repository_for(Cylinder))
    return max((c.sequential_number for c in cylinders), default=0)


def allocate_sequential_numbers(count: int = 1) -> list[int]:
    """Reserve ``count`` consecutive sequential numbers."""
    repo = current_domain.repository_for(CylinderSequence)
    try:
        sequence = repo.get(SEQUENCE_NAME)
    except ObjectNotFoundError:
        sequence = CylinderSequence(name=SEQUENCE_NAME, last_value=_max_persisted_number())

    numbers = [sequence.advance() for _ in range(count)]
    repo.add(sequence)
    return numbers
