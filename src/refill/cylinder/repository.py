"""Repository lookups for the Cylinder aggregate."""

from refill.cylinder.cylinder import Cylinder
from refill.domain import refill
from refill.shared.label import LabelToken


@refill.repository(part_of=Cylinder)
class CylinderRepository:
    def find_by_sequential_number(self, number: int) -> Cylinder | None:
        return self._dao.query.filter(sequential_number=number).all().first

    def find_by_label(self, token: LabelToken) -> Cylinder | None:
        return self._dao.query.filter(label_token=token.value).all().first
