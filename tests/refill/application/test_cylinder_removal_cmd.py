"""Application tests for administrative cylinder removal."""

import pytest
from protean import current_domain
from protean.exceptions import ObjectNotFoundError

from refill.cylinder.cylinder import Cylinder
from refill.cylinder.removal import DeleteCylinder
from refill.customer.registration import CreateCustomer
from refill.history.history import history_for
from refill.order.creation import CreateOrder
from refill.order.intake import ReceiveCylinders
from refill.order.order import RefillOrder
from shared.commands import ErrorKind, execute


def _order_with_cylinders(count=2):
    customer = current_domain.process(CreateCustomer(name="Maria", phone="926060863"), asynchronous=False)
    order = current_domain.process(CreateOrder(customer_id=customer["customer_id"]), asynchronous=False)
    received = current_domain.process(
        ReceiveCylinders(order_id=order["order_id"], quantity=count), asynchronous=False
    )
    return order["order_id"], [c["cylinder_id"] for c in received["cylinders"]]


class TestDeleteCylinder:
    def test_cascades_history_and_membership(self):
        order_id, cylinder_ids = _order_with_cylinders(2)
        assert history_for(cylinder_ids[0])

        result = current_domain.process(DeleteCylinder(cylinder_id=cylinder_ids[0]), asynchronous=False)
        assert result == {"cylinder_id": cylinder_ids[0]}

        with pytest.raises(ObjectNotFoundError):
            current_domain.repository_for(Cylinder).get(cylinder_ids[0])
        assert history_for(cylinder_ids[0]) == []

        order = current_domain.repository_for(RefillOrder).get(order_id)
        assert not order.contains(cylinder_ids[0])
        assert order.contains(cylinder_ids[1])

    def test_other_cylinders_keep_their_history(self):
        _, cylinder_ids = _order_with_cylinders(2)
        current_domain.process(DeleteCylinder(cylinder_id=cylinder_ids[0]), asynchronous=False)
        assert len(history_for(cylinder_ids[1])) == 1

    def test_unknown_cylinder(self):
        result = execute(DeleteCylinder(cylinder_id="missing"))
        assert result.kind == ErrorKind.INVALID_ARGUMENT
