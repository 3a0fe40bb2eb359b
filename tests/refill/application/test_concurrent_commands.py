"""Commands racing on the same order, cylinder, phone or label are serialized."""

import threading

from protean import current_domain

from refill.customer.customer import Customer
from refill.customer.registration import CreateCustomer
from refill.cylinder.cylinder import Cylinder
from refill.cylinder.filling import MarkCylinderReady, MarkCylindersReadyBatch
from refill.cylinder.labelling import AssignLabel
from refill.domain import refill
from refill.order.creation import CreateOrder
from refill.order.intake import ReceiveCylinders, ScanCylinderToOrder
from refill.order.order import OrderStatus, RefillOrder
from refill.order.pickup import DeliverCylinder
from shared.commands import ErrorKind, execute
from shared.query import fetch_all


def _run_together(*commands):
    """Execute every command on its own thread, released at the same moment."""
    barrier = threading.Barrier(len(commands))
    results = [None] * len(commands)

    def worker(index, command):
        with refill.domain_context():
            barrier.wait()
            results[index] = execute(command)

    threads = [threading.Thread(target=worker, args=(i, c)) for i, c in enumerate(commands)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return results


def _customer(name, phone):
    return current_domain.process(CreateCustomer(name=name, phone=phone), asynchronous=False)["customer_id"]


def _order(customer_id, count):
    order_id = current_domain.process(CreateOrder(customer_id=customer_id), asynchronous=False)["order_id"]
    received = current_domain.process(ReceiveCylinders(order_id=order_id, quantity=count), asynchronous=False)
    return order_id, [c["cylinder_id"] for c in received["cylinders"]]


def _stored_order(order_id):
    return current_domain.repository_for(RefillOrder).get(order_id)


class TestSameOrder:
    def test_marking_both_cylinders_at_once_promotes_the_order(self):
        order_id, cylinder_ids = _order(_customer("Maria", "926060863"), 2)

        results = _run_together(*(MarkCylinderReady(cylinder_id=c) for c in cylinder_ids))

        assert all(r.ok for r in results), [r.error for r in results]
        order = _stored_order(order_id)
        assert order.status == OrderStatus.READY_FOR_PICKUP.value
        assert sorted(ref.state for ref in order.cylinders) == ["Ready", "Ready"]

    def test_batch_and_single_mark_ready_agree(self):
        order_id, cylinder_ids = _order(_customer("Maria", "926060863"), 2)

        results = _run_together(
            MarkCylindersReadyBatch(order_id=order_id),
            MarkCylinderReady(cylinder_id=cylinder_ids[0]),
        )

        assert results[0].ok
        assert _stored_order(order_id).status == OrderStatus.READY_FOR_PICKUP.value
        cylinders = current_domain.repository_for(Cylinder)
        assert [cylinders.get(c).state for c in cylinder_ids] == ["Ready", "Ready"]


class TestUniqueValues:
    def test_same_phone_registers_once(self):
        results = _run_together(
            CreateCustomer(name="Ana", phone="926 060 863"),
            CreateCustomer(name="Bea", phone="926060863"),
        )

        assert sorted(r.ok for r in results) == [False, True]
        [failed] = [r for r in results if not r.ok]
        assert failed.kind == ErrorKind.INVALID_STATE
        assert failed.error == "Customer with this phone already exists"

        [succeeded] = [r for r in results if r.ok]
        customers = fetch_all(current_domain.repository_for(Customer))
        assert [str(c.id) for c in customers] == [succeeded.value["customer_id"]]

    def test_same_label_is_assigned_once(self):
        _, cylinder_ids = _order(_customer("Maria", "926060863"), 2)

        results = _run_together(*(AssignLabel(cylinder_id=c, qr_token="qr-9") for c in cylinder_ids))

        assert sorted(r.ok for r in results) == [False, True]
        [failed] = [r for r in results if not r.ok]
        assert failed.kind == ErrorKind.INVALID_STATE
        assert failed.error == "This label is already in use by another cylinder"

        labelled = [c for c in fetch_all(current_domain.repository_for(Cylinder)) if c.label_token == "QR-9"]
        assert len(labelled) == 1


class TestSameCylinder:
    def test_cylinder_joins_only_one_open_order(self):
        first_order, [cylinder_id] = _order(_customer("Maria", "926060863"), 1)
        current_domain.process(MarkCylindersReadyBatch(order_id=first_order), asynchronous=False)
        current_domain.process(DeliverCylinder(order_id=first_order, cylinder_id=cylinder_id), asynchronous=False)

        order_a = current_domain.process(
            CreateOrder(customer_id=_customer("Ana", "912345678")), asynchronous=False
        )["order_id"]
        order_b = current_domain.process(
            CreateOrder(customer_id=_customer("Bea", "913456789")), asynchronous=False
        )["order_id"]

        results = _run_together(
            ScanCylinderToOrder(order_id=order_a, qr_token="#0001"),
            ScanCylinderToOrder(order_id=order_b, qr_token="#0001"),
        )

        assert sorted(r.ok for r in results) == [False, True]
        [failed] = [r for r in results if not r.ok]
        assert failed.error == "Cylinder is already in another open order"
        holders = [o for o in (_stored_order(order_a), _stored_order(order_b)) if o.contains(cylinder_id)]
        assert len(holders) == 1
