"""The command boundary turns domain exceptions into failure results."""

import threading

from protean import current_domain

from refill.customer.customer import Customer
from refill.customer.registration import CreateCustomer
from refill.cylinder.filling import MarkCylinderReady, MarkCylindersReadyBatch
from refill.cylinder.labelling import AssignLabel
from refill.order.creation import CreateOrder
from refill.order.intake import ReceiveCylinder, ReceiveCylinders, ScanCylinderToOrder
from shared.commands import ErrorKind, Result, execute
from shared.locks import KeyedLocks, lock_keys_for


def _order_with_cylinders(count):
    customer = current_domain.process(CreateCustomer(name="Maria", phone="926060863"), asynchronous=False)
    order = current_domain.process(CreateOrder(customer_id=customer["customer_id"]), asynchronous=False)
    received = current_domain.process(
        ReceiveCylinders(order_id=order["order_id"], quantity=count), asynchronous=False
    )
    return order["order_id"], [c["cylinder_id"] for c in received["cylinders"]]


class TestResult:
    def test_success(self):
        result = execute(CreateCustomer(name="Maria", phone="926060863"))
        assert isinstance(result, Result)
        assert result.ok is True
        assert result.error is None
        assert result.kind is None
        assert result.value["phone"] == "926060863"

    def test_failure_carries_kind_and_message(self):
        result = execute(CreateCustomer(name="Maria", phone=""))
        assert result.ok is False
        assert result.value is None
        assert result.kind == ErrorKind.INVALID_ARGUMENT
        assert result.error == "Phone number cannot be empty"

    def test_missing_aggregate_is_invalid_argument(self):
        result = execute(CreateOrder(customer_id="missing"))
        assert result.kind == ErrorKind.INVALID_ARGUMENT
        assert result.error


class TestCancellation:
    def test_cancelled_request_writes_nothing(self):
        cancel = threading.Event()
        cancel.set()

        result = execute(CreateCustomer(name="Maria", phone="926060863"), cancel_event=cancel)
        assert result.ok is False
        assert result.kind == ErrorKind.INVALID_STATE
        assert result.error == "Request cancelled"

        customers = current_domain.repository_for(Customer)._dao.query.all().items
        assert customers == []

    def test_unset_event_runs_command(self):
        result = execute(CreateCustomer(name="Maria", phone="926060863"), cancel_event=threading.Event())
        assert result.ok


class TestLocks:
    def test_keys_come_from_identifier_fields(self):
        keys = lock_keys_for(CreateOrder(customer_id="cust-1"))
        assert keys == ["customer_id:cust-1"]

    def test_receive_also_locks_the_sequence(self):
        keys = lock_keys_for(ReceiveCylinder(order_id="ord-1"))
        assert "order_id:ord-1" in keys
        assert "cylinder-sequence" in keys

    def test_phone_claims_lock_the_normalized_number(self):
        assert lock_keys_for(CreateCustomer(name="Maria", phone="926 060 863")) == ["phone:926060863"]

    def test_invalid_phone_takes_no_keys(self):
        assert lock_keys_for(CreateCustomer(name="Maria", phone="")) == []

    def test_label_claims_lock_the_normalized_token(self):
        keys = lock_keys_for(AssignLabel(cylinder_id="cyl-1", qr_token=" qr-7 "))
        assert sorted(keys) == ["cylinder_id:cyl-1", "label:QR-7"]

    def test_mark_ready_locks_the_owning_order(self):
        order_id, [cylinder_id] = _order_with_cylinders(1)
        keys = lock_keys_for(MarkCylinderReady(cylinder_id=cylinder_id))
        assert sorted(keys) == [f"cylinder_id:{cylinder_id}", f"order_id:{order_id}"]

    def test_batch_locks_every_member_cylinder(self):
        order_id, cylinder_ids = _order_with_cylinders(2)
        keys = lock_keys_for(MarkCylindersReadyBatch(order_id=order_id))
        assert sorted(keys) == sorted([f"order_id:{order_id}"] + [f"cylinder_id:{c}" for c in cylinder_ids])

    def test_scan_locks_the_resolved_cylinder(self):
        _, [cylinder_id] = _order_with_cylinders(1)
        keys = lock_keys_for(ScanCylinderToOrder(order_id="ord-2", qr_token="#0001"))
        assert sorted(keys) == [f"cylinder_id:{cylinder_id}", "order_id:ord-2"]

    def test_unknown_cylinder_resolves_nothing(self):
        assert lock_keys_for(MarkCylinderReady(cylinder_id="missing")) == ["cylinder_id:missing"]

    def test_same_key_serializes_threads(self):
        locks = KeyedLocks()
        inside = []
        overlap = []

        def worker():
            with locks.hold("order:1"):
                if inside:
                    overlap.append(True)
                inside.append(True)
                threading.Event().wait(0.01)
                inside.pop()

        threads = [threading.Thread(target=worker) for _ in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert overlap == []
        assert len(locks) == 1

    def test_reentrant_for_the_same_thread(self):
        locks = KeyedLocks()
        with locks.hold("a", "b"):
            with locks.hold("b"):
                pass
