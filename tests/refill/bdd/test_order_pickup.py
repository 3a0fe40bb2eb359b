"""BDD tests for handing filled cylinders back at the counter."""

from protean import current_domain
from pytest_bdd import given, parsers, scenarios, then, when
from refill.customer.registration import CreateCustomer
from refill.customer.removal import DeleteCustomer
from refill.cylinder.filling import MarkCylindersReadyBatch
from refill.order.creation import CreateOrder
from refill.order.intake import ReceiveCylinders
from refill.order.order import RefillOrder
from refill.order.pickup import DeliverCylinder
from shared.commands import execute

scenarios("features/order_pickup.feature")


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a customer "{name}" with phone "{phone}"'), target_fixture="customer_id")
def _(name, phone):
    result = execute(CreateCustomer(name=name, phone=phone))
    assert result.ok, result.error
    return result.value["customer_id"]


@given(parsers.cfparse("her order of {count:d} cylinders is ready for pickup"), target_fixture="pickup")
def _(customer_id, count):
    order_id = execute(CreateOrder(customer_id=customer_id)).value["order_id"]
    received = execute(ReceiveCylinders(order_id=order_id, quantity=count)).value
    assert execute(MarkCylindersReadyBatch(order_id=order_id)).ok
    return {
        "order_id": order_id,
        "cylinder_ids": [c["cylinder_id"] for c in received["cylinders"]],
    }


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse("cylinder {index:d} is delivered"))
def _(pickup, index, outcome):
    outcome["result"] = execute(
        DeliverCylinder(order_id=pickup["order_id"], cylinder_id=pickup["cylinder_ids"][index - 1])
    )


@when("the customer is deleted")
def _(customer_id, outcome):
    outcome["result"] = execute(DeleteCustomer(customer_id=customer_id))


@when(parsers.cfparse('a customer "{name}" registers with phone "{phone}"'))
def _(name, phone, outcome):
    outcome["result"] = execute(CreateCustomer(name=name, phone=phone))


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def _(pickup, status):
    order = current_domain.repository_for(RefillOrder).get(pickup["order_id"])
    assert order.status == status


@then(parsers.cfparse('the command fails with "{message}"'))
def _(outcome, message):
    result = outcome["result"]
    assert result.ok is False
    assert result.error == message


@then("the command succeeds")
def _(outcome):
    assert outcome["result"].ok, outcome["result"].error
