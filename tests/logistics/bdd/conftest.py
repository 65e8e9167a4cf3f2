"""Shared BDD fixtures and step definitions for the Logistics domain."""

from datetime import date

import pytest
from logistics.delivery.delivery import CarrierDispatch, Delivery, OperationType, PickupDispatch
from logistics.delivery.events import (
    DeliveryCancelled,
    DeliveryCreated,
    DeliveryFulfilled,
    DeliveryOperationRecorded,
    DeliveryRescheduled,
    NoteAdded,
)
from logistics.delivery.exceptions import DeliveryError
from pytest_bdd import given, parsers, then

_DELIVERY_EVENT_CLASSES = {
    "DeliveryCreated": DeliveryCreated,
    "DeliveryOperationRecorded": DeliveryOperationRecorded,
    "DeliveryFulfilled": DeliveryFulfilled,
    "DeliveryCancelled": DeliveryCancelled,
    "DeliveryRescheduled": DeliveryRescheduled,
    "NoteAdded": NoteAdded,
}

_DEFAULT_ITEMS = [
    {"product_sku": "MESA-RAT-01", "product_name": "Mesa ratona", "quantity": 2},
    {"product_sku": "SILLA-TAP-02", "product_name": "Silla tapizada", "quantity": 4},
]


@pytest.fixture()
def error():
    """Container for captured domain errors."""
    return {"exc": None}


def _new_delivery():
    return Delivery.create(
        delivery_type="home_delivery",
        order_date=date(2024, 3, 1),
        scheduled_date=date(2024, 3, 8),
        items_data=_DEFAULT_ITEMS,
        store_id="24471",
        customer_id="cust-bdd",
        created_by="user-sales-bdd",
    )


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("a pending home delivery", target_fixture="delivery")
def pending_delivery():
    delivery = _new_delivery()
    delivery._events.clear()
    return delivery


@given("a partially fulfilled home delivery", target_fixture="delivery")
def partially_fulfilled_delivery():
    delivery = _new_delivery()
    delivery.record_operation(
        "user-ops-bdd",
        OperationType.DELIVERY.value,
        dispatch=CarrierDispatch(carrier_id="car-bdd", cost=1800.0),
        lines=[{"product_sku": "MESA-RAT-01", "quantity": 2, "store_id": "24471"}],
    )
    delivery._events.clear()
    return delivery


@given("a delivered home delivery", target_fixture="delivery")
def delivered_delivery():
    delivery = _new_delivery()
    delivery.record_operation(
        "user-ops-bdd",
        OperationType.DELIVERY.value,
        dispatch=CarrierDispatch(carrier_id="car-bdd", cost=1800.0),
        lines=[{"product_sku": "MESA-RAT-01", "quantity": 2, "store_id": "24471"}],
    )
    delivery.record_operation(
        "user-ops-bdd",
        OperationType.DELIVERY.value,
        dispatch=PickupDispatch(store="24471"),
        lines=[{"product_sku": "SILLA-TAP-02", "quantity": 4, "store_id": "24471"}],
    )
    delivery.mark_delivered()
    delivery._events.clear()
    return delivery


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the delivery state is "{state}"'))
def delivery_state_is(delivery, state):
    assert delivery.state == state


@then(parsers.cfparse('a {event_type} event is raised'))
def event_raised(delivery, event_type):
    event_cls = _DELIVERY_EVENT_CLASSES[event_type]
    assert any(isinstance(e, event_cls) for e in delivery._events)


@then(parsers.cfparse('no {event_type} event is raised'))
def event_not_raised(delivery, event_type):
    event_cls = _DELIVERY_EVENT_CLASSES[event_type]
    assert not any(isinstance(e, event_cls) for e in delivery._events)


@then(parsers.cfparse('"{sku}" has {pending:d} pending'))
def pending_quantity_is(delivery, sku, pending):
    assert delivery.item_for(sku).pending_quantity == pending


@then(parsers.cfparse("the delivery has {count:d} operations"))
def operation_count(delivery, count):
    assert len(delivery.operations) == count


@then(parsers.cfparse('the action fails with "{message}"'))
def action_fails(error, message):
    assert error["exc"] is not None
    exc = error["exc"]
    text = exc.message if isinstance(exc, DeliveryError) else str(exc.messages)
    assert message in text
