"""Delivery feed — listing view behind the deliveries screen.

Denormalizes the customer's name and address and the latest operation so a
page of deliveries is served from one query. ``schedule_sort_key`` and
``order_sort_key`` encode the listing orders as single sortable strings:
unscheduled deliveries carry a far-future date so they sort last.
"""

from protean.core.projector import on
from protean.exceptions import ObjectNotFoundError
from protean.fields import Boolean, Date, DateTime, Identifier, Integer, String
from protean.utils.globals import current_domain

from logistics.customer.customer import Customer
from logistics.customer.events import CustomerRegistered
from logistics.delivery.delivery import Delivery
from logistics.delivery.events import (
    DeliveryCancelled,
    DeliveryCreated,
    DeliveryFulfilled,
    DeliveryOperationRecorded,
    DeliveryRescheduled,
)
from logistics.domain import logistics
from logistics.utils.db import fetch_all

UNSCHEDULED_SORT_DATE = "9999-12-31"

def schedule_sort_key(scheduled_date, order_date, created_at) -> str:
    scheduled = scheduled_date.isoformat() if scheduled_date else UNSCHEDULED_SORT_DATE
    return f"{scheduled}|{order_date.isoformat()}|{created_at.isoformat() if created_at else ''}"


def order_sort_key(order_date, created_at) -> str:
    return f"{order_date.isoformat()}|{created_at.isoformat() if created_at else ''}"


@logistics.projection
class DeliveryFeedView:
    delivery_id = Identifier(identifier=True, required=True)
    delivery_type = String(required=True)
    state = String(required=True)
    order_date = Date(required=True)
    scheduled_date = Date()
    has_scheduled_date = Boolean(default=False)
    schedule_sort_key = String(max_length=100)
    order_sort_key = String(max_length=100)
    store_id = String()
    origin_store = String()
    dest_store = String()
    customer_id = Identifier()
    customer_name = String(max_length=200)
    customer_address = String(max_length=300)
    supplier_id = Identifier()
    created_by = Identifier()
    item_count = Integer(default=0)
    pending_item_count = Integer(default=0)
    last_operation_type = String()
    last_operation_date = Date()
    last_carrier_id = Identifier()
    last_pickup_store = String()
    created_at = DateTime()
    updated_at = DateTime()


def _customer_details(customer_id) -> tuple[str | None, str | None]:
    if not customer_id:
        return None, None
    try:
        customer = current_domain.repository_for(Customer).get(str(customer_id))
    except ObjectNotFoundError:
        return None, None
    return customer.name, customer.address


@logistics.projector(projector_for=DeliveryFeedView, aggregates=[Delivery, Customer])
class DeliveryFeedProjector:
    @on(DeliveryCreated)
    def on_delivery_created(self, event):
        customer_name, customer_address = _customer_details(event.customer_id)
        current_domain.repository_for(DeliveryFeedView).add(
            DeliveryFeedView(
                delivery_id=event.delivery_id,
                delivery_type=event.delivery_type,
                state="pending",
                order_date=event.order_date,
                scheduled_date=event.scheduled_date,
                has_scheduled_date=event.scheduled_date is not None,
                schedule_sort_key=schedule_sort_key(event.scheduled_date, event.order_date, event.created_at),
                order_sort_key=order_sort_key(event.order_date, event.created_at),
                store_id=event.store_id,
                origin_store=event.origin_store,
                dest_store=event.dest_store,
                customer_id=event.customer_id,
                customer_name=customer_name,
                customer_address=customer_address,
                supplier_id=event.supplier_id,
                created_by=event.created_by,
                item_count=event.item_count,
                pending_item_count=event.item_count,
                created_at=event.created_at,
                updated_at=event.created_at,
            )
        )

    @on(DeliveryOperationRecorded)
    def on_operation_recorded(self, event):
        repo = current_domain.repository_for(DeliveryFeedView)
        view = repo.get(event.delivery_id)
        view.pending_item_count = event.remaining_count
        view.last_operation_type = "delivery"
        view.last_operation_date = event.operation_date
        view.last_carrier_id = event.carrier_id
        view.last_pickup_store = event.pickup_store
        view.updated_at = event.recorded_at
        repo.add(view)

    @on(DeliveryFulfilled)
    def on_delivery_fulfilled(self, event):
        repo = current_domain.repository_for(DeliveryFeedView)
        view = repo.get(event.delivery_id)
        view.state = "delivered"
        view.pending_item_count = 0
        view.updated_at = event.delivered_at
        repo.add(view)

    @on(DeliveryCancelled)
    def on_delivery_cancelled(self, event):
        repo = current_domain.repository_for(DeliveryFeedView)
        view = repo.get(event.delivery_id)
        view.state = "cancelled"
        view.scheduled_date = None
        view.has_scheduled_date = False
        view.schedule_sort_key = schedule_sort_key(None, view.order_date, view.created_at)
        view.last_operation_type = "cancellation"
        view.last_operation_date = event.operation_date
        view.last_carrier_id = None
        view.last_pickup_store = None
        view.updated_at = event.cancelled_at
        repo.add(view)

    @on(DeliveryRescheduled)
    def on_delivery_rescheduled(self, event):
        repo = current_domain.repository_for(DeliveryFeedView)
        view = repo.get(event.delivery_id)
        view.scheduled_date = event.scheduled_date
        view.has_scheduled_date = event.scheduled_date is not None
        view.schedule_sort_key = schedule_sort_key(event.scheduled_date, view.order_date, view.created_at)
        view.updated_at = event.rescheduled_at
        repo.add(view)

    @on(CustomerRegistered)
    def on_customer_registered(self, event):
        repo = current_domain.repository_for(DeliveryFeedView)
        views = fetch_all(repo._dao.query.filter(customer_id=str(event.customer_id)).order_by("delivery_id"))
        for view in views:
            view.customer_name = event.name
            view.customer_address = event.address
            repo.add(view)
