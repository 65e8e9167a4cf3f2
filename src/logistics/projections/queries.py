"""Read-side queries — delivery listing, detail, operations report and
carrier charges.

Listings come from the projections; the detail view reads the Delivery
aggregate itself since it needs the full item and operation history.
"""

import math
import os
from datetime import date

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from logistics.customer.customer import Customer
from logistics.delivery.delivery import Delivery, DeliveryState, DeliveryType, OperationType
from logistics.delivery.stores import store_label
from logistics.projections.delivery_feed import DeliveryFeedView
from logistics.projections.operation_log import OperationLogView
from logistics.utils.db import fetch_all

logger = structlog.get_logger(__name__)

DEFAULT_PAGE_SIZE = 40
SALES_ROLE = "sales"
SCHEDULE_FILTERS = ("all", "has_date", "no_date")


def page_size() -> int:
    return int(os.environ.get("DELIVERY_PAGE_SIZE", DEFAULT_PAGE_SIZE))


def _empty_page(page: int) -> dict:
    return {"page": page, "total_pages": 0, "total_items": 0, "items": []}


def search_customer_ids(text: str) -> list[str]:
    """Ids of customers whose name or address contains ``text``."""
    dao = current_domain.repository_for(Customer)._dao
    by_name = fetch_all(dao.query.filter(name__icontains=text).order_by("id"))
    by_address = fetch_all(dao.query.filter(address__icontains=text).order_by("id"))
    return sorted({str(c.id) for c in [*by_name, *by_address]})


def list_deliveries(
    state: str = DeliveryState.PENDING.value,
    delivery_type: str = "all",
    search: str | None = None,
    scheduled: str = "all",
    page: int = 1,
    user_id: str | None = None,
    role: str | None = None,
) -> dict:
    """One page of the delivery feed.

    Pending deliveries are ordered by scheduled date (unscheduled last) then
    order date; other states by order date, newest first. A search that
    matches no customer yields an empty page.
    """
    if state not in {s.value for s in DeliveryState}:
        raise ValidationError({"state": [f"Unknown state '{state}'"]})
    if delivery_type != "all" and delivery_type not in {t.value for t in DeliveryType}:
        raise ValidationError({"type": [f"Unknown delivery type '{delivery_type}'"]})
    if scheduled not in SCHEDULE_FILTERS:
        raise ValidationError({"scheduled": [f"Must be one of {', '.join(SCHEDULE_FILTERS)}"]})
    if page < 1:
        raise ValidationError({"page": ["Page must be 1 or greater"]})

    filters: dict = {"state": state}
    if delivery_type != "all":
        filters["delivery_type"] = delivery_type
    if scheduled != "all":
        filters["has_scheduled_date"] = scheduled == "has_date"
    if role == SALES_ROLE:
        if not user_id:
            return _empty_page(page)
        filters["created_by"] = user_id

    if search and search.strip():
        customer_ids = search_customer_ids(search.strip())
        if not customer_ids:
            logger.debug("delivery_search_no_customers", search=search)
            return _empty_page(page)
        filters["customer_id__in"] = customer_ids

    size = page_size()
    ordering = "schedule_sort_key" if state == DeliveryState.PENDING.value else "-order_sort_key"
    result = (
        current_domain.repository_for(DeliveryFeedView)
        ._dao.query.filter(**filters)
        .order_by(ordering)
        .offset((page - 1) * size)
        .limit(size)
        .all()
    )
    return {
        "page": page,
        "total_pages": math.ceil(result.total / size) if result.total else 0,
        "total_items": result.total,
        "items": [view.to_dict() for view in result.items],
    }


def _operation_to_dict(delivery: Delivery, operation) -> dict:
    return {
        "id": str(operation.id),
        "operation_type": operation.operation_type,
        "operation_date": operation.operation_date,
        "sequence": operation.sequence,
        "created_by": operation.created_by,
        "carrier_id": operation.carrier_id,
        "cost": operation.cost,
        "pickup_store": operation.pickup_store,
        "created_at": operation.created_at,
        "items": [
            {"product_sku": oi.product_sku, "quantity": oi.quantity, "store_id": oi.store_id}
            for oi in delivery.items_of(operation.id)
        ],
    }


def get_delivery(delivery_id: str) -> dict:
    """Full detail of one delivery, operations in chronological order."""
    delivery = current_domain.repository_for(Delivery).get(delivery_id)

    customer = None
    if delivery.customer_id:
        try:
            c = current_domain.repository_for(Customer).get(str(delivery.customer_id))
            customer = {
                "id": str(c.id),
                "name": c.name,
                "address": c.address,
                "phone": c.phone,
                "email": c.email.address if c.email else None,
            }
        except ObjectNotFoundError:
            logger.warning("delivery_customer_missing", delivery_id=str(delivery.id), customer_id=delivery.customer_id)

    latest = delivery.latest_operation
    return {
        "id": str(delivery.id),
        "delivery_type": delivery.delivery_type,
        "state": delivery.state,
        "order_date": delivery.order_date,
        "scheduled_date": delivery.scheduled_date,
        "store_id": delivery.store_id,
        "origin_store": delivery.origin_store,
        "dest_store": delivery.dest_store,
        "home_store": delivery.home_store,
        "home_store_name": store_label(delivery.home_store),
        "customer_id": delivery.customer_id,
        "customer": customer,
        "supplier_id": delivery.supplier_id,
        "created_by": delivery.created_by,
        "salesperson_name": delivery.salesperson_name,
        "invoice_number": delivery.invoice_number,
        "products_summary": delivery.products_summary,
        "items": [
            {
                "product_sku": i.product_sku,
                "product_name": i.product_name,
                "quantity": i.quantity,
                "pending_quantity": i.pending_quantity,
            }
            for i in delivery.items or []
        ],
        "remaining_count": delivery.remaining_count(),
        "operations": [_operation_to_dict(delivery, op) for op in delivery.sorted_operations()],
        "latest_operation": _operation_to_dict(delivery, latest) if latest else None,
        "notes": [
            {"id": str(n.id), "text": n.text, "created_at": n.created_at}
            for n in sorted(delivery.notes or [], key=lambda n: n.created_at)
        ],
        "created_at": delivery.created_at,
        "updated_at": delivery.updated_at,
    }


def list_operations(
    start_date: date | None = None,
    end_date: date | None = None,
    operation_type: str | None = None,
) -> list[dict]:
    """Operations recorded between two dates (inclusive), newest first."""
    if operation_type and operation_type not in {t.value for t in OperationType}:
        raise ValidationError({"operation_type": [f"Unknown operation type '{operation_type}'"]})
    if start_date and end_date and start_date > end_date:
        raise ValidationError({"start_date": ["start_date must not be after end_date"]})

    filters: dict = {}
    if operation_type:
        filters["operation_type"] = operation_type
    if start_date:
        filters["operation_date__gte"] = start_date
    if end_date:
        filters["operation_date__lte"] = end_date

    query = current_domain.repository_for(OperationLogView)._dao.query.filter(**filters)
    rows = fetch_all(query.order_by("-created_at"))
    return [row.to_dict() for row in rows]


def carrier_charges(carrier_id: str, since: date | None = None) -> dict:
    """What a carrier has charged for delivery operations.

    Cancelling a delivery does not reverse the charges of its operations.
    """
    filters: dict = {"carrier_id": carrier_id, "operation_type": OperationType.DELIVERY.value}
    if since:
        filters["operation_date__gte"] = since

    query = current_domain.repository_for(OperationLogView)._dao.query.filter(**filters)
    rows = fetch_all(query.order_by("operation_id"))
    return {
        "carrier_id": carrier_id,
        "since": since,
        "operation_count": len(rows),
        "total_cost": round(sum(row.cost or 0.0 for row in rows), 2),
    }
