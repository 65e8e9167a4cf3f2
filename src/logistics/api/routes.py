"""FastAPI routes for the Logistics domain."""

import json
from datetime import date

from fastapi import APIRouter, Header, Query
from protean.utils.globals import current_domain

from logistics.api.schemas import (
    AddNoteRequest,
    CarrierChargesResponse,
    CarrierDispatchRequest,
    CreateDeliveryRequest,
    CustomerIdResponse,
    DeliveryDetailResponse,
    DeliveryIdResponse,
    DeliveryPageResponse,
    FulfillDeliveryRequest,
    FulfillmentResponse,
    OperationLogResponse,
    PickupDispatchRequest,
    RegisterCustomerRequest,
    StatusResponse,
    UpdateDeliveryRequest,
    UpdateDeliveryResponse,
)
from logistics.customer.registration import RegisterCustomer
from logistics.delivery.cancellation import CancelDelivery
from logistics.delivery.creation import CreateDelivery
from logistics.delivery.delivery import Delivery, DeliveryState
from logistics.delivery.exceptions import InvalidStateTransition
from logistics.delivery.fulfillment import FulfillmentEngine
from logistics.delivery.notes import AddNote
from logistics.delivery.scheduling import RescheduleDelivery
from logistics.projections.queries import carrier_charges, get_delivery, list_deliveries, list_operations

CARRIER_CHARGES_WARNING = "Carrier charges already recorded for this delivery are not reversed by the cancellation"

# ---------------------------------------------------------------------------
# Delivery Router
# ---------------------------------------------------------------------------
delivery_router = APIRouter(prefix="/deliveries", tags=["deliveries"])


@delivery_router.post("", status_code=201, response_model=DeliveryIdResponse)
async def create_delivery(
    body: CreateDeliveryRequest,
    x_user_id: str | None = Header(default=None),
) -> DeliveryIdResponse:
    """Register a home delivery, supplier pickup or store movement."""
    command = CreateDelivery(
        delivery_type=body.delivery_type,
        order_date=body.order_date,
        scheduled_date=body.scheduled_date,
        store_id=body.store_id,
        origin_store=body.origin_store,
        dest_store=body.dest_store,
        customer_id=body.customer_id,
        supplier_id=body.supplier_id,
        created_by=x_user_id,
        salesperson_name=body.salesperson_name,
        salesperson_email=body.salesperson_email,
        invoice_number=body.invoice_number,
        products_summary=body.products_summary,
        notes=body.notes,
        items=json.dumps([item.model_dump() for item in body.items]),
    )
    result = current_domain.process(command, asynchronous=False)
    return DeliveryIdResponse(delivery_id=result)


@delivery_router.get("", response_model=DeliveryPageResponse)
async def get_deliveries(
    state: str = DeliveryState.PENDING.value,
    type: str = "all",
    search: str | None = None,
    scheduled: str = "all",
    page: int = 1,
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> DeliveryPageResponse:
    """List deliveries one page at a time. Sales users only see their own."""
    result = list_deliveries(
        state=state,
        delivery_type=type,
        search=search,
        scheduled=scheduled,
        page=page,
        user_id=x_user_id,
        role=x_user_role,
    )
    return DeliveryPageResponse(**result)


@delivery_router.get("/{delivery_id}", response_model=DeliveryDetailResponse)
async def get_delivery_detail(delivery_id: str) -> DeliveryDetailResponse:
    return DeliveryDetailResponse(**get_delivery(delivery_id))


@delivery_router.post("/{delivery_id}/fulfill", response_model=FulfillmentResponse)
def fulfill_delivery(
    delivery_id: str,
    body: FulfillDeliveryRequest,
    x_user_id: str | None = Header(default=None),
) -> FulfillmentResponse:
    """Mark items as fulfilled, moving stock to the home store when needed.

    Runs in the threadpool; inventory transfers are blocking HTTP calls.
    """
    carrier_id, cost, pickup_store = body.carrier_id, body.delivery_cost, body.pickup_store
    if isinstance(body.dispatch, CarrierDispatchRequest):
        carrier_id, cost = body.dispatch.carrier_id, body.dispatch.cost
    elif isinstance(body.dispatch, PickupDispatchRequest):
        pickup_store = body.dispatch.store

    result = FulfillmentEngine().fulfill(
        delivery_id=delivery_id,
        actor_id=x_user_id,
        items=[item.model_dump() for item in body.items],
        carrier_id=carrier_id,
        delivery_cost=cost,
        pickup_store=pickup_store,
    )
    return FulfillmentResponse(
        delivery_id=result.delivery_id,
        fully_delivered=result.fully_delivered,
        state=result.state,
        transfers=result.transfers,
    )


@delivery_router.put("/{delivery_id}", response_model=UpdateDeliveryResponse)
async def update_delivery(
    delivery_id: str,
    body: UpdateDeliveryRequest,
    x_user_id: str | None = Header(default=None),
) -> UpdateDeliveryResponse:
    """Cancel a delivery or change its scheduled date.

    ``state`` only accepts ``cancelled``; deliveries become ``delivered``
    through the fulfill endpoint. Sending ``scheduled_date: null`` clears the
    date.
    """
    warnings: list[str] = []
    if body.state is not None:
        if body.state != DeliveryState.CANCELLED.value:
            delivery = current_domain.repository_for(Delivery).get(delivery_id)
            raise InvalidStateTransition(
                f"Cannot transition from {delivery.state} to {body.state}: "
                f"the only allowed transition is to {DeliveryState.CANCELLED.value}",
                details={"from": delivery.state, "to": body.state, "allowed": [DeliveryState.CANCELLED.value]},
            )
        current_domain.process(CancelDelivery(delivery_id=delivery_id, actor_id=x_user_id), asynchronous=False)
    elif "scheduled_date" in body.model_fields_set:
        current_domain.process(
            RescheduleDelivery(delivery_id=delivery_id, scheduled_date=body.scheduled_date),
            asynchronous=False,
        )

    detail = get_delivery(delivery_id)
    if body.state is not None and any(op["carrier_id"] for op in detail["operations"]):
        warnings.append(CARRIER_CHARGES_WARNING)
    return UpdateDeliveryResponse(delivery=DeliveryDetailResponse(**detail), warnings=warnings)


@delivery_router.post("/{delivery_id}/notes", status_code=201, response_model=StatusResponse)
async def add_note(delivery_id: str, body: AddNoteRequest) -> StatusResponse:
    current_domain.process(AddNote(delivery_id=delivery_id, text=body.text), asynchronous=False)
    return StatusResponse(status="note_added")


# ---------------------------------------------------------------------------
# Operations Router
# ---------------------------------------------------------------------------
operation_router = APIRouter(prefix="/operations", tags=["operations"])


@operation_router.get("", response_model=list[OperationLogResponse])
async def get_operations(
    start_date: date | None = None,
    end_date: date | None = None,
    operation_type: str | None = None,
) -> list[OperationLogResponse]:
    """Operations report for a date range."""
    rows = list_operations(start_date=start_date, end_date=end_date, operation_type=operation_type)
    return [OperationLogResponse(**row) for row in rows]


# ---------------------------------------------------------------------------
# Carrier Router
# ---------------------------------------------------------------------------
carrier_router = APIRouter(prefix="/carriers", tags=["carriers"])


@carrier_router.get("/{carrier_id}/charges", response_model=CarrierChargesResponse)
async def get_carrier_charges(carrier_id: str, since: date | None = Query(default=None)) -> CarrierChargesResponse:
    return CarrierChargesResponse(**carrier_charges(carrier_id, since=since))


# ---------------------------------------------------------------------------
# Customer Router
# ---------------------------------------------------------------------------
customer_router = APIRouter(prefix="/customers", tags=["customers"])


@customer_router.post("", status_code=201, response_model=CustomerIdResponse)
async def register_customer(body: RegisterCustomerRequest) -> CustomerIdResponse:
    command = RegisterCustomer(
        name=body.name,
        address=body.address,
        phone=body.phone,
        email=body.email,
        dni=body.dni,
    )
    result = current_domain.process(command, asynchronous=False)
    return CustomerIdResponse(customer_id=result)
