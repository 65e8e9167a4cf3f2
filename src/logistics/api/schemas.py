"""Pydantic API schemas for the Logistics domain.

These are the external API contracts — separate from domain commands.
The API layer translates between these schemas and domain commands.
"""

from datetime import date, datetime
from typing import Annotated, Literal

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------
class DeliveryItemRequest(BaseModel):
    product_sku: str
    product_name: str | None = None
    quantity: int


class CreateDeliveryRequest(BaseModel):
    delivery_type: str
    order_date: date
    scheduled_date: date | None = None
    store_id: str | None = None
    origin_store: str | None = None
    dest_store: str | None = None
    customer_id: str | None = None
    supplier_id: str | None = None
    salesperson_name: str | None = None
    salesperson_email: str | None = None
    invoice_number: str | None = None
    products_summary: str | None = None
    notes: str | None = None
    items: list[DeliveryItemRequest]


class FulfillItemRequest(BaseModel):
    product_sku: str
    quantity: int
    source_store: str | None = None


class CarrierDispatchRequest(BaseModel):
    mode: Literal["carrier"]
    carrier_id: str
    cost: float = Field(ge=0)


class PickupDispatchRequest(BaseModel):
    mode: Literal["pickup"]
    store: str


class FulfillDeliveryRequest(BaseModel):
    """Items to mark as fulfilled and how they leave.

    ``dispatch`` is the preferred shape. The flat ``carrier_id`` /
    ``delivery_cost`` / ``pickup_store`` fields are still accepted; mixing a
    pickup with carrier data is rejected as ambiguous.
    """

    items: list[FulfillItemRequest]
    dispatch: Annotated[CarrierDispatchRequest | PickupDispatchRequest, Field(discriminator="mode")] | None = None
    carrier_id: str | None = None
    delivery_cost: float | None = None
    pickup_store: str | None = None


class UpdateDeliveryRequest(BaseModel):
    state: str | None = None
    scheduled_date: date | None = None


class AddNoteRequest(BaseModel):
    text: str


class RegisterCustomerRequest(BaseModel):
    name: str
    address: str | None = None
    phone: str | None = None
    email: str | None = None
    dni: str | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------
class DeliveryIdResponse(BaseModel):
    delivery_id: str


class CustomerIdResponse(BaseModel):
    customer_id: str


class StatusResponse(BaseModel):
    status: str


class TransferResponse(BaseModel):
    origin_store: str
    dest_store: str
    product_sku: str
    quantity: int
    transfer_id: str | None = None


class FulfillmentResponse(BaseModel):
    delivery_id: str
    fully_delivered: bool
    state: str
    transfers: list[TransferResponse]


class DeliveryItemResponse(BaseModel):
    product_sku: str
    product_name: str | None = None
    quantity: int
    pending_quantity: int


class OperationItemResponse(BaseModel):
    product_sku: str
    quantity: int
    store_id: str


class OperationResponse(BaseModel):
    id: str
    operation_type: str
    operation_date: date
    sequence: int
    created_by: str | None = None
    carrier_id: str | None = None
    cost: float | None = None
    pickup_store: str | None = None
    created_at: datetime
    items: list[OperationItemResponse]


class NoteResponse(BaseModel):
    id: str
    text: str
    created_at: datetime


class CustomerSummary(BaseModel):
    id: str
    name: str
    address: str | None = None
    phone: str | None = None
    email: str | None = None


class DeliveryDetailResponse(BaseModel):
    id: str
    delivery_type: str
    state: str
    order_date: date
    scheduled_date: date | None = None
    store_id: str | None = None
    origin_store: str | None = None
    dest_store: str | None = None
    home_store: str | None = None
    home_store_name: str = ""
    customer_id: str | None = None
    customer: CustomerSummary | None = None
    supplier_id: str | None = None
    created_by: str | None = None
    salesperson_name: str | None = None
    invoice_number: str | None = None
    products_summary: str | None = None
    items: list[DeliveryItemResponse]
    remaining_count: int
    operations: list[OperationResponse]
    latest_operation: OperationResponse | None = None
    notes: list[NoteResponse]
    created_at: datetime | None = None
    updated_at: datetime | None = None


class UpdateDeliveryResponse(BaseModel):
    delivery: DeliveryDetailResponse
    warnings: list[str] = []


class DeliveryFeedItem(BaseModel):
    delivery_id: str
    delivery_type: str
    state: str
    order_date: date
    scheduled_date: date | None = None
    store_id: str | None = None
    origin_store: str | None = None
    dest_store: str | None = None
    customer_id: str | None = None
    customer_name: str | None = None
    customer_address: str | None = None
    supplier_id: str | None = None
    created_by: str | None = None
    item_count: int = 0
    pending_item_count: int = 0
    last_operation_type: str | None = None
    last_operation_date: date | None = None
    last_carrier_id: str | None = None
    last_pickup_store: str | None = None


class DeliveryPageResponse(BaseModel):
    page: int
    total_pages: int
    total_items: int
    items: list[DeliveryFeedItem]


class OperationLogResponse(BaseModel):
    operation_id: str
    delivery_id: str
    delivery_type: str
    operation_type: str
    operation_date: date
    carrier_id: str | None = None
    cost: float | None = None
    pickup_store: str | None = None
    quantity_total: int = 0
    created_by: str | None = None
    created_at: datetime | None = None


class CarrierChargesResponse(BaseModel):
    carrier_id: str
    since: date | None = None
    operation_count: int
    total_cost: float
