"""Delivery aggregate (CQRS) — the core of the logistics domain.

A Delivery is one logistics order: a home delivery to a customer, a pickup
from a supplier, or a stock movement between two stores. It owns three
append-or-mutate collections:

* ``items`` — the Item Ledger: ordered quantity and remaining
  ``pending_quantity`` per SKU.
* ``operations`` / ``operation_items`` — the Operation Recorder: one
  immutable record per fulfillment or cancellation, and the SKU lines it
  fulfilled.
* ``notes`` — free-text remarks from staff and automatic lifecycle notes.

Because the ledger, the operations and the state live in one aggregate, a
single ``repository.add`` persists them atomically and the aggregate's
version guards concurrent fulfillments of the same delivery.

State Machine:
    PENDING → DELIVERED  (only when every item's pending quantity is zero)
    PENDING → CANCELLED
    DELIVERED → CANCELLED
"""

import json
from collections import defaultdict
from datetime import UTC, date, datetime
from enum import Enum

import structlog
from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import (
    Date,
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
)

from logistics.delivery.events import (
    DeliveryCancelled,
    DeliveryCreated,
    DeliveryFulfilled,
    DeliveryOperationRecorded,
    DeliveryRescheduled,
    NoteAdded,
)
from logistics.delivery.exceptions import ConstraintViolation, InvalidStateTransition
from logistics.delivery.stores import is_known_store
from logistics.domain import logistics

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class DeliveryType(Enum):
    HOME_DELIVERY = "home_delivery"
    SUPPLIER_PICKUP = "supplier_pickup"
    STORE_MOVEMENT = "store_movement"


class DeliveryState(Enum):
    PENDING = "pending"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class OperationType(Enum):
    DELIVERY = "delivery"
    CANCELLATION = "cancellation"


_VALID_TRANSITIONS = {
    DeliveryState.PENDING: {DeliveryState.DELIVERED, DeliveryState.CANCELLED},
    DeliveryState.DELIVERED: {DeliveryState.CANCELLED},
    DeliveryState.CANCELLED: set(),  # terminal
}


# ---------------------------------------------------------------------------
# Value Objects: dispatch modes of a delivery operation
# ---------------------------------------------------------------------------
@logistics.value_object(part_of="Delivery")
class CarrierDispatch:
    """Items handed to a carrier, who charges ``cost`` for the trip."""

    carrier_id = Identifier(required=True)
    cost = Float(required=True, min_value=0.0)


@logistics.value_object(part_of="Delivery")
class PickupDispatch:
    """Items collected by the customer at a store."""

    store = String(required=True, max_length=50)


DISPATCH_REQUIRED_MESSAGE = "Either pickup_store or both carrier_id and delivery_cost must be provided"


def resolve_dispatch(carrier_id=None, cost=None, pickup_store=None, strict: bool = True):
    """Build the dispatch value object from flat request fields.

    In ``strict`` mode a request naming both a pickup store and carrier data
    is rejected as ambiguous. Otherwise a pickup store wins and carrier data
    is dropped, which is how stored operations are normalized.
    """
    has_carrier_data = bool(carrier_id) or cost is not None
    if pickup_store:
        if strict and has_carrier_data:
            raise ValidationError(
                {"dispatch": ["Ambiguous dispatch: provide either pickup_store or carrier_id with delivery_cost, not both"]}
            )
        return PickupDispatch(store=pickup_store)
    if carrier_id and cost is not None:
        return CarrierDispatch(carrier_id=carrier_id, cost=cost)
    raise ValidationError({"dispatch": [DISPATCH_REQUIRED_MESSAGE]})


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@logistics.entity(part_of="Delivery")
class DeliveryItem:
    """One SKU line of a delivery."""

    product_sku = String(required=True, max_length=100)
    product_name = String(max_length=255)
    quantity = Integer(required=True, min_value=1)
    pending_quantity = Integer(required=True, min_value=0)


@logistics.entity(part_of="Delivery")
class Operation:
    """A fulfillment or cancellation event. Never updated once written."""

    operation_type = String(required=True, choices=OperationType)
    operation_date = Date(required=True)
    sequence = Integer(required=True, min_value=1)
    created_by = Identifier()
    carrier_id = Identifier()
    cost = Float()
    pickup_store = String(max_length=50)
    created_at = DateTime(required=True)


@logistics.entity(part_of="Delivery")
class OperationItem:
    """A SKU line fulfilled by one operation, with the store it came from."""

    operation_id = Identifier(required=True)
    product_sku = String(required=True, max_length=100)
    quantity = Integer(required=True, min_value=1)
    store_id = String(required=True, max_length=50)


@logistics.entity(part_of="Delivery")
class Note:
    text = Text(required=True)
    created_at = DateTime(required=True)


# ---------------------------------------------------------------------------
# Aggregate Root (CQRS)
# ---------------------------------------------------------------------------
@logistics.aggregate
class Delivery:
    delivery_type = String(required=True, choices=DeliveryType)
    state = String(choices=DeliveryState, default=DeliveryState.PENDING.value)
    order_date = Date(required=True)
    scheduled_date = Date()
    store_id = String(max_length=50)
    origin_store = String(max_length=50)
    dest_store = String(max_length=50)
    customer_id = Identifier()
    supplier_id = Identifier()
    created_by = Identifier()
    salesperson_name = String(max_length=200)
    salesperson_email = String(max_length=254)
    invoice_number = String(max_length=100)
    products_summary = Text()
    items = HasMany(DeliveryItem)
    operations = HasMany(Operation)
    operation_items = HasMany(OperationItem)
    notes = HasMany(Note)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def pending_quantity_must_stay_within_ordered_quantity(self):
        for item in self.items or []:
            if item.pending_quantity < 0 or item.pending_quantity > item.quantity:
                raise ValidationError(
                    {"items": [f"Pending quantity of {item.product_sku} must be between 0 and {item.quantity}"]}
                )

    @invariant.post
    def delivered_deliveries_have_no_pending_items(self):
        if self.state == DeliveryState.DELIVERED.value and any(i.pending_quantity > 0 for i in self.items or []):
            raise ValidationError({"state": ["A delivery with pending items cannot be delivered"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        delivery_type: str,
        order_date: date,
        items_data: list[dict],
        scheduled_date: date | None = None,
        store_id: str | None = None,
        origin_store: str | None = None,
        dest_store: str | None = None,
        customer_id: str | None = None,
        supplier_id: str | None = None,
        created_by: str | None = None,
        salesperson_name: str | None = None,
        salesperson_email: str | None = None,
        invoice_number: str | None = None,
        products_summary: str | None = None,
        notes: str | None = None,
    ):
        """Register a new delivery in ``pending`` state."""
        lines = _merge_item_lines(items_data)
        _check_creation_rules(delivery_type, lines, store_id, origin_store, dest_store, customer_id, supplier_id)

        now = datetime.now(UTC)
        is_movement = delivery_type == DeliveryType.STORE_MOVEMENT.value
        delivery = cls(
            delivery_type=delivery_type,
            state=DeliveryState.PENDING.value,
            order_date=order_date,
            scheduled_date=scheduled_date,
            store_id=None if is_movement else store_id,
            origin_store=origin_store if is_movement else None,
            dest_store=dest_store if is_movement else None,
            customer_id=customer_id if delivery_type == DeliveryType.HOME_DELIVERY.value else None,
            supplier_id=supplier_id if delivery_type == DeliveryType.SUPPLIER_PICKUP.value else None,
            created_by=created_by,
            salesperson_name=salesperson_name,
            salesperson_email=salesperson_email,
            invoice_number=invoice_number,
            products_summary=products_summary,
            created_at=now,
            updated_at=now,
        )
        for line in lines:
            delivery.add_items(
                DeliveryItem(
                    product_sku=line["product_sku"],
                    product_name=line.get("product_name"),
                    quantity=line["quantity"],
                    pending_quantity=line["quantity"],
                )
            )
        if notes:
            delivery.add_notes(Note(text=notes, created_at=now))

        delivery.raise_(
            DeliveryCreated(
                delivery_id=str(delivery.id),
                delivery_type=delivery_type,
                customer_id=delivery.customer_id,
                supplier_id=delivery.supplier_id,
                store_id=delivery.store_id,
                origin_store=delivery.origin_store,
                dest_store=delivery.dest_store,
                created_by=created_by,
                order_date=order_date,
                scheduled_date=scheduled_date,
                items=json.dumps(lines),
                item_count=len(lines),
                created_at=now,
            )
        )
        return delivery

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def home_store(self) -> str | None:
        """The stock location fulfilled items must end up in."""
        if self.delivery_type == DeliveryType.STORE_MOVEMENT.value:
            return self.dest_store
        return self.store_id

    @property
    def latest_operation(self):
        """Most recent operation by timestamp, ties broken by creation order."""
        if not self.operations:
            return None
        return max(self.operations, key=lambda op: (op.created_at, op.sequence))

    def item_for(self, product_sku: str):
        return next((i for i in (self.items or []) if i.product_sku == product_sku), None)

    def items_of(self, operation_id: str) -> list:
        return [oi for oi in (self.operation_items or []) if str(oi.operation_id) == str(operation_id)]

    def sorted_operations(self) -> list:
        return sorted(self.operations or [], key=lambda op: (op.created_at, op.sequence))

    # -------------------------------------------------------------------
    # Item Ledger
    # -------------------------------------------------------------------
    def validate_items(self, lines: list[dict]) -> None:
        """Check requested lines against pending quantities without mutating.

        Quantities requested for the same SKU are summed before comparing
        against its pending quantity.
        """
        requested = defaultdict(int)
        for line in lines:
            if not line.get("store_id"):
                raise ValidationError({"store_id": ["Store ID is required"]})
            item = self.item_for(line.get("product_sku"))
            if item is None:
                raise ValidationError({"product_sku": ["Product not found in delivery"]})
            quantity = line.get("quantity")
            if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
                raise ValidationError({"quantity": ["Invalid quantity"]})
            requested[item.product_sku] += quantity
            if requested[item.product_sku] > item.pending_quantity:
                raise ValidationError({"quantity": ["Invalid quantity"]})

    def decrement_pending(self, product_sku: str, quantity: int) -> None:
        item = self.item_for(product_sku)
        if item is None:
            raise ValidationError({"product_sku": ["Product not found in delivery"]})
        remaining = item.pending_quantity - quantity
        if remaining < 0:
            logger.error(
                "pending_quantity_underflow",
                delivery_id=str(self.id),
                product_sku=product_sku,
                pending_quantity=item.pending_quantity,
                requested=quantity,
            )
            raise ConstraintViolation(
                f"Pending quantity of {product_sku} would drop below zero",
                details={
                    "product_sku": product_sku,
                    "pending_quantity": item.pending_quantity,
                    "requested": quantity,
                },
            )
        item.pending_quantity = remaining

    def remaining_count(self) -> int:
        return sum(1 for i in (self.items or []) if i.pending_quantity > 0)

    # -------------------------------------------------------------------
    # Operation Recorder
    # -------------------------------------------------------------------
    def record_operation(
        self,
        actor_id: str | None,
        operation_type: str,
        dispatch=None,
        lines: list[dict] | None = None,
    ) -> bool:
        """Append an operation and apply its lines to the ledger.

        Returns True when a delivery operation leaves no pending items.
        Cancellations ignore dispatch and lines and always return False.
        """
        now = datetime.now(UTC)
        is_delivery = operation_type == OperationType.DELIVERY.value
        if is_delivery and not isinstance(dispatch, (CarrierDispatch, PickupDispatch)):
            raise ValidationError({"dispatch": [DISPATCH_REQUIRED_MESSAGE]})

        carrier_id = cost = pickup_store = None
        if is_delivery and isinstance(dispatch, PickupDispatch):
            pickup_store = dispatch.store
        elif is_delivery:
            carrier_id, cost = dispatch.carrier_id, dispatch.cost

        operation = Operation(
            operation_type=operation_type,
            operation_date=now.date(),
            sequence=len(self.operations or []) + 1,
            created_by=actor_id,
            carrier_id=carrier_id,
            cost=cost,
            pickup_store=pickup_store,
            created_at=now,
        )
        self.add_operations(operation)
        self.updated_at = now

        if not is_delivery:
            return False

        lines = lines or []
        for line in lines:
            self.add_operation_items(
                OperationItem(
                    operation_id=str(operation.id),
                    product_sku=line["product_sku"],
                    quantity=line["quantity"],
                    store_id=line["store_id"],
                )
            )
            self.decrement_pending(line["product_sku"], line["quantity"])

        remaining = self.remaining_count()
        self.raise_(
            DeliveryOperationRecorded(
                delivery_id=str(self.id),
                operation_id=str(operation.id),
                delivery_type=self.delivery_type,
                operation_date=operation.operation_date,
                carrier_id=carrier_id,
                cost=cost,
                pickup_store=pickup_store,
                items=json.dumps(
                    [
                        {"product_sku": ln["product_sku"], "quantity": ln["quantity"], "store_id": ln["store_id"]}
                        for ln in lines
                    ]
                ),
                quantity_total=sum(ln["quantity"] for ln in lines),
                remaining_count=remaining,
                created_by=actor_id,
                recorded_at=now,
            )
        )
        return remaining == 0

    # -------------------------------------------------------------------
    # State Machine
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target: DeliveryState) -> None:
        current = DeliveryState(self.state)
        if target in _VALID_TRANSITIONS.get(current, set()):
            return
        if current == DeliveryState.CANCELLED:
            raise InvalidStateTransition(
                f"Cannot transition from {current.value} to {target.value}: cancelled deliveries are final",
                details={"from": current.value, "to": target.value, "allowed": []},
            )
        raise InvalidStateTransition(
            f"Cannot transition from {current.value} to {target.value}: "
            f"the only allowed transition is to {DeliveryState.CANCELLED.value}",
            details={"from": current.value, "to": target.value, "allowed": [DeliveryState.CANCELLED.value]},
        )

    def request_transition(self, target_state: str, actor_id: str | None = None) -> None:
        """Apply a user-requested state change. Only cancellation is user-driven."""
        try:
            target = DeliveryState(target_state)
        except ValueError:
            raise ValidationError({"state": [f"Unknown state '{target_state}'"]})
        if target != DeliveryState.CANCELLED:
            current = DeliveryState(self.state)
            raise InvalidStateTransition(
                f"Cannot transition from {current.value} to {target.value}: "
                f"the only allowed transition is to {DeliveryState.CANCELLED.value}",
                details={"from": current.value, "to": target.value, "allowed": [DeliveryState.CANCELLED.value]},
            )
        self.cancel(actor_id)

    def mark_delivered(self) -> None:
        """Close a delivery whose every item has been fulfilled."""
        self._assert_can_transition(DeliveryState.DELIVERED)
        remaining = self.remaining_count()
        if remaining:
            raise ValidationError({"items": [f"{remaining} item(s) still pending"]})

        now = datetime.now(UTC)
        self.state = DeliveryState.DELIVERED.value
        self.updated_at = now
        self.add_notes(Note(text="Delivery completed: all items fulfilled", created_at=now))
        self.raise_(
            DeliveryFulfilled(
                delivery_id=str(self.id),
                delivery_type=self.delivery_type,
                customer_id=self.customer_id,
                salesperson_name=self.salesperson_name,
                salesperson_email=self.salesperson_email,
                product_names=json.dumps([i.product_name or i.product_sku for i in self.items or []]),
                delivered_at=now,
            )
        )

    def cancel(self, actor_id: str | None = None) -> None:
        """Cancel the delivery. History and carrier charges stay as recorded."""
        self._assert_can_transition(DeliveryState.CANCELLED)
        previous = self.state
        had_carrier_charges = any(op.carrier_id for op in self.operations or [])

        self.record_operation(actor_id, OperationType.CANCELLATION.value)
        operation = self.latest_operation
        now = operation.created_at
        self.state = DeliveryState.CANCELLED.value
        self.scheduled_date = None
        self.updated_at = now
        self.add_notes(Note(text=f"Delivery cancelled (was {previous})", created_at=now))
        self.raise_(
            DeliveryCancelled(
                delivery_id=str(self.id),
                operation_id=str(operation.id),
                delivery_type=self.delivery_type,
                previous_state=previous,
                operation_date=operation.operation_date,
                created_by=actor_id,
                carrier_charges_retained=had_carrier_charges,
                cancelled_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Scheduling and notes
    # -------------------------------------------------------------------
    def reschedule(self, scheduled_date: date | None) -> None:
        if DeliveryState(self.state) != DeliveryState.PENDING:
            raise ValidationError({"scheduled_date": ["Scheduled date can only be changed while the delivery is pending"]})

        now = datetime.now(UTC)
        previous = self.scheduled_date
        self.scheduled_date = scheduled_date
        self.updated_at = now
        self.raise_(
            DeliveryRescheduled(
                delivery_id=str(self.id),
                scheduled_date=scheduled_date,
                previous_scheduled_date=previous,
                rescheduled_at=now,
            )
        )

    def add_note(self, text: str) -> None:
        if not text or not text.strip():
            raise ValidationError({"text": ["Note text is required"]})
        now = datetime.now(UTC)
        note = Note(text=text.strip(), created_at=now)
        self.add_notes(note)
        self.updated_at = now
        self.raise_(
            NoteAdded(
                delivery_id=str(self.id),
                note_id=str(note.id),
                text=note.text,
                created_at=now,
            )
        )


# ---------------------------------------------------------------------------
# Creation helpers
# ---------------------------------------------------------------------------
def _merge_item_lines(items_data: list[dict]) -> list[dict]:
    """Collapse repeated SKUs into one line, summing their quantities."""
    merged: dict[str, dict] = {}
    for raw in items_data or []:
        sku = (raw.get("product_sku") or "").strip()
        if not sku:
            raise ValidationError({"items": ["Product SKU is required for every item"]})
        quantity = raw.get("quantity")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise ValidationError({"items": [f"Quantity for {sku} must be at least 1"]})
        if sku in merged:
            merged[sku]["quantity"] += quantity
        else:
            merged[sku] = {"product_sku": sku, "product_name": raw.get("product_name"), "quantity": quantity}
    return list(merged.values())


def _check_creation_rules(delivery_type, lines, store_id, origin_store, dest_store, customer_id, supplier_id):
    try:
        kind = DeliveryType(delivery_type)
    except ValueError:
        raise ValidationError({"delivery_type": [f"Unknown delivery type '{delivery_type}'"]})

    if not lines:
        raise ValidationError({"items": ["At least one item is required"]})

    if kind == DeliveryType.HOME_DELIVERY:
        if not customer_id:
            raise ValidationError({"customer_id": ["Customer is required for home deliveries"]})
        if not is_known_store(store_id):
            raise ValidationError({"store_id": ["A valid store is required for home deliveries"]})
    elif kind == DeliveryType.SUPPLIER_PICKUP:
        if not supplier_id:
            raise ValidationError({"supplier_id": ["Supplier is required for supplier pickups"]})
        if store_id and not is_known_store(store_id):
            raise ValidationError({"store_id": [f"Unknown store '{store_id}'"]})
    else:
        if not is_known_store(origin_store) or not is_known_store(dest_store):
            raise ValidationError({"stores": ["Valid origin and destination stores are required"]})
        if origin_store == dest_store:
            raise ValidationError({"stores": ["Origin and destination stores must be different"]})
