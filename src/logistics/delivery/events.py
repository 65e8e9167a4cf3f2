"""Delivery domain events — immutable facts about deliveries.

All events are past tense, versioned, and carry sufficient data for the
feed/operation projectors and the notification handler.
"""

from protean.fields import Boolean, Date, DateTime, Float, Identifier, Integer, String, Text

from logistics.domain import logistics


@logistics.event(part_of="Delivery")
class DeliveryCreated:
    """A delivery, pickup or store movement was registered."""

    __version__ = 1

    delivery_id = Identifier(required=True)
    delivery_type = String(required=True)
    customer_id = Identifier()
    supplier_id = Identifier()
    store_id = String()
    origin_store = String()
    dest_store = String()
    created_by = Identifier()
    order_date = Date(required=True)
    scheduled_date = Date()
    items = Text(required=True)  # JSON list of item dicts
    item_count = Integer(required=True)
    created_at = DateTime(required=True)


@logistics.event(part_of="Delivery")
class DeliveryOperationRecorded:
    """Items of a delivery were fulfilled by carrier or store pickup."""

    __version__ = 1

    delivery_id = Identifier(required=True)
    operation_id = Identifier(required=True)
    delivery_type = String(required=True)
    operation_date = Date(required=True)
    carrier_id = Identifier()
    cost = Float()
    pickup_store = String()
    items = Text(required=True)  # JSON list of fulfilled lines
    quantity_total = Integer(required=True)
    remaining_count = Integer(required=True)
    created_by = Identifier()
    recorded_at = DateTime(required=True)


@logistics.event(part_of="Delivery")
class DeliveryFulfilled:
    """Every item of a delivery has been fulfilled."""

    __version__ = 1

    delivery_id = Identifier(required=True)
    delivery_type = String(required=True)
    customer_id = Identifier()
    salesperson_name = String()
    salesperson_email = String()
    product_names = Text()  # JSON list of product names
    delivered_at = DateTime(required=True)


@logistics.event(part_of="Delivery")
class DeliveryCancelled:
    """A delivery was cancelled. Earlier operations remain untouched."""

    __version__ = 1

    delivery_id = Identifier(required=True)
    operation_id = Identifier(required=True)
    delivery_type = String(required=True)
    previous_state = String(required=True)
    operation_date = Date(required=True)
    created_by = Identifier()
    carrier_charges_retained = Boolean(default=False)
    cancelled_at = DateTime(required=True)


@logistics.event(part_of="Delivery")
class DeliveryRescheduled:
    """The scheduled date of a pending delivery changed (or was cleared)."""

    __version__ = 1

    delivery_id = Identifier(required=True)
    scheduled_date = Date()
    previous_scheduled_date = Date()
    rescheduled_at = DateTime(required=True)


@logistics.event(part_of="Delivery")
class NoteAdded:
    """A note was attached to a delivery."""

    __version__ = 1

    delivery_id = Identifier(required=True)
    note_id = Identifier(required=True)
    text = Text(required=True)
    created_at = DateTime(required=True)
