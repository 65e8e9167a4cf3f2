"""Delivery creation — command and handler.

Registers a home delivery, supplier pickup or store movement in ``pending``
state.
"""

import json

from protean import handle
from protean.fields import Date, Identifier, String, Text
from protean.utils.globals import current_domain

from logistics.delivery.delivery import Delivery
from logistics.domain import logistics


@logistics.command(part_of="Delivery")
class CreateDelivery:
    """Register a new delivery with its item lines."""

    delivery_type = String(required=True, max_length=50)
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
    notes = Text()
    items = Text(required=True)  # JSON list of {product_sku, product_name, quantity}


@logistics.command_handler(part_of=Delivery)
class CreateDeliveryHandler:
    @handle(CreateDelivery)
    def create_delivery(self, command):
        items_data = json.loads(command.items) if isinstance(command.items, str) else command.items
        delivery = Delivery.create(
            delivery_type=command.delivery_type,
            order_date=command.order_date,
            items_data=items_data,
            scheduled_date=command.scheduled_date,
            store_id=command.store_id,
            origin_store=command.origin_store,
            dest_store=command.dest_store,
            customer_id=command.customer_id,
            supplier_id=command.supplier_id,
            created_by=command.created_by,
            salesperson_name=command.salesperson_name,
            salesperson_email=command.salesperson_email,
            invoice_number=command.invoice_number,
            products_summary=command.products_summary,
            notes=command.notes,
        )
        current_domain.repository_for(Delivery).add(delivery)
        return str(delivery.id)
