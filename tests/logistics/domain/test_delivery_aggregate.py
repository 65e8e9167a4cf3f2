"""Tests for Delivery creation, creation rules and derived queries."""

from datetime import date

import pytest
from logistics.delivery.delivery import Delivery, DeliveryState, DeliveryType
from logistics.delivery.events import DeliveryCreated
from protean.exceptions import ValidationError


def _items():
    return [
        {"product_sku": "SKU-A", "product_name": "Mesa ratona", "quantity": 2},
        {"product_sku": "SKU-B", "product_name": "Silla", "quantity": 1},
    ]


def _home_delivery(**overrides):
    fields = {
        "delivery_type": DeliveryType.HOME_DELIVERY.value,
        "order_date": date(2024, 3, 1),
        "items_data": _items(),
        "store_id": "24471",
        "customer_id": "cust-001",
    }
    fields.update(overrides)
    return Delivery.create(**fields)


class TestDeliveryCreation:
    def test_starts_pending(self):
        delivery = _home_delivery()
        assert delivery.state == DeliveryState.PENDING.value

    def test_pending_quantity_starts_at_ordered_quantity(self):
        delivery = _home_delivery()
        assert [(i.product_sku, i.quantity, i.pending_quantity) for i in delivery.items] == [
            ("SKU-A", 2, 2),
            ("SKU-B", 1, 1),
        ]

    def test_raises_delivery_created(self):
        delivery = _home_delivery()
        assert len(delivery._events) == 1
        event = delivery._events[0]
        assert isinstance(event, DeliveryCreated)
        assert event.delivery_id == str(delivery.id)
        assert event.item_count == 2

    def test_duplicate_skus_are_merged(self):
        delivery = _home_delivery(
            items_data=[
                {"product_sku": "SKU-A", "quantity": 1},
                {"product_sku": "SKU-A", "quantity": 2},
            ]
        )
        assert len(delivery.items) == 1
        assert delivery.items[0].quantity == 3
        assert delivery.items[0].pending_quantity == 3

    def test_initial_note_is_kept(self):
        delivery = _home_delivery(notes="Tocar timbre 2B")
        assert [n.text for n in delivery.notes] == ["Tocar timbre 2B"]

    def test_scheduled_date_is_optional(self):
        assert _home_delivery().scheduled_date is None
        assert _home_delivery(scheduled_date=date(2024, 3, 5)).scheduled_date == date(2024, 3, 5)


class TestCreationRules:
    def test_items_are_required(self):
        with pytest.raises(ValidationError) as exc:
            _home_delivery(items_data=[])
        assert "items" in exc.value.messages

    def test_quantity_must_be_positive(self):
        with pytest.raises(ValidationError):
            _home_delivery(items_data=[{"product_sku": "SKU-A", "quantity": 0}])

    @pytest.mark.parametrize("quantity", [True, 2.0, "3"])
    def test_quantity_must_be_an_integer(self, quantity):
        with pytest.raises(ValidationError) as exc:
            _home_delivery(items_data=[{"product_sku": "SKU-A", "quantity": quantity}])
        assert "items" in exc.value.messages

    def test_sku_is_required(self):
        with pytest.raises(ValidationError):
            _home_delivery(items_data=[{"product_sku": "", "quantity": 1}])

    def test_home_delivery_needs_customer(self):
        with pytest.raises(ValidationError) as exc:
            _home_delivery(customer_id=None)
        assert "customer_id" in exc.value.messages

    def test_home_delivery_needs_known_store(self):
        with pytest.raises(ValidationError) as exc:
            _home_delivery(store_id="99999")
        assert "store_id" in exc.value.messages

    def test_supplier_pickup_needs_supplier(self):
        with pytest.raises(ValidationError) as exc:
            Delivery.create(
                delivery_type=DeliveryType.SUPPLIER_PICKUP.value,
                order_date=date(2024, 3, 1),
                items_data=_items(),
                store_id="60835",
            )
        assert "supplier_id" in exc.value.messages

    def test_store_movement_needs_different_stores(self):
        with pytest.raises(ValidationError) as exc:
            Delivery.create(
                delivery_type=DeliveryType.STORE_MOVEMENT.value,
                order_date=date(2024, 3, 1),
                items_data=_items(),
                origin_store="60835",
                dest_store="60835",
            )
        assert "stores" in exc.value.messages

    def test_unknown_type_is_rejected(self):
        with pytest.raises(ValidationError) as exc:
            _home_delivery(delivery_type="teleport")
        assert "delivery_type" in exc.value.messages


class TestHomeStore:
    def test_home_delivery_uses_store_id(self):
        assert _home_delivery().home_store == "24471"

    def test_store_movement_uses_destination(self):
        delivery = Delivery.create(
            delivery_type=DeliveryType.STORE_MOVEMENT.value,
            order_date=date(2024, 3, 1),
            items_data=_items(),
            origin_store="60835",
            dest_store="31312",
        )
        assert delivery.home_store == "31312"
        assert delivery.store_id is None

    def test_supplier_pickup_uses_receiving_store(self):
        delivery = Delivery.create(
            delivery_type=DeliveryType.SUPPLIER_PICKUP.value,
            order_date=date(2024, 3, 1),
            items_data=_items(),
            store_id="60835",
            supplier_id="sup-1",
            customer_id="cust-ignored",
        )
        assert delivery.home_store == "60835"
        assert delivery.customer_id is None
