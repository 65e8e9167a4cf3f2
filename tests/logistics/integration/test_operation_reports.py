"""Integration tests for the operations report and carrier charges."""

from datetime import UTC, datetime, timedelta

import pytest
from logistics.delivery.cancellation import CancelDelivery
from logistics.delivery.fulfillment import FulfillmentEngine
from logistics.projections.queries import carrier_charges, list_operations
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain


def _ship(delivery_id, sku, quantity, carrier_id="car-1", cost=1000.0):
    FulfillmentEngine().fulfill(
        delivery_id,
        "user-ops-1",
        items=[{"product_sku": sku, "quantity": quantity, "source_store": "24471"}],
        carrier_id=carrier_id,
        delivery_cost=cost,
    )


class TestOperationsReport:
    def test_lists_deliveries_and_cancellations(self, make_delivery):
        delivery_id = make_delivery()
        _ship(delivery_id, "SKU-A", 1)
        current_domain.process(CancelDelivery(delivery_id=delivery_id, actor_id="user-2"), asynchronous=False)

        today = datetime.now(UTC).date()
        rows = list_operations(start_date=today, end_date=today)
        assert sorted(row["operation_type"] for row in rows) == ["cancellation", "delivery"]

        only_deliveries = list_operations(operation_type="delivery")
        assert len(only_deliveries) == 1
        assert only_deliveries[0]["quantity_total"] == 1
        assert only_deliveries[0]["carrier_id"] == "car-1"

    def test_date_range_excludes_other_days(self, make_delivery):
        _ship(make_delivery(), "SKU-A", 1)
        tomorrow = datetime.now(UTC).date() + timedelta(days=1)
        assert list_operations(start_date=tomorrow) == []

    def test_invalid_arguments(self):
        today = datetime.now(UTC).date()
        with pytest.raises(ValidationError):
            list_operations(operation_type="teleport")
        with pytest.raises(ValidationError):
            list_operations(start_date=today, end_date=today - timedelta(days=1))


class TestCarrierCharges:
    def test_totals_per_carrier(self, make_delivery):
        first = make_delivery()
        second = make_delivery()
        _ship(first, "SKU-A", 1, cost=1000.0)
        _ship(first, "SKU-B", 1, cost=250.5)
        _ship(second, "SKU-A", 2, carrier_id="car-2", cost=800.0)

        charges = carrier_charges("car-1")
        assert charges["operation_count"] == 2
        assert charges["total_cost"] == 1250.5
        assert carrier_charges("car-2")["total_cost"] == 800.0

    def test_cancellation_does_not_reverse_charges(self, make_delivery):
        delivery_id = make_delivery()
        _ship(delivery_id, "SKU-A", 2, cost=1500.0)
        current_domain.process(CancelDelivery(delivery_id=delivery_id, actor_id="user-2"), asynchronous=False)

        charges = carrier_charges("car-1")
        assert charges["operation_count"] == 1
        assert charges["total_cost"] == 1500.0

    def test_since_filter(self, make_delivery):
        _ship(make_delivery(), "SKU-A", 1)
        tomorrow = datetime.now(UTC).date() + timedelta(days=1)
        assert carrier_charges("car-1", since=tomorrow)["operation_count"] == 0


class TestReadsSpanSeveralBatches:
    @pytest.fixture(autouse=True)
    def _small_batches(self, monkeypatch):
        monkeypatch.setattr("logistics.utils.db.READ_BATCH_SIZE", 2)

    def test_carrier_charges_count_every_operation(self, make_delivery):
        for _ in range(3):
            _ship(make_delivery(), "SKU-A", 1, cost=100.0)

        charges = carrier_charges("car-1")
        assert charges["operation_count"] == 3
        assert charges["total_cost"] == 300.0

    def test_operations_report_lists_every_operation(self, make_delivery):
        for _ in range(5):
            _ship(make_delivery(), "SKU-B", 1)

        rows = list_operations(operation_type="delivery")
        assert len(rows) == 5
        assert len({row["operation_id"] for row in rows}) == 5
