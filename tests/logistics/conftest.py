import json
from datetime import date

import pytest
from protean import current_domain
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def logistics_bed():
    from logistics.domain import logistics

    bed = DomainFixture(logistics)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(logistics_bed):
    from logistics.notifier import reset_notifiers
    from logistics.transfer import reset_transfer_service

    with logistics_bed.domain_context():
        yield
        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()

    reset_transfer_service()
    reset_notifiers()


@pytest.fixture()
def transfers():
    """The fake inventory transfer service used by the engine."""
    from logistics.transfer import get_transfer_service

    return get_transfer_service()


@pytest.fixture()
def scheduler():
    from logistics.notifier import get_scheduler

    return get_scheduler()


@pytest.fixture()
def mailer():
    from logistics.notifier import get_mailer

    return get_mailer()


@pytest.fixture()
def make_customer():
    from logistics.customer.registration import RegisterCustomer

    def _make(name="Ana Gómez", email="ana@example.com", address="Av. Colón 1200", phone="351-555-0101"):
        return current_domain.process(
            RegisterCustomer(name=name, email=email, address=address, phone=phone),
            asynchronous=False,
        )

    return _make


@pytest.fixture()
def make_delivery():
    """Create a home delivery (store 24471) through the command handler."""
    from logistics.delivery.creation import CreateDelivery

    def _make(items=None, **overrides):
        fields = {
            "delivery_type": "home_delivery",
            "order_date": date(2024, 3, 1),
            "store_id": "24471",
            "customer_id": "cust-001",
            "created_by": "user-sales-1",
            "salesperson_name": "Laura",
            "salesperson_email": "laura@example.com",
        }
        fields.update(overrides)
        items = items or [
            {"product_sku": "SKU-A", "product_name": "Mesa ratona", "quantity": 2},
            {"product_sku": "SKU-B", "product_name": "Silla", "quantity": 1},
        ]
        return current_domain.process(CreateDelivery(items=json.dumps(items), **fields), asynchronous=False)

    return _make
