"""Tests for the Customer aggregate and its EmailAddress value object."""

import pytest
from logistics.customer.customer import Customer
from logistics.customer.email import EmailAddress
from logistics.customer.events import CustomerRegistered
from protean.exceptions import ValidationError


class TestEmailAddress:
    @pytest.mark.parametrize(
        "address",
        ["ana@example.com", "ana.gomez+pedidos@mail.example.com.ar", "a_b-c@sub-domain.example.org"],
    )
    def test_valid(self, address):
        assert EmailAddress(address=address).address == address

    @pytest.mark.parametrize(
        "address",
        [
            "anaexample.com",
            "ana@@example.com",
            "@example.com",
            "ana@",
            "ana@example",
            ".ana@example.com",
            "ana.@example.com",
            "ana..gomez@example.com",
            "ana@-example.com",
            "ana gomez@example.com",
            "ana,gomez@example.com",
            "ana@example.com.",
        ],
    )
    def test_invalid(self, address):
        with pytest.raises(ValidationError):
            EmailAddress(address=address)


class TestCustomerRegistration:
    def test_register(self):
        customer = Customer.register(name="  Ana Gómez ", email="ana@example.com", phone="351-555-0101")
        assert customer.name == "Ana Gómez"
        assert customer.email.address == "ana@example.com"
        event = customer._events[-1]
        assert isinstance(event, CustomerRegistered)
        assert event.email == "ana@example.com"

    def test_email_is_optional(self):
        assert Customer.register(name="Bruno Díaz").email is None

    def test_invalid_email_rejected(self):
        with pytest.raises(ValidationError):
            Customer.register(name="Ana Gómez", email="ana@")

    def test_name_is_required(self):
        with pytest.raises(ValidationError) as exc:
            Customer.register(name="   ")
        assert "name" in exc.value.messages
