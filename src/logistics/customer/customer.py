"""Customer aggregate — reference data for home deliveries.

Customers are looked up by the delivery listing search (name or address) and
by the notification handler (contact details). Their lifecycle is owned by
the sales system; this context only keeps a copy.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, String, ValueObject

from logistics.customer.email import EmailAddress
from logistics.customer.events import CustomerRegistered
from logistics.domain import logistics


@logistics.aggregate
class Customer:
    name = String(required=True, max_length=200)
    address = String(max_length=300)
    phone = String(max_length=50)
    email = ValueObject(EmailAddress)
    dni = String(max_length=20)
    created_at = DateTime()

    @classmethod
    def register(cls, name: str, address=None, phone=None, email=None, dni=None):
        if not name or not name.strip():
            raise ValidationError({"name": ["Customer name is required"]})

        now = datetime.now(UTC)
        customer = cls(
            name=name.strip(),
            address=address,
            phone=phone,
            email=EmailAddress(address=email) if email else None,
            dni=dni,
            created_at=now,
        )
        customer.raise_(
            CustomerRegistered(
                customer_id=str(customer.id),
                name=customer.name,
                address=address,
                phone=phone,
                email=email,
                dni=dni,
                registered_at=now,
            )
        )
        return customer
