"""Customer domain events."""

from protean.fields import DateTime, Identifier, String

from logistics.domain import logistics


@logistics.event(part_of="Customer")
class CustomerRegistered:
    __version__ = 1

    customer_id = Identifier(required=True)
    name = String(required=True)
    address = String()
    phone = String()
    email = String()
    dni = String()
    registered_at = DateTime(required=True)
