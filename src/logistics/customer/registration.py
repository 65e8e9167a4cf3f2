"""Customer registration — command and handler."""

from protean import handle
from protean.fields import String
from protean.utils.globals import current_domain

from logistics.customer.customer import Customer
from logistics.domain import logistics


@logistics.command(part_of="Customer")
class RegisterCustomer:
    name = String(required=True, max_length=200)
    address = String(max_length=300)
    phone = String(max_length=50)
    email = String(max_length=254)
    dni = String(max_length=20)


@logistics.command_handler(part_of=Customer)
class RegisterCustomerHandler:
    @handle(RegisterCustomer)
    def register_customer(self, command):
        customer = Customer.register(
            name=command.name,
            address=command.address,
            phone=command.phone,
            email=command.email,
            dni=command.dni,
        )
        current_domain.repository_for(Customer).add(customer)
        return str(customer.id)
