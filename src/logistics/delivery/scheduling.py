"""Delivery scheduling — command and handler."""

from protean import handle
from protean.fields import Date, Identifier
from protean.utils.globals import current_domain

from logistics.delivery.delivery import Delivery
from logistics.domain import logistics


@logistics.command(part_of="Delivery")
class RescheduleDelivery:
    """Set or clear the scheduled date of a pending delivery."""

    delivery_id = Identifier(required=True)
    scheduled_date = Date()  # None clears the appointment


@logistics.command_handler(part_of=Delivery)
class RescheduleDeliveryHandler:
    @handle(RescheduleDelivery)
    def reschedule_delivery(self, command):
        repo = current_domain.repository_for(Delivery)
        delivery = repo.get(command.delivery_id)
        delivery.reschedule(command.scheduled_date)
        repo.add(delivery)
