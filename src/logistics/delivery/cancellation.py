"""Delivery cancellation — command and handler.

Cancels a pending or delivered delivery. The cancellation is a new
operation on top of the history; nothing recorded earlier is reverted.
"""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from logistics.delivery.delivery import Delivery
from logistics.domain import logistics


@logistics.command(part_of="Delivery")
class CancelDelivery:
    """Cancel a delivery. Carrier charges already recorded are kept."""

    delivery_id = Identifier(required=True)
    actor_id = Identifier()


@logistics.command_handler(part_of=Delivery)
class CancelDeliveryHandler:
    @handle(CancelDelivery)
    def cancel_delivery(self, command):
        repo = current_domain.repository_for(Delivery)
        delivery = repo.get(command.delivery_id)
        delivery.cancel(command.actor_id)
        repo.add(delivery)
