"""Delivery notes — command and handler."""

from protean import handle
from protean.fields import Identifier, Text
from protean.utils.globals import current_domain

from logistics.delivery.delivery import Delivery
from logistics.domain import logistics


@logistics.command(part_of="Delivery")
class AddNote:
    delivery_id = Identifier(required=True)
    text = Text(required=True)


@logistics.command_handler(part_of=Delivery)
class AddNoteHandler:
    @handle(AddNote)
    def add_note(self, command):
        repo = current_domain.repository_for(Delivery)
        delivery = repo.get(command.delivery_id)
        delivery.add_note(command.text)
        repo.add(delivery)
