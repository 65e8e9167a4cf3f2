"""Delivery operation recording — command and handler.

The handler is the Operation Recorder's unit of work: it re-loads the
delivery, re-validates the requested lines against the current pending
quantities, appends the operation with its items, decrements the ledger and,
when nothing is left pending, closes the delivery. All of it is persisted by
one ``repository.add``, guarded by the aggregate version.
"""

import json

import structlog
from protean import handle
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain

from logistics.delivery.delivery import Delivery, DeliveryState, OperationType, resolve_dispatch
from logistics.delivery.exceptions import InvalidStateTransition
from logistics.domain import logistics

logger = structlog.get_logger(__name__)


@logistics.command(part_of="Delivery")
class RecordDeliveryOperation:
    """Record fulfilled items of a delivery, dispatched by carrier or pickup."""

    delivery_id = Identifier(required=True)
    actor_id = Identifier()
    items = Text(required=True)  # JSON list of {product_sku, quantity, store_id}
    carrier_id = Identifier()
    cost = Float()
    pickup_store = String(max_length=50)


@logistics.command_handler(part_of=Delivery)
class RecordDeliveryOperationHandler:
    @handle(RecordDeliveryOperation)
    def record_delivery_operation(self, command) -> bool:
        lines = json.loads(command.items) if isinstance(command.items, str) else command.items
        repo = current_domain.repository_for(Delivery)
        delivery = repo.get(command.delivery_id)

        if delivery.state != DeliveryState.PENDING.value:
            raise InvalidStateTransition(
                f"Cannot fulfill a {delivery.state} delivery: only pending deliveries accept operations",
                details={"state": delivery.state},
            )
        delivery.validate_items(lines)
        dispatch = resolve_dispatch(command.carrier_id, command.cost, command.pickup_store, strict=False)

        fully_delivered = delivery.record_operation(
            command.actor_id,
            OperationType.DELIVERY.value,
            dispatch=dispatch,
            lines=lines,
        )
        if fully_delivered:
            delivery.mark_delivered()
        repo.add(delivery)

        logger.info(
            "delivery_operation_recorded",
            delivery_id=str(delivery.id),
            lines=len(lines),
            fully_delivered=fully_delivered,
            remaining=delivery.remaining_count(),
        )
        return fully_delivered
