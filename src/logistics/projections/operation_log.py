"""Operation log — one row per recorded operation.

Backs the operations report and carrier charge totals. Cancellations are
logged as their own rows and never change the cost of earlier ones.
"""

from protean.core.projector import on
from protean.fields import Date, DateTime, Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from logistics.delivery.delivery import Delivery
from logistics.delivery.events import DeliveryCancelled, DeliveryOperationRecorded
from logistics.domain import logistics


@logistics.projection
class OperationLogView:
    operation_id = Identifier(identifier=True, required=True)
    delivery_id = Identifier(required=True)
    delivery_type = String(required=True)
    operation_type = String(required=True)
    operation_date = Date(required=True)
    carrier_id = Identifier()
    cost = Float()
    pickup_store = String()
    quantity_total = Integer(default=0)
    created_by = Identifier()
    created_at = DateTime()


@logistics.projector(projector_for=OperationLogView, aggregates=[Delivery])
class OperationLogProjector:
    @on(DeliveryOperationRecorded)
    def on_operation_recorded(self, event):
        current_domain.repository_for(OperationLogView).add(
            OperationLogView(
                operation_id=event.operation_id,
                delivery_id=event.delivery_id,
                delivery_type=event.delivery_type,
                operation_type="delivery",
                operation_date=event.operation_date,
                carrier_id=event.carrier_id,
                cost=event.cost,
                pickup_store=event.pickup_store,
                quantity_total=event.quantity_total,
                created_by=event.created_by,
                created_at=event.recorded_at,
            )
        )

    @on(DeliveryCancelled)
    def on_delivery_cancelled(self, event):
        current_domain.repository_for(OperationLogView).add(
            OperationLogView(
                operation_id=event.operation_id,
                delivery_id=event.delivery_id,
                delivery_type=event.delivery_type,
                operation_type="cancellation",
                operation_date=event.operation_date,
                created_by=event.created_by,
                created_at=event.cancelled_at,
            )
        )
