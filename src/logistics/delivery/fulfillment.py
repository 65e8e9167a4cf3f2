"""Fulfillment Engine — turns a "mark as fulfilled" request into ledger,
operation and inventory changes.

Steps, in order:

1. Reject empty selections, lines without a source store and ambiguous or
   missing dispatch data, before anything is read or written.
2. Load the delivery; only ``pending`` deliveries can be fulfilled. Validate
   the requested lines against the Item Ledger.
3. Move stock to the home store for every line sourced elsewhere, one
   transfer at a time. The first failure stops the loop; transfers already
   made stay in effect and are reported in the raised ``TransferFailed``.
4. Process ``RecordDeliveryOperation``. Its unit of work re-loads and
   re-validates the delivery, so a concurrent fulfillment that consumed the
   quantity meanwhile surfaces as a ``ValidationError``. Version conflicts are
   retried; exhausted retries become a ``ConstraintViolation``.
5. The recorder closes the delivery in the same unit of work when nothing is
   left pending.
"""

import json
from dataclasses import dataclass, field

import structlog
from protean.exceptions import ExpectedVersionError, ValidationError
from protean.utils.globals import current_domain
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt

from logistics.delivery.delivery import CarrierDispatch, Delivery, DeliveryState, resolve_dispatch
from logistics.delivery.exceptions import ConstraintViolation, InvalidStateTransition, TransferFailed
from logistics.delivery.recording import RecordDeliveryOperation
from logistics.transfer import get_transfer_service
from logistics.transfer.port import TransferPort

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class FulfillmentResult:
    """Outcome of a successful fulfillment request."""

    delivery_id: str
    fully_delivered: bool
    state: str
    transfers: list[dict] = field(default_factory=list)


class FulfillmentEngine:
    def __init__(self, transfer_service: TransferPort | None = None, max_attempts: int = 3):
        self._transfer_service = transfer_service
        self.max_attempts = max_attempts

    @property
    def transfer_service(self) -> TransferPort:
        return self._transfer_service or get_transfer_service()

    def fulfill(
        self,
        delivery_id: str,
        actor_id: str | None,
        items: list[dict],
        carrier_id: str | None = None,
        delivery_cost: float | None = None,
        pickup_store: str | None = None,
    ) -> FulfillmentResult:
        lines = _normalize_lines(items)
        dispatch = resolve_dispatch(carrier_id, delivery_cost, pickup_store)

        delivery = current_domain.repository_for(Delivery).get(delivery_id)
        if delivery.state != DeliveryState.PENDING.value:
            raise InvalidStateTransition(
                f"Cannot fulfill a {delivery.state} delivery: only pending deliveries accept operations",
                details={"state": delivery.state},
            )
        delivery.validate_items(lines)

        transfers = self._transfer_stock(delivery, lines)
        fully_delivered = self._record(delivery_id, actor_id, lines, dispatch)

        logger.info(
            "delivery_fulfillment_processed",
            delivery_id=str(delivery_id),
            actor_id=actor_id,
            lines=len(lines),
            transfers=len(transfers),
            fully_delivered=fully_delivered,
        )
        return FulfillmentResult(
            delivery_id=str(delivery_id),
            fully_delivered=fully_delivered,
            state=DeliveryState.DELIVERED.value if fully_delivered else DeliveryState.PENDING.value,
            transfers=transfers,
        )

    def _transfer_stock(self, delivery: Delivery, lines: list[dict]) -> list[dict]:
        home_store = delivery.home_store
        if not home_store:
            return []

        completed: list[dict] = []
        service = self.transfer_service
        for line in lines:
            if line["store_id"] == home_store:
                continue
            request = {
                "origin_store": line["store_id"],
                "dest_store": home_store,
                "product_sku": line["product_sku"],
                "quantity": line["quantity"],
            }
            result = service.move_stock(**request)
            if result.get("error"):
                logger.warning(
                    "inventory_transfer_failed",
                    delivery_id=str(delivery.id),
                    error=result["error"],
                    completed=len(completed),
                    **request,
                )
                raise TransferFailed(failed=request, completed=completed, reason=result["error"])
            completed.append({**request, "transfer_id": result.get("transfer_id")})
            logger.info("inventory_transfer_completed", delivery_id=str(delivery.id), **request)
        return completed

    def _process(self, command: RecordDeliveryOperation):
        return current_domain.process(command, asynchronous=False)

    def _record(self, delivery_id: str, actor_id: str | None, lines: list[dict], dispatch) -> bool:
        is_carrier = isinstance(dispatch, CarrierDispatch)
        command = RecordDeliveryOperation(
            delivery_id=delivery_id,
            actor_id=actor_id,
            items=json.dumps(lines),
            carrier_id=dispatch.carrier_id if is_carrier else None,
            cost=dispatch.cost if is_carrier else None,
            pickup_store=None if is_carrier else dispatch.store,
        )
        try:
            for attempt in Retrying(
                stop=stop_after_attempt(self.max_attempts),
                retry=retry_if_exception_type(ExpectedVersionError),
                reraise=True,
            ):
                with attempt:
                    return bool(self._process(command))
        except ExpectedVersionError as exc:
            logger.error("delivery_operation_conflict", delivery_id=str(delivery_id), attempts=self.max_attempts)
            raise ConstraintViolation(
                "The delivery was modified concurrently and the operation could not be recorded",
                details={"delivery_id": str(delivery_id), "attempts": self.max_attempts},
            ) from exc


def _normalize_lines(items: list[dict] | None) -> list[dict]:
    if not items:
        raise ValidationError({"items": ["At least one item must be selected"]})

    lines = []
    for item in items:
        if not item.get("source_store"):
            raise ValidationError({"store_id": ["Store ID is required"]})
        lines.append(
            {
                "product_sku": item.get("product_sku"),
                "quantity": item.get("quantity"),
                "store_id": item["source_store"],
            }
        )
    return lines
