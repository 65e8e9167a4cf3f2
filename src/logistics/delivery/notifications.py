"""Delivery notifications — reacts to DeliveryFulfilled.

Once a delivery is fully delivered the salesperson gets a follow-up task and
the customer gets the review request (plus the warranty registration email
when a Gani mattress was delivered). Notifications are best-effort: adapter
failures are logged and never undo the fulfillment.
"""

import json
import unicodedata

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from logistics.customer.customer import Customer
from logistics.delivery.delivery import Delivery
from logistics.delivery.events import DeliveryFulfilled
from logistics.domain import logistics
from logistics.notifier import get_mailer, get_scheduler
from logistics.notifier.mailer_port import GANI_WARRANTY, REVIEW_REQUEST

logger = structlog.get_logger(__name__)

GANI_KEYWORD = "colchon gani"


def _fold(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(c for c in decomposed if not unicodedata.combining(c)).lower()


def mentions_gani_mattress(product_names: list[str]) -> bool:
    return any(GANI_KEYWORD in _fold(name or "") for name in product_names)


@logistics.event_handler(part_of=Delivery)
class DeliveryNotificationHandler:
    """Sends the follow-up and customer emails of a completed delivery."""

    @handle(DeliveryFulfilled)
    def on_delivery_fulfilled(self, event: DeliveryFulfilled) -> None:
        customer = self._load_customer(event.customer_id)
        if customer is None:
            logger.info("delivery_notifications_skipped", delivery_id=str(event.delivery_id), reason="no customer")
            return

        product_names = json.loads(event.product_names) if event.product_names else []
        self._schedule_follow_up(event, customer)
        self._email_customer(event, customer, product_names)

    def _load_customer(self, customer_id):
        if not customer_id:
            return None
        try:
            return current_domain.repository_for(Customer).get(str(customer_id))
        except ObjectNotFoundError:
            logger.warning("delivery_customer_missing", customer_id=str(customer_id))
            return None

    def _schedule_follow_up(self, event: DeliveryFulfilled, customer: Customer) -> None:
        if not event.salesperson_email:
            logger.info("follow_up_skipped", delivery_id=str(event.delivery_id), reason="no salesperson email")
            return
        try:
            result = get_scheduler().schedule_follow_up(
                salesperson_email=event.salesperson_email,
                salesperson_name=event.salesperson_name,
                customer_name=customer.name,
                customer_phone=customer.phone,
            )
        except Exception as exc:
            logger.error("follow_up_failed", delivery_id=str(event.delivery_id), error=str(exc))
            return
        if result.get("error"):
            logger.warning("follow_up_failed", delivery_id=str(event.delivery_id), error=result["error"])
        else:
            logger.info("follow_up_scheduled", delivery_id=str(event.delivery_id), follow_up_id=result["follow_up_id"])

    def _email_customer(self, event: DeliveryFulfilled, customer: Customer, product_names: list[str]) -> None:
        if not customer.email:
            logger.info("customer_email_skipped", delivery_id=str(event.delivery_id), reason="no customer email")
            return

        templates = []
        if mentions_gani_mattress(product_names):
            templates.append(GANI_WARRANTY)
        templates.append(REVIEW_REQUEST)

        mailer = get_mailer()
        for template in templates:
            try:
                result = mailer.trigger(customer.email.address, template)
            except Exception as exc:
                logger.error("customer_email_failed", delivery_id=str(event.delivery_id), template=template, error=str(exc))
                continue
            if result.get("error"):
                logger.warning(
                    "customer_email_failed", delivery_id=str(event.delivery_id), template=template, error=result["error"]
                )
            else:
                logger.info("customer_email_sent", delivery_id=str(event.delivery_id), template=template)
