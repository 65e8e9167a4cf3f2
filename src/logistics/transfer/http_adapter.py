"""HTTP transfer adapter — posts stock movements to the inventory service.

Each call is a ``POST`` of ``{origin_store, dest_store, product_sku,
quantity}``. Only connection failures are retried: once a request has
reached the server a retry could move the stock twice.
"""

import httpx
import structlog
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from logistics.transfer.port import TransferPort

logger = structlog.get_logger(__name__)


class HttpTransferService(TransferPort):
    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = 10.0,
        max_attempts: int = 3,
        backoff: float = 0.5,
        transport: httpx.BaseTransport | None = None,
    ):
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self.max_attempts = max_attempts
        self.backoff = backoff
        self.client = httpx.Client(base_url=base_url, headers=headers, timeout=timeout, transport=transport)

    def close(self) -> None:
        self.client.close()

    def _post(self, payload: dict) -> httpx.Response:
        @retry(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.backoff, max=5),
            retry=retry_if_exception_type((httpx.ConnectError, httpx.ConnectTimeout)),
            reraise=True,
        )
        def _send():
            return self.client.post("/inventory/movement", json=payload)

        return _send()

    def move_stock(self, origin_store: str, dest_store: str, product_sku: str, quantity: int) -> dict:
        payload = {
            "origin_store": origin_store,
            "dest_store": dest_store,
            "product_sku": product_sku,
            "quantity": quantity,
        }
        try:
            response = self._post(payload)
        except httpx.TimeoutException:
            logger.warning("inventory_transfer_timeout", **payload)
            return {**payload, "error": "Inventory service timed out"}
        except httpx.HTTPError as exc:
            logger.warning("inventory_transfer_unreachable", error=str(exc), **payload)
            return {**payload, "error": f"Inventory service unreachable: {exc}"}

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {"result": body}

        if response.is_error or body.get("error"):
            error = body.get("error") or f"Inventory service returned HTTP {response.status_code}"
            logger.warning("inventory_transfer_rejected", status=response.status_code, error=error, **payload)
            return {**payload, "error": error}
        return {**payload, **body}
