"""Fake transfer adapter — in-memory stock mover for testing and development.

Records every request in ``calls``. Can be configured to fail every call or
only the n-th one, and accepts an ``on_transfer`` hook that runs before each
transfer is answered (used to interleave concurrent work in tests).
"""

from uuid import uuid4

from logistics.transfer.port import TransferPort


class FakeTransferService(TransferPort):
    """Fake transfer service that always succeeds by default."""

    def __init__(self):
        self.calls: list[dict] = []
        self.should_succeed = True
        self.failure_reason = "Inventory service unavailable"
        self.fail_on_call: int | None = None
        self.on_transfer = None

    def configure(
        self,
        should_succeed: bool = True,
        failure_reason: str = "Inventory service unavailable",
        fail_on_call: int | None = None,
        on_transfer=None,
    ):
        """Configure the fake behavior. ``fail_on_call`` is 1-based."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.fail_on_call = fail_on_call
        self.on_transfer = on_transfer

    def move_stock(self, origin_store: str, dest_store: str, product_sku: str, quantity: int) -> dict:
        request = {
            "origin_store": origin_store,
            "dest_store": dest_store,
            "product_sku": product_sku,
            "quantity": quantity,
        }
        self.calls.append(request)
        if self.on_transfer is not None:
            self.on_transfer(request)

        failing = not self.should_succeed or self.fail_on_call == len(self.calls)
        if failing:
            return {**request, "transfer_id": None, "error": self.failure_reason}
        return {**request, "transfer_id": f"trf-{uuid4().hex[:8]}"}
