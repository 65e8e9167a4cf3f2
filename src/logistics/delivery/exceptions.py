"""Delivery error taxonomy.

Input problems are reported with Protean's ``ValidationError`` and missing
records with ``ObjectNotFoundError``. The classes here cover the remaining
kinds: illegal lifecycle moves, ledger invariant breaches and failures of
external collaborators.
"""


class DeliveryError(Exception):
    """Base class for delivery errors surfaced to API callers."""

    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        payload = {"error": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class InvalidStateTransition(DeliveryError):
    """The requested state change is not an edge of the delivery lifecycle."""

    status_code = 409


class ConstraintViolation(DeliveryError):
    """A ledger invariant would be broken (pending quantity below zero)."""

    status_code = 409


class DependencyError(DeliveryError):
    """An external collaborator or the persistent store failed."""

    status_code = 502


class TransferFailed(DependencyError):
    """An inventory transfer failed part-way through a fulfillment.

    ``details["completed"]`` lists the transfers that already took effect and
    are not rolled back; ``details["failed"]`` describes the failing one.
    """

    def __init__(self, failed: dict, completed: list[dict], reason: str):
        self.failed = failed
        self.completed = completed
        self.reason = reason
        done = ", ".join(f"{t['product_sku']} x{t['quantity']}" for t in completed) or "none"
        message = (
            f"Stock transfer failed for {failed['product_sku']} "
            f"({failed['origin_store']} -> {failed['dest_store']}): {reason}. "
            f"Transfers already completed: {done}"
        )
        super().__init__(message, details={"failed": failed, "completed": completed, "reason": reason})
