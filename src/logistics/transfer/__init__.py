"""Inventory transfer adapter abstraction — pluggable stock movement integration."""

import os

from logistics.transfer.port import TransferPort

_transfer_instance: TransferPort | None = None


def get_transfer_service() -> TransferPort:
    """Return the configured transfer adapter (singleton).

    Uses FakeTransferService by default. Set INVENTORY_TRANSFER_ADAPTER=http
    (with INVENTORY_TRANSFER_URL, and optionally INVENTORY_TRANSFER_TOKEN and
    INVENTORY_TRANSFER_TIMEOUT) to talk to the inventory service.
    """
    global _transfer_instance
    if _transfer_instance is None:
        adapter = os.environ.get("INVENTORY_TRANSFER_ADAPTER", "fake")
        if adapter == "fake":
            from logistics.transfer.fake_adapter import FakeTransferService

            _transfer_instance = FakeTransferService()
        elif adapter == "http":
            from logistics.transfer.http_adapter import HttpTransferService

            base_url = os.environ.get("INVENTORY_TRANSFER_URL")
            if not base_url:
                raise ValueError("INVENTORY_TRANSFER_URL is required for the http transfer adapter")
            _transfer_instance = HttpTransferService(
                base_url=base_url,
                token=os.environ.get("INVENTORY_TRANSFER_TOKEN"),
                timeout=float(os.environ.get("INVENTORY_TRANSFER_TIMEOUT", "10")),
            )
        else:
            raise ValueError(f"Unknown transfer adapter: {adapter}")
    return _transfer_instance


def set_transfer_service(service: TransferPort) -> None:
    """Override the active transfer adapter (useful for tests)."""
    global _transfer_instance
    _transfer_instance = service


def reset_transfer_service() -> None:
    """Reset the transfer singleton (useful for testing)."""
    global _transfer_instance
    _transfer_instance = None
