"""Inventory transfer port — abstract interface for the stock subsystem.

The Fulfillment Engine moves stock between stores through this port before
recording an operation. Adapters are swapped via configuration.
"""

from abc import ABC, abstractmethod


class TransferPort(ABC):
    """Abstract interface for inventory transfer adapters."""

    @abstractmethod
    def move_stock(self, origin_store: str, dest_store: str, product_sku: str, quantity: int) -> dict:
        """Move ``quantity`` units of ``product_sku`` from one store to another.

        Returns:
            dict describing the transfer; contains an ``error`` key on failure.
        """
        ...
