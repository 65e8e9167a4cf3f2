"""Logistics bounded context — Deliveries, Pickups and Store Movements.

Tracks sales-originated home deliveries, supplier pickups and inter-store
stock movements. Staff progress each delivery through partial or full
fulfillment while the item ledger, the operation history and inventory
transfers are kept consistent. Uses CQRS: the Delivery aggregate is the
consistency boundary, listings are served from projections.
"""

from protean.domain import Domain

from logistics.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

logistics = Domain(name="logistics")
