"""Logistics domain API package."""

from logistics.api.routes import carrier_router, customer_router, delivery_router, operation_router

__all__ = ["delivery_router", "operation_router", "carrier_router", "customer_router"]
