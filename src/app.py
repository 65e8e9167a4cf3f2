"""Logistics FastAPI application.

Web server that processes delivery commands synchronously via HTTP. Each
request runs inside the logistics domain context.

Usage:
    uvicorn src.app:app --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV controls which config overlay is applied:
#   - "test"       → event_processing = "sync"  (projectors fire in UoW)
#   - "production" → event_processing = "async" (projectors fire via Engine)
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from logistics.domain import logistics  # noqa: E402
from logistics.utils.logging import add_context, clear_context

logistics.init()

_DOMAIN_ROUTES = ("/deliveries", "/operations", "/carriers", "/customers")


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Logistics API",
    description="Deliveries, supplier pickups and store movements",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the logistics domain context and bind request log context."""
    if not request.url.path.startswith(_DOMAIN_ROUTES):
        # Health check, docs, etc.
        return await call_next(request)

    clear_context()
    add_context(
        request_id=request.headers.get("x-request-id") or uuid4().hex[:12],
        user_id=request.headers.get("x-user-id"),
    )
    try:
        with logistics.domain_context():
            response = await call_next(request)
    finally:
        clear_context()
    return response


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from logistics.api import carrier_router, customer_router, delivery_router, operation_router  # noqa: E402
from logistics.api.errors import register_exception_handlers  # noqa: E402

app.include_router(delivery_router)
app.include_router(operation_router)
app.include_router(carrier_router)
app.include_router(customer_router)
register_exception_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domains": {"logistics": {"name": logistics.name}},
        }
    )
