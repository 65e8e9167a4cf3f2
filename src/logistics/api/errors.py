"""Exception handlers — every error leaves the API as ``{"error", "details"}``."""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.integrations.fastapi import register_exception_handlers as register_protean_handlers

from logistics.delivery.exceptions import ConstraintViolation, DeliveryError

logger = structlog.get_logger(__name__)


def _first_message(messages) -> str:
    if isinstance(messages, dict):
        for value in messages.values():
            if isinstance(value, (list, tuple)) and value:
                return str(value[0])
            if value:
                return str(value)
    return str(messages)


def register_exception_handlers(app: FastAPI) -> None:
    """Install Protean's handlers, then the delivery-specific ones on top."""
    register_protean_handlers(app)

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        return JSONResponse(
            status_code=400,
            content={"error": _first_message(exc.messages), "details": exc.messages},
        )

    @app.exception_handler(ObjectNotFoundError)
    async def handle_not_found(request: Request, exc: ObjectNotFoundError):
        return JSONResponse(status_code=404, content={"error": _first_message(getattr(exc, "messages", None) or str(exc))})

    @app.exception_handler(DeliveryError)
    async def handle_delivery_error(request: Request, exc: DeliveryError):
        if isinstance(exc, ConstraintViolation):
            logger.error("constraint_violation", path=request.url.path, error=exc.message, **exc.details)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())
