"""
Map the exception taxonomy to JSON error responses
"""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from order_service.errors import OrderServiceError

logger = logging.getLogger(__name__)


async def order_service_error_handler(request: Request, exc: OrderServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s: %s", request.method, request.url.path, type(exc).__name__, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, "type": type(exc).__name__},
    )


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
    )
    return JSONResponse(
        status_code=400,
        content={"error": problems or "Invalid request", "type": "ValidationError"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Subclasses resolve to the base handler through their MRO"""
    app.add_exception_handler(OrderServiceError, order_service_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
