"""Domain errors raised by services and their HTTP rendering.

Services never raise ``HTTPException`` themselves; the handlers registered
by :func:`install_error_handlers` turn these into ``{"detail", "code"}``
JSON bodies so callers can tell bad input from state conflicts from
internal failures.
"""
import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class PharmacyError(Exception):
    status_code = 500
    code = "internal_error"

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
        self.message = message


class InputError(PharmacyError):
    status_code = 422
    code = "invalid_input"


class InsufficientStockError(InputError):
    code = "insufficient_stock"

    def __init__(self, product_id: int, requested: int, available: int):
        super().__init__(
            f"Insufficient stock for product {product_id}: requested {requested}, available {available}"
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available


class NotFoundError(PharmacyError):
    status_code = 404
    code = "not_found"


class InvalidStateError(PharmacyError):
    status_code = 409
    code = "invalid_state"


class ConflictError(PharmacyError):
    status_code = 409
    code = "conflict"


class AuthenticationError(PharmacyError):
    status_code = 401
    code = "unauthenticated"


class PermissionDenied(PharmacyError):
    status_code = 403
    code = "forbidden"


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(PharmacyError)
    async def _pharmacy_error(request: Request, exc: PharmacyError):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "code": exc.code})

    @app.exception_handler(SQLAlchemyError)
    async def _db_error(request: Request, exc: SQLAlchemyError):
        logger.exception("Database error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"detail": "Internal server error", "code": "internal_error"})
