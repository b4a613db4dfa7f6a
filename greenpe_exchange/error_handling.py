import datetime
import math
import traceback
from typing import Any, Dict

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from greenpe_exchange.exceptions import OrderNotFound, ValidationError
from greenpe_exchange.logging_config import logger
from greenpe_exchange.settings import settings


class ErrorResponse(Exception):
    """Standardised error response format."""

    def __init__(
        self,
        status_code: int,
        message: str,
        *,
        request: Request | None = None,
        details: dict[str, Any] | None = None,
        error_type: str = "error",
        exc: Exception | None = None,
        include_stack: bool = False,
    ) -> None:
        self.timestamp = datetime.datetime.now()
        self.status_code = status_code
        self.message = message
        self.error_type = error_type
        self.details = details or {}

        if request:
            self.details.update(
                {"method": request.method, "path": request.url.path}
            )

        # Stack only when asked for and there is a real traceback
        if include_stack and exc and exc.__traceback__:
            tb_exc = traceback.TracebackException.from_exception(exc)
            self.details["stack"] = "".join(tb_exc.format()).splitlines()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status_code": self.status_code,
            "error_message": self.message,
            "details": self.details,
            "error_type": self.error_type,
        }


def _json_safe(value: Any) -> Any:
    # JSON has no NaN or Infinity
    if isinstance(value, float) and not math.isfinite(value):
        return str(value)
    return value


async def exchange_validation_handler(
    request: Request, exc: ValidationError
) -> JSONResponse:
    """Rejected exchange operations: nothing was mutated."""
    status_code = (
        status.HTTP_404_NOT_FOUND
        if isinstance(exc, OrderNotFound)
        else status.HTTP_400_BAD_REQUEST
    )
    error_response = ErrorResponse(
        status_code=status_code,
        message=exc.message,
        request=request,
        details={"field": exc.field, "invalid_value": _json_safe(exc.value)},
        error_type="validation_error",
    )
    logger.warning(f"Rejected request: {error_response.to_dict()}")
    return JSONResponse(
        status_code=error_response.status_code, content=error_response.to_dict()
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = [
        {
            "location": " -> ".join(str(x) for x in err["loc"]),
            "message": err["msg"],
            "type": err["type"],
        }
        for err in exc.errors()
    ]
    error_response = ErrorResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        message="Validation error",
        request=request,
        details={"errors": errors},
        error_type="validation_error",
    )
    logger.warning("Validation error", extra=error_response.to_dict())
    return JSONResponse(
        status_code=error_response.status_code, content=error_response.to_dict()
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Handle HTTP exceptions."""
    error_response = ErrorResponse(
        status_code=exc.status_code, message=str(exc.detail), error_type="http_error"
    )
    logger.warning(f"HTTP error: {error_response.to_dict()}")
    return JSONResponse(
        status_code=error_response.status_code, content=error_response.to_dict()
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    # Only expose the stack trace outside PROD
    show_stack = settings.ENVIRONMENT != "PROD"
    error_response = ErrorResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        message=str(exc),
        request=request,
        details={"exception_type": type(exc).__name__},
        error_type="server_error",
        exc=exc,
        include_stack=show_stack,
    )
    logger.error("Unhandled exception", exc_info=True)
    return JSONResponse(
        status_code=error_response.status_code, content=error_response.to_dict()
    )
