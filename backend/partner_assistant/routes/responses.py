"""JSON error bodies shared by the routes and the app-level exception handlers."""

from typing import Any, Optional

from fastapi.responses import JSONResponse

from partner_assistant.models import ErrorResponse


def error_response(
    status_code: int,
    error: str,
    message: Optional[str] = None,
    details: Optional[Any] = None,
    is_timeout: Optional[bool] = None,
) -> JSONResponse:
    """Build an ``{error, message?, details?, isTimeout?}`` response."""
    body = ErrorResponse(error=error, message=message, details=details, is_timeout=is_timeout)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(by_alias=True, exclude_none=True, mode="json"),
    )
