"""
Standardized response utilities
"""

from typing import Any, Optional
from fastapi import status
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder

from whispqr.schemas.common import StandardResponse, ErrorResponse
from whispqr.services.errors import (
    WhispqrError,
    NotFoundError,
    ValidationError,
    AuthorizationError,
    TransportError,
)

ERROR_STATUS = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ValidationError: 422,
    AuthorizationError: status.HTTP_403_FORBIDDEN,
    TransportError: status.HTTP_503_SERVICE_UNAVAILABLE,
}

def success_response(
    message: str,
    data: Any = None,
    status_code: int = 200
) -> JSONResponse:
    """Create standardized success response"""
    response = StandardResponse(
        success=True,
        message=message,
        data=data
    )
    return JSONResponse(
        content=jsonable_encoder(response),
        status_code=status_code
    )

def error_response(
    message: str,
    error_code: Optional[str] = None,
    details: Any = None,
    status_code: int = 400
) -> JSONResponse:
    """Create standardized error response"""
    response = ErrorResponse(
        message=message,
        error_code=error_code,
        details=details
    )
    return JSONResponse(
        content=jsonable_encoder(response),
        status_code=status_code
    )

def store_error_response(exc: WhispqrError) -> JSONResponse:
    """Map a store error onto the standard error envelope"""
    status_code = next(
        (code for kind, code in ERROR_STATUS.items() if isinstance(exc, kind)),
        status.HTTP_400_BAD_REQUEST
    )
    return error_response(
        message=exc.message,
        error_code=exc.error_code,
        details=exc.details,
        status_code=status_code
    )

def rate_limit_response() -> JSONResponse:
    """Create rate limit error response"""
    return error_response(
        message="Rate limit exceeded. Please try again later.",
        error_code="rate_limited",
        status_code=status.HTTP_429_TOO_MANY_REQUESTS
    )
