"""HTTP error translation

Every failure leaves the API as ``{"error": {"code", "message", "reason"}}``.
"""

import logging
from typing import Optional
from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from messledger.domain.errors import LedgerError

logger = logging.getLogger(__name__)

STATUS_BY_CODE = {
    "PERIOD_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "GROUP_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "TRANSACTION_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "ACTIVE_PERIOD_EXISTS": status.HTTP_409_CONFLICT,
    "PERIOD_OVERLAP": status.HTTP_409_CONFLICT,
    "PERIOD_NOT_ACTIVE": status.HTTP_409_CONFLICT,
    "PERIOD_NOT_LOCKED": status.HTTP_409_CONFLICT,
    "PERIOD_ALREADY_LOCKED": status.HTTP_409_CONFLICT,
    "INVALID_STATUS_TRANSITION": status.HTTP_409_CONFLICT,
    "GROUP_FULL": status.HTTP_409_CONFLICT,
    "INVALID_DATE_RANGE": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "UNAUTHENTICATED": status.HTTP_401_UNAUTHORIZED,
    "UNAUTHORIZED": status.HTTP_403_FORBIDDEN,
}


class ClientError(Exception):
    """An error reported to the client with a status code"""

    def __init__(
        self,
        code: str,
        message: str,
        reason: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.reason = reason
        self.status_code = status_code or STATUS_BY_CODE.get(code, status.HTTP_400_BAD_REQUEST)

    @classmethod
    def from_ledger_error(cls, error: LedgerError) -> "ClientError":
        return cls(error.code, error.message, error.reason)

    def to_body(self) -> dict:
        body = {"code": self.code, "message": self.message}
        if self.reason:
            body["reason"] = self.reason
        return {"error": body}


async def client_error_handler(request: Request, exc: ClientError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    error = ClientError.from_ledger_error(exc)
    logger.info(f"{request.method} {request.url.path} rejected: {exc.code} {exc.message}")
    return await client_error_handler(request, error)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ()))
    error = ClientError(
        "VALIDATION_ERROR",
        "Invalid request parameters",
        reason=f"{location}: {first.get('msg')}" if first else None,
        status_code=status.HTTP_400_BAD_REQUEST,
    )
    return await client_error_handler(request, error)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    error = ClientError(
        "INTERNAL_ERROR",
        "An unexpected error occurred",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    return await client_error_handler(request, error)
