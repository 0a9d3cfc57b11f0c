"""
Ledger error taxonomy.

Every error raised by the ledger layer derives from LedgerError and carries the
HTTP status the request handler boundary answers with.
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse


class LedgerError(Exception):
    """Base class for ledger failures."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "ledger_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(LedgerError):
    """Missing field, non-positive quantity/rate or malformed payment split."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "validation_error"


class NotFoundError(LedgerError):
    """Referenced owner or receipt does not exist or is soft-deleted."""

    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class PermissionDeniedError(LedgerError):
    """Caller may not touch a record another user owns."""

    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"


class ConflictError(LedgerError):
    """Receipt-number collision or concurrent balance change."""

    status_code = status.HTTP_409_CONFLICT
    code = "conflict"


class PersistenceError(LedgerError):
    """Store unreachable or write failed."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "persistence_error"


async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": exc.code},
    )
