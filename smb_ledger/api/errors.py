"""
Translation of ledger errors into HTTP responses.

Validation failures carry the full list of field errors so the
client can fix a draft in one round trip.
"""

from fastapi import HTTPException

from smb_ledger.exceptions import (
    ConcurrencyError,
    DuplicateCodeError,
    LedgerError,
    NotFoundError,
    StateError,
    StorageError,
    ValidationError,
)

STATUS_CODES = {
    ValidationError: 422,
    NotFoundError: 404,
    StateError: 409,
    DuplicateCodeError: 409,
    ConcurrencyError: 409,
    StorageError: 503,
}


def http_error(exc: LedgerError) -> HTTPException:
    status_code = STATUS_CODES.get(type(exc), 400)
    if isinstance(exc, ValidationError):
        return HTTPException(
            status_code=status_code,
            detail=[e.as_dict() for e in exc.errors],
        )
    return HTTPException(status_code=status_code, detail=str(exc))
