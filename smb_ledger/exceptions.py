"""
Ledger engine errors.

Services raise these; the API layer maps them to HTTP status
codes. None of them is raised after a partial write: when an
operation fails, the ledger is exactly as it was before.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class FieldError:
    """A single validation problem, scoped to a field path."""
    field: str
    message: str

    def as_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message}


class LedgerError(Exception):
    """Base exception for all ledger engine failures."""


class ValidationError(LedgerError):
    """
    A draft or request is malformed.

    Carries every violation found, not just the first one, so a
    caller can fix the draft in one pass.
    """

    def __init__(self, errors: list[FieldError]):
        self.errors = list(errors)
        summary = "; ".join(f"{e.field}: {e.message}" for e in self.errors)
        super().__init__(summary or "validation failed")


class DuplicateCodeError(LedgerError):
    """An account code is already taken."""


class NotFoundError(LedgerError):
    """An account or journal entry does not exist."""


class StateError(LedgerError):
    """The operation is not allowed in the object's current state."""


class ConcurrencyError(LedgerError):
    """A draft was changed by someone else since it was loaded."""


class StorageError(LedgerError):
    """The store failed; nothing from the operation was applied."""
