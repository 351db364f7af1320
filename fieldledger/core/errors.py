"""Exception hierarchy for the field ledger.

Validation failures (bad caller input, rejected before any write) are kept
distinct from store failures so callers can tell "fix your input" apart
from "try again later".
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for all field ledger errors."""


class LedgerValidationError(LedgerError, ValueError):
    """Raised when caller input is rejected before a write is attempted."""


class ReasonTooShortError(LedgerValidationError):
    """Raised when an edit or cancellation reason is below the minimum length."""

    def __init__(self, reason: str, min_length: int) -> None:
        self.reason = reason
        self.min_length = min_length
        super().__init__(
            f"A justification of at least {min_length} characters is required "
            f"(got {len(reason.strip())})."
        )


class InvalidTransitionError(LedgerError, RuntimeError):
    """Raised when a requested lifecycle transition is not valid."""


class EntryCancelledError(InvalidTransitionError):
    """Raised when editing or cancelling an entry that is already cancelled."""


class HistoryIntegrityError(LedgerError, RuntimeError):
    """Raised when a history array is not a strict one-record extension."""


class StoreError(LedgerError):
    """Raised when the persistence collaborator fails."""


class EntryNotFoundError(StoreError):
    """Raised when an entry id is unknown to the store."""
