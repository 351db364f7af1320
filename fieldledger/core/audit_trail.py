"""Audit trail engine — create, edit-with-reason, cancel-with-reason.

Enforces:
- Reason guard: edits and cancellations need a justification of at least
  ``min_reason_length`` characters (after stripping), checked before any
  update payload is built or any store call is made.
- Valid lifecycle transitions only (``VALID_TRANSITIONS``); Cancelled is
  terminal.
- Append-only history: every successful call adds exactly one record with a
  snapshot of the prior type, product and quantity.
- In-memory state is only ever replaced by what the store confirmed.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from fieldledger.core.errors import (
    EntryCancelledError,
    HistoryIntegrityError,
    InvalidTransitionError,
    LedgerValidationError,
    ReasonTooShortError,
)
from fieldledger.core.schema_validator import normalize_details
from fieldledger.core.store import LedgerStore
from fieldledger.models.activity import (
    VALID_TRANSITIONS,
    ActivityType,
    AuditAction,
    EntryState,
)
from fieldledger.models.entry import HistoryRecord, LedgerEntry, LedgerEntryDraft

logger = logging.getLogger(__name__)

MIN_REASON_LENGTH = 5

EDITABLE_FIELDS: frozenset[str] = frozenset(
    {
        "timestamp",
        "product",
        "locations",
        "quantity_value",
        "quantity_unit",
        "note",
        "technical_details",
    }
)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Guards
# ---------------------------------------------------------------------------


def check_reason(reason: str | None, min_length: int = MIN_REASON_LENGTH) -> str:
    """Return the stripped reason, or raise ``ReasonTooShortError``."""
    text = (reason or "").strip()
    if len(text) < min_length:
        raise ReasonTooShortError(reason or "", min_length)
    return text


def ensure_transition(entry: LedgerEntry, target: EntryState) -> None:
    """Raise unless ``entry`` may move to ``target``."""
    if entry.load_error is not None:
        raise LedgerValidationError(
            f"Entry {entry.id} could not be read from the store "
            f"({entry.load_error}) and cannot be changed."
        )

    current = entry.state
    if target in VALID_TRANSITIONS.get(current, set()):
        return
    if current == EntryState.CANCELLED:
        raise EntryCancelledError(f"Entry {entry.id} is cancelled and cannot be changed.")
    raise InvalidTransitionError(
        f"Cannot move entry {entry.id} from {current.value} to {target.value}."
    )


def _record_time(entry: LedgerEntry, now: datetime) -> datetime:
    """History timestamps never run backwards, even if the clock does."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    if entry.history and entry.history[-1].timestamp > now:
        return entry.history[-1].timestamp
    return now


def verify_history_append(
    before: tuple[HistoryRecord, ...], after: tuple[HistoryRecord, ...]
) -> None:
    """Check that ``after`` is ``before`` plus exactly one new record."""
    if len(after) != len(before) + 1:
        raise HistoryIntegrityError(
            f"Expected {len(before) + 1} history records, got {len(after)}."
        )
    for index, (old, new) in enumerate(zip(before, after)):
        if old != new:
            raise HistoryIntegrityError(f"History record {index} was modified.")


# ---------------------------------------------------------------------------
# Update builders (pure)
# ---------------------------------------------------------------------------


def _validated_changes(entry: LedgerEntry, changes: dict[str, Any]) -> dict[str, Any]:
    """Coerce ``changes`` to the entry's field types (``12`` becomes ``Decimal('12')``)."""
    try:
        candidate = LedgerEntry.model_validate({**dict(entry), **changes})
    except ValidationError as exc:
        raise LedgerValidationError(f"Invalid changes for entry {entry.id}: {exc}") from exc
    return {name: getattr(candidate, name) for name in changes}


def edit_banner(reason: str, now: datetime) -> str:
    return f"[EDITADO em {now.strftime('%d/%m/%Y %H:%M:%S')}] Motivo: {reason}"


def cancel_note(reason: str, original_note: str, now: datetime) -> str:
    return (
        f"[CANCELADO em {now.strftime('%d/%m/%Y')}] Motivo: {reason} "
        f"| Obs Original: {original_note}"
    )


def build_edit_update(
    entry: LedgerEntry,
    reason: str,
    changes: Mapping[str, Any],
    *,
    now: datetime,
    min_reason_length: int = MIN_REASON_LENGTH,
) -> dict[str, Any]:
    """Build the partial update for an edit.  Raises before building on any
    guard violation."""
    text = check_reason(reason, min_reason_length)
    ensure_transition(entry, EntryState.ACTIVE)

    changes = dict(changes)
    new_type = changes.pop("activity_type", entry.activity_type)
    if new_type != entry.activity_type:
        raise InvalidTransitionError(
            "The activity type is fixed after creation; use cancel() to retire an entry."
        )
    unknown = set(changes) - EDITABLE_FIELDS
    if unknown:
        raise LedgerValidationError(f"Fields cannot be edited: {sorted(unknown)}")

    update: dict[str, Any] = dict(changes)
    if "locations" in update:
        update["locations"] = tuple(update["locations"] or ())
    if isinstance(update.get("technical_details"), Mapping):
        update["technical_details"] = normalize_details(
            entry.activity_type, update["technical_details"]
        )

    update = _validated_changes(entry, update)

    stamp = _record_time(entry, now)
    body = update.get("note", entry.note) or ""
    update["note"] = f"{edit_banner(text, stamp)}\n\n{body}"
    update["history"] = entry.history + (
        HistoryRecord(
            timestamp=stamp,
            action=AuditAction.EDIT,
            reason=text,
            prior=entry.snapshot(),
        ),
    )
    return update


def build_cancel_update(
    entry: LedgerEntry,
    reason: str,
    *,
    now: datetime,
    min_reason_length: int = MIN_REASON_LENGTH,
) -> dict[str, Any]:
    """Build the partial update that soft-cancels an entry."""
    text = check_reason(reason, min_reason_length)
    ensure_transition(entry, EntryState.CANCELLED)

    stamp = _record_time(entry, now)
    return {
        "activity_type": ActivityType.CANCELLED,
        "note": cancel_note(text, entry.note, stamp),
        "history": entry.history
        + (
            HistoryRecord(
                timestamp=stamp,
                action=AuditAction.CANCEL,
                reason=text,
                prior=entry.snapshot(),
            ),
        ),
    }


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class AuditTrail:
    """Governs every write of a ledger entry.

    Parameters
    ----------
    store:
        The persistence collaborator.
    min_reason_length:
        Minimum stripped length of an edit/cancel justification.
    clock:
        Source of history timestamps.  Defaults to UTC wall-clock time.
    """

    def __init__(
        self,
        store: LedgerStore,
        *,
        min_reason_length: int = MIN_REASON_LENGTH,
        clock: Clock = utc_now,
    ) -> None:
        self._store = store
        self._min_reason_length = min_reason_length
        self._clock = clock

    @property
    def min_reason_length(self) -> int:
        return self._min_reason_length

    def create(self, draft: LedgerEntryDraft) -> LedgerEntry:
        """Persist a new entry.  It starts Active with an empty history."""
        if draft.activity_type == ActivityType.CANCELLED:
            raise InvalidTransitionError("Entries cannot be created already cancelled.")
        if isinstance(draft.technical_details, Mapping):
            draft = draft.model_copy(
                update={
                    "technical_details": normalize_details(
                        draft.activity_type, draft.technical_details
                    )
                }
            )

        created = self._store.create(draft)
        logger.info(
            "Created %s entry %s for plan %s.",
            created.activity_type.value,
            created.id,
            created.plan_id,
        )
        return created

    def edit(self, entry: LedgerEntry, reason: str, **changes: Any) -> LedgerEntry:
        """Apply ``changes`` to an Active entry, appending an EDIT record."""
        update = build_edit_update(
            entry,
            reason,
            changes,
            now=self._clock(),
            min_reason_length=self._min_reason_length,
        )
        return self._commit(entry, update, AuditAction.EDIT)

    def cancel(self, entry: LedgerEntry, reason: str) -> LedgerEntry:
        """Soft-cancel an Active entry, appending a CANCEL record."""
        update = build_cancel_update(
            entry,
            reason,
            now=self._clock(),
            min_reason_length=self._min_reason_length,
        )
        return self._commit(entry, update, AuditAction.CANCEL)

    def _commit(
        self, entry: LedgerEntry, update: dict[str, Any], action: AuditAction
    ) -> LedgerEntry:
        confirmed = self._store.update(entry.id, update)
        verify_history_append(entry.history, confirmed.history)
        logger.info(
            "%s entry %s (history now %d records): %s",
            action.value,
            entry.id,
            len(confirmed.history),
            confirmed.history[-1].reason,
        )
        return confirmed
