"""LedgerSession — the explicit, per-view ledger state.

One session per (store, plan).  It holds the last successfully fetched
collection and routes every write through the audit trail engine.

Refresh rules:
- Each ``refresh()`` takes a new generation number before fetching.  A
  response is applied only if its generation is still the latest, so a
  stale in-flight fetch can never overwrite a newer one.
- A failed fetch records ``error`` but keeps the previous collection.
- ``notify_changed()`` (push notifications) coalesces: while a refresh is
  running, further notifications only mark the session dirty, and the
  running refresh performs a single follow-up fetch.
- The in-memory collection changes only after the store confirms a write.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

from fieldledger.core.aggregation import (
    format_smart_total,
    is_production_eligible,
    summarize_by_product,
)
from fieldledger.core.audit_trail import MIN_REASON_LENGTH, AuditTrail, Clock, utc_now
from fieldledger.core.errors import EntryNotFoundError, StoreError
from fieldledger.core.filtering import filter_entries, sort_entries
from fieldledger.core.store import LedgerStore
from fieldledger.models.entry import LedgerEntry, LedgerEntryDraft
from fieldledger.models.query import FilterCriteria

logger = logging.getLogger(__name__)


class LedgerSession:
    """Ledger view state for a single management plan.

    Parameters
    ----------
    store:
        The persistence collaborator.
    plan_id:
        The management plan this session shows.
    min_reason_length:
        Forwarded to the ``AuditTrail``.
    clock:
        Forwarded to the ``AuditTrail``.
    """

    def __init__(
        self,
        store: LedgerStore,
        plan_id: int,
        *,
        min_reason_length: int = MIN_REASON_LENGTH,
        clock: Clock = utc_now,
    ) -> None:
        self._store = store
        self._plan_id = plan_id
        self._audit = AuditTrail(
            store, min_reason_length=min_reason_length, clock=clock
        )
        self._lock = threading.Lock()
        self._entries: tuple[LedgerEntry, ...] = ()
        self._error: str | None = None
        self._generation = 0
        self._refreshing = False
        self._dirty = False
        self._loaded = False

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def plan_id(self) -> int:
        return self._plan_id

    @property
    def entries(self) -> tuple[LedgerEntry, ...]:
        """Last successfully fetched collection, newest first."""
        return self._entries

    @property
    def error(self) -> str | None:
        """Message of the last failed fetch, cleared by a successful one."""
        return self._error

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def audit(self) -> AuditTrail:
        return self._audit

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------

    def refresh(self) -> bool:
        """Fetch the plan's entries.  Returns True if the result was applied."""
        with self._lock:
            self._generation += 1
            generation = self._generation

        try:
            fetched = self._store.list(self._plan_id)
        except StoreError as exc:
            with self._lock:
                if generation == self._generation:
                    self._error = str(exc)
            logger.warning("Failed to refresh plan %s: %s", self._plan_id, exc)
            return False

        with self._lock:
            if generation != self._generation:
                logger.debug(
                    "Discarding stale fetch %d for plan %s (current %d).",
                    generation,
                    self._plan_id,
                    self._generation,
                )
                return False
            self._entries = tuple(fetched)
            self._error = None
            self._loaded = True
        return True

    def notify_changed(self) -> bool:
        """Handle an unsolicited change notification.

        Returns True if this call ran the refresh itself, False if it was
        coalesced into one already in flight.
        """
        with self._lock:
            if self._refreshing:
                self._dirty = True
                logger.debug("Coalescing change notification for plan %s.", self._plan_id)
                return False
            self._refreshing = True

        try:
            while True:
                with self._lock:
                    self._dirty = False
                self.refresh()
                with self._lock:
                    if not self._dirty:
                        break
        finally:
            with self._lock:
                self._refreshing = False
                self._dirty = False
        return True

    # ------------------------------------------------------------------
    # Writes (through the audit trail)
    # ------------------------------------------------------------------

    def find(self, entry_id: str) -> LedgerEntry:
        """Look up an entry in the current collection."""
        for entry in self._entries:
            if entry.id == entry_id:
                return entry
        raise EntryNotFoundError(f"Entry {entry_id} is not in plan {self._plan_id}.")

    def create(self, draft: LedgerEntryDraft) -> LedgerEntry:
        created = self._audit.create(draft)
        if created.plan_id == self._plan_id:
            self._replace(created)
        return created

    def edit(self, entry_id: str, reason: str, **changes: Any) -> LedgerEntry:
        confirmed = self._audit.edit(self.find(entry_id), reason, **changes)
        self._replace(confirmed)
        return confirmed

    def cancel(self, entry_id: str, reason: str) -> LedgerEntry:
        confirmed = self._audit.cancel(self.find(entry_id), reason)
        self._replace(confirmed)
        return confirmed

    def _replace(self, confirmed: LedgerEntry) -> None:
        with self._lock:
            others = [e for e in self._entries if e.id != confirmed.id]
            others.append(confirmed)
            self._entries = tuple(sort_entries(others))

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def view(self, criteria: FilterCriteria | None = None) -> list[LedgerEntry]:
        """Entries narrowed by ``criteria`` (cancelled hidden by default)."""
        return filter_entries(self._entries, criteria)

    def production_summary(self) -> dict[str, str]:
        """Per-product harvest totals over the current collection."""
        return summarize_by_product(self._entries)

    def production_total(self) -> str:
        """One display string for all eligible harvest entries."""
        return format_smart_total(
            [e for e in self._entries if is_production_eligible(e)]
        )
