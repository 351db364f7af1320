"""Persistence collaborator — protocol plus a SQLite-backed implementation.

The store holds one row per entry in the wire shape produced by
``record_codec``.  There is no delete: entries are retired by
soft-cancellation through the audit trail engine.  Concurrent edits to the
same entry resolve last-write-wins; there is no version check.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import uuid
from collections.abc import Mapping
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol

from pydantic import ValidationError

from fieldledger.core.errors import EntryNotFoundError, LedgerValidationError, StoreError
from fieldledger.core.filtering import filter_entries, sort_entries
from fieldledger.core.record_codec import entry_to_record, parse_record
from fieldledger.models.entry import LedgerEntry, LedgerEntryDraft
from fieldledger.models.query import FilterCriteria

logger = logging.getLogger(__name__)


class LedgerStore(Protocol):
    """What the ledger needs from a persistence backend."""

    def list(
        self, plan_id: int, criteria: FilterCriteria | None = None
    ) -> list[LedgerEntry]:
        """Entries of a plan, newest activity first."""
        ...

    def create(self, draft: LedgerEntryDraft) -> LedgerEntry:
        """Persist a draft; the store assigns ``id`` and an empty history."""
        ...

    def update(self, entry_id: str, changes: Mapping[str, Any]) -> LedgerEntry:
        """Apply a partial update and return the stored result.

        ``changes`` already contains the merged ``history``.
        """
        ...


# ---------------------------------------------------------------------------
# DDL
# ---------------------------------------------------------------------------

_CREATE_LEDGER = """
CREATE TABLE IF NOT EXISTS field_ledger (
    row_id              INTEGER PRIMARY KEY AUTOINCREMENT,
    id                  TEXT NOT NULL UNIQUE,
    plan_id             INTEGER NOT NULL,
    activity_timestamp  TEXT NOT NULL,
    activity_type       TEXT NOT NULL,
    product             TEXT NOT NULL DEFAULT '',
    location_path       TEXT NOT NULL DEFAULT '',
    quantity_value      REAL,
    quantity_unit       TEXT,
    note                TEXT NOT NULL DEFAULT '',
    technical_details   TEXT NOT NULL DEFAULT '{}',
    created_at          TEXT NOT NULL,
    updated_at          TEXT NOT NULL
);
"""

_CREATE_IDX_PLAN = """
CREATE INDEX IF NOT EXISTS idx_plan ON field_ledger(plan_id, row_id);
"""

_WIRE_COLUMNS = (
    "id",
    "plan_id",
    "activity_timestamp",
    "activity_type",
    "product",
    "location_path",
    "quantity_value",
    "quantity_unit",
    "note",
    "technical_details",
)

_UPDATABLE_FIELDS: frozenset[str] = frozenset(LedgerEntry.model_fields) - {"id", "load_error"}


class SqliteLedgerStore:
    """SQLite implementation of ``LedgerStore``.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file.  Created if it does not exist.
    """

    def __init__(self, db_path: Path) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    @property
    def db_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _init_schema(self) -> None:
        try:
            with self._connect() as conn:
                conn.execute(_CREATE_LEDGER)
                conn.execute(_CREATE_IDX_PLAN)
                conn.commit()
        except sqlite3.Error as exc:
            raise StoreError(f"Cannot open ledger at {self._db_path}: {exc}") from exc

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list(
        self, plan_id: int, criteria: FilterCriteria | None = None
    ) -> list[LedgerEntry]:
        try:
            with self._connect() as conn:
                rows = conn.execute(
                    f"SELECT {', '.join(_WIRE_COLUMNS)} FROM field_ledger "
                    "WHERE plan_id = ? ORDER BY row_id ASC",
                    (plan_id,),
                ).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to list entries for plan {plan_id}: {exc}") from exc

        entries = [parse_record(dict(row)) for row in rows]
        if criteria is not None:
            entries = filter_entries(entries, criteria)
        return sort_entries(entries, descending=True)

    def get(self, entry_id: str) -> LedgerEntry:
        """Return a single entry by id."""
        try:
            with self._connect() as conn:
                row = conn.execute(
                    f"SELECT {', '.join(_WIRE_COLUMNS)} FROM field_ledger WHERE id = ?",
                    (entry_id,),
                ).fetchone()
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to read entry {entry_id}: {exc}") from exc
        if row is None:
            raise EntryNotFoundError(f"Unknown ledger entry: {entry_id}")
        return parse_record(dict(row))

    def plan_ids(self) -> list[int]:
        """Distinct plan ids present in the ledger."""
        try:
            with self._connect() as conn:
                rows = conn.execute(
                    "SELECT DISTINCT plan_id FROM field_ledger ORDER BY plan_id"
                ).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to list plans: {exc}") from exc
        return [row[0] for row in rows]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, draft: LedgerEntryDraft) -> LedgerEntry:
        entry = LedgerEntry(id=str(uuid.uuid4()), **dict(draft))
        record = entry_to_record(entry)
        now = datetime.now(timezone.utc).isoformat()
        try:
            with self._connect() as conn:
                conn.execute(
                    f"INSERT INTO field_ledger ({', '.join(_WIRE_COLUMNS)}, created_at, updated_at) "
                    f"VALUES ({', '.join('?' for _ in _WIRE_COLUMNS)}, ?, ?)",
                    (*self._row_values(record), now, now),
                )
                conn.commit()
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to create entry: {exc}") from exc
        return self.get(entry.id)

    def update(self, entry_id: str, changes: Mapping[str, Any]) -> LedgerEntry:
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise LedgerValidationError(f"Unknown entry fields: {sorted(unknown)}")

        current = self.get(entry_id)
        if current.load_error is not None:
            raise StoreError(f"Entry {entry_id} is unreadable and cannot be updated.")

        try:
            updated = LedgerEntry.model_validate({**dict(current), **changes})
        except ValidationError as exc:
            raise LedgerValidationError(f"Invalid update for entry {entry_id}: {exc}") from exc

        record = entry_to_record(updated)
        assignments = ", ".join(f"{col} = ?" for col in _WIRE_COLUMNS[1:])
        try:
            with self._connect() as conn:
                conn.execute(
                    f"UPDATE field_ledger SET {assignments}, updated_at = ? WHERE id = ?",
                    (
                        *self._row_values(record)[1:],
                        datetime.now(timezone.utc).isoformat(),
                        entry_id,
                    ),
                )
                conn.commit()
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to update entry {entry_id}: {exc}") from exc
        return self.get(entry_id)

    def insert_raw(self, row: Mapping[str, Any]) -> None:
        """Insert a wire row verbatim (imports and legacy data).

        ``technical_details`` may be a mapping or an already-serialized JSON
        string; it is stored as given so malformed legacy rows stay visible.
        """
        details = row.get("technical_details", {})
        if not isinstance(details, str):
            details = json.dumps(details)
        now = datetime.now(timezone.utc).isoformat()
        values = [row.get(col) for col in _WIRE_COLUMNS]
        values[0] = str(row.get("id") or uuid.uuid4())
        values[_WIRE_COLUMNS.index("technical_details")] = details
        values[_WIRE_COLUMNS.index("product")] = row.get("product") or ""
        values[_WIRE_COLUMNS.index("location_path")] = row.get("location_path") or ""
        values[_WIRE_COLUMNS.index("note")] = row.get("note") or ""
        try:
            with self._connect() as conn:
                conn.execute(
                    f"INSERT INTO field_ledger ({', '.join(_WIRE_COLUMNS)}, created_at, updated_at) "
                    f"VALUES ({', '.join('?' for _ in _WIRE_COLUMNS)}, ?, ?)",
                    (*values, now, now),
                )
                conn.commit()
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to import row: {exc}") from exc

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _row_values(record: Mapping[str, Any]) -> tuple[Any, ...]:
        values = []
        for column in _WIRE_COLUMNS:
            value = record.get(column)
            if column == "technical_details":
                value = json.dumps(value, ensure_ascii=False)
            values.append(value)
        return tuple(values)
