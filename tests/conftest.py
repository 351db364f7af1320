"""Shared test fixtures for Fieldledger."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any

import pytest

from fieldledger.core.audit_trail import AuditTrail
from fieldledger.core.session import LedgerSession
from fieldledger.core.store import SqliteLedgerStore
from fieldledger.models.activity import ActivityType
from fieldledger.models.details import OtherDetails
from fieldledger.models.entry import LedgerEntry, LedgerEntryDraft

PLAN_ID = 7
T0 = datetime(2025, 3, 10, 8, 30, tzinfo=timezone.utc)


class FixedClock:
    """Deterministic clock; each call advances by ``step``."""

    def __init__(self, start: datetime = T0, step: timedelta = timedelta(minutes=1)) -> None:
        self.now = start
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + self.step
        return current


@pytest.fixture
def tmp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test databases."""
    return tmp_path


@pytest.fixture
def store(tmp_dir: Path) -> SqliteLedgerStore:
    """Provide a fresh SqliteLedgerStore backed by a temp database."""
    return SqliteLedgerStore(tmp_dir / "test_ledger.db")


@pytest.fixture
def plan_id() -> int:
    return PLAN_ID


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(start=datetime(2025, 4, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def audit(store: SqliteLedgerStore, clock: FixedClock) -> AuditTrail:
    """Provide an AuditTrail wired to the test store and clock."""
    return AuditTrail(store, clock=clock)


@pytest.fixture
def session(store: SqliteLedgerStore, clock: FixedClock) -> LedgerSession:
    """Provide a LedgerSession over PLAN_ID, already refreshed."""
    s = LedgerSession(store, PLAN_ID, clock=clock)
    s.refresh()
    return s


@pytest.fixture
def make_draft() -> Callable[..., LedgerEntryDraft]:
    """Factory for drafts; keyword arguments override the defaults."""

    def _make(**overrides: Any) -> LedgerEntryDraft:
        fields: dict[str, Any] = {
            "plan_id": PLAN_ID,
            "timestamp": T0,
            "activity_type": ActivityType.HARVEST,
            "product": "Alface",
            "locations": ("Talhão 1 > Canteiro 2",),
            "quantity_value": Decimal("12"),
            "quantity_unit": "kg",
            "note": "colheita da manhã",
            "technical_details": {"lote": "L-01"},
        }
        fields.update(overrides)
        return LedgerEntryDraft(**fields)

    return _make


@pytest.fixture
def make_entry() -> Callable[..., LedgerEntry]:
    """Factory for in-memory entries (never stored)."""
    counter = iter(range(1, 10_000))

    def _make(**overrides: Any) -> LedgerEntry:
        fields: dict[str, Any] = {
            "id": f"entry-{next(counter):04d}",
            "plan_id": PLAN_ID,
            "timestamp": T0,
            "activity_type": ActivityType.HARVEST,
            "product": "Alface",
            "locations": ("Talhão 1 > Canteiro 2",),
            "quantity_value": Decimal("12"),
            "quantity_unit": "kg",
            "note": "colheita da manhã",
            "technical_details": OtherDetails(),
        }
        fields.update(overrides)
        return LedgerEntry(**fields)

    return _make
