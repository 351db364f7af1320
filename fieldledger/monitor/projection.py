"""ProductionProjection — pure read-only production view over the store.

Every ``snapshot()`` call re-reads the plan from the store; the projection
never keeps state of its own.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

from fieldledger.core.aggregation import (
    format_smart_total,
    is_production_eligible,
    product_key,
)
from fieldledger.core.store import LedgerStore
from fieldledger.models.entry import LedgerEntry


class ProductTotal(BaseModel):
    """Harvest total of one product."""

    model_config = ConfigDict(frozen=True)

    product: str
    total: str
    harvest_count: int = 0
    last_harvest: datetime | None = None


class ProductionSnapshot(BaseModel):
    """A frozen, point-in-time production summary of one plan."""

    model_config = ConfigDict(frozen=True)

    plan_id: int
    products: list[ProductTotal] = []
    overall_total: str = "-"
    active_count: int = 0
    cancelled_count: int = 0
    unreadable_count: int = 0
    last_activity: datetime | None = None
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def total_entries(self) -> int:
        return self.active_count + self.cancelled_count

    @property
    def has_production(self) -> bool:
        return bool(self.products)


def build_snapshot(plan_id: int, entries: Iterable[LedgerEntry]) -> ProductionSnapshot:
    """Summarize a collection of entries (already fetched)."""
    entries = list(entries)
    eligible = [e for e in entries if is_production_eligible(e)]

    groups: dict[str, list[LedgerEntry]] = {}
    for entry in eligible:
        groups.setdefault(product_key(entry), []).append(entry)

    products = [
        ProductTotal(
            product=product,
            total=format_smart_total(group),
            harvest_count=len(group),
            last_harvest=max(e.timestamp for e in group),
        )
        for product, group in groups.items()
    ]

    active = [e for e in entries if not e.is_cancelled]
    return ProductionSnapshot(
        plan_id=plan_id,
        products=products,
        overall_total=format_smart_total(eligible),
        active_count=len(active),
        cancelled_count=len(entries) - len(active),
        unreadable_count=sum(1 for e in entries if e.load_error is not None),
        last_activity=max((e.timestamp for e in active), default=None),
    )


class ProductionProjection:
    """Read-only projection producing ``ProductionSnapshot`` models.

    Parameters
    ----------
    store:
        The ledger store to project from.
    """

    def __init__(self, store: LedgerStore) -> None:
        self._store = store

    def snapshot(self, plan_id: int) -> ProductionSnapshot:
        """Re-read the plan and summarize it."""
        return build_snapshot(plan_id, self._store.list(plan_id))
