"""Ledger entry, draft and history models.

A ``LedgerEntry`` is immutable in memory: every change produces a new
instance via the store.  ``history`` is append-only: the audit trail
engine only ever adds records to the end of it.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, SkipValidation

from fieldledger.models.activity import (
    ActivityType,
    AuditAction,
    EntryState,
    state_of,
)
from fieldledger.models.details import OtherDetails, TechnicalDetails

# Already normalized by the schema validator; may be a raw mapping for
# payloads that failed validation.
DetailsField = Annotated[TechnicalDetails | dict[str, Any], SkipValidation]


class PriorSnapshot(BaseModel):
    """Externally visible fields of an entry just before a change."""

    model_config = ConfigDict(frozen=True)

    activity_type: ActivityType | str
    product: str = ""
    quantity_value: Decimal | None = None
    quantity_unit: str | None = None
    note: str | None = None


class HistoryRecord(BaseModel):
    """One append-only audit record."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    action: AuditAction
    reason: str
    prior: PriorSnapshot


class LedgerEntryDraft(BaseModel):
    """An entry not yet persisted — the store assigns ``id`` and ``history``."""

    model_config = ConfigDict(frozen=True)

    plan_id: int
    timestamp: datetime
    activity_type: ActivityType
    product: str = ""
    locations: tuple[str, ...] = ()
    quantity_value: Decimal | None = None
    quantity_unit: str | None = None
    note: str = ""
    technical_details: DetailsField = Field(default_factory=OtherDetails)


class LedgerEntry(BaseModel):
    """A single recorded field activity."""

    model_config = ConfigDict(frozen=True)

    id: str
    plan_id: int
    timestamp: datetime
    activity_type: ActivityType
    product: str = ""
    locations: tuple[str, ...] = ()
    quantity_value: Decimal | None = None
    quantity_unit: str | None = None
    note: str = ""
    technical_details: DetailsField = Field(default_factory=OtherDetails)
    history: tuple[HistoryRecord, ...] = ()
    # Set when the stored row could not be decoded; such entries are
    # display-only and never written back.
    load_error: str | None = Field(default=None, exclude=True)

    @property
    def state(self) -> EntryState:
        return state_of(self.activity_type)

    @property
    def is_cancelled(self) -> bool:
        return self.activity_type == ActivityType.CANCELLED

    @property
    def display_product(self) -> str:
        """Product label as shown in lists and summaries."""
        return self.product.strip().upper()

    @property
    def location_path(self) -> str:
        """Locations joined the way they are stored."""
        return join_locations(self.locations)

    @property
    def last_reason(self) -> str | None:
        """Reason given for the most recent edit or cancellation."""
        return self.history[-1].reason if self.history else None

    def snapshot(self) -> PriorSnapshot:
        """Capture the fields recorded as ``prior`` in a history record."""
        return PriorSnapshot(
            activity_type=self.activity_type,
            product=self.product,
            quantity_value=self.quantity_value,
            quantity_unit=self.quantity_unit,
            note=self.note,
        )


def join_locations(locations: tuple[str, ...] | list[str]) -> str:
    """Join ``Plot > Bed`` paths with ``"; "`` for storage."""
    return "; ".join(loc.strip() for loc in locations if loc and loc.strip())


def split_locations(location_path: str | None) -> tuple[str, ...]:
    """Split a stored location path on ``;``, dropping blank segments."""
    if not location_path:
        return ()
    return tuple(part.strip() for part in location_path.split(";") if part.strip())
