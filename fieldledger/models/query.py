"""Parameters for querying the ledger."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict


class FilterCriteria(BaseModel):
    """Independent, optional predicates combined with logical AND.

    ``activity_type`` accepts an ``ActivityType`` value or one of the
    "any type" sentinels (``"Todos"``, ``"All"``); ``None`` also bypasses
    the check.
    """

    model_config = ConfigDict(frozen=True)

    include_cancelled: bool = False
    activity_type: str | None = None
    product: str | None = None
    location: str | None = None
    date_from: date | None = None
    date_to: date | None = None
