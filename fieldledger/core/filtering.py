"""Filter/query engine — pure predicate composition over ledger entries.

Every predicate in ``FilterCriteria`` is optional and independent; the
result is their conjunction.  Nothing here mutates its inputs, so the same
criteria against the same list always yields the same result.

Date bounds compare against each entry's own calendar day (the date in
the offset the timestamp was recorded with), not against an absolute
instant.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import date

from fieldledger.models.activity import ALL_ACTIVITY_TYPES, ActivityType
from fieldledger.models.entry import LedgerEntry
from fieldledger.models.query import FilterCriteria

Predicate = Callable[[LedgerEntry], bool]


def entry_day(entry: LedgerEntry) -> date:
    """Calendar day of the activity in the entry's own offset."""
    return entry.timestamp.date()


def _contains(haystack: str | None, needle: str) -> bool:
    return needle.casefold() in (haystack or "").casefold()


def build_predicates(criteria: FilterCriteria) -> list[Predicate]:
    """Translate criteria into a list of independent predicates."""
    predicates: list[Predicate] = []

    if not criteria.include_cancelled:
        predicates.append(lambda e: e.activity_type != ActivityType.CANCELLED)

    wanted_type = criteria.activity_type
    if wanted_type and wanted_type not in ALL_ACTIVITY_TYPES:
        predicates.append(lambda e: e.activity_type == wanted_type)

    if criteria.product:
        product = criteria.product.strip()
        predicates.append(lambda e: _contains(e.product, product))

    if criteria.location:
        location = criteria.location.strip()
        predicates.append(lambda e: _contains(e.location_path, location))

    if criteria.date_from is not None:
        start = criteria.date_from
        predicates.append(lambda e: entry_day(e) >= start)

    if criteria.date_to is not None:
        end = criteria.date_to
        predicates.append(lambda e: entry_day(e) <= end)

    return predicates


def matches(entry: LedgerEntry, criteria: FilterCriteria) -> bool:
    """Whether a single entry satisfies every predicate."""
    return all(predicate(entry) for predicate in build_predicates(criteria))


def filter_entries(
    entries: Iterable[LedgerEntry], criteria: FilterCriteria | None = None
) -> list[LedgerEntry]:
    """Return the entries satisfying ``criteria``, preserving input order."""
    predicates = build_predicates(criteria or FilterCriteria())
    return [e for e in entries if all(p(e) for p in predicates)]


def sort_entries(
    entries: Iterable[LedgerEntry], *, descending: bool = True
) -> list[LedgerEntry]:
    """Order by activity instant; ``id`` breaks ties deterministically."""
    return sorted(entries, key=lambda e: (e.timestamp, e.id), reverse=descending)
