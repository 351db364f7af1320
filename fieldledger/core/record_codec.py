"""Wire record codec — maps store rows to ``LedgerEntry`` and back.

Row shape (field names are part of the compatibility surface)::

    id, plan_id, activity_timestamp, activity_type, product, location_path,
    quantity_value, quantity_unit, note, technical_details

The audit history travels inside ``technical_details`` under
``historico_alteracoes``.  The latest reason and timestamp are also
flattened into ``justificativa_edicao`` / ``data_edicao`` on write; both
are derived and dropped again on read.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

from fieldledger.core.schema_validator import normalize_details
from fieldledger.models.activity import ActivityType, AuditAction
from fieldledger.models.details import OtherDetails, details_to_wire
from fieldledger.models.entry import (
    HistoryRecord,
    LedgerEntry,
    LedgerEntryDraft,
    PriorSnapshot,
    join_locations,
    split_locations,
)

logger = logging.getLogger(__name__)

HISTORY_KEY = "historico_alteracoes"
LAST_REASON_KEY = "justificativa_edicao"
LAST_EDIT_AT_KEY = "data_edicao"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Older clients recorded cancellations as "DELETE".
_LEGACY_ACTIONS: dict[str, AuditAction] = {
    "EDIT": AuditAction.EDIT,
    "CANCEL": AuditAction.CANCEL,
    "DELETE": AuditAction.CANCEL,
}


class RecordDecodeError(ValueError):
    """Raised internally when a row cannot be decoded."""


# ---------------------------------------------------------------------------
# Scalar helpers
# ---------------------------------------------------------------------------


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 instant; naive values are taken as UTC."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    else:
        raise RecordDecodeError(f"Invalid timestamp: {value!r}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_quantity(value: Any) -> Decimal | None:
    """Parse a stored quantity; accepts numbers or dot/comma decimal strings."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise RecordDecodeError(f"Invalid quantity: {value!r}")
    try:
        quantity = Decimal(str(value).strip().replace(",", "."))
    except InvalidOperation as exc:
        raise RecordDecodeError(f"Invalid quantity: {value!r}") from exc
    if not quantity.is_finite():
        raise RecordDecodeError(f"Invalid quantity: {value!r}")
    return quantity


def quantity_to_wire(value: Decimal | None) -> int | float | None:
    if value is None:
        return None
    if value == value.to_integral_value():
        return int(value)
    return float(value)


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------


def _history_from_wire(items: Any) -> tuple[HistoryRecord, ...]:
    if items is None:
        return ()
    if not isinstance(items, list):
        raise RecordDecodeError(f"{HISTORY_KEY} must be a list")

    records: list[HistoryRecord] = []
    for item in items:
        if not isinstance(item, Mapping):
            raise RecordDecodeError(f"Malformed history record: {item!r}")
        action = _LEGACY_ACTIONS.get(str(item.get("acao", "")).upper())
        if action is None:
            raise RecordDecodeError(f"Unknown history action: {item.get('acao')!r}")
        prior = item.get("dados_anteriores") or {}
        if not isinstance(prior, Mapping):
            raise RecordDecodeError(f"Malformed history snapshot: {prior!r}")
        records.append(
            HistoryRecord(
                timestamp=parse_timestamp(item.get("data")),
                action=action,
                reason=str(item.get("motivo") or ""),
                prior=PriorSnapshot(
                    activity_type=str(prior.get("tipo") or ""),
                    product=str(prior.get("produto") or ""),
                    quantity_value=parse_quantity(prior.get("qtd")),
                    quantity_unit=prior.get("unidade"),
                    note=prior.get("observacao"),
                ),
            )
        )
    return tuple(records)


def history_to_wire(record: HistoryRecord) -> dict[str, Any]:
    prior = record.prior
    activity_type = prior.activity_type
    if isinstance(activity_type, ActivityType):
        activity_type = activity_type.value
    snapshot: dict[str, Any] = {
        "tipo": activity_type,
        "produto": prior.product,
        "qtd": quantity_to_wire(prior.quantity_value),
    }
    if prior.quantity_unit is not None:
        snapshot["unidade"] = prior.quantity_unit
    if prior.note is not None:
        snapshot["observacao"] = prior.note
    return {
        "data": record.timestamp.isoformat(),
        "acao": record.action.value,
        "motivo": record.reason,
        "dados_anteriores": snapshot,
    }


# ---------------------------------------------------------------------------
# Rows
# ---------------------------------------------------------------------------


def _load_details(value: Any) -> dict[str, Any]:
    if value is None or value == "":
        return {}
    if isinstance(value, (str, bytes)):
        try:
            value = json.loads(value)
        except json.JSONDecodeError as exc:
            raise RecordDecodeError(f"Corrupt technical_details JSON: {exc}") from exc
        if value is None:
            return {}
    if not isinstance(value, Mapping):
        raise RecordDecodeError(
            f"technical_details must be an object, got {type(value).__name__}"
        )
    return dict(value)


def _decode(row: Mapping[str, Any]) -> LedgerEntry:
    activity_type = ActivityType(row["activity_type"])
    details = _load_details(row.get("technical_details"))
    history = _history_from_wire(details.pop(HISTORY_KEY, None))
    details.pop(LAST_REASON_KEY, None)
    details.pop(LAST_EDIT_AT_KEY, None)

    return LedgerEntry(
        id=str(row["id"]),
        plan_id=int(row["plan_id"]),
        timestamp=parse_timestamp(row.get("activity_timestamp")),
        activity_type=activity_type,
        product=str(row.get("product") or ""),
        locations=split_locations(row.get("location_path")),
        quantity_value=parse_quantity(row.get("quantity_value")),
        quantity_unit=row.get("quantity_unit") or None,
        note=str(row.get("note") or ""),
        technical_details=normalize_details(activity_type, details),
        history=history,
    )


def _salvage(row: Mapping[str, Any], error: str) -> LedgerEntry:
    """Best-effort entry for a row that failed to decode."""
    try:
        timestamp = parse_timestamp(row.get("activity_timestamp"))
    except (ValueError, TypeError):
        timestamp = _EPOCH
    try:
        plan_id = int(row.get("plan_id") or 0)
    except (ValueError, TypeError):
        plan_id = 0

    product = row.get("product")
    note = row.get("note")
    location_path = row.get("location_path")
    return LedgerEntry(
        id=str(row.get("id", "")),
        plan_id=plan_id,
        timestamp=timestamp,
        activity_type=ActivityType.OTHER,
        product=product if isinstance(product, str) else "",
        locations=split_locations(location_path) if isinstance(location_path, str) else (),
        note=note if isinstance(note, str) else "",
        technical_details=OtherDetails(),
        load_error=error,
    )


def parse_record(row: Mapping[str, Any]) -> LedgerEntry:
    """Decode one store row, never raising.

    A row that cannot be decoded comes back as an ``Outro`` entry with empty
    details and ``load_error`` set; a warning is logged.
    """
    try:
        return _decode(row)
    except (ValueError, TypeError, KeyError, AttributeError) as exc:
        logger.warning(
            "Failed to parse ledger record %s; showing it as '%s': %s",
            row.get("id", "?") if isinstance(row, Mapping) else "?",
            ActivityType.OTHER.value,
            exc,
        )
        return _salvage(row if isinstance(row, Mapping) else {}, str(exc))


def parse_records(rows: Iterable[Mapping[str, Any]]) -> list[LedgerEntry]:
    """Decode a batch; one bad row never aborts the rest."""
    return [parse_record(row) for row in rows]


def _details_with_history(entry: LedgerEntry | LedgerEntryDraft) -> dict[str, Any]:
    details = details_to_wire(entry.technical_details)
    history = getattr(entry, "history", ())
    if history:
        details[HISTORY_KEY] = [history_to_wire(record) for record in history]
        details[LAST_REASON_KEY] = history[-1].reason
        details[LAST_EDIT_AT_KEY] = history[-1].timestamp.isoformat()
    return details


def entry_to_record(entry: LedgerEntry | LedgerEntryDraft) -> dict[str, Any]:
    """Encode an entry (or a draft, which has no id) as a wire row."""
    record: dict[str, Any] = {
        "plan_id": entry.plan_id,
        "activity_timestamp": entry.timestamp.isoformat(),
        "activity_type": entry.activity_type.value,
        "product": entry.product,
        "location_path": join_locations(entry.locations),
        "quantity_value": quantity_to_wire(entry.quantity_value),
        "quantity_unit": entry.quantity_unit,
        "note": entry.note,
        "technical_details": _details_with_history(entry),
    }
    if isinstance(entry, LedgerEntry):
        record = {"id": entry.id, **record}
    return record
