"""Aggregation engine — heterogeneous quantity/unit pairs to display totals.

Units fall into three categories:

- weight   : summed in kg; shown as ``ton`` from 1000 kg up (3 decimals)
- area     : summed in m²; shown as ``ha`` from 10000 m² up (2 decimals)
- discrete : anything else, summed per unit (case-insensitive), labelled
             with the first spelling seen (2 decimals)

Segments are always emitted weight, area, then discrete units in the order
first encountered, joined with ``" + "``.  Numbers use pt-BR formatting
(``1.234,5``).  Malformed, non-finite and zero values are skipped; this
module never raises on bad numeric input.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Any

from fieldledger.models.activity import ActivityType
from fieldledger.models.entry import LedgerEntry

PLACEHOLDER = "-"
SEPARATOR = " + "
UNIDENTIFIED_PRODUCT = "NÃO IDENTIFICADO"
DEFAULT_DISCRETE_UNIT = "unid"

KG_PER_TON = Decimal(1000)
M2_PER_HA = Decimal(10000)

# Amounts beyond 10**100 are not quantities; they are skipped like other bad input.
MAX_AMOUNT_EXPONENT = 100

# Unit -> factor to the category's base unit.
WEIGHT_UNITS: dict[str, Decimal] = {
    "kg": Decimal(1),
    "kilo": Decimal(1),
    "kilograma": Decimal(1),
    "kilogramas": Decimal(1),
    "ton": KG_PER_TON,
    "t": KG_PER_TON,
    "tonelada": KG_PER_TON,
    "toneladas": KG_PER_TON,
    "mg": KG_PER_TON,  # megagram
}

AREA_UNITS: dict[str, Decimal] = {
    "m²": Decimal(1),
    "m2": Decimal(1),
    "metro quadrado": Decimal(1),
    "metros quadrados": Decimal(1),
    "ha": M2_PER_HA,
    "hectare": M2_PER_HA,
    "hectares": M2_PER_HA,
}


# ---------------------------------------------------------------------------
# Parsing and formatting
# ---------------------------------------------------------------------------


def parse_amount(value: Any) -> Decimal | None:
    """Parse a quantity, accepting ``,`` as decimal separator.

    Returns ``None`` for anything that is not a finite number, or whose
    magnitude exceeds ``10**MAX_AMOUNT_EXPONENT``.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        amount = value
    else:
        text = str(value).strip().replace(",", ".")
        if not text:
            return None
        try:
            amount = Decimal(text)
        except InvalidOperation:
            return None
    if not amount.is_finite():
        return None
    if amount and amount.adjusted() > MAX_AMOUNT_EXPONENT:
        return None
    return amount


def format_number(value: Decimal, max_places: int) -> str:
    """pt-BR number: ``.`` thousands, ``,`` decimals, no trailing zeros."""
    quantum = Decimal(1).scaleb(-max_places)
    with localcontext() as ctx:
        # Enough digits for every integer digit plus the kept decimals.
        ctx.prec = max(ctx.prec, value.adjusted() + max_places + 2)
        rounded = value.quantize(quantum, rounding=ROUND_HALF_UP)
        text = f"{rounded:,.{max_places}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text.replace(",", "\x00").replace(".", ",").replace("\x00", ".")


def _read(item: Any, key: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(key)
    return getattr(item, key, None)


# ---------------------------------------------------------------------------
# Totals
# ---------------------------------------------------------------------------


class _Totals:
    """Running totals for one call to ``format_smart_total``."""

    def __init__(self) -> None:
        self.weight_kg = Decimal(0)
        self.area_m2 = Decimal(0)
        self.has_weight = False
        self.has_area = False
        # normalized unit -> [label, total]; dicts keep first-seen order
        self.discrete: dict[str, list[Any]] = {}

    def add(self, amount: Decimal, raw_unit: Any) -> None:
        label = str(raw_unit).strip() if raw_unit is not None else ""
        unit = label.lower()

        if unit in WEIGHT_UNITS:
            self.has_weight = True
            self.weight_kg += amount * WEIGHT_UNITS[unit]
        elif unit in AREA_UNITS:
            self.has_area = True
            self.area_m2 += amount * AREA_UNITS[unit]
        else:
            key = unit or DEFAULT_DISCRETE_UNIT
            bucket = self.discrete.setdefault(key, [label or DEFAULT_DISCRETE_UNIT, Decimal(0)])
            bucket[1] += amount

    def segments(self) -> list[str]:
        parts: list[str] = []

        if self.has_weight:
            if self.weight_kg >= KG_PER_TON:
                parts.append(f"{format_number(self.weight_kg / KG_PER_TON, 3)} ton")
            elif self.weight_kg > 0:
                parts.append(f"{format_number(self.weight_kg, 3)} kg")

        if self.has_area:
            if self.area_m2 >= M2_PER_HA:
                parts.append(f"{format_number(self.area_m2 / M2_PER_HA, 2)} ha")
            elif self.area_m2 > 0:
                parts.append(f"{format_number(self.area_m2, 2)} m²")

        for label, total in self.discrete.values():
            if total > 0:
                parts.append(f"{format_number(total, 2)} {label}")

        return parts


def format_smart_total(
    items: Iterable[Any] | None,
    value_key: str = "quantity_value",
    unit_key: str = "quantity_unit",
) -> str:
    """Summarize quantities into one display string.

    ``items`` may be ``LedgerEntry`` models or plain mappings; ``value_key``
    and ``unit_key`` name the attribute/key to read from each.

    >>> format_smart_total([{"v": 500, "u": "kg"}, {"v": "2", "u": "ton"}], "v", "u")
    '2,5 ton'
    """
    totals = _Totals()
    for item in items or ():
        amount = parse_amount(_read(item, value_key))
        if amount is None or amount == 0:
            continue
        totals.add(amount, _read(item, unit_key))

    parts = totals.segments()
    return SEPARATOR.join(parts) if parts else PLACEHOLDER


# ---------------------------------------------------------------------------
# Production summaries
# ---------------------------------------------------------------------------


def is_production_eligible(entry: LedgerEntry) -> bool:
    """Harvest entries that have not been cancelled count as production."""
    return entry.activity_type == ActivityType.HARVEST


def product_key(entry: LedgerEntry) -> str:
    return entry.display_product or UNIDENTIFIED_PRODUCT


def summarize_by_product(entries: Iterable[LedgerEntry]) -> dict[str, str]:
    """Per-product production totals, products in first-seen order."""
    groups: dict[str, list[LedgerEntry]] = {}
    for entry in entries:
        if not is_production_eligible(entry):
            continue
        groups.setdefault(product_key(entry), []).append(entry)

    return {product: format_smart_total(group) for product, group in groups.items()}
