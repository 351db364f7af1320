"""Unit tests for the aggregation engine (mixed-unit display totals)."""

from __future__ import annotations

from decimal import Decimal

import pytest

from fieldledger.core.aggregation import (
    format_number,
    format_smart_total,
    is_production_eligible,
    summarize_by_product,
)
from fieldledger.models.activity import ActivityType


def _items(*pairs):
    return [{"v": value, "u": unit} for value, unit in pairs]


def total(*pairs) -> str:
    return format_smart_total(_items(*pairs), "v", "u")


# ---------------------------------------------------------------------------
# Test: number formatting
# ---------------------------------------------------------------------------


class TestFormatNumber:
    @pytest.mark.parametrize(
        "value, places, expected",
        [
            (Decimal("3.2"), 3, "3,2"),
            (Decimal("1234.5"), 2, "1.234,5"),
            (Decimal("1000000"), 2, "1.000.000"),
            (Decimal("1.0005"), 3, "1,001"),
            (Decimal("2.00"), 2, "2"),
        ],
    )
    def test_pt_br_output(self, value, places, expected):
        assert format_number(value, places) == expected


# ---------------------------------------------------------------------------
# Test: weight
# ---------------------------------------------------------------------------


class TestWeight:
    def test_below_one_ton_stays_kg(self):
        assert total((999, "kg")) == "999 kg"

    def test_one_ton_threshold(self):
        assert total((1000, "kg")) == "1 ton"

    def test_mixed_weight_units(self):
        assert total((500, "kg"), (700, "kg"), (2, "ton")) == "3,2 ton"

    def test_unit_aliases_are_case_insensitive(self):
        assert total((1, "Toneladas"), (500, " KG ")) == "1,5 ton"

    def test_megagram_counts_as_ton(self):
        assert total((1, "mg")) == "1 ton"

    def test_kg_keeps_three_decimals(self):
        assert total(("0,125", "kg")) == "0,125 kg"


# ---------------------------------------------------------------------------
# Test: area
# ---------------------------------------------------------------------------


class TestArea:
    def test_below_one_hectare_stays_m2(self):
        assert total((9999, "m²")) == "9.999 m²"

    def test_hectare_threshold(self):
        assert total((5000, "m2"), (5000, "metros quadrados")) == "1 ha"

    def test_hectares_with_decimals(self):
        assert total((1234.5, "ha")) == "1.234,5 ha"


# ---------------------------------------------------------------------------
# Test: discrete units and ordering
# ---------------------------------------------------------------------------


class TestDiscreteAndOrdering:
    def test_label_is_first_spelling_seen(self):
        assert total((2, "Maço"), (3, "maço")) == "5 Maço"

    def test_blank_unit_is_unid(self):
        assert total((4, ""), (1, None)) == "5 unid"

    def test_weight_then_area_then_discrete(self):
        result = total((3, "maço"), (5000, "m²"), (2, "kg"), (1, "caixa"))
        assert result == "2 kg + 5.000 m² + 3 maço + 1 caixa"

    def test_discrete_keeps_first_seen_order(self):
        assert total((1, "caixa"), (2, "maço"), (1, "Caixa")) == "2 caixa + 2 maço"


# ---------------------------------------------------------------------------
# Test: bad input never raises
# ---------------------------------------------------------------------------


class TestBadInput:
    def test_comma_decimal(self):
        assert total(("2,5", "kg")) == "2,5 kg"

    @pytest.mark.parametrize("value", [0, "0", "abc", "NaN", "inf", None, "", True])
    def test_unusable_values_are_skipped(self, value):
        assert total((value, "kg")) == "-"

    def test_huge_value_is_formatted(self):
        # 10**30 kg needs more digits than the default decimal context keeps.
        assert total(("1e30", "kg")) == "1" + ".000" * 9 + " ton"

    def test_implausible_magnitude_is_skipped(self):
        assert total(("1e101", "kg"), (2, "kg")) == "2 kg"

    def test_format_number_beyond_context_precision(self):
        assert format_number(Decimal("1e40"), 2) == "10" + ".000" * 13

    def test_empty_and_none(self):
        assert format_smart_total([]) == "-"
        assert format_smart_total(None) == "-"

    def test_missing_keys(self):
        assert format_smart_total([{}, {"other": 1}]) == "-"

    def test_models_are_read_by_attribute(self, make_entry):
        entries = [
            make_entry(quantity_value=Decimal("600"), quantity_unit="kg"),
            make_entry(quantity_value=Decimal("0.4"), quantity_unit="ton"),
        ]
        assert format_smart_total(entries) == "1 ton"


# ---------------------------------------------------------------------------
# Test: production summaries
# ---------------------------------------------------------------------------


class TestProductionSummary:
    def test_only_active_harvests_are_eligible(self, make_entry):
        assert is_production_eligible(make_entry())
        assert not is_production_eligible(make_entry(activity_type=ActivityType.CANCELLED))
        assert not is_production_eligible(make_entry(activity_type=ActivityType.PLANTING))

    def test_groups_by_uppercased_product(self, make_entry):
        entries = [
            make_entry(product="alface", quantity_value=Decimal("500")),
            make_entry(product=" Alface ", quantity_value=Decimal("700")),
            make_entry(product="Couve", quantity_value=Decimal("10"), quantity_unit="maço"),
            make_entry(product="", quantity_value=Decimal("3"), quantity_unit="caixa"),
            make_entry(product="Alface", activity_type=ActivityType.CANCELLED),
            make_entry(product="Alface", activity_type=ActivityType.MANAGEMENT),
        ]
        assert summarize_by_product(entries) == {
            "ALFACE": "1,2 ton",
            "COUVE": "10 maço",
            "NÃO IDENTIFICADO": "3 caixa",
        }
