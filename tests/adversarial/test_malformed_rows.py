"""Adversarial tests — malformed and hostile legacy rows.

These tests verify that:
1. No single bad row aborts a plan listing or a session refresh
2. Unreadable rows are shown but can never be written back
3. Hostile detail payloads never raise out of normalization
"""

from __future__ import annotations

import json

import pytest

from fieldledger.core.audit_trail import AuditTrail
from fieldledger.core.errors import LedgerValidationError
from fieldledger.core.schema_validator import normalize_details
from fieldledger.core.session import LedgerSession
from fieldledger.models.activity import ActivityType
from fieldledger.monitor.projection import ProductionProjection

BAD_ROWS = [
    {"activity_type": "Colheita", "technical_details": "{"},
    {"activity_type": "Colheita", "technical_details": "null"},
    {"activity_type": "Colheita", "technical_details": '"just a string"'},
    {"activity_type": "Colheita", "technical_details": json.dumps({"historico_alteracoes": {"a": 1}})},
    {"activity_type": "Colheita", "technical_details": json.dumps({"historico_alteracoes": [{"acao": "PURGE"}]})},
    {"activity_type": "Colheita", "quantity_value": "lots"},
    {"activity_type": "Colhieta"},
    {"activity_type": "Colheita", "activity_timestamp": "31/12/2024"},
    {
        "activity_type": "Colheita",
        "technical_details": json.dumps(
            {"historico_alteracoes": [{"data": "2024-12-01T10:00:00Z", "acao": "EDIT", "dados_anteriores": "oops"}]}
        ),
    },
]


@pytest.fixture
def hostile_store(store, plan_id):
    for index, row in enumerate(BAD_ROWS):
        base = {
            "id": f"bad-{index}",
            "plan_id": plan_id,
            "activity_timestamp": "2024-12-01T10:00:00Z",
            "product": "Abóbora",
        }
        base.update(row)
        store.insert_raw(base)
    store.insert_raw(
        {
            "id": "good",
            "plan_id": plan_id,
            "activity_timestamp": "2024-12-02T10:00:00Z",
            "activity_type": "Colheita",
            "product": "Abóbora",
            "quantity_value": 30,
            "quantity_unit": "kg",
            "technical_details": {"lote": "A-1"},
        }
    )
    return store


class TestListingSurvives:
    def test_every_row_is_listed(self, hostile_store, plan_id):
        entries = hostile_store.list(plan_id)
        assert len(entries) == len(BAD_ROWS) + 1

    def test_good_row_is_intact(self, hostile_store, plan_id):
        good = [e for e in hostile_store.list(plan_id) if e.id == "good"]
        assert good[0].activity_type == ActivityType.HARVEST
        assert good[0].load_error is None

    def test_null_details_are_empty(self, hostile_store):
        # JSON null loads like a missing payload.
        assert hostile_store.get("bad-1").load_error is None

    @pytest.mark.parametrize("entry_id", ["bad-0", "bad-2", "bad-3", "bad-4", "bad-5", "bad-6", "bad-7", "bad-8"])
    def test_bad_rows_are_flagged(self, hostile_store, entry_id):
        entry = hostile_store.get(entry_id)
        assert entry.activity_type == ActivityType.OTHER
        assert entry.load_error

    def test_session_refresh_survives(self, hostile_store, plan_id):
        session = LedgerSession(hostile_store, plan_id)
        assert session.refresh() is True
        assert len(session.entries) == len(BAD_ROWS) + 1

    def test_production_ignores_unreadable_rows(self, hostile_store, plan_id):
        snapshot = ProductionProjection(hostile_store).snapshot(plan_id)
        assert snapshot.overall_total == "30 kg"
        assert snapshot.unreadable_count == len(BAD_ROWS) - 1


class TestUnreadableRowsAreReadOnly:
    def test_edit_rejected(self, hostile_store):
        audit = AuditTrail(hostile_store)
        with pytest.raises(LedgerValidationError):
            audit.edit(hostile_store.get("bad-0"), "fix it up", note="x")

    def test_cancel_rejected(self, hostile_store):
        audit = AuditTrail(hostile_store)
        with pytest.raises(LedgerValidationError):
            audit.cancel(hostile_store.get("bad-0"), "remove it")


class TestHostilePayloads:
    @pytest.mark.parametrize(
        "payload",
        [
            {"metodo_propagacao": {"nested": True}},
            {"qtd_utilizada": "NaN-ish"},
            {"subtipo": 12345},
            {"subtipo": None, "item_higienizado": ["a", "b"]},
            {"dosagem": {"$gt": 0}},
            {"qtd_trabalhadores": 10**40},
            42,
            "string payload",
        ],
    )
    @pytest.mark.parametrize("activity_type", ["Plantio", "Manejo", "Colheita", "Outro"])
    def test_normalization_never_raises(self, payload, activity_type):
        normalize_details(activity_type, payload)
