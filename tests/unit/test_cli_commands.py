"""Unit tests for the CLI — Typer command registration and behavior.

Exercises every command through typer.testing.CliRunner against a
temporary ledger database.
"""

from __future__ import annotations

import re

import pytest
from typer.testing import CliRunner

from fieldledger import config
from fieldledger.cli.app import app
from fieldledger.cli.common import console

runner = CliRunner()

UUID_RE = re.compile(r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}")


@pytest.fixture(autouse=True)
def wide_console(monkeypatch):
    """Wide output so table cells are never wrapped in assertions."""
    monkeypatch.setattr(console, "width", 200)
    monkeypatch.setattr(config.settings, "default_plan_id", None)


@pytest.fixture
def ledger(tmp_path) -> str:
    return str(tmp_path / "cli.db")


def invoke(*args: str):
    return runner.invoke(app, list(args))


def record(ledger: str, *args: str) -> str:
    result = invoke("record", "--ledger", ledger, "--plan", "7", *args)
    assert result.exit_code == 0, result.output
    match = UUID_RE.search(result.output)
    assert match, result.output
    return match.group(0)


# ---------------------------------------------------------------------------
# Test: CLI help and registration
# ---------------------------------------------------------------------------


class TestCliApp:
    def test_no_args_shows_help(self):
        result = invoke()
        # Typer's no_args_is_help may exit with 0 or 2 depending on version
        assert result.exit_code in (0, 2)
        assert "usage" in result.output.lower()

    def test_help_lists_commands(self):
        result = invoke("--help")
        assert result.exit_code == 0
        for name in ("record", "list", "edit", "cancel", "history", "summary"):
            assert name in result.output

    @pytest.mark.parametrize("name", ["record", "list", "edit", "cancel", "history", "summary"])
    def test_command_help(self, name):
        assert invoke(name, "--help").exit_code == 0


# ---------------------------------------------------------------------------
# Test: record and list
# ---------------------------------------------------------------------------


class TestRecordAndList:
    def test_record_prints_id(self, ledger):
        result = invoke(
            "record", "--ledger", ledger, "--plan", "7",
            "--type", "Colheita", "--product", "alface", "--qty", "2,5", "--unit", "kg",
        )
        assert result.exit_code == 0, result.output
        assert "Recorded:" in result.output
        assert "ALFACE" in result.output

    def test_list_shows_recorded_entries(self, ledger):
        record(ledger, "--type", "Colheita", "--product", "alface", "--qty", "12", "--unit", "kg",
               "--location", "Talhão 1 > Canteiro 2", "--detail", "lote=L-7")
        record(ledger, "--type", "Plantio", "--product", "cenoura")
        result = invoke("list", "--ledger", ledger, "--plan", "7")
        assert result.exit_code == 0, result.output
        assert "ALFACE" in result.output
        assert "CENOURA" in result.output
        assert "Talhão 1 > Canteiro 2" in result.output
        assert "lote L-7" in result.output
        assert "2 of 2 entries" in result.output

    def test_list_filters_by_type(self, ledger):
        record(ledger, "--type", "Colheita", "--product", "alface")
        record(ledger, "--type", "Plantio", "--product", "cenoura")
        result = invoke("list", "--ledger", ledger, "--plan", "7", "--type", "Plantio")
        assert "CENOURA" in result.output
        assert "ALFACE" not in result.output

    def test_list_filters_by_date(self, ledger):
        record(ledger, "--type", "Colheita", "--product", "alface", "--at", "2025-03-01")
        record(ledger, "--type", "Colheita", "--product", "couve", "--at", "2025-03-20")
        result = invoke("list", "--ledger", ledger, "--plan", "7", "--from", "2025-03-10", "--to", "2025-03-31")
        assert "COUVE" in result.output
        assert "ALFACE" not in result.output

    def test_empty_plan(self, ledger):
        result = invoke("list", "--ledger", ledger, "--plan", "7")
        assert result.exit_code == 0
        assert "No entries" in result.output

    def test_management_subtype_is_inferred(self, ledger):
        entry_id = record(ledger, "--type", "Manejo", "--detail", "insumo=Bokashi", "--detail", "dosagem=2")
        result = invoke("history", entry_id, "--ledger", ledger)
        assert "Bokashi" in result.output

    def test_bad_quantity_is_rejected(self, ledger):
        result = invoke("record", "--ledger", ledger, "--plan", "7", "--type", "Colheita", "--qty", "muito")
        assert result.exit_code == 2

    def test_bad_detail_is_rejected(self, ledger):
        result = invoke("record", "--ledger", ledger, "--plan", "7", "--type", "Colheita", "--detail", "lote")
        assert result.exit_code == 2

    def test_unknown_type_is_rejected(self, ledger):
        result = invoke("record", "--ledger", ledger, "--plan", "7", "--type", "Irrigação")
        assert result.exit_code == 2

    def test_cannot_record_cancelled(self, ledger):
        result = invoke("record", "--ledger", ledger, "--plan", "7", "--type", "CANCELADO")
        assert result.exit_code == 2
        assert "Rejected" in result.output

    def test_missing_plan(self, ledger):
        result = invoke("list", "--ledger", ledger)
        assert result.exit_code == 2
        assert "No plan given" in result.output

    def test_default_plan_from_settings(self, ledger, monkeypatch):
        monkeypatch.setattr(config.settings, "default_plan_id", 7)
        record(ledger, "--type", "Colheita", "--product", "alface")
        result = invoke("list", "--ledger", ledger)
        assert "ALFACE" in result.output


# ---------------------------------------------------------------------------
# Test: edit, cancel, history
# ---------------------------------------------------------------------------


class TestEditCancelHistory:
    def test_edit_requires_reason_length(self, ledger):
        entry_id = record(ledger, "--type", "Colheita", "--product", "alface", "--qty", "12", "--unit", "kg")
        result = invoke("edit", entry_id, "--ledger", ledger, "--reason", "bad", "--qty", "13")
        assert result.exit_code == 2
        assert "Rejected" in result.output

    def test_edit_and_history(self, ledger):
        entry_id = record(ledger, "--type", "Colheita", "--product", "alface", "--qty", "12", "--unit", "kg")
        result = invoke("edit", entry_id, "--ledger", ledger, "--reason", "corrected qty", "--qty", "13")
        assert result.exit_code == 0, result.output
        assert "1 change(s)" in result.output

        history = invoke("history", entry_id, "--ledger", ledger)
        assert history.exit_code == 0, history.output
        assert "EDIT" in history.output
        assert "corrected qty" in history.output
        assert "13 kg" in history.output

    def test_edit_by_prefix(self, ledger):
        entry_id = record(ledger, "--type", "Colheita", "--product", "alface")
        result = invoke("edit", entry_id[:8], "--ledger", ledger, "--plan", "7",
                        "--reason", "nome correto", "--product", "Alface crespa")
        assert result.exit_code == 0, result.output

    def test_edit_without_changes(self, ledger):
        entry_id = record(ledger, "--type", "Colheita", "--product", "alface")
        result = invoke("edit", entry_id, "--ledger", ledger, "--reason", "nothing at all")
        assert result.exit_code == 2

    def test_cancel_then_cancel_again(self, ledger):
        entry_id = record(ledger, "--type", "Colheita", "--product", "alface", "--note", "primeira")
        result = invoke("cancel", entry_id, "--ledger", ledger, "--reason", "erro de digitação")
        assert result.exit_code == 0, result.output
        assert "Obs Original: primeira" in result.output

        again = invoke("cancel", entry_id, "--ledger", ledger, "--reason", "erro de digitação")
        assert again.exit_code == 2
        assert "cancelled" in again.output

    def test_cancelled_hidden_unless_all(self, ledger):
        entry_id = record(ledger, "--type", "Colheita", "--product", "alface")
        invoke("cancel", entry_id, "--ledger", ledger, "--reason", "erro de digitação")
        assert "ALFACE" not in invoke("list", "--ledger", ledger, "--plan", "7").output
        assert "ALFACE" in invoke("list", "--ledger", ledger, "--plan", "7", "--all").output

    def test_unknown_entry_is_store_error(self, ledger):
        result = invoke("history", "does-not-exist", "--ledger", ledger)
        assert result.exit_code == 1
        assert "Store error" in result.output


# ---------------------------------------------------------------------------
# Test: summary
# ---------------------------------------------------------------------------


class TestSummary:
    def test_summary_totals(self, ledger):
        record(ledger, "--type", "Colheita", "--product", "Tomate", "--qty", "500", "--unit", "kg")
        record(ledger, "--type", "Colheita", "--product", "tomate", "--qty", "700", "--unit", "kg")
        record(ledger, "--type", "Colheita", "--product", "Tomate", "--qty", "2", "--unit", "ton")
        record(ledger, "--type", "Plantio", "--product", "Tomate", "--qty", "300", "--unit", "mudas")
        result = invoke("summary", "--ledger", ledger, "--plan", "7")
        assert result.exit_code == 0, result.output
        assert "TOMATE" in result.output
        assert "3,2 ton" in result.output
        assert "mudas" not in result.output
