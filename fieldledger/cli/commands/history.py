"""``fieldledger history ENTRY_ID`` — show an entry's audit trail."""

from __future__ import annotations

import typer

from fieldledger.cli.common import console, locate_entry, open_store, reported_errors
from fieldledger.monitor.renderer import LedgerRenderer


def history_cmd(
    entry_id: str = typer.Argument(..., help="Entry id (or a unique prefix with --plan)."),
    plan_id: int = typer.Option(None, "--plan", "-p", help="Management plan id."),
    ledger_db: str = typer.Option(
        None, "--ledger", "-l", help="Path to the ledger SQLite database."
    ),
) -> None:
    """Show every edit and cancellation of an entry, oldest first."""
    with reported_errors():
        _, entry = locate_entry(open_store(ledger_db), entry_id, plan_id)

    renderer = LedgerRenderer(console=console)
    renderer.print_entries([entry])
    renderer.print_history(entry)
