"""``fieldledger cancel ENTRY_ID`` — soft-cancel an entry.

The entry stays in the ledger as ``CANCELADO`` with its original note
embedded in the cancellation note.  Cancellation cannot be undone.
"""

from __future__ import annotations

import typer
from rich.markup import escape

from fieldledger.cli.common import console, locate_entry, open_store, reported_errors


def cancel_cmd(
    entry_id: str = typer.Argument(..., help="Entry id (or a unique prefix with --plan)."),
    reason: str = typer.Option(
        ..., "--reason", "-r", help="Why the entry is being cancelled."
    ),
    plan_id: int = typer.Option(None, "--plan", "-p", help="Management plan id."),
    ledger_db: str = typer.Option(
        None, "--ledger", "-l", help="Path to the ledger SQLite database."
    ),
) -> None:
    """Cancel an entry.  A reason is mandatory."""
    with reported_errors():
        session, entry = locate_entry(open_store(ledger_db), entry_id, plan_id)
        cancelled = session.cancel(entry.id, reason)

    console.print(f"[bold yellow]Cancelled:[/bold yellow] {cancelled.id}")
    console.print(f"  [dim]{escape(cancelled.note)}[/dim]")
