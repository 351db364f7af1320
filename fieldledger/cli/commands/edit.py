"""``fieldledger edit ENTRY_ID`` — change an entry, with a justification.

The previous product, quantity and note are kept in the entry's history;
the activity type cannot be changed (cancel the entry instead).
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import typer

from fieldledger.cli.common import (
    EXIT_REJECTED,
    console,
    locate_entry,
    open_store,
    parse_detail_options,
    parse_quantity_option,
    reported_errors,
)


def edit_cmd(
    entry_id: str = typer.Argument(..., help="Entry id (or a unique prefix with --plan)."),
    reason: str = typer.Option(
        ..., "--reason", "-r", help="Why the entry is being changed."
    ),
    product: str = typer.Option(None, "--product", help="New product name."),
    quantity: str = typer.Option(None, "--qty", help="New quantity."),
    unit: str = typer.Option(None, "--unit", help="New quantity unit."),
    note: str = typer.Option(None, "--note", "-n", help="New observation text."),
    locations: list[str] = typer.Option(
        None, "--location", help="Replace the location paths.  Repeatable."
    ),
    when: datetime = typer.Option(
        None,
        "--at",
        formats=["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M"],
        help="Corrected activity time.",
    ),
    details: list[str] = typer.Option(
        None, "--detail", "-d", help="Replace technical details (key=value).  Repeatable."
    ),
    plan_id: int = typer.Option(None, "--plan", "-p", help="Management plan id."),
    ledger_db: str = typer.Option(
        None, "--ledger", "-l", help="Path to the ledger SQLite database."
    ),
) -> None:
    """Edit an active entry.  A reason is mandatory."""
    changes: dict[str, Any] = {}
    if product is not None:
        changes["product"] = product.strip()
    if quantity is not None:
        changes["quantity_value"] = parse_quantity_option(quantity)
    if unit is not None:
        changes["quantity_unit"] = unit or None
    if note is not None:
        changes["note"] = note
    if locations:
        changes["locations"] = tuple(locations)
    if when is not None:
        changes["timestamp"] = when if when.tzinfo else when.replace(tzinfo=timezone.utc)
    if details:
        changes["technical_details"] = parse_detail_options(details)

    if not changes:
        console.print("[bold red]Nothing to change.[/bold red] Give at least one field option.")
        raise typer.Exit(code=EXIT_REJECTED)

    with reported_errors():
        session, entry = locate_entry(open_store(ledger_db), entry_id, plan_id)
        updated = session.edit(entry.id, reason, **changes)

    console.print(f"[bold green]Edited:[/bold green] {updated.id}")
    console.print(f"  [dim]{len(updated.history)} change(s) recorded.[/dim]")
