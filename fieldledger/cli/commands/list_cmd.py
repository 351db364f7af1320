"""``fieldledger list`` — show a plan's entries as a filtered table.

Cancelled entries are hidden unless ``--all`` is given.
"""

from __future__ import annotations

from datetime import datetime

import typer

from fieldledger.cli.common import (
    console,
    load_session,
    open_store,
    reported_errors,
    resolve_plan,
)
from fieldledger.models.query import FilterCriteria
from fieldledger.monitor.renderer import LedgerRenderer


def list_cmd(
    include_cancelled: bool = typer.Option(
        False, "--all", "-a", help="Include cancelled entries."
    ),
    activity_type: str = typer.Option(
        None, "--type", "-t", help="Only this activity type ('Todos' for any)."
    ),
    product: str = typer.Option(None, "--product", help="Product contains (case-insensitive)."),
    location: str = typer.Option(None, "--location", help="Location contains (case-insensitive)."),
    date_from: datetime = typer.Option(
        None, "--from", formats=["%Y-%m-%d"], help="First day, inclusive."
    ),
    date_to: datetime = typer.Option(
        None, "--to", formats=["%Y-%m-%d"], help="Last day, inclusive."
    ),
    plan_id: int = typer.Option(None, "--plan", "-p", help="Management plan id."),
    ledger_db: str = typer.Option(
        None, "--ledger", "-l", help="Path to the ledger SQLite database."
    ),
) -> None:
    """List the entries of a plan, newest first."""
    plan = resolve_plan(plan_id)
    criteria = FilterCriteria(
        include_cancelled=include_cancelled,
        activity_type=activity_type,
        product=product,
        location=location,
        date_from=date_from.date() if date_from else None,
        date_to=date_to.date() if date_to else None,
    )

    with reported_errors():
        session = load_session(open_store(ledger_db), plan)
        entries = session.view(criteria)

    if not entries:
        console.print(f"[dim]No entries match in plan {plan}.[/dim]")
        return

    LedgerRenderer(console=console).print_entries(entries)
    console.print(
        f"[dim]{len(entries)} of {len(session.entries)} entries in plan {plan}.[/dim]"
    )
