"""``fieldledger summary`` — production totals per product for a plan.

Only active harvest entries count.  Quantities in mixed units are summed
per unit family (weight, area, discrete) and shown in the largest fitting
unit.
"""

from __future__ import annotations

import typer

from fieldledger.cli.common import console, open_store, reported_errors, resolve_plan
from fieldledger.monitor.projection import ProductionProjection
from fieldledger.monitor.renderer import LedgerRenderer


def summary_cmd(
    plan_id: int = typer.Option(None, "--plan", "-p", help="Management plan id."),
    ledger_db: str = typer.Option(
        None, "--ledger", "-l", help="Path to the ledger SQLite database."
    ),
) -> None:
    """Show the production panel of a plan."""
    plan = resolve_plan(plan_id)
    with reported_errors():
        snapshot = ProductionProjection(open_store(ledger_db)).snapshot(plan)

    LedgerRenderer(console=console).print_snapshot(snapshot)
