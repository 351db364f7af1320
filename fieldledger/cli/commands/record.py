"""``fieldledger record`` — record a new field activity in a plan's ledger.

Technical details are given as repeated ``--detail key=value`` options
using the Portuguese wire keys (``lote=L1``, ``dosagem=2``...).  They are
normalized into the activity's detail shape before the entry is stored.
"""

from __future__ import annotations

from datetime import datetime, timezone

import typer
from rich.markup import escape

from fieldledger.cli.common import (
    console,
    load_session,
    open_store,
    parse_detail_options,
    parse_quantity_option,
    reported_errors,
    resolve_plan,
)
from fieldledger.core.schema_validator import SUBTYPE_KEY
from fieldledger.models.activity import ActivityType, ManagementSubtype
from fieldledger.models.entry import LedgerEntryDraft


def record_cmd(
    activity_type: ActivityType = typer.Option(
        ...,
        "--type",
        "-t",
        help="Activity type (Plantio, Manejo, Colheita, Insumo, Outro).",
    ),
    product: str = typer.Option("", "--product", help="Crop or product name."),
    locations: list[str] = typer.Option(
        None,
        "--location",
        help="Location path such as 'Talhão 1 > Canteiro 3'.  Repeatable.",
    ),
    quantity: str = typer.Option(None, "--qty", help="Quantity (2,5 or 2.5)."),
    unit: str = typer.Option(None, "--unit", help="Quantity unit (kg, ton, ha, maço...)."),
    note: str = typer.Option("", "--note", "-n", help="Free-form observation."),
    when: datetime = typer.Option(
        None,
        "--at",
        formats=["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M"],
        help="When the activity happened (default: now, UTC).",
    ),
    subtype: ManagementSubtype = typer.Option(
        None, "--subtype", help="Management subtype; inferred when omitted."
    ),
    details: list[str] = typer.Option(
        None, "--detail", "-d", help="Technical detail as key=value.  Repeatable."
    ),
    plan_id: int = typer.Option(None, "--plan", "-p", help="Management plan id."),
    ledger_db: str = typer.Option(
        None, "--ledger", "-l", help="Path to the ledger SQLite database."
    ),
) -> None:
    """Record a new field activity."""
    plan = resolve_plan(plan_id)
    payload = parse_detail_options(details)
    if subtype is not None:
        payload[SUBTYPE_KEY] = subtype.value
    timestamp = when or datetime.now(timezone.utc)
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)

    with reported_errors():
        draft = LedgerEntryDraft(
            plan_id=plan,
            timestamp=timestamp,
            activity_type=activity_type,
            product=product.strip(),
            locations=tuple(locations or ()),
            quantity_value=parse_quantity_option(quantity),
            quantity_unit=unit or None,
            note=note,
            technical_details=payload,
        )
        session = load_session(open_store(ledger_db), plan)
        entry = session.create(draft)

    console.print(f"[bold green]Recorded:[/bold green] {entry.id}")
    console.print(
        f"  [dim]{entry.activity_type.value} | {escape(entry.display_product) or '-'} | plan {plan}[/dim]"
    )
