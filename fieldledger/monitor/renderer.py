"""Rich terminal renderer for ledger entries and production snapshots.

Color scheme
------------
- green     : Plantio
- cyan      : Manejo
- blue      : Colheita
- yellow    : Insumo
- dim       : Outro
- bold red  : CANCELADO
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any

from rich.console import Console, Group
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from fieldledger.core.aggregation import format_number
from fieldledger.models.activity import ActivityType
from fieldledger.models.details import (
    CulturalOperationDetails,
    DetailKind,
    HarvestDetails,
    InputApplicationDetails,
    OtherDetails,
    PlantingDetails,
    SanitizationDetails,
)

if TYPE_CHECKING:
    from fieldledger.models.entry import LedgerEntry
    from fieldledger.monitor.projection import ProductionSnapshot


_TYPE_STYLES: dict[ActivityType, str] = {
    ActivityType.PLANTING: "green",
    ActivityType.MANAGEMENT: "cyan",
    ActivityType.HARVEST: "blue",
    ActivityType.INPUT: "yellow",
    ActivityType.OTHER: "dim",
    ActivityType.CANCELLED: "bold red",
}


# ---------------------------------------------------------------------------
# Technical details: one formatter per DetailKind
# ---------------------------------------------------------------------------


def _join(*parts: Any) -> str:
    return " | ".join(str(p) for p in parts if p not in (None, "", False))


def _quantity(value: Any, unit: str | None) -> str:
    return f"{format_number(value, 3)} {unit or ''}".strip()


def _planting(d: PlantingDetails) -> str:
    method = d.propagation_method.value if d.propagation_method else None
    used = f"{d.quantity_used:g} {d.unit or ''}".strip() if d.quantity_used else None
    return _join(method, used, d.seed_lot and f"lote {d.seed_lot}")


def _sanitization(d: SanitizationDetails) -> str:
    return _join(d.item_cleaned and f"item: {d.item_cleaned}", d.product_used)


def _input_application(d: InputApplicationDetails) -> str:
    dose = f"{d.dosage} {d.dosage_unit or ''}".strip() if d.dosage is not None else None
    return _join(d.input_name, dose, d.equipment)


def _cultural_operation(d: CulturalOperationDetails) -> str:
    workers = f"{d.worker_count} trab." if d.worker_count else None
    return _join(d.activity or d.management_kind, workers)


def _harvest(d: HarvestDetails) -> str:
    return _join(d.lot and f"lote {d.lot}", d.classification, d.destination)


def _other(d: OtherDetails) -> str:
    return _join(*(f"{k}={v}" for k, v in (d.model_extra or {}).items()))


DETAIL_FORMATTERS: dict[DetailKind, Callable[[Any], str]] = {
    DetailKind.PLANTING: _planting,
    DetailKind.SANITIZATION: _sanitization,
    DetailKind.INPUT_APPLICATION: _input_application,
    DetailKind.CULTURAL_OPERATION: _cultural_operation,
    DetailKind.HARVEST: _harvest,
    DetailKind.OTHER: _other,
}


def describe_details(details: Any) -> str:
    """One-line description of a variant, or of a raw unvalidated payload."""
    kind = getattr(details, "kind", None)
    if isinstance(kind, DetailKind):
        return DETAIL_FORMATTERS[kind](details)
    if isinstance(details, dict):
        return _join(*(f"{k}={v}" for k, v in details.items()))
    return str(details) if details else ""


# ---------------------------------------------------------------------------
# Renderer
# ---------------------------------------------------------------------------


class LedgerRenderer:
    """Renders ledger entries, history and snapshots as Rich output.

    Parameters
    ----------
    console:
        Rich Console instance.  A new one is created if not provided.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def render_entries(self, entries: Iterable[LedgerEntry]) -> Table:
        """Build a table of entries; cancelled rows are struck through."""
        table = Table(show_header=True, header_style="bold cyan", expand=True)
        table.add_column("Date", no_wrap=True)
        table.add_column("Type", justify="center")
        table.add_column("Product")
        table.add_column("Location")
        table.add_column("Qty", justify="right")
        table.add_column("Details")
        table.add_column("Id", style="dim", no_wrap=True)

        for entry in entries:
            style = _TYPE_STYLES.get(entry.activity_type, "")
            quantity = ""
            if entry.quantity_value is not None:
                quantity = _quantity(entry.quantity_value, entry.quantity_unit)

            details = escape(describe_details(entry.technical_details))
            if entry.is_cancelled and entry.last_reason:
                details = f"[red]{escape(entry.last_reason)}[/red]"
            elif entry.load_error:
                details = f"[red]unreadable: {escape(entry.load_error)}[/red]"

            table.add_row(
                entry.timestamp.strftime("%d/%m/%Y"),
                f"[{style}]{entry.activity_type.value}[/{style}]" if style else entry.activity_type.value,
                Text(entry.display_product, style="strike" if entry.is_cancelled else ""),
                escape(entry.location_path) or "-",
                quantity or "-",
                details or "[dim]-[/dim]",
                entry.id[:8],
            )
        return table

    def render_history(self, entry: LedgerEntry) -> Table:
        """Build a table of an entry's audit trail, oldest first."""
        table = Table(
            title=f"History of {entry.id}",
            show_header=True,
            header_style="bold cyan",
        )
        table.add_column("#", justify="right", style="dim")
        table.add_column("When", no_wrap=True)
        table.add_column("Action", justify="center")
        table.add_column("Reason")
        table.add_column("Before")

        for index, record in enumerate(entry.history, start=1):
            prior = record.prior
            prior_type = getattr(prior.activity_type, "value", prior.activity_type)
            before = _join(
                prior_type,
                prior.product,
                prior.quantity_value is not None
                and _quantity(prior.quantity_value, prior.quantity_unit),
            )
            action_style = "red" if record.action.value == "CANCEL" else "yellow"
            table.add_row(
                str(index),
                record.timestamp.strftime("%d/%m/%Y %H:%M:%S"),
                f"[{action_style}]{record.action.value}[/{action_style}]",
                escape(record.reason),
                escape(before),
            )
        return table

    def render_snapshot(self, snapshot: ProductionSnapshot) -> Panel:
        """Render a production snapshot as a Panel."""
        table = Table(show_header=True, header_style="bold cyan", expand=True)
        table.add_column("Product", min_width=20)
        table.add_column("Total", justify="right")
        table.add_column("Harvests", justify="right", width=10)
        table.add_column("Last harvest", no_wrap=True)

        for product in snapshot.products:
            table.add_row(
                f"[bold]{escape(product.product)}[/bold]",
                product.total,
                str(product.harvest_count),
                product.last_harvest.strftime("%d/%m/%Y") if product.last_harvest else "-",
            )

        summary_parts = [
            f"[bold]Plan:[/bold] {snapshot.plan_id}",
            f"[bold]Total:[/bold] {snapshot.overall_total}",
            f"[bold]Active:[/bold] {snapshot.active_count}",
            f"[bold]Cancelled:[/bold] {snapshot.cancelled_count}",
        ]
        if snapshot.unreadable_count:
            summary_parts.append(
                f"[bold red]Unreadable:[/bold red] {snapshot.unreadable_count}"
            )
        if snapshot.last_activity:
            summary_parts.append(
                f"[bold]Last activity:[/bold] {snapshot.last_activity.strftime('%d/%m/%Y')}"
            )

        body: Any = table
        if not snapshot.has_production:
            body = Text("No harvest recorded for this plan yet.", style="dim")

        return Panel(
            Group(body, Text(""), Text.from_markup("  |  ".join(summary_parts))),
            title="[bold]Production[/bold]",
            border_style="green",
            padding=(1, 2),
        )

    # ------------------------------------------------------------------
    # Standalone print
    # ------------------------------------------------------------------

    def print_entries(self, entries: Iterable[LedgerEntry]) -> None:
        self.console.print(self.render_entries(entries))

    def print_history(self, entry: LedgerEntry) -> None:
        if not entry.history:
            self.console.print(f"[dim]Entry {entry.id} has never been changed.[/dim]")
            return
        self.console.print(self.render_history(entry))

    def print_snapshot(self, snapshot: ProductionSnapshot) -> None:
        self.console.print(self.render_snapshot(snapshot))
