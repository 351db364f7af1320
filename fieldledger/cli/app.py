"""Main Typer application — imports and registers all CLI commands.

Entry point: ``fieldledger`` (configured via pyproject.toml scripts).

Commands: record, list, edit, cancel, history, summary.
"""

from __future__ import annotations

import typer

from fieldledger import config
from fieldledger.cli.commands.cancel import cancel_cmd
from fieldledger.cli.commands.edit import edit_cmd
from fieldledger.cli.commands.history import history_cmd
from fieldledger.cli.commands.list_cmd import list_cmd
from fieldledger.cli.commands.record import record_cmd
from fieldledger.cli.commands.summary import summary_cmd
from fieldledger.cli.common import configure_logging

app = typer.Typer(
    name="fieldledger",
    help="Fieldledger: auditable field activity ledger for management plans.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        None,
        "--log-level",
        help="Logging level (default: FIELDLEDGER_LOG_LEVEL or INFO).",
    ),
) -> None:
    """Record, correct and summarize field activities."""
    configure_logging(log_level or config.settings.log_level)


# Register subcommands
app.command(name="record", help="Record a new field activity.")(record_cmd)
app.command(name="list", help="List a plan's entries with filters.")(list_cmd)
app.command(name="edit", help="Edit an entry (reason required).")(edit_cmd)
app.command(name="cancel", help="Cancel an entry (reason required).")(cancel_cmd)
app.command(name="history", help="Show an entry's audit history.")(history_cmd)
app.command(name="summary", help="Show production totals per product.")(summary_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
