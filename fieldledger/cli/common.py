"""Helpers shared by the CLI commands: option resolution, session loading
and mapping of ledger errors to exit codes.

Exit codes
----------
0  success
1  store failure (unreadable ledger, unknown entry, integrity violation)
2  rejected input (short reason, cancelled entry, bad field values)
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from decimal import Decimal
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from fieldledger import config
from fieldledger.core.errors import (
    EntryNotFoundError,
    InvalidTransitionError,
    LedgerError,
    LedgerValidationError,
    StoreError,
)
from fieldledger.core.record_codec import parse_quantity
from fieldledger.core.session import LedgerSession
from fieldledger.core.store import SqliteLedgerStore
from fieldledger.models.entry import LedgerEntry

console = Console()

EXIT_STORE_ERROR = 1
EXIT_REJECTED = 2


def configure_logging(level: str) -> None:
    """Route library logging through Rich at ``level``."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )


@contextmanager
def reported_errors() -> Iterator[None]:
    """Print ledger errors with Rich and exit with the matching code."""
    try:
        yield
    except (LedgerValidationError, InvalidTransitionError) as exc:
        console.print(f"[bold red]Rejected:[/bold red] {exc}")
        raise typer.Exit(code=EXIT_REJECTED)
    except StoreError as exc:
        console.print(f"[bold red]Store error:[/bold red] {exc}")
        raise typer.Exit(code=EXIT_STORE_ERROR)
    except LedgerError as exc:
        console.print(f"[bold red]Ledger error:[/bold red] {exc}")
        raise typer.Exit(code=EXIT_STORE_ERROR)


def open_store(ledger_db: str | None) -> SqliteLedgerStore:
    return SqliteLedgerStore(Path(ledger_db) if ledger_db else config.settings.ledger_path)


def resolve_plan(plan_id: int | None) -> int:
    """The ``--plan`` value, falling back to the configured default plan."""
    if plan_id is not None:
        return plan_id
    if config.settings.default_plan_id is not None:
        return config.settings.default_plan_id
    console.print(
        "[bold red]No plan given.[/bold red] "
        "Pass --plan or set FIELDLEDGER_DEFAULT_PLAN_ID."
    )
    raise typer.Exit(code=EXIT_REJECTED)


def load_session(store: SqliteLedgerStore, plan_id: int) -> LedgerSession:
    """Build a session for ``plan_id`` and fetch its entries."""
    session = LedgerSession(
        store, plan_id, min_reason_length=config.settings.min_reason_length
    )
    if not session.refresh():
        raise StoreError(session.error or f"Could not load plan {plan_id}.")
    return session


def resolve_entry(session: LedgerSession, entry_id: str) -> LedgerEntry:
    """Find an entry by full id or by a unique id prefix."""
    try:
        return session.find(entry_id)
    except EntryNotFoundError:
        candidates = [e for e in session.entries if e.id.startswith(entry_id)]
        if len(candidates) == 1:
            return candidates[0]
        if len(candidates) > 1:
            raise LedgerValidationError(
                f"Id prefix {entry_id!r} matches {len(candidates)} entries."
            ) from None
        raise


def locate_entry(
    store: SqliteLedgerStore, entry_id: str, plan_id: int | None
) -> tuple[LedgerSession, LedgerEntry]:
    """Load the session owning ``entry_id`` and return it with the entry.

    Without a plan (and no configured default), the entry id must be
    complete so its plan can be read from the store.
    """
    if plan_id is None:
        plan_id = config.settings.default_plan_id
    if plan_id is None:
        plan_id = store.get(entry_id).plan_id
    session = load_session(store, plan_id)
    return session, resolve_entry(session, entry_id)


def parse_quantity_option(value: str | None) -> Decimal | None:
    """Parse ``--qty``; accepts ``2,5`` as well as ``2.5``."""
    try:
        return parse_quantity(value)
    except ValueError:
        raise typer.BadParameter(f"Not a number: {value!r}", param_hint="--qty")


def parse_detail_options(pairs: list[str] | None) -> dict[str, str]:
    """Turn repeated ``--detail key=value`` options into a mapping."""
    details: dict[str, str] = {}
    for pair in pairs or ():
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise typer.BadParameter(
                f"Expected key=value, got {pair!r}", param_hint="--detail"
            )
        details[key.strip()] = value.strip()
    return details
