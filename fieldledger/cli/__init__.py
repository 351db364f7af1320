"""Fieldledger CLI — Typer-based command-line interface.

Provides the ``fieldledger`` command with subcommands for recording field
activities, listing and filtering a plan's ledger, editing and cancelling
entries with a justification, inspecting an entry's audit history, and
showing production totals.

All output uses Rich for formatted terminal display.
"""
