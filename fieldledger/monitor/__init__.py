"""Field ledger production monitor: a read-only projection over the store.

The monitor NEVER maintains its own state.  Every call re-reads the store.

Modules
-------
projection
    ``ProductionProjection`` reads a plan and produces ``ProductionSnapshot``
    Pydantic models, a frozen point-in-time production view.
renderer
    ``LedgerRenderer`` turns snapshots, entry lists and audit histories
    into Rich renderables for terminal display.
"""
