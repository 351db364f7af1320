"""Fieldledger: an auditable ledger of field activities for farm management plans.

Records planting, management, harvest and input activities per plan with:
  - typed technical details per activity (Portuguese wire keys preserved)
  - append-only edit/cancel history with mandatory justification
  - soft cancellation (``CANCELADO`` is terminal; nothing is deleted)
  - mixed-unit production totals (kg/ton, m²/ha, discrete units)
  - SQLite persistence, env-driven config, Typer + Rich CLI
"""

__version__ = "0.1.0"
