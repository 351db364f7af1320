"""Runtime configuration — env-driven.

Centralized settings using pydantic-settings.  Reads from a ``.env`` file
and ``FIELDLEDGER_*`` environment variables.
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerSettings(BaseSettings):
    """Field ledger settings with environment variable overrides.

    Examples
    --------
    Override via environment::

        export FIELDLEDGER_LOG_LEVEL=DEBUG
        export FIELDLEDGER_LEDGER_PATH=/data/ledger.db
        export FIELDLEDGER_DEFAULT_PLAN_ID=42

    Or via .env file::

        FIELDLEDGER_LOG_LEVEL=DEBUG
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="FIELDLEDGER_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging
    log_level: str = "INFO"

    # Storage
    ledger_path: Path = Path(".fieldledger/ledger.db")

    # Audit rules
    min_reason_length: int = 5

    # Plan used by CLI commands when --plan is omitted
    default_plan_id: int | None = None


# Module-level instance — import as `from fieldledger.config import settings`
settings = LedgerSettings()
