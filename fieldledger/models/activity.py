"""Activity type and entry lifecycle models.

``ActivityType`` values are the on-wire strings and must not change: legacy
rows in the store carry them verbatim.
"""

from __future__ import annotations

from enum import Enum


class ActivityType(str, Enum):
    """Kind of field activity recorded by a ledger entry."""

    PLANTING = "Plantio"
    MANAGEMENT = "Manejo"
    HARVEST = "Colheita"
    INPUT = "Insumo"
    OTHER = "Outro"
    CANCELLED = "CANCELADO"


class ManagementSubtype(str, Enum):
    """Secondary classification of a Management entry (wire tag ``subtipo``)."""

    CULTURAL_OPERATION = "MANEJO_CULTURAL"
    INPUT_APPLICATION = "APLICACAO_INSUMO"
    SANITIZATION = "HIGIENIZACAO"


class EntryState(str, Enum):
    """Lifecycle state of a ledger entry, derived from its activity type."""

    ACTIVE = "active"
    CANCELLED = "cancelled"


# Cancelled is terminal: no outgoing transitions.
VALID_TRANSITIONS: dict[EntryState, set[EntryState]] = {
    EntryState.ACTIVE: {EntryState.ACTIVE, EntryState.CANCELLED},
    EntryState.CANCELLED: set(),
}


class AuditAction(str, Enum):
    """Action recorded in a history record."""

    EDIT = "EDIT"
    CANCEL = "CANCEL"


# Filter sentinels meaning "any activity type".
ALL_ACTIVITY_TYPES: frozenset[str] = frozenset({"Todos", "All"})


def state_of(activity_type: ActivityType) -> EntryState:
    """Return the lifecycle state implied by an activity type."""
    if activity_type == ActivityType.CANCELLED:
        return EntryState.CANCELLED
    return EntryState.ACTIVE
