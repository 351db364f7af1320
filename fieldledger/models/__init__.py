"""Field ledger data models — all Pydantic v2, all frozen (immutable)."""

from fieldledger.models.activity import (
    ALL_ACTIVITY_TYPES,
    VALID_TRANSITIONS,
    ActivityType,
    AuditAction,
    EntryState,
    ManagementSubtype,
)
from fieldledger.models.details import (
    DETAIL_TYPE_MAP,
    MANAGEMENT_SUBTYPE_MAP,
    CulturalOperationDetails,
    DetailKind,
    HarvestDetails,
    InputApplicationDetails,
    OtherDetails,
    PlantingDetails,
    PropagationMethod,
    SanitizationDetails,
    TechnicalDetails,
)
from fieldledger.models.entry import (
    HistoryRecord,
    LedgerEntry,
    LedgerEntryDraft,
    PriorSnapshot,
)
from fieldledger.models.query import FilterCriteria

__all__ = [
    # activity
    "ActivityType",
    "ManagementSubtype",
    "EntryState",
    "AuditAction",
    "VALID_TRANSITIONS",
    "ALL_ACTIVITY_TYPES",
    # details
    "DetailKind",
    "PropagationMethod",
    "PlantingDetails",
    "SanitizationDetails",
    "InputApplicationDetails",
    "CulturalOperationDetails",
    "HarvestDetails",
    "OtherDetails",
    "TechnicalDetails",
    "DETAIL_TYPE_MAP",
    "MANAGEMENT_SUBTYPE_MAP",
    # entry
    "PriorSnapshot",
    "HistoryRecord",
    "LedgerEntryDraft",
    "LedgerEntry",
    # query
    "FilterCriteria",
]
