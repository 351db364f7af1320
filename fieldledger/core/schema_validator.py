"""Detail schema validator — normalizes loosely-typed technical payloads.

``normalize_details`` never raises.  A payload that fails validation is
handed back unchanged so display code keeps working on malformed legacy
rows; the failure is logged as a warning instead.

Management subtype inference (no explicit ``subtipo`` tag) is evaluated in
a fixed order: sanitized item, then input name / dosage, then cultural
operation.  A record carrying both an item and a dosage is a Sanitization.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from fieldledger.models.activity import ActivityType, ManagementSubtype
from fieldledger.models.details import (
    MANAGEMENT_SUBTYPE_MAP,
    HarvestDetails,
    OtherDetails,
    PlantingDetails,
    TechnicalDetails,
)

logger = logging.getLogger(__name__)

SUBTYPE_KEY = "subtipo"

_SANITIZATION_KEYS: tuple[str, ...] = ("item_higienizado", "item_cleaned")
_INPUT_APPLICATION_KEYS: tuple[str, ...] = (
    "insumo",
    "nome_insumo",
    "dosagem",
    "input_name",
    "dosage",
)


def _has_value(raw: Mapping[str, Any], keys: tuple[str, ...]) -> bool:
    for key in keys:
        value = raw.get(key)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return True
    return False


def infer_management_subtype(raw: Mapping[str, Any]) -> ManagementSubtype:
    """Infer the Management subtype of a payload with no explicit tag."""
    if _has_value(raw, _SANITIZATION_KEYS):
        return ManagementSubtype.SANITIZATION
    if _has_value(raw, _INPUT_APPLICATION_KEYS):
        return ManagementSubtype.INPUT_APPLICATION
    return ManagementSubtype.CULTURAL_OPERATION


def _coerce_activity_type(activity_type: ActivityType | str) -> ActivityType | None:
    try:
        return ActivityType(activity_type)
    except ValueError:
        return None


def _normalize_management(
    payload: dict[str, Any],
    raw: Any,
    subtype_hint: ManagementSubtype | str | None,
) -> TechnicalDetails | Any:
    tag = payload.pop(SUBTYPE_KEY, None)
    if subtype_hint:
        tag = subtype_hint

    if tag is None or (isinstance(tag, str) and not tag.strip()):
        subtype = infer_management_subtype(payload)
    else:
        try:
            subtype = ManagementSubtype(tag)
        except ValueError:
            logger.warning(
                "Unknown management subtype %r; keeping technical details as-is.",
                tag,
            )
            return raw

    model_cls = MANAGEMENT_SUBTYPE_MAP[subtype]
    try:
        return model_cls.model_validate(payload)
    except (ValueError, TypeError) as exc:
        logger.warning(
            "Management details failed %s validation; keeping raw payload: %s",
            subtype.value,
            exc,
        )
        return raw


def normalize_details(
    activity_type: ActivityType | str,
    raw: Any,
    subtype_hint: ManagementSubtype | str | None = None,
) -> TechnicalDetails | Any:
    """Normalize a raw technical-details payload into its variant model.

    Parameters
    ----------
    activity_type:
        The entry's activity type (enum or wire string).
    raw:
        The payload as read from the store.  ``None`` is treated as empty.
    subtype_hint:
        Explicit Management subtype; takes precedence over the payload's
        own ``subtipo`` tag.

    Returns
    -------
    TechnicalDetails | Any
        The validated variant, or ``raw`` unchanged when it cannot be
        validated.
    """
    if raw is None:
        raw = {}
    if not isinstance(raw, Mapping):
        logger.warning(
            "Technical details for %s are a %s, not an object; keeping as-is.",
            activity_type,
            type(raw).__name__,
        )
        return raw

    payload = dict(raw)
    kind = _coerce_activity_type(activity_type)

    if kind == ActivityType.MANAGEMENT:
        return _normalize_management(payload, raw, subtype_hint)

    if kind == ActivityType.PLANTING:
        model_cls: type[TechnicalDetails] = PlantingDetails
    elif kind == ActivityType.HARVEST:
        model_cls = HarvestDetails
    else:
        model_cls = OtherDetails

    try:
        return model_cls.model_validate(payload)
    except (ValueError, TypeError) as exc:
        logger.warning(
            "%s details failed validation; keeping raw payload: %s",
            activity_type,
            exc,
        )
        return raw
