"""Technical detail variants — one closed model per (activity type, subtype).

Every variant is a frozen Pydantic model tagged by a ``kind`` class
attribute.  Fields are populated from the original Portuguese wire keys
(aliases) or from their Python names.  Keys that are not declared on a
variant are kept as model extras so legacy payloads survive a round-trip.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, ClassVar, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from fieldledger.models.activity import ManagementSubtype


class DetailKind(str, Enum):
    """Tag identifying a technical detail variant."""

    PLANTING = "planting"
    SANITIZATION = "sanitization"
    INPUT_APPLICATION = "input_application"
    CULTURAL_OPERATION = "cultural_operation"
    HARVEST = "harvest"
    OTHER = "other"


class PropagationMethod(str, Enum):
    SEED = "Semente"
    SEEDLING = "Muda"
    CUTTING = "Estaca"
    BULB = "Bulbo"
    OTHER = "Outro"


_DETAILS_CONFIG = ConfigDict(frozen=True, extra="allow", populate_by_name=True)


class PlantingDetails(BaseModel):
    """Planting: how the crop was propagated and how much material was used."""

    model_config = _DETAILS_CONFIG
    kind: ClassVar[DetailKind] = DetailKind.PLANTING

    propagation_method: PropagationMethod | None = Field(None, alias="metodo_propagacao")
    quantity_used: float | None = Field(None, alias="qtd_utilizada")
    unit: str | None = Field(None, alias="unidade_medida")
    spacing: str | None = Field(None, alias="espacamento")
    depth: str | None = Field(None, alias="profundidade")
    seed_lot: str | None = Field(None, alias="lote_semente")


class SanitizationDetails(BaseModel):
    """Management / sanitization of tools, crates or facilities."""

    model_config = _DETAILS_CONFIG
    kind: ClassVar[DetailKind] = DetailKind.SANITIZATION
    subtype: ClassVar[ManagementSubtype] = ManagementSubtype.SANITIZATION

    item_cleaned: str | None = Field(None, alias="item_higienizado")
    product_used: str | None = Field(None, alias="produto_utilizado")
    management_kind: str | None = Field(None, alias="tipo_manejo")
    responsible: str | None = Field(None, alias="responsavel")


class InputApplicationDetails(BaseModel):
    """Management / application of an input (fertilizer, biological, etc.)."""

    model_config = _DETAILS_CONFIG
    kind: ClassVar[DetailKind] = DetailKind.INPUT_APPLICATION
    subtype: ClassVar[ManagementSubtype] = ManagementSubtype.INPUT_APPLICATION

    input_name: str | None = Field(
        None,
        validation_alias=AliasChoices("insumo", "nome_insumo", "input_name"),
        serialization_alias="insumo",
    )
    dosage: float | str | None = Field(None, alias="dosagem")
    dosage_unit: str | None = Field(None, alias="unidade_dosagem")
    equipment: str | None = Field(None, alias="equipamento")
    withholding_period: str | None = Field(None, alias="periodo_carencia")
    management_kind: str | None = Field(None, alias="tipo_manejo")
    responsible: str | None = Field(None, alias="responsavel")


class CulturalOperationDetails(BaseModel):
    """Management / cultural operation such as weeding or pruning."""

    model_config = _DETAILS_CONFIG
    kind: ClassVar[DetailKind] = DetailKind.CULTURAL_OPERATION
    subtype: ClassVar[ManagementSubtype] = ManagementSubtype.CULTURAL_OPERATION

    activity: str | None = Field(None, alias="atividade")
    worker_count: int | None = Field(None, alias="qtd_trabalhadores")
    management_kind: str | None = Field(None, alias="tipo_manejo")
    responsible: str | None = Field(None, alias="responsavel")


class HarvestDetails(BaseModel):
    """Harvest: lot traceability, destination and grading."""

    model_config = _DETAILS_CONFIG
    kind: ClassVar[DetailKind] = DetailKind.HARVEST

    lot: str | None = Field(None, alias="lote")
    destination: str | None = Field(None, alias="destino")
    classification: str | None = Field(None, alias="classificacao")
    quantity: float | None = Field(None, alias="qtd")
    unit: str | None = Field(None, alias="unidade")


class OtherDetails(BaseModel):
    """Opaque bag for activity types without a dedicated shape."""

    model_config = _DETAILS_CONFIG
    kind: ClassVar[DetailKind] = DetailKind.OTHER


TechnicalDetails = Union[
    PlantingDetails,
    SanitizationDetails,
    InputApplicationDetails,
    CulturalOperationDetails,
    HarvestDetails,
    OtherDetails,
]


# Registry for dispatch by kind — must cover every DetailKind.
DETAIL_TYPE_MAP: dict[DetailKind, type[BaseModel]] = {
    DetailKind.PLANTING: PlantingDetails,
    DetailKind.SANITIZATION: SanitizationDetails,
    DetailKind.INPUT_APPLICATION: InputApplicationDetails,
    DetailKind.CULTURAL_OPERATION: CulturalOperationDetails,
    DetailKind.HARVEST: HarvestDetails,
    DetailKind.OTHER: OtherDetails,
}

MANAGEMENT_SUBTYPE_MAP: dict[ManagementSubtype, type[BaseModel]] = {
    ManagementSubtype.SANITIZATION: SanitizationDetails,
    ManagementSubtype.INPUT_APPLICATION: InputApplicationDetails,
    ManagementSubtype.CULTURAL_OPERATION: CulturalOperationDetails,
}

_MANAGEMENT_KINDS: frozenset[DetailKind] = frozenset(
    {
        DetailKind.SANITIZATION,
        DetailKind.INPUT_APPLICATION,
        DetailKind.CULTURAL_OPERATION,
    }
)


def details_to_wire(details: TechnicalDetails | dict[str, Any]) -> dict[str, Any]:
    """Serialize a variant (or an unvalidated raw mapping) to wire keys.

    Management variants re-emit their ``subtipo`` tag.  Extras are included
    as-is.  Raw mappings are copied unchanged.
    """
    if isinstance(details, dict):
        return dict(details)

    wire = details.model_dump(mode="json", by_alias=True, exclude_unset=True)
    if details.kind in _MANAGEMENT_KINDS:
        wire["subtipo"] = details.subtype.value
    return wire
