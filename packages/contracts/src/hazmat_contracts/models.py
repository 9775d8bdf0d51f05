"""Pydantic models for the hazmat-kb system.

These schemas define the contract between all packages. Models that mirror
the AI model's JSON output use camelCase aliases and accept either form.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from hazmat_contracts.identifiers import is_canonical_un_number, normalize_un_number
from hazmat_contracts.regulations import regulation_name


def _clamp_confidence(value: Any) -> int:
    """Round a fractional confidence and clamp it into [0, 100]."""
    if value is None or value == "":
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"confidence must be numeric, got {value!r}")
    return max(0, min(100, int(round(number))))


def _lookup_enum(enum_cls: type[Enum], value: Any, aliases: Optional[dict] = None):
    """Case-insensitive enum lookup by value."""
    if isinstance(value, enum_cls) or not isinstance(value, str):
        return value
    key = value.strip().lower()
    if aliases and key in aliases:
        return aliases[key]
    for member in enum_cls:
        if member.value.lower() == key:
            return member
    return value


class CamelModel(BaseModel):
    """Base for models exchanged as camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Context sources
# ---------------------------------------------------------------------------


class SourceType(str, Enum):
    """Where a piece of reference context came from."""

    REMOTE_SERVER = "RemoteServer"
    LOCAL_STORE = "LocalStore"
    SYSTEM = "System"


class SourceContext(BaseModel):
    """One weighted unit of reference text fed into a prompt.

    Created fresh per request and discarded after prompt assembly.
    """

    model_config = ConfigDict(frozen=True)

    source_name: str
    source_type: SourceType
    content: str
    weight: int = Field(..., ge=0, le=100)
    uri: Optional[str] = None


class KnowledgeServerConfig(BaseModel):
    """A configured knowledge server, persisted in settings."""

    name: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1)
    enabled: bool = True
    weight: int = Field(default=50, ge=0, le=100)


class DocumentType(str, Enum):
    """Local document kinds."""

    PDF = "pdf"
    TEXT = "text"


class LocalDocumentRecord(BaseModel):
    """A user-supplied reference document kept in the local store."""

    id: str
    name: str
    content: str
    weight: int = Field(default=50, ge=0, le=100)
    type: DocumentType
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


# ---------------------------------------------------------------------------
# Validation output
# ---------------------------------------------------------------------------


class Severity(str, Enum):
    """Issue severity, ordered from most to least severe."""

    CRITICAL = "Critical"
    WARNING = "Warning"
    INFO = "Info"


class ValidationStatus(str, Enum):
    """Overall verdict for a shipment."""

    PASS = "Pass"
    FAIL = "Fail"
    WARNINGS = "Warnings"


class UsageInfo(BaseModel):
    """Token usage and estimated dollar cost of one model call."""

    model_id: str
    prompt_tokens: int = 0
    candidate_tokens: int = 0
    total_tokens: int = 0
    input_cost: float = 0.0
    output_cost: float = 0.0
    estimated_cost: float = 0.0


class ValidationIssue(CamelModel):
    """A single compliance finding."""

    description: str
    confidence: int = Field(default=0, ge=0, le=100)
    regulation_reference: str = ""
    recommendation: str = ""
    severity: Severity = Severity.INFO
    explanation: Optional[str] = None

    @field_validator("confidence", mode="before")
    @classmethod
    def normalize_confidence(cls, v: Any) -> int:
        return _clamp_confidence(v)

    @field_validator("severity", mode="before")
    @classmethod
    def normalize_severity(cls, v: Any) -> Any:
        return _lookup_enum(Severity, v)

    @field_validator("regulation_reference", "recommendation", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v


class ValidationResult(CamelModel):
    """Normalized verdict returned by every validation flow."""

    status: ValidationStatus
    issues: list[ValidationIssue] = Field(default_factory=list)
    metadata: Optional[dict[str, Any]] = None
    usage: Optional[UsageInfo] = None

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v: Any) -> Any:
        return _lookup_enum(
            ValidationStatus, v, aliases={"warning": ValidationStatus.WARNINGS}
        )

    @field_validator("issues", mode="before")
    @classmethod
    def none_to_list(cls, v: Any) -> Any:
        return [] if v is None else v


# ---------------------------------------------------------------------------
# Shipment input and auxiliary extraction results
# ---------------------------------------------------------------------------


class ShipmentData(CamelModel):
    """A dangerous goods shipment as entered by the user."""

    carrier: Literal["FedEx", "UPS"]
    mode: Literal["Air", "Ground"]
    service: str = Field(..., min_length=1)
    weight: float = Field(..., gt=0)
    weight_unit: Literal["kg", "lbs"] = "kg"

    un_number: str
    proper_shipping_name: str = Field(..., min_length=1)
    technical_name: Optional[str] = None
    hazard_class: str = Field(..., min_length=1)
    packing_group: Optional[Literal["I", "II", "III"]] = None
    quantity: float = Field(..., ge=0)
    quantity_unit: str = Field(..., min_length=1)
    packaging_type: Optional[str] = None
    emergency_phone: str = Field(..., min_length=10)

    # Air (IATA)
    cargo_aircraft_only: bool = False
    accessibility: Optional[Literal["Accessible", "Inaccessible"]] = None
    packing_instruction: Optional[str] = None
    container_type: Optional[str] = None
    signatory_name: str = Field(..., min_length=1)
    signatory_title: Optional[str] = None
    signatory_place: Optional[str] = None

    # Ground (DOT)
    reportable_quantity: bool = False
    offeror_name: Optional[str] = None

    @field_validator("un_number", mode="before")
    @classmethod
    def canonical_un_number(cls, v: Any) -> str:
        normalized = normalize_un_number(v)
        if not is_canonical_un_number(normalized):
            raise ValueError("Must be in format UNxxxx")
        return normalized

    @field_validator("packing_group", "accessibility", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @model_validator(mode="after")
    def check_mode_requirements(self) -> "ShipmentData":
        missing = []
        if self.mode == "Air":
            for field in ("packing_instruction", "signatory_title", "signatory_place"):
                if not getattr(self, field):
                    missing.append(field)
        elif not self.offeror_name:
            missing.append("offeror_name")

        if missing:
            raise ValueError(
                f"{', '.join(missing)} required for {self.mode} shipments"
            )
        return self

    @property
    def regulation(self) -> str:
        return regulation_name(self.mode)


SDS_FIELDS = (
    "un_number",
    "proper_shipping_name",
    "hazard_class",
    "packing_group",
    "technical_name",
    "packing_instruction",
    "packaging_type",
)


class SdsExtraction(CamelModel):
    """Shipping fields recovered from a Safety Data Sheet."""

    un_number: str = ""
    proper_shipping_name: str = ""
    hazard_class: str = ""
    packing_group: str = ""
    technical_name: str = ""
    packing_instruction: str = ""
    packaging_type: str = ""
    confidence: dict[str, int] = Field(default_factory=dict)

    @field_validator(*SDS_FIELDS, mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> str:
        return "" if v is None else str(v).strip()

    @field_validator("un_number")
    @classmethod
    def canonical_un_number(cls, v: str) -> str:
        return normalize_un_number(v)

    @field_validator("confidence", mode="before")
    @classmethod
    def normalize_confidence_map(cls, v: Any) -> dict[str, int]:
        if not isinstance(v, dict):
            return {}
        # Keys arrive camelCased from the model; store them by field name.
        by_alias = {to_camel(name): name for name in SDS_FIELDS}
        return {by_alias.get(k, k): _clamp_confidence(score) for k, score in v.items()}

    def found_fields(self) -> dict[str, str]:
        """Non-empty extracted fields keyed by field name."""
        return {name: getattr(self, name) for name in SDS_FIELDS if getattr(self, name)}


class ScreenshotIdentity(CamelModel):
    """Stage-1 identification of the commodity shown in a screenshot."""

    un_number: str = ""
    proper_shipping_name: str = ""

    @field_validator("un_number", "proper_shipping_name", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> str:
        return "" if v is None else str(v).strip()

    @field_validator("un_number")
    @classmethod
    def canonical_un_number(cls, v: str) -> str:
        return normalize_un_number(v)

    def search_terms(self) -> list[str]:
        """The 1-2 non-empty terms used to seed knowledge tool queries."""
        return [t for t in (self.un_number, self.proper_shipping_name) if t]


class Suggestion(BaseModel):
    """A suggested value for a single shipment field."""

    value: str
    confidence: int = Field(default=0, ge=0, le=100)
    reasoning: str = ""

    @field_validator("value", mode="before")
    @classmethod
    def stringify(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("confidence", mode="before")
    @classmethod
    def normalize_confidence(cls, v: Any) -> int:
        return _clamp_confidence(v)


# ---------------------------------------------------------------------------
# Progress and pipeline state
# ---------------------------------------------------------------------------


class ExtractionPhase(str, Enum):
    """Document extraction phases reported to progress listeners."""

    INITIALIZING = "initializing"
    TEXT_LAYER = "text_layer"
    RASTERIZING = "rasterizing"
    RECOGNIZING = "recognizing"


class ProgressEvent(BaseModel):
    """Structured progress update. Consumers key off ``phase``."""

    phase: ExtractionPhase
    message: str = ""
    page: Optional[int] = None
    total_pages: Optional[int] = None
    percent: Optional[int] = Field(default=None, ge=0, le=100)


class PipelineStage(str, Enum):
    """Validation request state machine stages."""

    IDLE = "idle"
    EXTRACTING = "extracting"
    EXTRACTION_FAILED = "extraction_failed"
    EXTRACTION_COMPLETE = "extraction_complete"
    BUILDING_CONTEXT = "building_context"
    INVOKING = "invoking"
    INVOKE_FAILED = "invoke_failed"
    PARSE_FAILED = "parse_failed"
    COMPLETE = "complete"
    CANCELLED = "cancelled"


TERMINAL_STAGES = frozenset(
    {
        PipelineStage.EXTRACTION_FAILED,
        PipelineStage.INVOKE_FAILED,
        PipelineStage.PARSE_FAILED,
        PipelineStage.COMPLETE,
        PipelineStage.CANCELLED,
    }
)
