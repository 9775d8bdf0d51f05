"""Hazmat KB Contracts - Pure Pydantic schemas and shared reference data.

This package contains schemas, identifier normalization and carrier rule
data, with no I/O. Dependencies: pydantic only.
"""

from hazmat_contracts.identifiers import is_canonical_un_number, normalize_un_number
from hazmat_contracts.models import (
    # Context sources
    DocumentType,
    KnowledgeServerConfig,
    LocalDocumentRecord,
    SourceContext,
    SourceType,
    # Validation output
    Severity,
    UsageInfo,
    ValidationIssue,
    ValidationResult,
    ValidationStatus,
    # Shipment input and extraction results
    SDS_FIELDS,
    ScreenshotIdentity,
    SdsExtraction,
    ShipmentData,
    Suggestion,
    # Progress and state
    ExtractionPhase,
    PipelineStage,
    ProgressEvent,
    TERMINAL_STAGES,
)
from hazmat_contracts.regulations import (
    REGULATION_RULES,
    VALIDATION_CHECKS,
    enabled_checks,
    regulation_name,
    rules_for,
)

__version__ = "1.0.0"

__all__ = [
    "normalize_un_number",
    "is_canonical_un_number",
    "DocumentType",
    "KnowledgeServerConfig",
    "LocalDocumentRecord",
    "SourceContext",
    "SourceType",
    "Severity",
    "UsageInfo",
    "ValidationIssue",
    "ValidationResult",
    "ValidationStatus",
    "SDS_FIELDS",
    "ScreenshotIdentity",
    "SdsExtraction",
    "ShipmentData",
    "Suggestion",
    "ExtractionPhase",
    "PipelineStage",
    "ProgressEvent",
    "TERMINAL_STAGES",
    "REGULATION_RULES",
    "VALIDATION_CHECKS",
    "enabled_checks",
    "regulation_name",
    "rules_for",
]
