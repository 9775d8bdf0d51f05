"""Hazmat KB Common - Shared utilities.

Version: 1.0.0

This package provides:
- Settings (pydantic-settings)
- Structured logging (structlog)
- OpenTelemetry instrumentation helpers
- Custom error types
"""

from hazmat_common.config import Settings, get_settings
from hazmat_common.errors import (
    ConfigurationError,
    ExtractionFailure,
    HazmatKBError,
    InferenceError,
    InputRejected,
    MalformedResponse,
    StorageError,
)
from hazmat_common.instrumentation import (
    get_tracer,
    init_telemetry,
    instrument_function,
)
from hazmat_common.logging_config import configure_logging, get_logger, request_context

__version__ = "1.0.0"

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Logging
    "configure_logging",
    "get_logger",
    "request_context",
    # Instrumentation
    "init_telemetry",
    "get_tracer",
    "instrument_function",
    # Errors
    "HazmatKBError",
    "InputRejected",
    "ExtractionFailure",
    "InferenceError",
    "MalformedResponse",
    "ConfigurationError",
    "StorageError",
]
