"""Custom error types for hazmat-kb system.

All errors follow the "fail fast" principle with explicit messages.
Each error carries a ``category`` so callers can tell a failure during
text extraction apart from a failure during AI analysis.
"""


class HazmatKBError(Exception):
    """Base exception for all hazmat-kb errors."""

    category = "internal"


class InputRejected(HazmatKBError):
    """Uploaded file has an unsupported media type.

    Raised before any I/O is attempted.
    """

    category = "input"


class ExtractionFailure(HazmatKBError):
    """Error turning an uploaded document into text.

    Attributes:
        phase: Extraction phase the failure occurred in
            (e.g. "initializing", "rasterizing", "recognizing")
    """

    category = "extraction"

    def __init__(self, message: str, phase: str):
        self.phase = phase
        super().__init__(message)


class InferenceError(HazmatKBError):
    """Transport or authentication failure calling the AI model."""

    category = "inference"


class MalformedResponse(HazmatKBError):
    """Model output could not be parsed as the expected structure.

    Attributes:
        raw: Truncated raw model output, for diagnostics
    """

    category = "parse"

    def __init__(self, message: str, raw: str = ""):
        self.raw = raw[:500]
        super().__init__(message)


class ConfigurationError(HazmatKBError):
    """Required configuration (e.g. API key) is missing or invalid."""

    category = "configuration"


class StorageError(HazmatKBError):
    """Error during database operations."""

    category = "storage"
