"""Knowledge server errors."""

from enum import Enum

from hazmat_common import HazmatKBError


class KnowledgeErrorKind(str, Enum):
    """Why a knowledge server connection failed."""

    TIMEOUT = "timeout"
    CONNECTION_REFUSED = "connection_refused"
    OTHER = "other"


class KnowledgeServerError(HazmatKBError):
    """Connecting to or reading from a knowledge server failed.

    Never fatal for a request: aggregation drops the failing server.

    Attributes:
        kind: Failure classification
        url: Server URL
    """

    category = "knowledge"

    def __init__(self, message: str, kind: KnowledgeErrorKind, url: str):
        self.kind = kind
        self.url = url
        super().__init__(message)
