"""Structured logging configuration using structlog.

Log lines go to stderr so that command output on stdout stays parseable.
Events from one validation request share its ``request_id`` through
structlog's context variables (see ``request_context``), and credential
fields are masked before rendering.
"""

import logging
import sys
from contextlib import contextmanager
from typing import Any, Iterator

import structlog

# Event keys whose values are credentials
SECRET_FIELDS = frozenset({"api_key", "google_api_key", "authorization"})


def redact_secrets(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Processor that keeps only the last four characters of credentials."""
    for field in SECRET_FIELDS.intersection(event_dict):
        value = event_dict[field]
        if value:
            event_dict[field] = f"***{str(value)[-4:]}"
    return event_dict


def configure_logging(level: str = "INFO", json_output: bool = False) -> None:
    """Configure structured logging for the application.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: Render one JSON object per line instead of the
            coloured console format

    Example:
        >>> configure_logging(level="DEBUG")
        >>> get_logger(__name__).info("extraction_started", file_name="sds.pdf")
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper()),
        force=True,
    )

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        redact_secrets,
    ]

    if json_output:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        # ConsoleRenderer formats exceptions itself
        processors += [
            structlog.dev.set_exc_info,
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


@contextmanager
def request_context(request_id: str, kind: str) -> Iterator[None]:
    """Tag every event logged inside the block with the request it serves.

    Tasks created inside the block inherit the tags.
    """
    with structlog.contextvars.bound_contextvars(request_id=request_id, request_kind=kind):
        yield


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger (``name`` is typically the module's __name__)."""
    return structlog.get_logger(name)
