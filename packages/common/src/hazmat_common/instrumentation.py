"""OpenTelemetry tracing for pipeline operations.

Each instrumented operation gets one span. A ``HazmatKBError`` escaping the
operation marks the span as failed and tags it with the error category, so
a trace shows whether extraction, context gathering or the model call broke.
"""

import inspect
from functools import wraps
from typing import Any, Callable, Optional

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.trace import Status, StatusCode

from hazmat_common.errors import HazmatKBError

_tracer_provider: Optional[TracerProvider] = None


def init_telemetry(service_name: str = "hazmat-kb", console_export: bool = False) -> None:
    """Install the tracer provider. Later calls are no-ops.

    Spans are exported only with ``console_export``; otherwise they are
    recorded and dropped.

    Example:
        >>> init_telemetry(service_name="hazmat-kb-cli", console_export=True)
    """
    global _tracer_provider

    if _tracer_provider is not None:
        return

    _tracer_provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    if console_export:
        _tracer_provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(_tracer_provider)


def get_tracer(name: str) -> trace.Tracer:
    """Get a tracer, installing the default provider on first use."""
    if _tracer_provider is None:
        init_telemetry()
    return trace.get_tracer(name)


def record_failure(span: trace.Span, error: BaseException) -> None:
    """Mark ``span`` failed, tagging hazmat-kb errors with their category."""
    span.record_exception(error)
    span.set_status(Status(StatusCode.ERROR, str(error)))
    if isinstance(error, HazmatKBError):
        span.set_attribute("hazmat.error.category", error.category)


def instrument_function(span_name: Optional[str] = None) -> Callable:
    """Decorator running a sync or async function inside its own span.

    Args:
        span_name: Span name (default: the function name)

    Example:
        >>> @instrument_function("parse_sds")
        ... async def parse_sds(upload):
        ...     ...
    """

    def decorator(func: Callable) -> Callable:
        name = span_name or func.__name__
        tracer = get_tracer(func.__module__)

        def start_span():
            # Exceptions are recorded by record_failure with their category.
            return tracer.start_as_current_span(
                name, record_exception=False, set_status_on_exception=False
            )

        @wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            with start_span() as span:
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    record_failure(span, e)
                    raise

        @wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            with start_span() as span:
                try:
                    return func(*args, **kwargs)
                except Exception as e:
                    record_failure(span, e)
                    raise

        if inspect.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper

    return decorator
