"""Spans around the bulk operations (OpenTelemetry API only).

With no SDK configured the global tracer is a no-op, so spans cost nothing
unless the embedding application installs a tracer provider.
"""

import inspect
from collections.abc import Callable
from functools import wraps
from typing import Any

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

_tracer = trace.get_tracer("firestore_explorer")

# Arguments recorded on spans. Field data and credentials never are.
_RECORDED_ARGS = frozenset({"collection_path", "root_scope", "path", "document_id"})


def _record_arguments(
    span: trace.Span, signature: inspect.Signature, args: tuple, kwargs: dict
) -> None:
    try:
        bound = signature.bind(*args, **kwargs)
    except TypeError:
        return
    for name, value in bound.arguments.items():
        if name in _RECORDED_ARGS and value is not None:
            span.set_attribute(f"firestore.{name}", str(value))


def _record_failure(span: trace.Span, error: BaseException) -> None:
    span.set_status(Status(StatusCode.ERROR, str(error)))
    span.record_exception(error)


def _record_outcome(span: trace.Span, result: Any) -> None:
    """Bulk operations report fatal errors on their result instead of raising."""
    if getattr(result, "cancelled", False):
        span.set_attribute("firestore.cancelled", True)
    error = getattr(result, "error", None)
    if isinstance(error, BaseException):
        _record_failure(span, error)
    else:
        span.set_status(Status(StatusCode.OK))


def traced(
    operation_name: str | None = None,
    attributes: dict | None = None,
) -> Callable:
    """Decorator to run a function (sync or async) inside a span.

    Args:
        operation_name: Span name (defaults to module.funcname).
        attributes: Optional static attributes set on every span.

    Returns:
        Decorated function.
    """

    def decorator(func: Callable) -> Callable:
        span_name = operation_name or f"{func.__module__}.{func.__name__}"
        signature = inspect.signature(func)

        def start_span() -> Any:
            return _tracer.start_as_current_span(
                span_name,
                attributes=attributes,
                record_exception=False,
                set_status_on_exception=False,
            )

        @wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            with start_span() as span:
                _record_arguments(span, signature, args, kwargs)
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    _record_failure(span, e)
                    raise
                _record_outcome(span, result)
                return result

        @wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            with start_span() as span:
                _record_arguments(span, signature, args, kwargs)
                try:
                    result = func(*args, **kwargs)
                except Exception as e:
                    _record_failure(span, e)
                    raise
                _record_outcome(span, result)
                return result

        if inspect.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper

    return decorator


def add_span_attributes(**attributes: str | int | float | bool) -> None:
    """Add attributes to the current span."""
    span = trace.get_current_span()
    if span and span.is_recording():
        for key, value in attributes.items():
            span.set_attribute(key, value)
