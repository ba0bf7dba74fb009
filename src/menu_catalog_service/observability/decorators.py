"""OpenTelemetry tracing decorators."""

import functools
import inspect
from collections.abc import Callable, Sequence
from typing import Any, TypeVar

from opentelemetry import trace
from opentelemetry.trace import Span, StatusCode

F = TypeVar("F", bound=Callable[..., Any])

SERVICE_NAME = "menu-catalog-svc"


def _set_argument_attributes(
    span: Span,
    signature: inspect.Signature,
    arg_names: Sequence[str],
    args: tuple[Any, ...],
    kwargs: dict[str, Any],
) -> None:
    """Copy selected call arguments onto the span as ``catalog.<name>``."""
    if not arg_names:
        return

    bound = signature.bind_partial(*args, **kwargs)
    for name in arg_names:
        value = bound.arguments.get(name)
        if isinstance(value, (str, bool, int, float)):
            span.set_attribute(f"catalog.{name}", value)


def _record_failure(span: Span, error: Exception) -> None:
    span.set_attribute("success", False)
    span.set_attribute("error.type", type(error).__name__)
    span.record_exception(error)
    span.set_status(StatusCode.ERROR, str(error))


def traced(
    span_name: str | None = None,
    service_name: str = SERVICE_NAME,
    record_args: Sequence[str] = (),
) -> Callable[[F], F]:
    """Decorator to add OpenTelemetry tracing to a function.

    Creates a span around each call, marks it failed when the call raises,
    and optionally records scalar arguments as span attributes. Sync and
    async functions are supported.

    Args:
        span_name: Name for the span (defaults to function name if not provided)
        service_name: Service name for the tracer and span attributes
        record_args: Names of arguments to record, e.g. ("menu_id", "mode")

    Returns:
        Decorated function with tracing

    Example:
        @traced("get_menu_detail", record_args=("menu_id",))
        async def get_detail(self, menu_id: int) -> MenuItem:
            ...
    """

    def decorator(func: F) -> F:
        name = span_name or func.__name__
        tracer = trace.get_tracer(service_name)
        signature = inspect.signature(func)

        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                with tracer.start_as_current_span(name, record_exception=False) as span:
                    span.set_attribute("service.name", service_name)
                    _set_argument_attributes(span, signature, record_args, args, kwargs)
                    try:
                        result = await func(*args, **kwargs)
                    except Exception as e:
                        _record_failure(span, e)
                        raise
                    span.set_attribute("success", True)
                    return result

            return async_wrapper  # type: ignore[return-value]

        @functools.wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            with tracer.start_as_current_span(name, record_exception=False) as span:
                span.set_attribute("service.name", service_name)
                _set_argument_attributes(span, signature, record_args, args, kwargs)
                try:
                    result = func(*args, **kwargs)
                except Exception as e:
                    _record_failure(span, e)
                    raise
                span.set_attribute("success", True)
                return result

        return sync_wrapper  # type: ignore[return-value]

    return decorator
