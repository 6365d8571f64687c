"""Optional Logfire tracing for keyword sessions.

When enabled, Logfire instruments PydanticAI so every gateway call shows up
nested under the span of the job that triggered it. The controller wraps
each dispatched Command in trace_operation(); with tracing disabled that is
a no-op that only times the job.

Requirements:
    pip install logfire

Enable via configuration:
    ENABLE_LOGFIRE=true
    LOGFIRE_TOKEN=your-token  # Optional for cloud dashboard

Usage:
    >>> setup_tracing(config)
    >>> with trace_operation("job.past_search", {"keyword": "AI"}) as attrs:
    ...     attrs["items"] = 6
"""

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Iterator

from observability.logging import set_trace_context

logger = logging.getLogger(__name__)

SERVICE_NAME = "timepoem"


@dataclass
class TracingContext:
    """Process-wide tracing switch."""

    enabled: bool = False
    service_name: str = SERVICE_NAME
    _logfire_configured: bool = field(default=False, init=False)

    @property
    def active(self) -> bool:
        return self.enabled and self._logfire_configured


_context = TracingContext()


def setup_tracing(config: Any) -> TracingContext:
    """Configure Logfire from application config.

    Args:
        config: Config with enable_logfire and logfire_token

    Returns:
        The process TracingContext (disabled if Logfire is unavailable)
    """
    _context.enabled = bool(config.enable_logfire)
    if not _context.enabled:
        logger.debug("Tracing disabled")
        return _context

    try:
        import logfire

        logfire.configure(service_name=_context.service_name, token=config.logfire_token or None)
        logfire.instrument_pydantic_ai()
        _context._logfire_configured = True
        logger.info("Logfire tracing enabled | service=%s", _context.service_name)
    except ImportError:
        logger.warning("Logfire not installed, tracing disabled (pip install logfire)")
        _context.enabled = False
    except Exception as e:
        logger.error("Failed to configure Logfire | error=%s type=%s", e, type(e).__name__)
        _context.enabled = False

    return _context


@contextmanager
def trace_operation(name: str, attributes: dict[str, Any] | None = None) -> Iterator[dict[str, Any]]:
    """Wrap an operation in a span.

    The yielded dict collects attributes discovered while the operation
    runs; they are attached to the span when it closes.

    Args:
        name: Span name, e.g. "job.present_analysis"
        attributes: Attributes known up front
    """
    result_attrs: dict[str, Any] = {}
    started = time.perf_counter()

    try:
        if not _context.active:
            yield result_attrs
            return

        import logfire
        from opentelemetry import trace

        with logfire.span(name, **(attributes or {})) as span:
            trace_id = trace.get_current_span().get_span_context().trace_id
            if trace_id:
                set_trace_context(format(trace_id, "032x"))
            try:
                yield result_attrs
            finally:
                for key, value in result_attrs.items():
                    span.set_attribute(key, value)
    finally:
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.debug("Span closed | name=%s duration_ms=%.0f attrs=%s", name, elapsed_ms, result_attrs or "-")
