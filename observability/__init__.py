"""Observability infrastructure for logging and tracing.

setup_logging:
    Console + rotating file logging, text or JSON, with session context.

set_session_context / clear_context:
    Propagate the current session id and keyword into every log record.

setup_tracing:
    Initialize Logfire with PydanticAI instrumentation (optional).

trace_operation:
    Context manager for custom span creation.

Enable tracing via configuration:
    ENABLE_LOGFIRE=true
    LOGFIRE_TOKEN=your-token  # Optional

Example:
    >>> from observability import setup_tracing, trace_operation
    >>> setup_tracing(config)
    >>> with trace_operation("job.present_analysis"):
    ...     pass
"""

from observability.logging import setup_logging, set_session_context, clear_context
from observability.tracing import setup_tracing, trace_operation, TracingContext

__all__ = [
    "setup_logging",
    "set_session_context",
    "clear_context",
    "setup_tracing",
    "trace_operation",
    "TracingContext",
]
