"""
Structured logging with JSON formatting and decision-cycle correlation.

Provides:
- JSON-formatted logs for easy parsing
- Correlation / event ids attached to every line emitted inside a cycle
- Context propagation through contextvars

Library modules only call ``logging.getLogger(__name__)``; handlers are
installed by the command-line runner through ``init_structured_logger``.
"""

import logging
import json
import sys
import traceback
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Optional, Dict, Any, List


# Context variables for cycle correlation
_correlation_id: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)
_event_id: ContextVar[Optional[str]] = ContextVar('event_id', default=None)


class JSONFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def __init__(self, service_name: str, environment: str = "development"):
        """Initialize JSON formatter.

        Args:
            service_name: Name of the service emitting the logs
            environment: Environment name (development, staging, production)
        """
        super().__init__()
        self.service_name = service_name
        self.environment = environment

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as a single JSON line."""
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "service": self.service_name,
            "environment": self.environment,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        correlation_id = _correlation_id.get()
        if correlation_id:
            log_data["correlation_id"] = correlation_id

        event_id = _event_id.get()
        if event_id:
            log_data["event_id"] = event_id

        if hasattr(record, 'extra_fields'):
            log_data.update(record.extra_fields)

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": traceback.format_exception(*record.exc_info)
            }

        return json.dumps(log_data, default=str)


class StructuredLogger:
    """Structured logger; keyword arguments become JSON fields."""

    def __init__(
        self,
        name: str,
        service_name: str,
        environment: str = "development",
        level: int = logging.INFO,
        json_output: bool = True,
        stream=None,
    ):
        """Initialize structured logger.

        Args:
            name: Logger name (its children inherit the handler)
            service_name: Service name written on every line
            environment: Environment (development, staging, production)
            level: Log level (default: INFO)
            json_output: Whether to use JSON formatting (default: True)
            stream: Output stream (default: stderr, keeping stdout for results)
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(level)
        self.service_name = service_name
        self.environment = environment

        # Remove existing handlers to avoid duplicates
        self.logger.handlers.clear()

        handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
        handler.setLevel(level)

        if json_output:
            formatter = JSONFormatter(service_name, environment)
        else:
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )

        handler.setFormatter(formatter)
        self.logger.addHandler(handler)
        self.logger.propagate = False

    def _extra(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        return {'extra_fields': dict(fields)}

    def debug(self, msg: str, **kwargs):
        self.logger.debug(msg, extra=self._extra(kwargs))

    def info(self, msg: str, **kwargs):
        self.logger.info(msg, extra=self._extra(kwargs))

    def warning(self, msg: str, **kwargs):
        self.logger.warning(msg, extra=self._extra(kwargs))

    def error(self, msg: str, exc_info: bool = False, **kwargs):
        self.logger.error(msg, extra=self._extra(kwargs), exc_info=exc_info)

    def exception(self, msg: str, **kwargs):
        """Log an error with the active exception's traceback."""
        self.logger.exception(msg, extra=self._extra(kwargs))


class TraceContext:
    """Binds a cycle's correlation id (and optionally an event id) to the current context.

    Ids are never generated here; they come from the caller like every
    other identifier in the system.
    """

    def __init__(self, correlation_id: str, event_id: Optional[str] = None):
        self.correlation_id = correlation_id
        self.event_id = event_id
        self._tokens: List[Any] = []

    def __enter__(self):
        self._tokens.append(_correlation_id.set(self.correlation_id))
        self._tokens.append(_event_id.set(self.event_id))
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        for token in reversed(self._tokens):
            token.var.reset(token)
        self._tokens.clear()
        return False


def get_correlation_id() -> Optional[str]:
    """Correlation id bound to the current context, if any."""
    return _correlation_id.get()


def get_event_id() -> Optional[str]:
    """Event id bound to the current context, if any."""
    return _event_id.get()


def init_structured_logger(
    service_name: str,
    environment: str = "development",
    level: int = logging.INFO,
    json_output: bool = True,
    logger_names: Optional[List[str]] = None,
    stream=None,
) -> StructuredLogger:
    """Initialize and return a structured logger.

    Every call installs a fresh handler with the given settings, replacing
    the one a previous call left on the same service logger.
    ``logger_names`` lists package loggers (e.g. ``decision_plane``) that
    should write through the same handler as the service logger.
    """
    service_logger = StructuredLogger(
        name=service_name,
        service_name=service_name,
        environment=environment,
        level=level,
        json_output=json_output,
        stream=stream,
    )

    for name in logger_names or []:
        pkg_logger = logging.getLogger(name)
        pkg_logger.handlers.clear()
        for handler in service_logger.logger.handlers:
            pkg_logger.addHandler(handler)
        pkg_logger.setLevel(level)
        pkg_logger.propagate = False

    return service_logger
