"""Structured logging for fieldcheck.

The library only emits events through structlog; it never configures logging
on import. Applications that want fieldcheck's events rendered call
``configure_logging()``, which reads FIELDCHECK_LOG_LEVEL / FIELDCHECK_LOG_JSON
unless told otherwise:

    configure_logging()                     # colored console, settings level
    configure_logging("DEBUG", json_logs=True)

Field values never reach the log: the engine logs keys only, and the
redaction processor masks ``value``/``fields`` keys in case a caller binds them.
"""
import logging
import sys
from contextlib import contextmanager

import structlog
from structlog.types import EventDict, Processor

from fieldcheck import __version__
from fieldcheck.config import get_settings

REDACTED_KEYS = frozenset({"password", "token", "secret", "authorization", "cookie", "value", "fields"})
_MAX_REDACT_DEPTH = 5


def _censor_sensitive_keys(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Processor that masks sensitive keys, including nested ones."""

    def _redact(obj, depth: int = 0):
        if depth > _MAX_REDACT_DEPTH:
            return obj
        if isinstance(obj, dict):
            return {
                k: "[REDACTED]" if str(k).lower() in REDACTED_KEYS else _redact(v, depth + 1)
                for k, v in obj.items()
            }
        if isinstance(obj, list):
            return [_redact(item, depth + 1) for item in obj]
        return obj

    return _redact(event_dict)


def _add_library_info(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    event_dict.setdefault("service", "fieldcheck")
    event_dict.setdefault("version", __version__)
    return event_dict


def get_shared_processors() -> list[Processor]:
    """Processors run for both structlog and foreign stdlib records."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        _add_library_info,
        _censor_sensitive_keys,
    ]


def _renderer(json_logs: bool) -> Processor:
    if json_logs:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=True, exception_formatter=structlog.dev.plain_traceback)


def configure_logging(level: str | None = None, json_logs: bool | None = None) -> None:
    """Route structlog through stdlib logging with one stdout handler.

    Args:
        level: Log level name; defaults to FIELDCHECK_LOG_LEVEL.
        json_logs: JSON output instead of colored console output;
            defaults to FIELDCHECK_LOG_JSON.
    """
    settings = get_settings()
    level = level or settings.LOG_LEVEL
    json_logs = settings.LOG_JSON if json_logs is None else json_logs

    shared = get_shared_processors()
    structlog.configure(
        processors=[
            *shared,
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, _renderer(json_logs)],
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(getattr(logging, level.upper(), logging.INFO))


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_context(**kwargs) -> None:
    """Attach key/value pairs to every event logged from this context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


@contextmanager
def validation_context(**kwargs):
    """Bind ``kwargs`` (e.g. a form id) for the duration of a ``with`` block.

    Usage:
        with validation_context(form="signup"):
            errors = validate_signup(fields)
    """
    tokens = structlog.contextvars.bind_contextvars(**kwargs)
    try:
        yield
    finally:
        structlog.contextvars.reset_contextvars(**tokens)


class LoggerRegistry:
    """One logger per library domain, named ``fieldcheck.<domain>``."""

    _loggers: dict[str, structlog.stdlib.BoundLogger] = {}

    @classmethod
    def get(cls, name: str) -> structlog.stdlib.BoundLogger:
        if name not in cls._loggers:
            cls._loggers[name] = get_logger(f"fieldcheck.{name}")
        return cls._loggers[name]


def engine_logger() -> structlog.stdlib.BoundLogger:
    """Constraint evaluation events."""
    return LoggerRegistry.get("engine")


def rules_logger() -> structlog.stdlib.BoundLogger:
    """Rule library and guard events."""
    return LoggerRegistry.get("rules")
