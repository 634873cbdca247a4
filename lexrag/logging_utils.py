from __future__ import annotations

import contextvars
import json
from contextlib import contextmanager
import logging
import logging.config
import re
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

import yaml
from prometheus_client import Counter, REGISTRY

from .core.config import Settings

_DEFAULT_CONTEXT = "-"
_CONTEXT_VARS: Dict[str, contextvars.ContextVar[str]] = {
    "operation": contextvars.ContextVar("operation", default=_DEFAULT_CONTEXT),
    "document_id": contextvars.ContextVar("document_id", default=_DEFAULT_CONTEXT),
}

_ERROR_COUNTER_NAME = "lexrag_log_errors_total"
LOG_FILE_NAME = "lexrag.log"

REDACTION_PATTERNS: Tuple[re.Pattern[str], ...] = (
    re.compile(r"sk-[a-zA-Z0-9]{10,}", re.IGNORECASE),
    re.compile(r"bearer [a-z0-9\._\-]{10,}", re.IGNORECASE),
    re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}"),
)
REDACTED = "[REDACTED]"


def _error_counter() -> Counter:
    # re-importing the module (e.g. under test reloads) must reuse the collector
    existing = getattr(REGISTRY, "_names_to_collectors", {}).get(_ERROR_COUNTER_NAME)
    if existing is not None:
        return existing  # type: ignore[return-value]
    return Counter(
        _ERROR_COUNTER_NAME,
        "Log records emitted at ERROR level or above",
        ["logger", "level"],
        registry=REGISTRY,
    )


LOG_ERROR_COUNTER = _error_counter()


def _bind(name: str, value: Optional[str]) -> None:
    if value:
        _CONTEXT_VARS[name].set(value)


def bind_operation_context(operation: Optional[str]) -> None:
    """Tag subsequent log records with the running operation, e.g. ``retriever.search``."""
    _bind("operation", operation)


def bind_document_context(document_id: Optional[str]) -> None:
    _bind("document_id", document_id)


@contextmanager
def operation_context(
    operation: Optional[str] = None,
    document_id: Optional[str] = None,
) -> Iterator[None]:
    """Bind context values for the duration of a block, restoring the previous ones on exit."""
    tokens: List[Tuple[contextvars.ContextVar[str], contextvars.Token[str]]] = []
    for name, value in (("operation", operation), ("document_id", document_id)):
        if value:
            var = _CONTEXT_VARS[name]
            tokens.append((var, var.set(value)))
    try:
        yield
    finally:
        for var, token in reversed(tokens):
            var.reset(token)


def clear_context() -> None:
    for var in _CONTEXT_VARS.values():
        var.set(_DEFAULT_CONTEXT)


def current_context() -> Dict[str, str]:
    return {name: var.get() for name, var in _CONTEXT_VARS.items()}


def redact_text(text: str) -> str:
    for pattern in REDACTION_PATTERNS:
        text = pattern.sub(REDACTED, text)
    return text


class ContextFilter(logging.Filter):
    """Copy the bound operation and document id onto every record."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401
        for name, value in current_context().items():
            setattr(record, name, value)
        return True


class PIIRedactingFilter(logging.Filter):
    """Filter that removes emails, API keys and bearer tokens from records.

    Queries and document text end up in debug logs, so the message and
    every string argument are scrubbed before formatting.
    """

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401
        record.msg = self._scrub(record.msg)
        if isinstance(record.args, tuple):
            record.args = tuple(self._scrub(arg) for arg in record.args)
        elif isinstance(record.args, dict):
            record.args = {key: self._scrub(arg) for key, arg in record.args.items()}
        return True

    def _scrub(self, value: Any) -> Any:
        if isinstance(value, str):
            return redact_text(value)
        if isinstance(value, (list, tuple)):
            return type(value)(self._scrub(item) for item in value)
        if isinstance(value, dict):
            return {key: self._scrub(item) for key, item in value.items()}
        return value


class PrometheusErrorHandler(logging.Handler):
    """Count ERROR and CRITICAL records per logger in a Prometheus counter."""

    def emit(self, record: logging.LogRecord) -> None:  # noqa: D401
        if record.levelno < logging.ERROR:
            return
        try:
            LOG_ERROR_COUNTER.labels(logger=record.name, level=record.levelname).inc()
        except Exception:
            self.handleError(record)


class JsonFormatter(logging.Formatter):
    """Render a record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        return serialize_log_record(record)


def load_logging_config(config_path: Path) -> Dict[str, Any]:
    if not config_path.exists():
        raise FileNotFoundError(f"Logging configuration not found at {config_path}")
    with config_path.open("r", encoding="utf-8") as fp:
        return yaml.safe_load(fp)


def setup_logging(settings: Settings) -> None:
    """Configure the ``lexrag`` logger tree from logging.yaml.

    Development (or ``enable_json_logs=False``) logs human-readable lines to
    stderr; other environments log JSON lines to stdout. The rotating file
    handler is only built when ``enable_file_logging`` is set, writing to
    ``log_dir/lexrag.log``.
    """
    config_path = settings.log_config_path or Path(__file__).with_name("logging.yaml")
    config = load_logging_config(config_path)
    handlers: Dict[str, Dict[str, Any]] = config.setdefault("handlers", {})
    level = settings.log_level.upper()

    human_readable = settings.environment.lower() == "development" or not settings.enable_json_logs
    stream = "console" if human_readable else "json"
    lexrag_handlers = [stream, "error_metrics"]
    config.setdefault("root", {})["handlers"] = [stream]

    file_handler = handlers.get("file")
    if settings.enable_file_logging and file_handler is not None:
        settings.log_dir.mkdir(parents=True, exist_ok=True)
        file_handler["filename"] = str(settings.log_dir / LOG_FILE_NAME)
        lexrag_handlers.append("file")
    else:
        # RotatingFileHandler opens its file on construction
        handlers.pop("file", None)

    for name in ("console", "json"):
        if name in handlers:
            handlers[name]["level"] = level

    config.setdefault("loggers", {})["lexrag"] = {
        "handlers": lexrag_handlers,
        "level": level,
        "propagate": False,
    }
    logging.config.dictConfig(config)


def serialize_log_record(record: logging.LogRecord) -> str:
    payload: Dict[str, Any] = {
        "timestamp": record.created,
        "level": record.levelname,
        "logger": record.name,
        "message": record.getMessage(),
        "context": current_context(),
    }
    if record.exc_info:
        payload["exception"] = logging.Formatter().formatException(record.exc_info)
    return json.dumps(payload, ensure_ascii=False)


__all__ = [
    "bind_operation_context",
    "bind_document_context",
    "operation_context",
    "clear_context",
    "current_context",
    "redact_text",
    "ContextFilter",
    "PIIRedactingFilter",
    "PrometheusErrorHandler",
    "JsonFormatter",
    "load_logging_config",
    "setup_logging",
    "serialize_log_record",
]
