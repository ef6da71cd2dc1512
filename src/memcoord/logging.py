"""
Structured logging for the memory coordinator.

Every record carries the cache scope it was emitted in (namespace, operation
and entry key, set with log_context()) plus the keyword fields passed at the
call site. Scope and fields are captured when the record is created, so both
the JSON file handler and the rich console handler see the same values.
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Generator, Mapping

from rich.console import Console, ConsoleRenderable
from rich.logging import RichHandler
from rich.text import Text

ROOT_LOGGER = "memcoord"

_scope_var: ContextVar[Mapping[str, str]] = ContextVar("memcoord_log_scope", default={})


def current_context() -> dict[str, str]:
    """Scope fields in effect for the current task."""
    return dict(_scope_var.get())


@contextmanager
def log_context(
    namespace: str | None = None,
    operation: str | None = None,
    key: str | None = None,
) -> Generator[None, None, None]:
    """Attach cache scope to every record logged inside the block.

    Nested blocks inherit the outer scope and override only what they set.
    """
    updates = {
        name: value
        for name, value in (("namespace", namespace), ("operation", operation), ("key", key))
        if value is not None
    }
    token = _scope_var.set({**_scope_var.get(), **updates})
    try:
        yield
    finally:
        _scope_var.reset(token)


class JSONFormatter(logging.Formatter):
    """One JSON object per line: scope at top level, call-site fields under ``fields``."""

    def format(self, record: logging.LogRecord) -> str:
        line: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        line.update(getattr(record, "context", {}))

        fields = getattr(record, "fields", None)
        if fields:
            line["fields"] = fields
        if record.exc_info:
            line["exception"] = self.formatException(record.exc_info)

        return json.dumps(line, default=str)


class ContextRichHandler(RichHandler):
    """Console handler that appends the cache scope and fields to each message."""

    def render_message(self, record: logging.LogRecord, message: str) -> ConsoleRenderable:
        rendered = super().render_message(record, message)
        if not isinstance(rendered, Text):
            return rendered

        context: Mapping[str, str] = getattr(record, "context", {})
        fields: Mapping[str, Any] = getattr(record, "fields", {})

        scope = "/".join(context[name] for name in ("namespace", "operation") if name in context)
        if scope:
            rendered.append(f" [{scope}]", style="cyan")
        if "key" in context:
            rendered.append(f" key={context['key']}", style="magenta")
        for name, value in fields.items():
            rendered.append(f" {name}={value}", style="dim")
        return rendered


class ContextLogger:
    """Logger wrapper taking structured fields as keyword arguments.

    ``logger.info("Stored entry", size=12)`` logs with ``fields={"size": 12}``
    and the current log_context() scope.
    """

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    @property
    def name(self) -> str:
        return self._logger.name

    def _log(self, level: int, msg: str, fields: dict[str, Any]) -> None:
        if self._logger.isEnabledFor(level):
            self._logger.log(
                level, msg, extra={"context": current_context(), "fields": fields}
            )

    def debug(self, msg: str, **fields: Any) -> None:
        self._log(logging.DEBUG, msg, fields)

    def info(self, msg: str, **fields: Any) -> None:
        self._log(logging.INFO, msg, fields)

    def warning(self, msg: str, **fields: Any) -> None:
        self._log(logging.WARNING, msg, fields)


_configured = False


def setup_logging(
    log_level: str = "INFO",
    log_file: Path | None = None,
    console_output: bool = True,
) -> None:
    """Configure the ``memcoord`` logger tree.

    Args:
        log_level: Console and logger level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional JSON-lines file; receives every record at DEBUG and above.
        console_output: Whether to log to stderr through rich.
    """
    global _configured

    level = getattr(logging, log_level.upper())
    root = logging.getLogger(ROOT_LOGGER)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.setLevel(level if not log_file else min(level, logging.DEBUG))
    root.propagate = False

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setFormatter(JSONFormatter())
        root.addHandler(file_handler)

    if console_output:
        console_handler = ContextRichHandler(
            console=Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )
        console_handler.setLevel(level)
        root.addHandler(console_handler)

    _configured = True


def get_logger(name: str) -> ContextLogger:
    """Get a logger under the ``memcoord`` tree, configuring defaults on first use."""
    if not _configured:
        setup_logging()
    if not name.startswith(ROOT_LOGGER):
        name = f"{ROOT_LOGGER}.{name}"
    return ContextLogger(logging.getLogger(name))
