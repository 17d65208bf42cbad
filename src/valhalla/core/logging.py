"""structlog setup for the session and the CLI.

Modules log with ``structlog.get_logger()`` and snake_case event names.
``configure_logging`` routes those events through stdlib handlers, one per
configured output, so the same event can go to a console and a JSON file
with different levels.

Every completion request runs inside ``request_context()``; its id is bound
as a structlog context variable and shows up on each event logged while the
request is served.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING
from uuid import uuid4

import structlog

if TYPE_CHECKING:
    from valhalla.config.models import LoggingConfig, LogOutputConfig

_REQUEST_KEY = "request_id"


def get_request_id() -> str | None:
    return structlog.contextvars.get_contextvars().get(_REQUEST_KEY)


def set_request_id(request_id: str | None = None) -> str:
    """Bind a correlation id (generated when omitted) to the current context."""
    rid = request_id or uuid4().hex[:12]
    structlog.contextvars.bind_contextvars(**{_REQUEST_KEY: rid})
    return rid


def clear_request_id() -> None:
    structlog.contextvars.unbind_contextvars(_REQUEST_KEY)


@contextmanager
def request_context(request_id: str | None = None) -> Iterator[str]:
    """Bind a correlation id for the duration of one completion request."""
    rid = set_request_id(request_id)
    try:
        yield rid
    finally:
        clear_request_id()


def _level(name: str | None, default: int = logging.INFO) -> int:
    if not name:
        return default
    value = logging.getLevelName(name.upper())
    return value if isinstance(value, int) else default


_SHARED_PROCESSORS: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.processors.add_log_level,
    structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", key="timestamp"),
]


def configure_logging(
    *,
    config: LoggingConfig | None = None,
    json_format: bool = False,
    level: str = "INFO",
) -> None:
    """Install handlers for ``config.outputs``.

    Without a config a single stderr output is used, rendered as JSON when
    ``json_format`` is set. A config always wins over ``level``.
    """
    from valhalla.config.models import LoggingConfig, LogOutputConfig

    if config is None:
        config = LoggingConfig(
            level=level,
            outputs=[LogOutputConfig(format="json" if json_format else "console")],
        )
    root_level = _level(config.level)

    structlog.configure(
        processors=[
            *_SHARED_PROCESSORS,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(root_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Reconfiguration (tests, -v) must take effect on existing loggers.
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.setLevel(root_level)

    for output in config.outputs:
        handler = _handler_for(output.destination)
        handler.setLevel(_level(output.level, root_level))
        handler.setFormatter(_formatter_for(output))
        root.addHandler(handler)


def _handler_for(destination: str) -> logging.Handler:
    if destination == "stderr":
        return logging.StreamHandler(sys.stderr)
    if destination == "stdout":
        return logging.StreamHandler(sys.stdout)
    path = Path(destination)
    path.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(path, mode="a", encoding="utf-8")


def _formatter_for(output: LogOutputConfig) -> logging.Formatter:
    renderer: structlog.types.Processor
    if output.format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        stream = sys.stdout if output.destination == "stdout" else sys.stderr
        colors = output.destination in ("stderr", "stdout") and stream.isatty()
        renderer = structlog.dev.ConsoleRenderer(colors=colors, pad_event_to=0, pad_level=False)
    return structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=_SHARED_PROCESSORS,
    )
