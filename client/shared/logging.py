"""Logging setup for the table client.

structlog renders through stdlib handlers, so the transport libraries
(httpx, websockets) share one output with the client's own lines. While a
player is seated, every line carries room_id and player_id from contextvars.

Environment variables:
- LOG_FORMAT: "json" for one JSON object per line, "console" or unset for
  human-readable output.
- LOG_LEVEL: "DEBUG", "INFO" (default), "WARNING", "ERROR", or "CRITICAL".
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from collections.abc import MutableMapping
    from typing import Any

LOG_FILE_PREFIX = "client_"
LOG_FILE_TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"
MAX_VALUE_LENGTH = 512

SESSION_CONTEXT_KEYS = ("room_id", "player_id")

_LOG_FORMATS = ("CONSOLE", "JSON")
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# request and frame chatter
_TRANSPORT_LOGGERS = ("httpx", "httpcore", "websockets")


def _plain(value: Any) -> Any:  # noqa: ANN401
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, str) and len(value) > MAX_VALUE_LENGTH:
        return f"{value[:MAX_VALUE_LENGTH]}... ({len(value)} chars)"
    return value


def _plain_values(
    _logger: object,
    _method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Render enums (phases, states) as values and cut oversized strings such as frame bodies."""
    for key, value in event_dict.items():
        if key == "event":
            continue
        if isinstance(value, dict):
            event_dict[key] = {k: _plain(v) for k, v in value.items()}
        else:
            event_dict[key] = _plain(value)
    return event_dict


def _is_test() -> bool:
    return "pytest" in sys.modules


def _env_choice(name: str, default: str, choices: tuple[str, ...]) -> str:
    value = os.environ.get(name, "").strip().upper() or default
    if value not in choices:
        msg = f"Invalid {name}={value!r}. Must be one of {', '.join(choices)}."
        raise ValueError(msg)
    return value


def configure_structlog() -> None:
    """Route structlog through stdlib logging with the client's processor chain.

    Handlers are left alone; setup_logging installs them, and the test suite
    calls this directly so pytest's caplog sees every line.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            _plain_values,
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


def _formatter(*, json_mode: bool, colors: bool) -> logging.Formatter:
    if json_mode:
        renderer = structlog.processors.JSONRenderer(ensure_ascii=False)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=colors)
    return structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            renderer,
        ],
    )


def bind_session_context(*, room_id: str, player_id: str) -> None:
    structlog.contextvars.bind_contextvars(room_id=room_id, player_id=player_id)


def clear_session_context() -> None:
    structlog.contextvars.unbind_contextvars(*SESSION_CONTEXT_KEYS)


def setup_logging(
    log_dir: Path | str | None = None,
    level: int | None = None,
) -> Path | None:
    """Install stdout (and optionally file) handlers for the client process.

    With log_dir, lines are also written to client_<start time>.log inside
    it and that path is returned. No file is created under pytest.
    """
    json_mode = _env_choice("LOG_FORMAT", "CONSOLE", _LOG_FORMATS) == "JSON"
    if level is None:
        level = getattr(logging, _env_choice("LOG_LEVEL", "INFO", _LOG_LEVELS))

    configure_structlog()

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    for name in _TRANSPORT_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(_formatter(json_mode=json_mode, colors=sys.stdout.isatty()))
    root_logger.addHandler(console)

    if log_dir is None or _is_test():
        return None

    directory = Path(log_dir)
    directory.mkdir(parents=True, exist_ok=True)
    started = datetime.now(tz=UTC).strftime(LOG_FILE_TIMESTAMP_FORMAT)
    file_path = directory / f"{LOG_FILE_PREFIX}{started}.log"
    file_handler = logging.FileHandler(file_path, encoding="utf-8")
    file_handler.setFormatter(_formatter(json_mode=json_mode, colors=False))
    root_logger.addHandler(file_handler)
    return file_path
