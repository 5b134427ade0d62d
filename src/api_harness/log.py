"""
Logging setup and the emoji-tagged helpers used by steps and hooks.

Everything logs through :mod:`loguru`. Components take a logger bound to their
module name with :func:`get_logger` and attach structured metadata with
``log.bind(...)`` so that message text is never re-formatted.
"""

import json
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

from loguru import logger

if TYPE_CHECKING:
    from loguru import Logger, Record

    from api_harness.config import HarnessConfig

StepStatus = Literal["start", "pass", "fail", "skip"]

STEP_EMOJIS: dict[StepStatus, str] = {
    "start": "🔄",
    "pass": "✅",
    "fail": "❌",
    "skip": "⏭️",
}

_CONSOLE_FORMAT = (
    "<green>{{time:HH:mm:ss}}</green> [{{extra[module]}}] "
    "<level>{{level}}</level>: {{message}}{meta}\n{{exception}}"
)

logger.configure(extra={"module": "App"})


def _escape(text: str) -> str:
    return text.replace("{", "{{").replace("}", "}}").replace("<", r"\<")


def _console_format(record: "Record") -> str:
    # Bound values other than the module name are appended as one JSON object.
    meta = {key: value for key, value in record["extra"].items() if key != "module"}
    suffix = f" {json.dumps(meta, default=str)}" if meta else ""
    return _CONSOLE_FORMAT.format(meta=_escape(suffix))


def configure_logging(config: "HarnessConfig") -> None:
    """
    Replace loguru's default sink with the harness sinks.

    A coloured console sink is always installed at ``config.log_level``; when
    ``config.log_to_file`` is set, every record is also written as JSON to
    ``config.log_file_path``.
    """
    logger.remove()
    logger.add(sys.stderr, level=config.log_level, format=_console_format)

    if config.log_to_file:
        Path(config.log_file_path).parent.mkdir(parents=True, exist_ok=True)
        logger.add(config.log_file_path, level=config.log_level, serialize=True)


def get_logger(module: str) -> "Logger":
    return logger.bind(module=module)


def log_step(log: "Logger", text: str, status: StepStatus = "start") -> None:
    """Log a step transition, prefixed with the emoji for its status."""
    message = f"{STEP_EMOJIS[status]} {text}"
    if status == "fail":
        log.error(message)
    elif status == "skip":
        log.warning(message)
    else:
        log.info(message)


def log_assertion(
    log: "Logger", description: str, passed: bool, expected: Any, actual: Any
) -> None:
    """Log the outcome of a single assertion with its expected and actual values."""
    bound = log.bind(expected=expected, actual=actual)
    if passed:
        bound.info(f"✅ PASS: {description}")
    else:
        bound.error(f"❌ FAIL: {description}")
