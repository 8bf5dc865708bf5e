"""
Centralized logging configuration.

Usage:
    from feature_rules.utils.log import get_logger
    logger = get_logger(__name__)
    logger.info("Loaded %d rules", len(rules))

Match diagnostics go through `trace_event`, which stays silent unless
DEBUG (verbosity 3) or TRACE (verbosity 4) is enabled.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, Callable, Mapping

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

# trace verbosity -> logging level
_VERBOSITY_LEVELS = {
    3: logging.DEBUG,
    4: TRACE,
}

_configured = False


def verbosity_to_level(verbosity: int, default: int = logging.INFO) -> int:
    """Map a trace verbosity (0-4) to a logging level."""
    if verbosity >= 4:
        return TRACE
    return _VERBOSITY_LEVELS.get(verbosity, default)


def setup_logging(level: str | int = "INFO", log_file: Path | None = None) -> None:
    """Configure logging for the entire application. Call once at startup."""
    global _configured
    if _configured:
        return

    root = logging.getLogger("feature_rules")
    if isinstance(level, str):
        level = TRACE if level.upper() == "TRACE" else getattr(logging, level.upper(), logging.INFO)
    root.setLevel(level)

    fmt = logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Console handler
    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(fmt)
    root.addHandler(console)

    # File handler (optional)
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(log_file), encoding="utf-8")
        fh.setFormatter(fmt)
        root.addHandler(fh)

    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a module. Automatically namespaced under 'feature_rules'."""
    if not name.startswith("feature_rules"):
        name = f"feature_rules.{name}"
    return logging.getLogger(name)


def _format_fields(fields: Mapping[str, Any]) -> str:
    return " ".join(f"{k}={v!r}" for k, v in fields.items())


def trace_event(
    logger: logging.Logger,
    message: str,
    fields: Callable[[], Mapping[str, Any]],
    inputs: Callable[[], Mapping[str, Any]] | None = None,
) -> None:
    """
    Emit a structured match diagnostic.

    Both arguments are thunks. `fields` is only called when DEBUG is
    enabled and `inputs` only when TRACE is, so with tracing off a call
    costs one level check.
    """
    if logger.isEnabledFor(TRACE):
        extra = dict(fields())
        if inputs is not None:
            extra.update(inputs())
        logger.log(TRACE, "%s %s", message, _format_fields(extra))
    elif logger.isEnabledFor(logging.DEBUG):
        logger.debug("%s %s", message, _format_fields(fields()))
