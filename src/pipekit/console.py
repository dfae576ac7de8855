"""Console output for pipeline logs.

Messages are written as ``<job name> | <LEVEL> | <text>`` with the level
coloured for xterm-compatible build consoles.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

from pipekit.env import PipelineEnv

LOGGER_NAME = "pipekit"

# Event numbers used by pipeline scripts, lowest severity first
EVENT_LEVELS = {
    0: logging.DEBUG,
    1: logging.INFO,
    2: logging.WARNING,
    3: logging.ERROR,
}

LEVEL_COLORS = {
    logging.DEBUG: "\033[0;34m",
    logging.INFO: "\033[0;32m",
    logging.WARNING: "\033[0;33m",
    logging.ERROR: "\033[0;31m",
    logging.CRITICAL: "\033[0;31m",
}
RESET = "\033[0m"


class JobFormatter(logging.Formatter):
    """Prefix every record with the job name and a coloured level name."""

    def __init__(self, job_name: str = "", *, color: bool = True) -> None:
        super().__init__("%(message)s")
        self.job_name = job_name
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        level = record.levelname
        if self.color:
            level = f"{LEVEL_COLORS.get(record.levelno, '')}{level}{RESET}"
        return f"{self.job_name} | {level} | {super().format(record)}"


def configure_logging(
    env: PipelineEnv,
    *,
    stream: TextIO | None = None,
    color: bool = True,
) -> logging.Logger:
    """Attach a JobFormatter handler to the pipekit logger.

    Debug records are only emitted when DEBUG_MODE is enabled for the job.
    Calling this again replaces the previously installed handler.

    Args:
        env: Parsed job environment.
        stream: Output stream (defaults to stdout, where build consoles read).
        color: Emit ANSI colour codes.

    Returns:
        The configured pipekit logger.
    """
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if getattr(handler, "_pipekit", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JobFormatter(env.job_name, color=color))
    handler._pipekit = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if env.debug_mode else logging.INFO)
    return logger


def out_msg(event: int, text: str, *, logger: logging.Logger | None = None) -> None:
    """Log text with a numeric event type (0 debug, 1 info, 2 warning, 3 error)."""
    if event not in EVENT_LEVELS:
        raise ValueError(f"Unknown event type {event}, expected one of {sorted(EVENT_LEVELS)}")
    (logger or logging.getLogger(LOGGER_NAME)).log(EVENT_LEVELS[event], text)
