"""Step outcome bookkeeping for multi-stage pipelines."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

SUCCESS_MARK = "[SUCCESS]"
FAILED_MARK = "[FAILED] "


def add_pipeline_step(
    states: Mapping[str, Any],
    name: str,
    state: bool,
    url: str | None = "",
    log_name: str | Path | None = None,
) -> dict[str, Any]:
    """Record the outcome of a pipeline step.

    Args:
        states: Step states recorded so far.
        name: Human readable step name; the map key is the name without spaces.
        state: True if the step succeeded.
        url: URL of the job run behind the step.
        log_name: When set, the states table is written to this file.

    Returns:
        New states map including this step.
    """
    url = (url or "").strip()
    new_states = dict(states)
    new_states[name.replace(" ", "")] = {"name": name, "state": state, "url": url}

    if log_name and str(log_name).strip():
        Path(log_name).write_text(render_states_table(new_states), encoding="utf-8")

    outcome = "SUCCESS" if state else "FAILED"
    logger.log(
        logging.DEBUG if state else logging.ERROR,
        f"{name}: {outcome}, URL: {url}",
    )
    return new_states


def render_states_table(states: Mapping[str, Any]) -> str:
    """Render recorded steps as a fixed-width text table."""
    lines = []
    for value in states.values():
        if isinstance(value, Mapping) and "state" in value:
            mark = SUCCESS_MARK if value["state"] else FAILED_MARK
            lines.append(f"{value.get('name', ''):>16} {mark} {value.get('url', '')}".rstrip())
    return "\n".join(lines) + "\n" if lines else ""


def grep_failed_states(states: Mapping[str, Any], key: str) -> str:
    """Return only the failed lines of the states table stored under key."""
    table = states.get(key)
    logger.debug(f"Grep failed states from:\n{table}")
    if not table:
        return ""
    return "\n".join(line for line in str(table).splitlines() if FAILED_MARK.strip() in line)
