"""Configuration map helpers.

Pipeline configs usually arrive as YAML or JSON maps, sometimes nested one
level deep. These helpers flatten, rename and retype them before they are
turned into job parameters or message templates.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterable, Mapping
from typing import Any

from pipekit.errors import ConfigError

logger = logging.getLogger(__name__)

_DIGITS_RE = re.compile(r"\d+")


def flatten_nested_map(source: Mapping[str, Any]) -> dict[str, Any]:
    """Flatten one level of nesting, joining keys with an underscore.

    Example:
        >>> flatten_nested_map({"db": {"host": "h", "port": 1}, "name": "x"})
        {'db_host': 'h', 'db_port': 1, 'name': 'x'}
    """
    result: dict[str, Any] = {}
    for key, value in source.items():
        if isinstance(value, Mapping):
            for inner_key, inner_value in value.items():
                result[f"{key}_{inner_key}"] = inner_value
        else:
            result[key] = value
    logger.debug(f"Flatten nested map results:\n{result}")
    return result


def regex_map_key_names(source: Mapping[str, Any], regex: str) -> dict[str, Any]:
    """Return a copy of source with every regex match removed from its keys."""
    pattern = re.compile(regex)
    return {pattern.sub("", str(key)): value for key, value in source.items()}


def fix_map_values_data_typing(source: Mapping[str, Any]) -> dict[str, Any]:
    """Convert 'true'/'false' strings to bool and digit-only strings to int."""
    result: dict[str, Any] = {}
    for key, value in source.items():
        if isinstance(value, str) and value in ("true", "false"):
            result[key] = value == "true"
        elif isinstance(value, str) and _DIGITS_RE.fullmatch(value):
            result[key] = int(value)
        else:
            result[key] = value
    return result


def make_list_of_enabled_options(
    options: Mapping[str, Mapping[str, Any]],
    template: str = "%s - %s",
) -> tuple[list[str], list[str]]:
    """Split an options status map into enabled names and their descriptions.

    Args:
        options: Map like ``{"opt": {"state": True, "description": "text"}}``.
        template: printf-style template taking the name then the description.

    Returns:
        Tuple of (enabled option names, formatted descriptions). Options without
        a description are listed by name only.
    """
    names: list[str] = []
    descriptions: list[str] = []
    for name, status in options.items():
        if status.get("state"):
            names.append(name)
            if status.get("description"):
                descriptions.append(template % (name, status["description"]))
    return names, descriptions


def parse_json(text: str) -> dict[str, Any]:
    """Parse a JSON object into a plain dict.

    Raises:
        ConfigError: If the text is not JSON or not a JSON object.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a JSON object, got {type(data).__name__}")
    return dict(data)


def yaml_to_map(data: Any) -> dict[str, Any]:
    """Normalize parsed YAML into a map.

    Ansible-style YAML files are often a single-item list wrapping the
    actual map; that wrapper is removed.

    Raises:
        ConfigError: If data is neither a map nor a single-map list.
    """
    if isinstance(data, Mapping):
        return dict(data)
    if isinstance(data, list) and len(data) == 1 and isinstance(data[0], Mapping):
        return dict(data[0])
    raise ConfigError(
        "Expected a map or a single-item list holding a map",
        value=data,
    )


def readable_map(content: Mapping[str, Any]) -> str:
    """Pretty-print a map as indented JSON."""
    return json.dumps(content, indent=4, default=str, ensure_ascii=False)


def env_vars_to_map(env: Mapping[str, str]) -> dict[str, str]:
    """Copy an environment mapping into a plain, serializable dict."""
    return {str(name): str(value) for name, value in env.items()}


def apply_replace_regex_items(
    text: str,
    regex_items: Iterable[str],
    replace_items: Iterable[str] = (),
) -> str:
    """Apply a series of regex replacements to text.

    Each regex is replaced with the item at the same position in
    replace_items; missing or empty positions replace with ''.
    """
    replacements = list(replace_items)
    for index, regex in enumerate(regex_items):
        replacement = replacements[index] if index < len(replacements) else ""
        text = re.sub(regex, lambda _m, r=replacement or "": r, text)
    return text
