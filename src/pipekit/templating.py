"""Variable substitution for message and parameter templates.

Templates reference values as ``$name`` or ``${name}`` where ``name`` is made
of letters, digits and underscores. Values come from a binding map, usually
collected from files produced by earlier pipeline steps.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any

from pipekit.mapping import flatten_nested_map

logger = logging.getLogger(__name__)

_PLACEHOLDER_RE = re.compile(r"\$\{([0-9A-Za-z_]+)\}|\$([0-9A-Za-z_]+)")


def find_variables(text: str) -> list[str]:
    """Return variable names mentioned in text, in order of appearance.

    Both ``$name`` and ``${name}`` forms are recognised.

    Example:
        >>> find_variables("build $version on ${host}, $version")
        ['version', 'host', 'version']
    """
    return [braced or bare for braced, bare in _PLACEHOLDER_RE.findall(text)]


def render(text: str, binding: Mapping[str, Any]) -> str:
    """Substitute placeholders in text with values from binding.

    Placeholders with no entry in binding are left untouched.
    """

    def _substitute(match: re.Match[str]) -> str:
        name = match.group(1) or match.group(2)
        if name in binding:
            return str(binding[name])
        return match.group(0)

    return _PLACEHOLDER_RE.sub(_substitute, text)


def resolve_binding(
    names: list[str],
    values: Mapping[str, Any],
    no_data: str | None = None,
) -> tuple[dict[str, Any], list[str]]:
    """Resolve every variable name against values.

    A name is found when values holds a truthy value for it. Otherwise it is
    bound to no_data, or to its own ``$name`` placeholder when no_data is None.

    Returns:
        Tuple of (binding, report lines describing each decision).
    """
    binding: dict[str, Any] = {}
    report: list[str] = []
    for name in dict.fromkeys(names):
        value = values.get(name)
        if value:
            report.append(f"found: '{name}':\n{value}")
            binding[name] = value
        elif no_data is not None:
            report.append(f"'{name}' not found, replaced with: '{no_data}'")
            binding[name] = no_data
        else:
            report.append(f"'{name}' not found, leaving this unchanged: '${name}'")
            binding[name] = f"${name}"
    return binding, report


def replace_variables_in_map(
    params: Mapping[str, Any],
    binding_values: Mapping[str, Any],
    no_data: str | None = None,
) -> dict[str, str]:
    """Flatten params and render every value against binding_values.

    Args:
        params: Template map, nested at most one level deep. Values are
            stringified before rendering.
        binding_values: Values for ``$variables`` (e.g. read from artifacts).
        no_data: Replacement for variables without a value. When None the
            placeholder is kept as-is.

    Returns:
        New flattened map with every value rendered.
    """
    message_map = flatten_nested_map(params)

    names: list[str] = []
    for value in message_map.values():
        names.extend(find_variables(str(value)))

    binding, report = resolve_binding(names, binding_values, no_data)
    logger.debug("Binding log:\n" + "\n".join(report))

    templated = {key: render(str(value), binding) for key, value in message_map.items()}
    logger.debug(
        "Templated:\n" + "\n".join(f"'{key}': {value}" for key, value in templated.items())
    )
    return templated
