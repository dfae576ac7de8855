"""Input/output handling utilities."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from pipekit.errors import ConfigError
from pipekit.mapping import yaml_to_map


def read_config(source: str) -> dict[str, Any]:
    """Read a config map from a YAML/JSON file path or an inline string.

    Args:
        source: Either a path to a YAML or JSON file, or inline YAML/JSON.

    Returns:
        The parsed map (a single-item list wrapper is removed).

    Raises:
        ConfigError: If the input cannot be parsed into a map.
    """
    source_path = Path(source)
    try:
        if source_path.is_file():
            with open(source_path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        else:
            data = yaml.safe_load(source)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML/JSON input: {e}") from e

    return yaml_to_map(data)


def write_output(dest: str | Path, obj: Any) -> None:
    """Write output to a JSON file.

    Args:
        dest: Path to write the JSON output.
        obj: The data to serialize as JSON.
    """
    dest_path = Path(dest)

    # Ensure parent directory exists
    dest_path.parent.mkdir(parents=True, exist_ok=True)

    with open(dest_path, "w", encoding="utf-8") as f:
        json.dump(obj, f, indent=2, default=str, ensure_ascii=False)
        f.write("\n")  # Trailing newline for POSIX compliance
