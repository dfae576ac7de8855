"""Workspace file helpers.

Steps pass values to each other through small text files in the workspace:
one value per file, often grouped into per-component directories. These
helpers read them back into binding maps, save maps as properties files and
unpack uploaded archives.
"""

from __future__ import annotations

import logging
import os
import re
import shutil
import tarfile
import zipfile
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pipekit.errors import FileParameterError, readable_error
from pipekit.mapping import readable_map

logger = logging.getLogger(__name__)

_KEY_CHARS_RE = re.compile(r"[.-]")


def read_files_to_map(
    path: str | Path,
    prefix: str = "",
    postfix: str = "",
) -> dict[str, str]:
    """Read every regular file of a directory into a map.

    Keys are built as prefix + file name without its last extension, with
    '.' and '-' replaced by '_', + postfix. Values are the stripped contents.

    Example:
        app-version.txt holding "1.2\\n" read with prefix "build_" gives
        {"build_app_version": "1.2"}

    Returns:
        Map of file contents, empty when the directory cannot be read.
        Files that cannot be read as UTF-8 text are logged and skipped.
    """
    results: dict[str, str] = {}
    directory = Path(path)
    try:
        file_paths = sorted(p for p in directory.iterdir() if p.is_file())
    except OSError as e:
        logger.error(f"Unable to read files to map from '{path}':\n{readable_error(e)}")
        return results

    for file_path in file_paths:
        key = f"{prefix}{_KEY_CHARS_RE.sub('_', _strip_extension(file_path.name))}{postfix}"
        try:
            results[key] = file_path.read_text(encoding="utf-8").strip()
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Unable to read '{file_path}' to map, skipping:\n{readable_error(e)}")
    return results


def read_subdirectories_to_map(
    path: str | Path,
    prefix: str = "",
    postfix: str = "",
    exclude_regex: str | None = None,
) -> dict[str, str]:
    """Read files of every subdirectory into one map.

    Each subdirectory is read with read_files_to_map using the prefix
    ``<prefix><dirname>_``. Subdirectories whose name fully matches
    exclude_regex are skipped. The map always holds 'valuestore_path'.
    """
    results: dict[str, str] = {"valuestore_path": str(path)}
    pattern = re.compile(exclude_regex) if exclude_regex else None
    directory = Path(path)
    try:
        subdirectories = sorted(p for p in directory.iterdir() if p.is_dir())
    except OSError as e:
        logger.error(f"Unable to read '{path}' directory to map.\n{readable_error(e)}")
        return results

    for subdirectory in subdirectories:
        if pattern and pattern.fullmatch(subdirectory.name):
            continue
        results.update(read_files_to_map(subdirectory, f"{prefix}{subdirectory.name}_", postfix))
    return results


def save_map_to_properties_file(path: str | Path, values: Mapping[str, Any]) -> bool:
    """Save a map as 'key=value' lines.

    Returns:
        True if the file was written.
    """
    try:
        Path(path).write_text(
            "\n".join(f"{key}={value}" for key, value in values.items()),
            encoding="utf-8",
        )
    except OSError as e:
        logger.error(
            f"Unable to save '{path}' with values:\n{readable_map(values)}\n"
            f"because of:\n{readable_error(e)}"
        )
        return False
    return True


def get_filename_extension(filename: str) -> tuple[str, str]:
    """Split a filename at its last extension.

    Example:
        >>> get_filename_extension("dist/build.tar.gz")
        ('dist/build.tar', 'gz')
    """
    base, ext = os.path.splitext(filename)
    return base, ext.lstrip(".")


def extract_archive(path: str | Path, destination: str | Path = ".") -> bool:
    """Extract a zip or tar (optionally compressed) archive.

    Returns:
        True if the archive was extracted.
    """
    filename, extension = get_filename_extension(str(path))
    logger.info(f"Got filename: {filename}, extension: {extension}")

    try:
        if extension == "zip":
            with zipfile.ZipFile(path) as archive:
                archive.extractall(destination)
        else:
            with tarfile.open(path) as archive:
                archive.extractall(destination, filter="data")
    except (OSError, tarfile.TarError, zipfile.BadZipFile) as e:
        logger.error(f"Unable to extract '{path}': {readable_error(e)}")
        return False
    return True


def unstash_file_parameter(
    name: str,
    parameters: Mapping[str, Any],
    workspace: str | Path,
    filename: str | None = None,
) -> str:
    """Copy an uploaded file parameter into the workspace.

    Args:
        name: Parameter name.
        parameters: Build parameters; a file parameter is a map with
            'original_filename' and 'path' (where the upload was stored).
        workspace: Job workspace directory.
        filename: Destination filename relative to the workspace
            (defaults to the original upload name).

    Returns:
        The destination filename, relative to the workspace.

    Raises:
        FileParameterError: If the parameter is missing, is not a file
            parameter, or no file was uploaded.
    """
    if not workspace:
        raise FileParameterError("No workspace in current context", name=name)
    if name not in parameters:
        raise FileParameterError(f"No file parameter named '{name}'", name=name)

    param = parameters[name]
    if not isinstance(param, Mapping) or "path" not in param:
        raise FileParameterError(f"Not a file parameter: {name}", name=name)
    if not param.get("original_filename"):
        raise FileParameterError("File was not uploaded", name=name)

    target_name = filename or str(param["original_filename"])
    target = Path(workspace) / target_name
    target.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(param["path"], target)
    logger.debug(f"Unstashed '{name}' to {target}")
    return target_name


def _strip_extension(name: str) -> str:
    if "." in name:
        return name[: name.rindex(".")]
    return name
