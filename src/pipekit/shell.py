"""Local command execution.

Every helper that shells out goes through a CommandRunner so tests (and
callers with their own sandboxing) can substitute the process layer.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from pipekit.errors import CommandError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a finished command.

    Attributes:
        args: Command line that was executed.
        returncode: Process exit status.
        stdout: Captured standard output.
        stderr: Captured standard error.
    """

    args: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        """True if the command exited with status 0."""
        return self.returncode == 0


class CommandRunner(Protocol):
    def __call__(
        self,
        args: Sequence[str],
        *,
        check: bool = False,
        cwd: str | None = None,
    ) -> CommandResult: ...


def run_command(
    args: Sequence[str],
    *,
    check: bool = False,
    cwd: str | None = None,
) -> CommandResult:
    """Run a command and capture its output.

    Args:
        args: Program and arguments (no shell interpolation).
        check: Raise CommandError on a non-zero exit status.
        cwd: Working directory for the command.

    Returns:
        CommandResult with exit status and captured output.

    Raises:
        CommandError: If the program cannot be started, or exits non-zero
            while ``check`` is set.
    """
    printable = shlex.join(args)
    logger.debug(f"Running: {printable}")

    try:
        completed = subprocess.run(
            list(args),
            text=True,
            capture_output=True,
            cwd=cwd,
        )
    except OSError as e:
        raise CommandError(f"Unable to start command: {e}", command=printable) from e

    result = CommandResult(
        args=tuple(args),
        returncode=completed.returncode,
        stdout=completed.stdout or "",
        stderr=completed.stderr or "",
    )

    if check and not result.ok:
        details = result.stderr.strip() or result.stdout.strip()
        raise CommandError(
            f"Command failed: {details}" if details else "Command failed",
            command=printable,
            returncode=result.returncode,
            stderr=result.stderr,
        )

    return result
