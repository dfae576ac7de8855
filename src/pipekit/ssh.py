"""Remote shell execution over SSH with password authentication.

Passwords never appear on a command line: they are written to a private
temporary file that ``sshpass -f`` reads, and the file is removed as soon
as the command finishes.
"""

from __future__ import annotations

import contextlib
import ipaddress
import logging
import math
import os
import socket
import tempfile
import time
from collections.abc import Callable, Iterable, Iterator

from pipekit.errors import CommandError
from pipekit.shell import CommandResult, CommandRunner, run_command

logger = logging.getLogger(__name__)

SSH_OPTIONS = ("-o", "StrictHostKeyChecking=no")


@contextlib.contextmanager
def _password_file(password: str) -> Iterator[str]:
    """Yield the path of a 0600 temp file holding password, removed on exit."""
    with tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        prefix=".sshpass-",
        delete=False,
    ) as f:
        f.write(password)
        path = f.name
    try:
        yield path
    finally:
        with contextlib.suppress(FileNotFoundError):
            os.unlink(path)


def run_bash_via_ssh(
    host: str,
    user: str,
    password: str,
    command: str,
    *,
    connect_timeout: int | None = None,
    runner: CommandRunner = run_command,
) -> CommandResult:
    """Run a shell command on a remote host.

    Args:
        host: Hostname or IP address.
        user: SSH user.
        password: SSH password.
        command: Command line executed by the remote login shell.
        connect_timeout: Seconds to wait for the connection (ssh default when None).
        runner: Local command runner.

    Returns:
        CommandResult with the remote exit status and output.
    """
    options = list(SSH_OPTIONS)
    if connect_timeout is not None:
        options += ["-o", f"ConnectTimeout={connect_timeout}"]

    logger.debug(f"ssh {user}@{host}: {command}")
    with _password_file(password) as pass_file:
        return runner(["sshpass", "-f", pass_file, "ssh", "-q", *options, f"{user}@{host}", command])


def run_scp(
    host: str,
    user: str,
    password: str,
    source: str,
    destination: str,
    *,
    upload: bool = True,
    runner: CommandRunner = run_command,
) -> CommandResult:
    """Copy files to or from a remote host, recursively.

    Args:
        host: Hostname or IP address.
        user: SSH user.
        password: SSH password.
        source: Source path (local when uploading, remote otherwise).
        destination: Destination path (remote when uploading, local otherwise).
        upload: Direction of the copy.
        runner: Local command runner.
    """
    if upload:
        paths = [source, f"{user}@{host}:{destination}"]
    else:
        paths = [f"{user}@{host}:{source}", destination]

    logger.debug(f"scp {' '.join(paths)}")
    with _password_file(password) as pass_file:
        return runner(["sshpass", "-f", pass_file, "scp", "-r", *SSH_OPTIONS, *paths])


def remove_host_key(
    host: str,
    *,
    known_hosts: str,
    runner: CommandRunner = run_command,
) -> CommandResult:
    """Remove every key of host from a known_hosts file."""
    return runner(["ssh-keygen", "-f", known_hosts, "-R", host])


def wait_ssh_host(
    host: str,
    user: str,
    password: str,
    *,
    up: bool = True,
    timeout: float = 60.0,
    interval: float = 5.0,
    known_hosts: str = "~/.ssh/known_hosts",
    runner: CommandRunner = run_command,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> bool:
    """Wait until a host accepts SSH logins (or stops accepting them).

    The host key is dropped first, since a rebuilt host comes back with a new one.

    Args:
        host: Hostname or IP address.
        user: SSH user.
        password: SSH password.
        up: Wait for the host to come up; False waits for it to go down.
        timeout: Give up after this many seconds.
        interval: Seconds between attempts.
        known_hosts: known_hosts file to clean.
        runner: Local command runner.
        sleep: Sleep function (injectable for testing).
        clock: Monotonic clock (injectable for testing).

    Returns:
        True if the expected state was reached before the timeout. Failures
        to run ssh itself are logged and reported as False.
    """
    state = "up" if up else "down"
    # A single attempt must not outlast the polling interval
    connect_timeout = max(1, math.ceil(min(interval, timeout)))
    try:
        remove_host_key(host, known_hosts=os.path.expanduser(known_hosts), runner=runner)

        deadline = clock() + timeout
        while True:
            reachable = run_bash_via_ssh(
                host, user, password, "exit", connect_timeout=connect_timeout, runner=runner
            ).ok
            if reachable == up:
                return True
            if clock() >= deadline:
                logger.error(f"Waiting {host} ssh {state} failed.")
                return False
            sleep(interval)
    except CommandError as e:
        logger.error(f"Waiting {host} ssh {state} failed: {e}")
        return False


def resolve_host(host: str) -> str:
    """Resolve a hostname to an IPv4 address, '' when it cannot be resolved."""
    try:
        return socket.gethostbyname(host)
    except OSError:
        return ""


def clean_ssh_hosts_fingerprints(
    hosts: Iterable[str],
    *,
    known_hosts: str = "~/.ssh/known_hosts",
    runner: CommandRunner = run_command,
    resolver: Callable[[str], str] = resolve_host,
) -> None:
    """Remove host keys of hosts, and of the addresses hostnames resolve to."""
    known_hosts = os.path.expanduser(known_hosts)
    for host in hosts:
        if not host:
            continue
        targets = [host]
        if not _is_ipv4(host):
            targets.append(resolver(host))
        for target in targets:
            if target.strip():
                remove_host_key(target.strip(), known_hosts=known_hosts, runner=runner)


def _is_ipv4(value: str) -> bool:
    try:
        ipaddress.IPv4Address(value)
    except ValueError:
        return False
    return True
