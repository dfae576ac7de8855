"""Dependency injection for pipeline helpers."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass

import httpx

from pipekit.console import configure_logging
from pipekit.env import PipelineEnv, load_pipeline_env
from pipekit.shell import CommandRunner, run_command


@dataclass(frozen=True)
class Deps:
    """Dependencies shared by pipeline helpers.

    Helpers receive the pieces they need from this container, so tests can
    swap in fakes for the network and the process layer.

    Attributes:
        http: HTTP client for webhook delivery.
        env: Parsed job environment.
        logger: Logger configured for the build console.
        runner: Local command runner.
    """

    http: httpx.Client
    env: PipelineEnv
    logger: logging.Logger
    runner: CommandRunner


@contextmanager
def build_deps(
    environ: Mapping[str, str] | None = None,
    *,
    timeout: float = 30.0,
    color: bool = True,
) -> Iterator[Deps]:
    """Build dependencies for a pipeline script.

    This is a context manager that properly cleans up resources.

    Args:
        environ: Environment variables mapping (defaults to os.environ).
        timeout: HTTP client timeout in seconds.
        color: Colour log levels on the console.

    Yields:
        A Deps instance with all dependencies wired up.

    Example:
        with build_deps() as deps:
            send_message(deps.http, url, report)
    """
    env = load_pipeline_env(environ)
    logger = configure_logging(env, color=color)

    http_client = httpx.Client(
        timeout=timeout,
        follow_redirects=True,
    )

    try:
        yield Deps(
            http=http_client,
            env=env,
            logger=logger,
            runner=run_command,
        )
    finally:
        http_client.close()
