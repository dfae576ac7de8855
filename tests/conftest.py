"""Pytest fixtures for pipekit tests."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Sequence
from typing import Any

import httpx
import pytest

from pipekit.env import PipelineEnv
from pipekit.shell import CommandResult


class FakeRunner:
    """CommandRunner stand-in recording every call.

    Results are taken from ``results`` in order; once exhausted, every call
    succeeds with empty output. A ``respond`` callable overrides both.
    """

    def __init__(
        self,
        results: Sequence[int | CommandResult] = (),
        respond: Callable[[list[str]], CommandResult] | None = None,
    ) -> None:
        self.calls: list[dict[str, Any]] = []
        self._results = list(results)
        self._respond = respond

    def __call__(
        self,
        args: Sequence[str],
        *,
        check: bool = False,
        cwd: str | None = None,
    ) -> CommandResult:
        self.calls.append({"args": list(args), "check": check, "cwd": cwd})
        if self._respond is not None:
            return self._respond(list(args))
        if self._results:
            result = self._results.pop(0)
            if isinstance(result, CommandResult):
                return result
            return CommandResult(args=tuple(args), returncode=result)
        return CommandResult(args=tuple(args), returncode=0)

    @property
    def commands(self) -> list[list[str]]:
        return [call["args"] for call in self.calls]


@pytest.fixture
def fake_runner() -> FakeRunner:
    """A runner where every command succeeds."""
    return FakeRunner()


@pytest.fixture
def pipeline_env() -> PipelineEnv:
    """Create a PipelineEnv for testing."""
    return PipelineEnv(
        job_name="test-job",
        build_url="https://ci.example.com/job/test-job/1/",
        debug_mode=True,
        workspace="/tmp/workspace",
        node_name="agent-1",
        home="/home/ci",
    )


@pytest.fixture
def recorded_requests() -> list[httpx.Request]:
    return []


@pytest.fixture
def http_client_factory(
    recorded_requests: list[httpx.Request],
) -> Callable[..., httpx.Client]:
    """Build httpx clients answering from a handler, recording each request."""

    def factory(
        status_code: int = 200,
        body: str = "ok",
        handler: Callable[[httpx.Request], httpx.Response] | None = None,
    ) -> httpx.Client:
        def _handle(request: httpx.Request) -> httpx.Response:
            request.read()
            recorded_requests.append(request)
            if handler is not None:
                return handler(request)
            return httpx.Response(status_code, text=body)

        return httpx.Client(transport=httpx.MockTransport(_handle))

    return factory


@pytest.fixture(autouse=True)
def _isolated_pipekit_logger() -> Iterator[None]:
    """Give each test a pipekit logger that caplog sees, restoring handlers after."""
    logger = logging.getLogger("pipekit")
    handlers = list(logger.handlers)
    logger.propagate = True
    logger.setLevel(logging.DEBUG)
    yield
    logger.handlers = handlers
