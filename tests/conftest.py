from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import pytest

from cmdrelay.reply.queue import QueueHandle, QueueWait
from cmdrelay.reply.types import ExecutionRequest, ExecutionResult


class RecordingRunner:
    """Fake executor that records requests and returns a canned result."""

    def __init__(self, result: ExecutionResult | None = None, error: BaseException | None = None) -> None:
        self.result = result or ExecutionResult(stdout="ok")
        self.error = error
        self.requests: list[ExecutionRequest] = []

    @property
    def argv(self) -> list[str]:
        return list(self.requests[-1].argv)

    async def __call__(self, request: ExecutionRequest) -> ExecutionResult:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def immediate_enqueue() -> Callable[[Callable[[], Awaitable[Any]]], QueueHandle[Any]]:
    """Enqueue that reports 25ms of waiting behind 2 tasks and runs at once."""

    def _enqueue(task: Callable[[], Awaitable[Any]]) -> QueueHandle[Any]:
        loop = asyncio.get_running_loop()
        started: asyncio.Future[QueueWait] = loop.create_future()
        started.set_result(QueueWait(waited_ms=25, ahead=2))
        return QueueHandle(started=started, result=asyncio.ensure_future(task()))

    return _enqueue


@pytest.fixture
def templating_ctx() -> dict[str, str]:
    return {
        "Body": "hello",
        "BodyStripped": "hello",
        "SessionId": "sess",
        "IsNewSession": "true",
    }


@pytest.fixture
def make_runner() -> type[RecordingRunner]:
    return RecordingRunner
