"""Default subprocess executor for command replies."""

from __future__ import annotations

import asyncio
import signal
from collections.abc import Awaitable, Callable
from contextlib import suppress

from loguru import logger

from cmdrelay.errors import CommandNotFoundError, CommandTimeoutError
from cmdrelay.reply.types import ExecutionRequest, ExecutionResult

CommandRunner = Callable[[ExecutionRequest], Awaitable[ExecutionResult]]


def _decode(data: bytes | None) -> str:
    if not data:
        return ""
    return data.decode("utf-8", errors="replace")


def _signal_name(returncode: int | None) -> str | None:
    if returncode is None or returncode >= 0:
        return None
    with suppress(ValueError):
        return signal.Signals(-returncode).name
    return None


async def _drain(stream: asyncio.StreamReader | None, sink: bytearray) -> None:
    if stream is None:
        return
    while chunk := await stream.read(4096):
        sink.extend(chunk)


async def run_command_with_timeout(request: ExecutionRequest) -> ExecutionResult:
    """Run ``request.argv`` and collect its output.

    Raises:
        CommandTimeoutError: the process outlived ``request.timeout_ms`` and was
            killed; the error carries the output captured so far.
        CommandNotFoundError: the executable could not be spawned.
    """
    if not request.argv:
        raise CommandNotFoundError("empty argv")
    try:
        process = await asyncio.create_subprocess_exec(
            *request.argv,
            cwd=request.cwd,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as exc:
        raise CommandNotFoundError(f"command not found: {request.argv[0]}") from exc

    stdout = bytearray()
    stderr = bytearray()
    try:
        async with asyncio.timeout(request.timeout_ms / 1000):
            await asyncio.gather(_drain(process.stdout, stdout), _drain(process.stderr, stderr))
            returncode = await process.wait()
    except TimeoutError:
        with suppress(ProcessLookupError):
            process.kill()
        await process.wait()
        logger.warning("command.timeout argv0={} timeout_ms={}", request.argv[0], request.timeout_ms)
        raise CommandTimeoutError(
            request.timeout_ms,
            stdout=_decode(bytes(stdout)),
            stderr=_decode(bytes(stderr)),
            killed=True,
            signal="SIGKILL",
        ) from None
    except asyncio.CancelledError:
        with suppress(ProcessLookupError):
            process.kill()
        raise

    return ExecutionResult(
        stdout=_decode(bytes(stdout)),
        stderr=_decode(bytes(stderr)),
        code=returncode,
        signal=_signal_name(returncode),
        killed=False,
    )
