"""Command reply pipeline: build argv, queue, run, interpret."""

from __future__ import annotations

import time

from loguru import logger

from cmdrelay.reply.argv import DEFAULT_IDENTITY_PREFIX, build_command_argv
from cmdrelay.reply.metadata import summarize_claude_metadata
from cmdrelay.reply.output import (
    format_exit_message,
    format_timeout_message,
    parse_structured_output,
    split_media_from_output,
)
from cmdrelay.reply.process import CommandRunner, run_command_with_timeout
from cmdrelay.reply.queue import Enqueue, default_queue
from cmdrelay.reply.types import (
    CommandReplyResult,
    ExecutionRequest,
    ExecutionResult,
    ReplyMeta,
    ReplyPayload,
    ReplySpec,
    SessionState,
    TemplatingContext,
)


def is_timeout_failure(error: BaseException) -> bool:
    return getattr(error, "killed", False) is True or getattr(error, "signal", None) == "SIGKILL"


async def run_command_reply(
    reply: ReplySpec,
    templating_ctx: TemplatingContext,
    state: SessionState,
    *,
    timeout_ms: int,
    timeout_seconds: float | None = None,
    command_runner: CommandRunner = run_command_with_timeout,
    enqueue: Enqueue | None = None,
    identity: str = DEFAULT_IDENTITY_PREFIX,
) -> CommandReplyResult:
    """Run one reply cycle and turn the command output into a reply.

    Timeouts and unexpected runner failures never propagate: a timeout becomes
    a diagnostic reply text, any other failure yields ``payload=None``.
    """
    if timeout_seconds is None:
        timeout_seconds = timeout_ms / 1000
    if enqueue is None:
        enqueue = default_queue().enqueue

    argv = build_command_argv(reply, templating_ctx, state, identity=identity)
    request = ExecutionRequest(argv=tuple(argv), timeout_ms=timeout_ms, cwd=reply.cwd)
    logger.info(
        "command.reply.start argv0={} argc={} cwd={} timeout_ms={}",
        argv[0],
        len(argv),
        reply.cwd or "-",
        timeout_ms,
    )

    queued_ms: int | None = None
    queued_ahead: int | None = None
    started = time.monotonic()
    handle = enqueue(lambda: command_runner(request))
    try:
        wait = await handle.started
        queued_ms, queued_ahead = wait.waited_ms, wait.ahead
        started = time.monotonic()
        result = await handle.result
    except Exception as exc:
        duration_ms = int((time.monotonic() - started) * 1000)
        if is_timeout_failure(exc):
            logger.warning("command.reply.timeout duration_ms={} timeout_ms={}", duration_ms, timeout_ms)
            text = format_timeout_message(timeout_seconds, getattr(exc, "stdout", None), reply.cwd)
            meta = ReplyMeta(
                queued_ms=queued_ms,
                queued_ahead=queued_ahead,
                killed=True,
                duration_ms=duration_ms,
                signal=getattr(exc, "signal", None),
            )
            return CommandReplyResult(payload=ReplyPayload(text=text), meta=meta)
        logger.exception("command.reply.error duration_ms={}", duration_ms)
        meta = ReplyMeta(queued_ms=queued_ms, queued_ahead=queued_ahead, duration_ms=duration_ms)
        return CommandReplyResult(payload=None, meta=meta)

    duration_ms = int((time.monotonic() - started) * 1000)
    logger.info(
        "command.reply.finish duration_ms={} code={} signal={} killed={}",
        duration_ms,
        result.code,
        result.signal,
        result.killed,
    )
    return interpret_result(
        reply,
        result,
        timeout_seconds=timeout_seconds,
        base_meta=ReplyMeta(queued_ms=queued_ms, queued_ahead=queued_ahead, duration_ms=duration_ms),
    )


def interpret_result(
    reply: ReplySpec,
    result: ExecutionResult,
    *,
    timeout_seconds: float,
    base_meta: ReplyMeta | None = None,
) -> CommandReplyResult:
    """Map a finished execution to the reply payload and meta."""
    base_meta = base_meta or ReplyMeta()
    meta_fields = {
        "queued_ms": base_meta.queued_ms,
        "queued_ahead": base_meta.queued_ahead,
        "duration_ms": base_meta.duration_ms,
        "exit_code": result.code,
        "signal": result.signal,
    }

    if result.killed:
        text = format_timeout_message(timeout_seconds, result.stdout, reply.cwd)
        return CommandReplyResult(payload=ReplyPayload(text=text), meta=ReplyMeta(killed=True, **meta_fields))

    text = result.stdout
    claude_meta: str | None = None
    if reply.is_structured:
        parsed = parse_structured_output(result.stdout)
        if parsed is None:
            logger.debug("command.reply.structured_fallback format={}", reply.output_format)
        else:
            claude_meta = summarize_claude_metadata(parsed.data)
            if parsed.text is not None:
                text = parsed.text

    text, media_urls = split_media_from_output(text, reply.media_max_mb)
    if result.code not in (0, None):
        logger.warning("command.reply.exit code={} stderr_bytes={}", result.code, len(result.stderr))
        if not text:
            text = format_exit_message(result.code, result.stderr)

    meta = ReplyMeta(claude_meta=claude_meta, **meta_fields)
    if not text and not media_urls:
        return CommandReplyResult(payload=None, meta=meta)
    return CommandReplyResult(
        payload=ReplyPayload(text=text, media_urls=tuple(media_urls) or None),
        meta=meta,
    )
