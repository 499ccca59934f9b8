"""Command reply pipeline."""

from cmdrelay.reply.argv import DEFAULT_IDENTITY_PREFIX, build_command_argv, should_send_identity
from cmdrelay.reply.command import interpret_result, run_command_reply
from cmdrelay.reply.metadata import summarize_claude_metadata
from cmdrelay.reply.output import parse_structured_output, split_media_from_output
from cmdrelay.reply.process import run_command_with_timeout
from cmdrelay.reply.queue import CommandQueue, QueueHandle, QueueWait, default_queue
from cmdrelay.reply.templating import apply_template, build_templating_context
from cmdrelay.reply.types import (
    CommandReplyResult,
    ExecutionRequest,
    ExecutionResult,
    ReplyMeta,
    ReplyPayload,
    ReplySpec,
    SessionArgs,
    SessionState,
)

__all__ = [
    "DEFAULT_IDENTITY_PREFIX",
    "CommandQueue",
    "CommandReplyResult",
    "ExecutionRequest",
    "ExecutionResult",
    "QueueHandle",
    "QueueWait",
    "ReplyMeta",
    "ReplyPayload",
    "ReplySpec",
    "SessionArgs",
    "SessionState",
    "apply_template",
    "build_command_argv",
    "build_templating_context",
    "default_queue",
    "interpret_result",
    "parse_structured_output",
    "run_command_reply",
    "run_command_with_timeout",
    "should_send_identity",
    "split_media_from_output",
    "summarize_claude_metadata",
]
