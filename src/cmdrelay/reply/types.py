"""Data types shared by the command reply pipeline."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

TemplatingContext = Mapping[str, str]
STRUCTURED_OUTPUT_FORMATS = frozenset({"json", "stream-json"})


class SessionArgs(BaseModel):
    """Argument templates used to start or resume an assistant session."""

    model_config = ConfigDict(frozen=True)

    new: list[str] | None = Field(default=None, description="Args for a brand new session")
    resume: list[str] | None = Field(default=None, description="Args for resuming an existing session")
    before_body: bool = Field(default=True, description="Insert session args before the prompt argument")


class ReplySpec(BaseModel):
    """How to turn one inbound message into a command invocation."""

    model_config = ConfigDict(frozen=True)

    mode: Literal["command"] = "command"
    command: list[str] = Field(..., min_length=1, description="Argv template with {{Key}} placeholders")
    output_format: str | None = Field(default=None, description="Structured output format, e.g. 'json'")
    session: SessionArgs | None = None
    cwd: str | None = Field(default=None, description="Working directory for the command")
    media_max_mb: float | None = Field(default=None, description="Size cap for local MEDIA: files")
    identity_prefix: bool = Field(default=True, description="Whether the identity line may be injected")

    @property
    def is_structured(self) -> bool:
        return (self.output_format or "").strip().casefold() in STRUCTURED_OUTPUT_FORMATS


@dataclass(frozen=True)
class SessionState:
    """Session flags consulted while building argv."""

    is_new_session: bool
    is_first_turn_in_session: bool = False
    system_sent: bool = False
    send_system_once: bool = False


@dataclass(frozen=True)
class ExecutionRequest:
    argv: tuple[str, ...]
    timeout_ms: int
    cwd: str | None = None


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of one finished subprocess."""

    stdout: str = ""
    stderr: str = ""
    code: int | None = 0
    signal: str | None = None
    killed: bool = False


@dataclass(frozen=True)
class ReplyPayload:
    text: str
    media_urls: tuple[str, ...] | None = None


@dataclass(frozen=True)
class ReplyMeta:
    """Per-cycle telemetry; never persisted."""

    queued_ms: int | None = None
    queued_ahead: int | None = None
    killed: bool = False
    claude_meta: str | None = None
    duration_ms: int | None = None
    exit_code: int | None = None
    signal: str | None = None


@dataclass(frozen=True)
class CommandReplyResult:
    payload: ReplyPayload | None
    meta: ReplyMeta
