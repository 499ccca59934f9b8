"""Application-level exception types for cmdrelay."""

from __future__ import annotations


class CmdRelayError(Exception):
    """Base exception for cmdrelay."""


class ConfigurationError(CmdRelayError):
    """Base exception for configuration and startup validation errors."""


class ReplySpecError(ConfigurationError):
    """Raised when the command reply configuration is incomplete."""


class CommandError(CmdRelayError):
    """Base exception for command execution failures."""


class CommandTimeoutError(CommandError):
    """Raised when a command runs past its timeout and gets killed.

    Carries whatever the process wrote before it was terminated.
    """

    def __init__(
        self,
        timeout_ms: int,
        *,
        stdout: str = "",
        stderr: str = "",
        killed: bool = True,
        signal: str | None = "SIGKILL",
    ) -> None:
        super().__init__(f"command timed out after {timeout_ms}ms")
        self.timeout_ms = timeout_ms
        self.stdout = stdout
        self.stderr = stderr
        self.killed = killed
        self.signal = signal


class CommandNotFoundError(CommandError):
    """Raised when the command executable cannot be spawned."""


class ToolError(CmdRelayError):
    """Base exception for tool registration and invocation errors."""


class ToolNotFoundError(ToolError, KeyError):
    """Raised when a tool name is not registered."""


class MissingRequiredParameterError(ToolError, ValueError):
    """Raised when no member of an alias group carries a usable value."""

    def __init__(self, label: str) -> None:
        super().__init__(f"Missing required parameter: {label}")
        self.label = label
