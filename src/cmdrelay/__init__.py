"""cmdrelay - relay chat messages to a command-line assistant."""

from cmdrelay.reply import ReplySpec, run_command_reply, summarize_claude_metadata
from cmdrelay.tools import ToolDefinition, ToolRegistry

__version__ = "0.1.0"

__all__ = ["ReplySpec", "ToolDefinition", "ToolRegistry", "run_command_reply", "summarize_claude_metadata"]
