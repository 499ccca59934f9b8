"""Argv construction for command replies."""

from __future__ import annotations

from cmdrelay.reply.templating import apply_template_all
from cmdrelay.reply.types import ReplySpec, SessionState, TemplatingContext

DEFAULT_IDENTITY_PREFIX = (
    "You are Clawd (Claude) running on the user's machine via cmdrelay. "
    "Replies are delivered over a chat messenger, so keep them under ~1500 characters. "
    "To attach media, print a line of the form MEDIA:<https url> on its own."
)
OUTPUT_FORMAT_FLAG = "--output-format"
PRINT_FLAG = "-p"


def should_send_identity(state: SessionState) -> bool:
    """Return whether the identity line goes in front of this turn's prompt."""
    if not state.send_system_once:
        return True
    return state.is_new_session or state.is_first_turn_in_session or not state.system_sent


def select_session_args(reply: ReplySpec, state: SessionState) -> list[str] | None:
    session = reply.session
    if session is None:
        return None
    if not state.is_new_session and session.resume:
        return list(session.resume)
    if session.new:
        return list(session.new)
    return None


def build_command_argv(
    reply: ReplySpec,
    ctx: TemplatingContext,
    state: SessionState,
    *,
    identity: str = DEFAULT_IDENTITY_PREFIX,
) -> list[str]:
    """Build the final argv for one reply cycle.

    The last element is treated as the prompt: session args are inserted in
    front of it and the identity line is prepended to it.
    """
    argv = apply_template_all(reply.command, ctx)
    has_prompt = len(argv) > 1

    if reply.output_format:
        injected: list[str] = []
        if OUTPUT_FORMAT_FLAG not in argv:
            injected.extend([OUTPUT_FORMAT_FLAG, reply.output_format])
        if PRINT_FLAG not in argv and "--print" not in argv:
            injected.append(PRINT_FLAG)
        argv = [argv[0], *injected, *argv[1:]]

    prompt_index = len(argv) - 1
    session_args = select_session_args(reply, state)
    if session_args:
        resolved = apply_template_all(session_args, ctx)
        before_body = reply.session is None or reply.session.before_body
        if before_body and has_prompt:
            argv = [*argv[:prompt_index], *resolved, argv[prompt_index]]
            prompt_index += len(resolved)
        else:
            argv.extend(resolved)

    if reply.identity_prefix and identity and has_prompt and should_send_identity(state):
        argv[prompt_index] = f"{identity}\n\n{argv[prompt_index]}"

    return argv
