import itertools

import pytest

from cmdrelay.reply.argv import DEFAULT_IDENTITY_PREFIX, build_command_argv, should_send_identity
from cmdrelay.reply.types import ReplySpec, SessionArgs, SessionState

CTX = {"Body": "hello", "SessionId": "abc"}


def _state(**overrides: bool) -> SessionState:
    values = {"is_new_session": True, "is_first_turn_in_session": True, "system_sent": False}
    values.update(overrides)
    return SessionState(**values)


def test_output_format_flags_go_right_after_executable() -> None:
    reply = ReplySpec(command=["claude", "{{Body}}"], output_format="json")
    argv = build_command_argv(reply, CTX, _state(), identity="")
    assert argv == ["claude", "--output-format", "json", "-p", "hello"]


def test_output_format_flags_are_not_duplicated() -> None:
    reply = ReplySpec(command=["claude", "-p", "--output-format", "text", "{{Body}}"], output_format="json")
    argv = build_command_argv(reply, CTX, _state(), identity="")
    assert argv == ["claude", "-p", "--output-format", "text", "hello"]


@pytest.mark.parametrize(
    ("is_new", "expected"),
    [(False, ["--resume", "abc"]), (True, ["--new", "abc"])],
)
def test_session_args_are_selected_by_session_state(is_new: bool, expected: list[str]) -> None:
    reply = ReplySpec(
        command=["cli", "{{Body}}"],
        session=SessionArgs(new=["--new", "{{SessionId}}"], resume=["--resume", "{{SessionId}}"]),
    )
    argv = build_command_argv(reply, CTX, _state(is_new_session=is_new), identity="")
    assert argv == ["cli", *expected, "hello"]


def test_resumed_session_without_resume_template_uses_new_args() -> None:
    reply = ReplySpec(command=["cli", "{{Body}}"], session=SessionArgs(new=["--session-id", "{{SessionId}}"]))
    argv = build_command_argv(reply, CTX, _state(is_new_session=False), identity="")
    assert argv == ["cli", "--session-id", "abc", "hello"]


def test_session_args_can_follow_the_body() -> None:
    reply = ReplySpec(
        command=["cli", "{{Body}}"],
        session=SessionArgs(resume=["--resume", "{{SessionId}}"], before_body=False),
    )
    argv = build_command_argv(reply, CTX, _state(is_new_session=False, system_sent=False), identity="ID")
    assert argv == ["cli", "ID\n\nhello", "--resume", "abc"]


def test_identity_prefixes_the_prompt_argument() -> None:
    reply = ReplySpec(command=["claude", "{{Body}}"], output_format="json")
    argv = build_command_argv(reply, CTX, _state())
    assert argv[-1] == f"{DEFAULT_IDENTITY_PREFIX}\n\nhello"
    assert argv[-1].startswith("You are Clawd (Claude)")


def test_identity_policy_can_be_disabled_per_spec() -> None:
    reply = ReplySpec(command=["claude", "{{Body}}"], identity_prefix=False)
    assert build_command_argv(reply, CTX, _state()) == ["claude", "hello"]


def test_stateless_command_without_prompt_is_left_alone() -> None:
    reply = ReplySpec(command=["date"])
    assert build_command_argv(reply, CTX, _state()) == ["date"]


@pytest.mark.parametrize(("is_new", "first_turn", "system_sent"), list(itertools.product([True, False], repeat=3)))
def test_identity_rule_matches_send_system_once_policy(is_new: bool, first_turn: bool, system_sent: bool) -> None:
    always = SessionState(is_new, first_turn, system_sent, send_system_once=False)
    once = SessionState(is_new, first_turn, system_sent, send_system_once=True)
    assert should_send_identity(always) is True
    assert should_send_identity(once) is (is_new or first_turn or not system_sent)
