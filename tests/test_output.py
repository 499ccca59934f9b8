import json
from pathlib import Path

from cmdrelay.reply.output import (
    format_timeout_message,
    is_remote_url,
    parse_structured_output,
    split_media_from_output,
)


def test_parse_structured_output_reads_result_field() -> None:
    parsed = parse_structured_output(json.dumps({"type": "result", "result": "done", "num_turns": 2}))
    assert parsed is not None
    assert parsed.text == "done"
    assert parsed.data["num_turns"] == 2


def test_parse_structured_output_uses_last_json_line() -> None:
    stdout = "\n".join(
        [
            '{"type": "system", "subtype": "init"}',
            "some log line",
            '{"type": "result", "result": "final answer"}',
        ]
    )
    parsed = parse_structured_output(stdout)
    assert parsed is not None
    assert parsed.text == "final answer"


def test_parse_structured_output_reads_content_blocks() -> None:
    stdout = json.dumps({"message": {"content": [{"type": "text", "text": "a"}, {"type": "tool_use"}, {"text": "b"}]}})
    parsed = parse_structured_output(stdout)
    assert parsed is not None
    assert parsed.text == "a\nb"


def test_parse_structured_output_returns_none_for_plain_text() -> None:
    assert parse_structured_output("hello there") is None
    assert parse_structured_output("[1, 2, 3]") is None
    assert parse_structured_output("") is None


def test_remote_url_detection() -> None:
    assert is_remote_url("https://example.com/a.png")
    assert is_remote_url("HTTP://example.com/a.png")
    assert not is_remote_url("/tmp/a.png")
    assert not is_remote_url("file:///tmp/a.png")
    assert not is_remote_url("https:/broken")


def test_split_media_keeps_only_remote_urls_in_order(tmp_path: Path) -> None:
    local = tmp_path / "pic.png"
    local.write_bytes(b"png")
    stdout = "\n".join(
        [
            "Here you go",
            "MEDIA:https://a.example/1.jpg",
            f"  MEDIA: {local}",
            "MEDIA:`https://b.example/2.jpg`",
            "MEDIA:/does/not/exist.png",
            "bye",
        ]
    )
    text, media = split_media_from_output(stdout, media_max_mb=5)
    assert text == "Here you go\nbye"
    assert media == ["https://a.example/1.jpg", "https://b.example/2.jpg"]


def test_split_media_without_cap_still_drops_local_paths(tmp_path: Path) -> None:
    local = tmp_path / "clip.mp4"
    local.write_bytes(b"\x00" * 2048)
    text, media = split_media_from_output(f"MEDIA:{local}\nMEDIA:https://x.example/v.mp4")
    assert text == ""
    assert media == ["https://x.example/v.mp4"]


def test_format_timeout_message_truncates_partial_output() -> None:
    message = format_timeout_message(1, "x" * 1000, cwd="/tmp/work")
    assert message.startswith("Command timed out after 1s (cwd: /tmp/work)")
    assert "partial output" in message
    assert message.endswith("x" * 800 + "...")


def test_format_timeout_message_without_partial_or_cwd() -> None:
    message = format_timeout_message(2.5, "   ")
    assert message.startswith("Command timed out after 2.5s.")
    assert "partial output" not in message
    assert "cwd" not in message
