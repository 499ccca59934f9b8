"""Interpretation of command stdout."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from loguru import logger

MEDIA_PREFIX = "MEDIA:"
REMOTE_SCHEMES = frozenset({"http", "https"})
SNIPPET_LIMIT = 800
TEXT_KEYS = ("text", "result", "response", "completion")


@dataclass(frozen=True)
class StructuredOutput:
    """A JSON document printed by the assistant CLI."""

    text: str | None
    data: dict[str, Any]


def truncate(text: str, limit: int = SNIPPET_LIMIT) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def _text_from_blocks(blocks: Any) -> str | None:
    if isinstance(blocks, str):
        return blocks
    if not isinstance(blocks, list):
        return None
    parts = [
        block["text"]
        for block in blocks
        if isinstance(block, dict) and block.get("type", "text") == "text" and isinstance(block.get("text"), str)
    ]
    if not parts:
        return None
    return "\n".join(parts)


def extract_text(data: dict[str, Any]) -> str | None:
    for key in TEXT_KEYS:
        value = data.get(key)
        if isinstance(value, str):
            return value
    if (text := _text_from_blocks(data.get("content"))) is not None:
        return text
    message = data.get("message")
    if isinstance(message, dict):
        return _text_from_blocks(message.get("content"))
    return None


def parse_structured_output(stdout: str) -> StructuredOutput | None:
    """Parse a JSON result document out of stdout.

    The whole output is tried first, then each line from the end, so
    streamed formats that finish with a result object are understood too.
    Returns None when no JSON object is found.
    """
    raw = stdout.strip()
    if not raw:
        return None
    lines = [line.strip() for line in raw.splitlines() if line.strip()]
    for candidate in [raw, *reversed(lines)]:
        try:
            data = json.loads(candidate)
        except ValueError:
            continue
        if isinstance(data, dict):
            return StructuredOutput(text=extract_text(data), data=data)
    return None


def is_remote_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme.lower() in REMOTE_SCHEMES and bool(parsed.netloc)


def _clean_media_value(value: str) -> str:
    return value.strip().strip("`'\"").strip()


def _check_local_media(path_text: str, max_bytes: int | None) -> None:
    path = Path(path_text).expanduser()
    try:
        size = path.stat().st_size
    except OSError as exc:
        logger.warning("media.drop reason=unreadable path={} error={}", path_text, exc)
        return
    if max_bytes is not None and size > max_bytes:
        logger.warning("media.drop reason=too_large path={} size={} limit={}", path_text, size, max_bytes)
        return
    # Local files are never surfaced as URLs; delivery is up to the transport.
    logger.debug("media.drop reason=local path={} size={}", path_text, size)


def split_media_from_output(text: str, media_max_mb: float | None = None) -> tuple[str, list[str]]:
    """Separate ``MEDIA:`` lines from the reply text.

    Returns the remaining text and the remote media URLs in output order.
    """
    max_bytes = int(media_max_mb * 1024 * 1024) if media_max_mb is not None else None
    kept_lines: list[str] = []
    media_urls: list[str] = []
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped.startswith(MEDIA_PREFIX):
            kept_lines.append(line)
            continue
        value = _clean_media_value(stripped[len(MEDIA_PREFIX) :])
        if not value:
            continue
        if is_remote_url(value):
            media_urls.append(value)
        else:
            _check_local_media(value, max_bytes)
    return "\n".join(kept_lines).strip(), media_urls


def format_timeout_message(timeout_seconds: float, partial_stdout: str | None, cwd: str | None = None) -> str:
    seconds = int(timeout_seconds) if float(timeout_seconds).is_integer() else timeout_seconds
    message = f"Command timed out after {seconds}s"
    if cwd:
        message += f" (cwd: {cwd})"
    message += ". Try a shorter prompt or split the request."
    partial = (partial_stdout or "").strip()
    if partial:
        message += f"\n\nLast partial output:\n{truncate(partial)}"
    return message


def format_exit_message(code: int | None, stderr: str) -> str:
    message = f"Command exited with code {code}"
    detail = stderr.strip()
    if detail:
        message += f"\n{truncate(detail)}"
    return message
