"""Placeholder substitution for command templates."""

from __future__ import annotations

import re
from collections.abc import Iterable

from cmdrelay.reply.types import TemplatingContext

PLACEHOLDER_RE = re.compile(r"\{\{\s*([A-Za-z0-9_]+)\s*\}\}")
DIRECTIVE_RE = re.compile(r"^/[A-Za-z][\w-]*(?:\s+|$)")


def apply_template(template: str, ctx: TemplatingContext) -> str:
    """Replace known ``{{Key}}`` placeholders; unknown ones stay verbatim."""

    def _replace(match: re.Match[str]) -> str:
        key = match.group(1)
        if key in ctx:
            return str(ctx[key])
        return match.group(0)

    return PLACEHOLDER_RE.sub(_replace, template)


def apply_template_all(parts: Iterable[str], ctx: TemplatingContext) -> list[str]:
    return [apply_template(part, ctx) for part in parts]


def build_templating_context(
    body: str,
    *,
    session_id: str = "",
    is_new_session: bool = True,
    **extra: str,
) -> dict[str, str]:
    """Build the standard context for one inbound message."""
    stripped = DIRECTIVE_RE.sub("", body.strip(), count=1).strip()
    ctx = {
        "Body": body,
        "BodyStripped": stripped,
        "SessionId": session_id,
        "IsNewSession": "true" if is_new_session else "false",
    }
    ctx.update(extra)
    return ctx
