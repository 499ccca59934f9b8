"""Compact summaries of assistant usage telemetry."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def _render_number(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def summarize_claude_metadata(payload: Any) -> str | None:
    """Render usage telemetry as one line, e.g. ``duration=1200ms turns=3``.

    Fields that are missing or have an unexpected type are skipped.
    """
    if not isinstance(payload, Mapping):
        return None

    parts: list[str] = []
    if _is_number(duration := payload.get("duration_ms")):
        parts.append(f"duration={_render_number(duration)}ms")
    if _is_number(api_duration := payload.get("duration_api_ms")):
        parts.append(f"api={_render_number(api_duration)}ms")
    if _is_number(turns := payload.get("num_turns")):
        parts.append(f"turns={_render_number(turns)}")
    if _is_number(cost := payload.get("total_cost_usd")):
        parts.append(f"cost=${cost:.4f}")

    usage = payload.get("usage")
    if isinstance(usage, Mapping) and isinstance(tool_use := usage.get("server_tool_use"), Mapping):
        counts = [value for value in tool_use.values() if _is_number(value)]
        if counts:
            parts.append(f"tool_calls={_render_number(sum(counts))}")

    model_usage = payload.get("modelUsage")
    if isinstance(model_usage, Mapping) and model_usage:
        parts.append(f"models={','.join(str(name) for name in model_usage)}")

    if not parts:
        return None
    return " ".join(parts)
