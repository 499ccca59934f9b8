"""Parameter aliases for providers that expect other argument names.

Claude-trained models call file tools with ``file_path``/``old_string``
while our tools take ``path``/``oldText``. Both names are accepted:

* ``add_parameter_aliases`` copies the canonical property under each alias
  and drops the group from ``required``;
* ``wrap_parameter_normalization`` maps whichever alias was sent back to
  the canonical key and enforces the group as required at call time.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from copy import deepcopy
from dataclasses import dataclass
from typing import Any

from cmdrelay.errors import MissingRequiredParameterError
from cmdrelay.tools.definition import ToolDefinition


@dataclass(frozen=True)
class AliasGroup:
    """Interchangeable parameter names; the first key is canonical."""

    keys: tuple[str, ...]
    label: str | None = None

    def __post_init__(self) -> None:
        if not self.keys:
            raise ValueError("alias group needs at least one key")
        object.__setattr__(self, "keys", tuple(self.keys))

    @property
    def canonical(self) -> str:
        return self.keys[0]

    @property
    def aliases(self) -> tuple[str, ...]:
        return self.keys[1:]

    def describe(self) -> str:
        if self.label:
            return self.label
        if len(self.keys) == 1:
            return self.canonical
        return f"{self.canonical} ({' or '.join(self.keys)})"


CLAUDE_ALIAS_GROUPS: tuple[AliasGroup, ...] = (
    AliasGroup(("path", "file_path")),
    AliasGroup(("oldText", "old_string")),
    AliasGroup(("newText", "new_string")),
)

# Runtime requirements per tool once aliases replaced the static ``required``.
CLAUDE_PARAM_GROUPS: dict[str, tuple[AliasGroup, ...]] = {
    "read": (AliasGroup(("path", "file_path")),),
    "write": (AliasGroup(("path", "file_path")), AliasGroup(("content",))),
    "edit": (
        AliasGroup(("path", "file_path")),
        AliasGroup(("oldText", "old_string")),
        AliasGroup(("newText", "new_string")),
    ),
}


def add_parameter_aliases(
    tool: ToolDefinition,
    groups: Iterable[AliasGroup] = CLAUDE_ALIAS_GROUPS,
) -> ToolDefinition:
    """Return a copy of ``tool`` whose schema accepts every alias name."""
    schema = tool.parameters
    properties = schema.get("properties") if isinstance(schema, dict) else None
    if not isinstance(properties, dict):
        return tool

    patched_properties = dict(properties)
    required = list(schema.get("required") or [])
    changed = False
    for group in groups:
        canonical_schema = properties.get(group.canonical)
        if canonical_schema is None:
            continue
        for alias in group.aliases:
            if alias not in patched_properties:
                patched_properties[alias] = deepcopy(canonical_schema)
                changed = True
        members = set(group.keys)
        if any(key in members for key in required):
            required = [key for key in required if key not in members]
            changed = True

    if not changed:
        return tool

    patched = {**schema, "properties": patched_properties}
    if required:
        patched["required"] = required
    else:
        patched.pop("required", None)
    return tool.with_changes(parameters=patched)


def _has_value(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def normalize_params(params: Mapping[str, Any] | None, groups: Iterable[AliasGroup]) -> dict[str, Any]:
    """Fold alias keys onto canonical keys.

    Raises:
        MissingRequiredParameterError: no key of a group carries a usable value.
    """
    normalized = dict(params or {})
    for group in groups:
        chosen = next((normalized[key] for key in group.keys if _has_value(normalized.get(key))), None)
        if chosen is None:
            raise MissingRequiredParameterError(group.describe())
        for key in group.aliases:
            normalized.pop(key, None)
        normalized[group.canonical] = chosen
    return normalized


def wrap_parameter_normalization(tool: ToolDefinition, groups: Iterable[AliasGroup]) -> ToolDefinition:
    """Return a copy of ``tool`` that normalizes aliases before executing."""
    groups = tuple(groups)
    original = tool

    async def _execute(tool_call_id: str, params: Mapping[str, Any] | None, *args: Any, **kwargs: Any) -> Any:
        return await original.run(tool_call_id, normalize_params(params, groups), *args, **kwargs)

    return tool.with_changes(execute=_execute)


def patch_tool_for_claude(tool: ToolDefinition) -> ToolDefinition:
    """Alias-patch a tool and, for known file tools, enforce its groups at runtime."""
    patched = add_parameter_aliases(tool)
    groups = CLAUDE_PARAM_GROUPS.get(tool.name)
    if groups is None:
        required = set(tool.parameters.get("required") or [])
        groups = tuple(group for group in CLAUDE_ALIAS_GROUPS if group.canonical in required)
    if not groups:
        return patched
    return wrap_parameter_normalization(patched, groups)
