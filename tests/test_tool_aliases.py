from typing import Any

import pytest

from cmdrelay.errors import MissingRequiredParameterError
from cmdrelay.tools.aliases import (
    AliasGroup,
    add_parameter_aliases,
    patch_tool_for_claude,
    wrap_parameter_normalization,
)
from cmdrelay.tools.definition import ToolDefinition


class _Recorder:
    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []

    async def __call__(self, tool_call_id: str, params: dict[str, Any]) -> dict[str, Any]:
        self.calls.append((tool_call_id, params))
        return params


def _write_tool(execute: Any = None) -> ToolDefinition:
    return ToolDefinition(
        name="write",
        description="test",
        parameters={
            "type": "object",
            "required": ["path", "content"],
            "properties": {
                "path": {"type": "string", "description": "Path"},
                "content": {"type": "string", "description": "Body"},
            },
        },
        execute=execute or _Recorder(),
    )


def test_adds_aliases_to_schema_without_dropping_metadata() -> None:
    base = _write_tool()

    patched = add_parameter_aliases(base)

    props = patched.parameters["properties"]
    assert props["file_path"] == props["path"]
    assert props["file_path"] is not props["path"]
    assert "path" not in patched.parameters["required"]
    assert "file_path" not in patched.parameters["required"]
    assert patched.parameters["required"] == ["content"]


def test_alias_injection_leaves_the_original_tool_untouched() -> None:
    base = _write_tool()

    add_parameter_aliases(base)

    assert set(base.parameters["properties"]) == {"path", "content"}
    assert base.parameters["required"] == ["path", "content"]


def test_alias_injection_drops_empty_required_and_skips_missing_canonical() -> None:
    tool = ToolDefinition(
        name="read",
        description="",
        parameters={"type": "object", "required": ["path"], "properties": {"path": {"type": "string"}}},
        execute=_Recorder(),
    )
    patched = add_parameter_aliases(tool, [AliasGroup(("path", "file_path")), AliasGroup(("oldText", "old_string"))])
    assert "required" not in patched.parameters
    assert set(patched.parameters["properties"]) == {"path", "file_path"}


@pytest.mark.asyncio
async def test_normalizes_file_path_to_path_and_enforces_groups_at_runtime() -> None:
    recorder = _Recorder()
    wrapped = wrap_parameter_normalization(_write_tool(recorder), [AliasGroup(("path", "file_path"))])

    await wrapped.run("tool-1", {"file_path": "foo.txt", "content": "x"})
    assert recorder.calls == [("tool-1", {"path": "foo.txt", "content": "x"})]

    with pytest.raises(MissingRequiredParameterError, match="Missing required parameter"):
        await wrapped.run("tool-2", {"content": "x"})
    with pytest.raises(MissingRequiredParameterError, match="Missing required parameter"):
        await wrapped.run("tool-3", {"file_path": "   ", "content": "x"})
    assert len(recorder.calls) == 1


@pytest.mark.asyncio
async def test_normalization_prefers_canonical_then_first_usable_alias() -> None:
    recorder = _Recorder()
    group = AliasGroup(("path", "file_path", "filename"), label="path")
    wrapped = wrap_parameter_normalization(_write_tool(recorder), [group])

    await wrapped.run("a", {"path": "  ", "file_path": "", "filename": "b.txt"})
    await wrapped.run("b", {"path": "a.txt", "file_path": "other.txt"})

    assert recorder.calls[0][1] == {"path": "b.txt"}
    assert recorder.calls[1][1] == {"path": "a.txt"}

    with pytest.raises(MissingRequiredParameterError, match="Missing required parameter: path$"):
        await wrapped.run("c", None)


@pytest.mark.asyncio
async def test_sync_handlers_are_supported() -> None:
    def _execute(tool_call_id: str, params: dict[str, Any]) -> str:
        return f"{tool_call_id}:{params['oldText']}"

    tool = ToolDefinition(name="edit", description="", parameters={}, execute=_execute)
    wrapped = wrap_parameter_normalization(tool, [AliasGroup(("oldText", "old_string"))])

    assert await wrapped.run("id", {"old_string": "x"}) == "id:x"


@pytest.mark.asyncio
async def test_patch_tool_for_claude_combines_schema_and_runtime_rules() -> None:
    recorder = _Recorder()
    patched = patch_tool_for_claude(_write_tool(recorder))

    assert "file_path" in patched.parameters["properties"]
    await patched.run("t", {"file_path": "a.md", "content": "hi"})
    assert recorder.calls[-1][1] == {"path": "a.md", "content": "hi"}

    with pytest.raises(MissingRequiredParameterError, match="content"):
        await patched.run("t", {"path": "a.md", "content": ""})
