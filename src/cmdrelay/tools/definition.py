"""Tool definitions shared by the registry and the compatibility layer."""

from __future__ import annotations

import inspect
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Any

from pydantic import BaseModel

ToolExecute = Callable[..., Any]


@dataclass(frozen=True)
class ToolDefinition:
    """A tool as exposed to a model: name, JSON schema and handler.

    ``execute`` is called as ``execute(tool_call_id, params, **kwargs)`` and may
    be sync or async.
    """

    name: str
    description: str
    parameters: dict[str, Any]
    execute: ToolExecute
    label: str | None = None

    def with_changes(self, **changes: Any) -> ToolDefinition:
        return replace(self, **changes)

    async def run(self, tool_call_id: str, params: dict[str, Any] | None, *args: Any, **kwargs: Any) -> Any:
        result = self.execute(tool_call_id, params, *args, **kwargs)
        if inspect.isawaitable(result):
            result = await result
        return result

    @classmethod
    def from_model(
        cls,
        model: type[BaseModel],
        handler: Callable[[Any], Any],
        *,
        name: str,
        description: str | None = None,
    ) -> ToolDefinition:
        """Build a definition whose params are validated through ``model``."""

        def _execute(_tool_call_id: str, params: dict[str, Any] | None, **_: Any) -> Any:
            return handler(model.model_validate(params or {}))

        return cls(
            name=name,
            description=description or inspect.cleandoc(model.__doc__ or ""),
            parameters=model.model_json_schema(),
            execute=_execute,
        )
