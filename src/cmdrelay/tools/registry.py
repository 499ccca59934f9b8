"""Tool registry with per-provider schema variants."""

from __future__ import annotations

import builtins
import json
import time
import uuid
from typing import Any, ClassVar

from loguru import logger
from republic import Tool

from cmdrelay.errors import ToolNotFoundError
from cmdrelay.tools.aliases import patch_tool_for_claude
from cmdrelay.tools.definition import ToolDefinition
from cmdrelay.tools.schema import clean_schema_for_gemini, normalize_tool_parameters


def _shorten_text(text: str, width: int = 30, placeholder: str = "...") -> str:
    """Shorten text to width characters, cutting in the middle of words if needed."""
    if len(text) <= width:
        return text

    available = width - len(placeholder)
    if available <= 0:
        return placeholder

    return text[:available] + placeholder


def provider_of(model: str) -> str:
    """Extract the provider from ``provider:model`` strings; bare names pass through."""
    provider, separator, _ = model.partition(":")
    return (provider if separator else model).strip().casefold()


class ToolRegistry:
    """Registry of tool definitions, exported per provider dialect.

    Registered definitions are kept as given; provider variants are derived on
    every export.
    """

    CLAUDE_PROVIDERS: ClassVar[frozenset[str]] = frozenset({"anthropic", "claude", "vertexaianthropic"})
    GEMINI_PROVIDERS: ClassVar[frozenset[str]] = frozenset({"google", "gemini", "vertex", "vertexai"})

    def __init__(self) -> None:
        self._tools: dict[str, ToolDefinition] = {}

    def register(self, definition: ToolDefinition) -> None:
        if definition.name in self._tools:
            logger.warning("tool.register.replace name={}", definition.name)
        self._tools[definition.name] = definition

    def has(self, name: str) -> bool:
        return name in self._tools

    def get(self, name: str) -> ToolDefinition | None:
        return self._tools.get(name)

    def definitions(self) -> builtins.list[ToolDefinition]:
        return sorted(self._tools.values(), key=lambda item: item.name)

    @staticmethod
    def to_model_name(name: str) -> str:
        return name.replace(".", "_")

    def adapt(self, definition: ToolDefinition, provider: str) -> ToolDefinition:
        """Return the variant of ``definition`` a provider accepts."""
        provider = provider_of(provider)
        normalized = definition.with_changes(parameters=normalize_tool_parameters(definition.parameters))
        if provider in self.CLAUDE_PROVIDERS:
            return patch_tool_for_claude(normalized)
        if provider in self.GEMINI_PROVIDERS:
            return normalized.with_changes(parameters=clean_schema_for_gemini(normalized.parameters))
        return normalized

    def provider_tools(self, provider: str) -> builtins.list[ToolDefinition]:
        return [self.adapt(definition, provider) for definition in self.definitions()]

    def model_tools(self, provider: str) -> builtins.list[Tool]:
        tools: builtins.list[Tool] = []
        seen_names: set[str] = set()
        for definition in self.provider_tools(provider):
            model_name = self.to_model_name(definition.name)
            if model_name in seen_names:
                raise ValueError(f"Duplicate model tool name after conversion: {model_name}")
            seen_names.add(model_name)
            tools.append(
                Tool(
                    name=model_name,
                    description=definition.description,
                    parameters=definition.parameters,
                    handler=self._model_handler(definition),
                )
            )
        return tools

    def _model_handler(self, definition: ToolDefinition) -> Any:
        async def _handler(**kwargs: Any) -> Any:
            return await self._run_logged(definition, uuid.uuid4().hex, kwargs)

        return _handler

    def _log_tool_call(self, name: str, tool_call_id: str, params: dict[str, Any]) -> None:
        rendered_params: list[str] = []
        for key, value in params.items():
            try:
                rendered = json.dumps(value, ensure_ascii=False)
            except TypeError:
                rendered = repr(value)
            value = _shorten_text(rendered, width=30, placeholder="...")
            if value.startswith('"') and not value.endswith('"'):
                value = value + '"'
            if value.startswith("{") and not value.endswith("}"):
                value = value + "}"
            if value.startswith("[") and not value.endswith("]"):
                value = value + "]"
            rendered_params.append(f"{key}={value}")
        logger.info(
            "tool.call.start name={} call_id={} {{ {} }}",
            name,
            tool_call_id,
            ", ".join(rendered_params),
        )

    async def _run_logged(self, definition: ToolDefinition, tool_call_id: str, params: dict[str, Any]) -> Any:
        self._log_tool_call(definition.name, tool_call_id, params)
        start = time.monotonic()
        try:
            return await definition.run(tool_call_id, params)
        except Exception:
            logger.exception("tool.call.error name={}", definition.name)
            raise
        finally:
            duration = time.monotonic() - start
            logger.info("tool.call.end name={} duration={:.3f}ms", definition.name, duration * 1000)

    async def execute(
        self,
        name: str,
        params: dict[str, Any] | None = None,
        *,
        provider: str | None = None,
        tool_call_id: str | None = None,
    ) -> Any:
        """Run a registered tool, through the provider variant when one is given."""
        definition = self.get(name)
        if definition is None:
            raise ToolNotFoundError(name)
        if provider is not None:
            definition = self.adapt(definition, provider)
        return await self._run_logged(definition, tool_call_id or uuid.uuid4().hex, dict(params or {}))
