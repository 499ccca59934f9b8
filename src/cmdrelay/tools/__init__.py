"""Tool definitions and provider schema compatibility."""

from cmdrelay.tools.aliases import (
    CLAUDE_ALIAS_GROUPS,
    CLAUDE_PARAM_GROUPS,
    AliasGroup,
    add_parameter_aliases,
    normalize_params,
    patch_tool_for_claude,
    wrap_parameter_normalization,
)
from cmdrelay.tools.definition import ToolDefinition
from cmdrelay.tools.registry import ToolRegistry
from cmdrelay.tools.schema import clean_schema_for_gemini, flatten_literal_union, normalize_tool_parameters

__all__ = [
    "CLAUDE_ALIAS_GROUPS",
    "CLAUDE_PARAM_GROUPS",
    "AliasGroup",
    "ToolDefinition",
    "ToolRegistry",
    "add_parameter_aliases",
    "clean_schema_for_gemini",
    "flatten_literal_union",
    "normalize_params",
    "normalize_tool_parameters",
    "patch_tool_for_claude",
    "wrap_parameter_normalization",
]
