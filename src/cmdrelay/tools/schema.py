"""JSON-schema rewrites for provider tool dialects.

Gemini accepts only a subset of JSON Schema: no ``$ref``, no nullable unions,
no format or numeric bounds. OpenAI wants a plain object at the top level.
Every function here is total: shapes it does not understand are passed through
unchanged, and inputs are never mutated.
"""

from __future__ import annotations

from copy import deepcopy
from typing import Any, Literal

from loguru import logger

SchemaKind = Literal["ref", "union", "tuple", "array", "object", "literal", "scalar", "opaque"]

UNSUPPORTED_KEYWORDS = frozenset(
    {
        "$schema",
        "$id",
        "$ref",
        "$defs",
        "definitions",
        "additionalProperties",
        "patternProperties",
        "examples",
        "format",
        "pattern",
        "minLength",
        "maxLength",
        "minimum",
        "maximum",
        "exclusiveMinimum",
        "exclusiveMaximum",
        "multipleOf",
        "minItems",
        "maxItems",
        "uniqueItems",
        "minProperties",
        "maxProperties",
    }
)
META_KEYS = ("description", "title", "default")
UNION_KEYS = ("anyOf", "oneOf")
DEF_SECTIONS = ("$defs", "definitions")

Defs = dict[str, Any]


def classify_schema(node: Any) -> SchemaKind:
    """Tell which rewrite rule applies to a schema node."""
    if not isinstance(node, dict):
        return "opaque"
    if isinstance(node.get("$ref"), str):
        return "ref"
    if any(isinstance(node.get(key), list) for key in UNION_KEYS):
        return "union"
    if isinstance(node.get("items"), list) or isinstance(node.get("prefixItems"), list):
        return "tuple"
    if node.get("type") == "array" or "items" in node:
        return "array"
    if node.get("type") == "object" or isinstance(node.get("properties"), dict):
        return "object"
    if "const" in node or isinstance(node.get("enum"), list):
        return "literal"
    return "scalar"


def _schema_meta(node: dict[str, Any]) -> dict[str, Any]:
    return {key: deepcopy(node[key]) for key in META_KEYS if key in node}


def _escape_pointer(name: str) -> str:
    return name.replace("~", "~0").replace("/", "~1")


def _collect_defs(node: dict[str, Any], defs: Defs) -> Defs:
    sections = [(section, node[section]) for section in DEF_SECTIONS if isinstance(node.get(section), dict)]
    if not sections:
        return defs
    collected = dict(defs)
    for section, entries in sections:
        for name, schema in entries.items():
            collected[f"#/{section}/{_escape_pointer(name)}"] = schema
    return collected


def _is_null_schema(node: Any) -> bool:
    if not isinstance(node, dict):
        return False
    node_type = node.get("type")
    if node_type == "null" or node_type == ["null"]:
        return True
    if "const" in node and node["const"] is None:
        return True
    return node.get("enum") == [None]


def _literal_type(value: Any) -> str | None:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    return None


def _literal_values(node: Any) -> list[Any] | None:
    if not isinstance(node, dict):
        return None
    if "const" in node:
        return [node["const"]]
    values = node.get("enum")
    if isinstance(values, list) and values:
        return list(values)
    return None


def flatten_literal_union(branches: list[Any]) -> dict[str, Any] | None:
    """Merge literal branches of one scalar type into ``{type, enum}``.

    Returns None unless every branch is a literal and all values share a type
    (integers and floats combine as ``number``).
    """
    values: list[Any] = []
    types: set[str] = set()
    for branch in branches:
        branch_values = _literal_values(branch)
        if branch_values is None:
            return None
        for value in branch_values:
            value_type = _literal_type(value)
            if value_type is None:
                return None
            types.add(value_type)
            if value not in values:
                values.append(value)
    if not values:
        return None
    if types == {"integer", "number"}:
        types = {"number"}
    if len(types) != 1:
        return None
    return {"type": types.pop(), "enum": values}


def clean_schema_for_gemini(schema: Any) -> Any:
    """Rewrite a tool schema into the dialect Gemini accepts.

    Local ``$ref``s are inlined and definition maps dropped, unsupported
    keywords are stripped at every depth (tuple positions included), nullable
    unions collapse to their concrete branch and unions of same-typed literals
    become ``{type, enum}``. Cleaning is idempotent.
    """
    return _clean(schema, {}, frozenset())


def _clean(node: Any, defs: Defs, ref_stack: frozenset[str]) -> Any:
    if isinstance(node, list):
        return [_clean(item, defs, ref_stack) for item in node]
    if not isinstance(node, dict):
        return node

    defs = _collect_defs(node, defs)
    kind = classify_schema(node)
    if kind == "ref":
        return _inline_ref(node, defs, ref_stack)
    if kind == "union" and (collapsed := _collapse_union(node, defs, ref_stack)) is not None:
        return collapsed
    return _clean_keywords(node, defs, ref_stack)


def _inline_ref(node: dict[str, Any], defs: Defs, ref_stack: frozenset[str]) -> Any:
    ref = node["$ref"]
    meta = _schema_meta(node)
    if ref in ref_stack:
        logger.debug("schema.ref.cycle ref={}", ref)
        return meta
    target = defs.get(ref)
    if target is None:
        logger.debug("schema.ref.unresolved ref={}", ref)
        return meta
    cleaned = _clean(target, defs, ref_stack | {ref})
    if not isinstance(cleaned, dict):
        return cleaned
    return {**cleaned, **meta}


def _clean_branches(branches: list[Any], defs: Defs, ref_stack: frozenset[str]) -> list[Any]:
    cleaned = [_clean(branch, defs, ref_stack) for branch in branches]
    non_null = [branch for branch in cleaned if not _is_null_schema(branch)]
    return non_null or cleaned


def _collapse_union(node: dict[str, Any], defs: Defs, ref_stack: frozenset[str]) -> dict[str, Any] | None:
    for key in UNION_KEYS:
        branches = node.get(key)
        if not isinstance(branches, list) or not branches:
            continue
        remaining = _clean_branches(branches, defs, ref_stack)
        if all(_is_null_schema(branch) for branch in remaining):
            return None
        if len(remaining) == 1 and isinstance(remaining[0], dict):
            return {**remaining[0], **_schema_meta(node)}
        if (flattened := flatten_literal_union(remaining)) is not None:
            return {**flattened, **_schema_meta(node)}
    return None


def _clean_type(value: Any) -> Any:
    if not isinstance(value, list):
        return value
    types = [item for item in value if item != "null"]
    if not types:
        return value
    if len(types) == 1:
        return types[0]
    return types


def _clean_keywords(node: dict[str, Any], defs: Defs, ref_stack: frozenset[str]) -> dict[str, Any]:
    has_union = any(isinstance(node.get(key), list) and node.get(key) for key in UNION_KEYS)
    cleaned: dict[str, Any] = {}
    for key, value in node.items():
        if key in UNSUPPORTED_KEYWORDS:
            continue
        if key == "const":
            if "enum" not in node:
                cleaned["enum"] = [deepcopy(value)]
            continue
        if key == "type":
            if not has_union:
                cleaned["type"] = _clean_type(deepcopy(value))
            continue
        if key == "properties" and isinstance(value, dict):
            cleaned[key] = {name: _clean(prop, defs, ref_stack) for name, prop in value.items()}
        elif key in ("items", "prefixItems", "allOf"):
            cleaned[key] = _clean(value, defs, ref_stack)
        elif key in UNION_KEYS and isinstance(value, list) and value:
            cleaned[key] = _clean_branches(value, defs, ref_stack)
        else:
            cleaned[key] = deepcopy(value)
    return cleaned


def _merge_property(current: Any, incoming: Any) -> Any:
    current_values = _literal_values(current)
    incoming_values = _literal_values(incoming)
    if current_values is None or incoming_values is None:
        return current
    merged = flatten_literal_union([current, incoming])
    if merged is None:
        return current
    result = {key: value for key, value in current.items() if key not in ("const", "enum", "type")}
    result.update(merged)
    return result


def _merge_defs(target: dict[str, Any], variants: list[dict[str, Any]]) -> None:
    # Merged properties still point at the variants' local definitions.
    for variant in variants:
        for section in DEF_SECTIONS:
            entries = variant.get(section)
            if not isinstance(entries, dict):
                continue
            merged = target.setdefault(section, {})
            if not isinstance(merged, dict):
                continue
            for name, definition in entries.items():
                merged.setdefault(name, deepcopy(definition))


def normalize_tool_parameters(schema: Any) -> Any:
    """Give a tool schema the plain top-level object shape OpenAI requires.

    A top-level union of object variants is merged into one object: properties
    are combined (literal values of a shared property merge into one enum) and
    only keys required by every variant stay required. Variant ``$defs`` move
    to the merged object so local refs keep resolving.
    """
    if not isinstance(schema, dict):
        return schema

    variants = next((schema[key] for key in UNION_KEYS if isinstance(schema.get(key), list)), None)
    if variants is None:
        normalized = deepcopy(schema)
        if "type" not in normalized and isinstance(normalized.get("properties"), dict):
            normalized["type"] = "object"
        return normalized

    if not variants or not all(isinstance(v, dict) and isinstance(v.get("properties"), dict) for v in variants):
        logger.debug("schema.normalize.passthrough reason=non_object_union")
        return deepcopy(schema)

    properties: dict[str, Any] = {}
    own_properties = schema.get("properties")
    if isinstance(own_properties, dict):
        properties.update(deepcopy(own_properties))
    required_sets: list[set[str]] = []
    for variant in variants:
        for name, prop in variant["properties"].items():
            if name in properties:
                properties[name] = _merge_property(properties[name], prop)
            else:
                properties[name] = deepcopy(prop)
        required_sets.append(set(variant.get("required") or []))

    required = [name for name in properties if all(name in keys for keys in required_sets)]
    for name in schema.get("required") or []:
        if name in properties and name not in required:
            required.append(name)

    normalized = {
        key: deepcopy(value)
        for key, value in schema.items()
        if key not in (*UNION_KEYS, "type", "properties", "required")
    }
    normalized["type"] = "object"
    normalized["properties"] = properties
    if required:
        normalized["required"] = required
    _merge_defs(normalized, variants)
    return normalized
