"""Declarative transformations for ``data_transform`` steps."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Callable, Dict, List, Optional

from .exceptions import TransformError


def _require_mapping(data: Any, kind: str) -> Mapping:
    if not isinstance(data, Mapping):
        raise TransformError(
            f"{kind} transformation needs a mapping input, got {type(data).__name__}"
        )
    return data


def _option(
    options: Mapping, name: str, expected: type, default: Any, kind: str
) -> Any:
    value = options.get(name, default)
    if not isinstance(value, expected):
        raise TransformError(
            f"{kind} transformation needs '{name}' as {expected.__name__}, "
            f"got {type(value).__name__}"
        )
    return value


def _select(data: Any, options: Mapping) -> Any:
    path = options.get("path")
    if not path:
        return data
    value = data
    for segment in str(path).split("."):
        if isinstance(value, Mapping) and segment in value:
            value = value[segment]
        elif isinstance(value, list) and segment.isdigit() and int(segment) < len(value):
            value = value[int(segment)]
        else:
            raise TransformError(f"Path {path!r} not found in input")
    return value


def _pick(data: Any, options: Mapping) -> Dict[str, Any]:
    source = _require_mapping(data, "pick")
    fields: List[Any] = _option(options, "fields", list, [], "pick")
    return {key: source[key] for key in fields if key in source}


def _rename(data: Any, options: Mapping) -> Dict[str, Any]:
    source = _require_mapping(data, "rename")
    names: Mapping = _option(options, "fields", Mapping, {}, "rename")
    return {names.get(key, key): value for key, value in source.items()}


def _merge(data: Any, options: Mapping) -> Dict[str, Any]:
    source = _require_mapping(data, "merge")
    values: Mapping = _option(options, "values", Mapping, {}, "merge")
    return {**source, **values}


def _template(data: Any, options: Mapping) -> str:
    template = options.get("template")
    if not isinstance(template, str):
        raise TransformError("template transformation needs a 'template' string")
    values = data if isinstance(data, Mapping) else {"input": data}
    try:
        return template.format_map(values)
    except (KeyError, IndexError, ValueError, AttributeError) as exc:
        raise TransformError(f"Cannot render template: {exc}") from exc


TRANSFORMS: Dict[str, Callable[[Any, Mapping], Any]] = {
    "select": _select,
    "pick": _pick,
    "rename": _rename,
    "merge": _merge,
    "template": _template,
}


def apply_transformation(data: Any, transformation: Optional[Mapping] = None) -> Any:
    """Apply ``transformation`` to ``data``.

    With no transformation configured the input is returned unchanged.

    Raises:
        TransformError: If the transformation is malformed, its type is
            unknown or it does not fit the input.
    """
    if not transformation:
        return data
    if not isinstance(transformation, Mapping):
        raise TransformError(
            f"Transformation must be a mapping, got {type(transformation).__name__}"
        )
    kind = transformation.get("type")
    handler = TRANSFORMS.get(kind) if isinstance(kind, str) else None
    if handler is None:
        raise TransformError(f"Unknown transformation type: {kind}")
    return handler(data, transformation)
