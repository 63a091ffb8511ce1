"""Helpers for Kubernetes objects held as plain nested dictionaries."""

from __future__ import annotations

import copy
from typing import Any


class FieldTypeError(TypeError):
    """A field, or one of its parents, holds a value of an unexpected type."""


def _path(fields: tuple[str, ...]) -> str:
    return "." + ".".join(fields)


def nested_field(obj: dict[str, Any], *args: str) -> tuple[Any, bool]:
    """Return ``(value, found)`` for the field at the given path, without copying."""
    current: Any = obj
    for index, field in enumerate(args):
        if not isinstance(current, dict):
            raise FieldTypeError(
                f"{_path(args[:index + 1])} accessor error: {current!r} is of the "
                f"type {type(current).__name__}, expected dict"
            )
        if field not in current:
            return None, False
        current = current[field]
    return current, True


def _typed_field(
    obj: dict[str, Any], fields: tuple[str, ...], expected: type, label: str
) -> tuple[Any, bool]:
    value, found = nested_field(obj, *fields)
    if not found:
        return None, False
    if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
        raise FieldTypeError(
            f"{_path(fields)} accessor error: {value!r} is of the type "
            f"{type(value).__name__}, expected {label}"
        )
    return value, True


def nested_string(obj: dict[str, Any], *args: str) -> tuple[str | None, bool]:
    """Return ``(string, found)``; raise FieldTypeError if the value is not a string."""
    return _typed_field(obj, args, str, "str")


def nested_int(obj: dict[str, Any], *args: str) -> tuple[int | None, bool]:
    """Return ``(integer, found)``; raise FieldTypeError if the value is not an integer."""
    return _typed_field(obj, args, int, "int")


def nested_map(obj: dict[str, Any], *args: str) -> tuple[dict[str, Any] | None, bool]:
    """Return ``(copy of the mapping, found)``; raise FieldTypeError if not a mapping."""
    value, found = _typed_field(obj, args, dict, "dict")
    return (copy.deepcopy(value), True) if found else (None, False)


def nested_slice(obj: dict[str, Any], *args: str) -> tuple[list[Any] | None, bool]:
    """Return ``(copy of the list, found)``; raise FieldTypeError if not a list."""
    value, found = _typed_field(obj, args, list, "list")
    return (copy.deepcopy(value), True) if found else (None, False)


def set_nested_field(obj: dict[str, Any], value: Any, *args: str) -> None:
    """Store a copy of ``value`` at the path, creating missing parent mappings."""
    if not args:
        raise ValueError("no field path given")
    current = obj
    for index, field in enumerate(args[:-1]):
        if field in current:
            child = current[field]
            if not isinstance(child, dict):
                raise FieldTypeError(
                    f"value cannot be set because {_path(args[:index + 1])} is not a dict"
                )
            current = child
        else:
            child = {}
            current[field] = child
            current = child
    current[args[-1]] = copy.deepcopy(value)


def _metadata_string(obj: dict[str, Any], field: str) -> str:
    try:
        value, found = nested_field(obj, "metadata", field)
    except FieldTypeError:
        return ""
    return value if found and isinstance(value, str) else ""


def _metadata_string_map(obj: dict[str, Any], field: str) -> dict[str, str]:
    try:
        value, found = nested_field(obj, "metadata", field)
    except FieldTypeError:
        return {}
    if not found or not isinstance(value, dict):
        return {}
    if not all(isinstance(v, str) for v in value.values()):
        return {}
    return dict(value)


def name_of(obj: dict[str, Any]) -> str:
    """Return ``metadata.name`` or an empty string."""
    return _metadata_string(obj, "name")


def namespace_of(obj: dict[str, Any]) -> str:
    """Return ``metadata.namespace`` or an empty string."""
    return _metadata_string(obj, "namespace")


def kind_of(obj: dict[str, Any]) -> str:
    """Return the object's kind or an empty string."""
    kind = obj.get("kind")
    return kind if isinstance(kind, str) else ""


def labels_of(obj: dict[str, Any]) -> dict[str, str]:
    """Return a copy of the object's labels."""
    return _metadata_string_map(obj, "labels")


def annotations_of(obj: dict[str, Any]) -> dict[str, str]:
    """Return a copy of the object's annotations."""
    return _metadata_string_map(obj, "annotations")


def owner_references_of(obj: dict[str, Any]) -> list[dict[str, Any]]:
    """Return copies of the object's owner references."""
    try:
        refs, found = nested_field(obj, "metadata", "ownerReferences")
    except FieldTypeError:
        return []
    if not found or not isinstance(refs, list):
        return []
    return [copy.deepcopy(ref) for ref in refs if isinstance(ref, dict)]