"""Deciding which cluster events should trigger a reconciliation."""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum
from typing import Any

from .kernel import is_object_affine
from .unstructured import (
    FieldTypeError,
    kind_of,
    labels_of,
    name_of,
    namespace_of,
    nested_field,
    owner_references_of,
)

log = logging.getLogger(__name__)

UNMANAGED = "Unmanaged"
_SRO_API_MARKER = "sro.openshift.io/v"
_SRO_SELF_LINK_MARKER = "/apis/sro.openshift.io/v"


class Mode(str, Enum):
    """The kind of event last seen by the filter."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    GENERIC = "GENERIC"


def _type_name(obj: dict[str, Any]) -> str:
    api_version = obj.get("apiVersion")
    kind = kind_of(obj)
    if not isinstance(api_version, str) or not api_version or not kind:
        return ""
    return f"{api_version.rpartition('/')[2]}.{kind}"


def _metadata_value(obj: dict[str, Any], field: str, default: Any) -> Any:
    try:
        value, found = nested_field(obj, "metadata", field)
    except FieldTypeError:
        return default
    return value if found and value is not None else default


def _generation(obj: dict[str, Any]) -> Any:
    return _metadata_value(obj, "generation", 0)


def _resource_version(obj: dict[str, Any]) -> Any:
    return _metadata_value(obj, "resourceVersion", "")


class EventFilter:
    """Filters create, update, delete and generic events for special resources."""

    def __init__(
        self,
        kind: str,
        owned_label: str,
        is_affine: Callable[[dict[str, Any]], bool] | None = None,
    ) -> None:
        self.kind = kind
        self.owned_label = owned_label
        self.is_affine = is_affine if is_affine is not None else is_object_affine
        self.mode: Mode | None = None

    def _is_special_resource_type(self, obj: dict[str, Any]) -> bool:
        type_name = _type_name(obj)
        return kind_of(obj) == self.kind or (bool(type_name) and self.kind in type_name)

    def is_unmanaged(self, obj: dict[str, Any]) -> bool:
        """Whether the object is a special resource whose management state is Unmanaged."""
        if not self._is_special_resource_type(obj):
            return False
        try:
            state, found = nested_field(obj, "spec", "managementState")
        except FieldTypeError:
            return False
        return found and state == UNMANAGED

    def is_special_resource(self, obj: dict[str, Any]) -> bool:
        """Whether the object is a special resource itself."""
        kind = kind_of(obj)
        if self._is_special_resource_type(obj):
            return True
        if self.owned(obj):
            return False
        # A freshly created special resource may not carry its kind yet.
        self_link = _metadata_value(obj, "selfLink", "")
        if isinstance(self_link, str) and _SRO_SELF_LINK_MARKER in self_link:
            return True
        return kind == "" and _SRO_API_MARKER in repr(obj)

    def owned(self, obj: dict[str, Any]) -> bool:
        """Whether the object is owned by a special resource."""
        if any(ref.get("kind") == self.kind for ref in owner_references_of(obj)):
            return True
        return self.owned_label in labels_of(obj)

    def create(self, obj: dict[str, Any]) -> bool:
        """Whether a create event for the object should be handled."""
        self.mode = Mode.CREATE
        if self.is_special_resource(obj):
            if not self.is_unmanaged(obj):
                log.info("Creating managed special resource %s", name_of(obj))
                return True
            log.debug("Filtering out creation of unmanaged special resource %s", name_of(obj))
            return False
        if self.owned(obj):
            log.info("Creating owned object %s/%s (%s)", namespace_of(obj), name_of(obj), kind_of(obj))
            return True
        log.debug("Filtering out creation of %s (%s)", name_of(obj), kind_of(obj))
        return False

    def update(self, old: dict[str, Any], new: dict[str, Any]) -> bool:
        """Whether an update event from ``old`` to ``new`` should be handled."""
        self.mode = Mode.UPDATE
        same_generation = _generation(old) == _generation(new)
        same_version = _resource_version(old) == _resource_version(new)
        name = name_of(new)

        # Pods deleted during an OS upgrade must be handled.
        if self.owned(new) and self.is_affine(new):
            if same_generation and same_version:
                log.debug("Skipping update of %s, generation and resource version unchanged", name)
                return False
            if self.is_special_resource(new) and self.is_unmanaged(new):
                log.debug("Skipping update of the owned unmanaged special resource %s", name)
                return False
            log.info("Updating owned kernel affine object %s/%s (%s)", namespace_of(new), name, kind_of(new))
            return True

        if same_generation:
            log.debug("Skipping update of %s, generation had not changed", name)
            return False
        if same_version:
            log.debug("Skipping update of %s, resource version had not changed", name)
            return False

        if self.is_special_resource(new):
            if self.is_unmanaged(new):
                log.debug("Skipping update of unmanaged special resource %s", name)
                return False
            log.info("Updating special resource %s", name)
            return True

        if self.owned(new):
            log.info("Updating owned object %s/%s (%s)", namespace_of(new), name, kind_of(new))
            return True

        log.debug("Skipping update of %s (%s)", name, kind_of(new))
        return False

    def delete(self, obj: dict[str, Any]) -> bool:
        """Whether a delete event for the object should be handled."""
        self.mode = Mode.DELETE
        if self.is_special_resource(obj):
            log.info("Deleting special resource %s", name_of(obj))
            return True
        if self.owned(obj):
            log.info("Deleting owned object %s/%s (%s)", namespace_of(obj), name_of(obj), kind_of(obj))
            return True
        log.debug("Skipping deletion of %s (%s)", name_of(obj), kind_of(obj))
        return False

    def generic(self, obj: dict[str, Any]) -> bool:
        """Whether a generic event for the object should be handled."""
        self.mode = Mode.GENERIC
        if self.is_special_resource(obj):
            if not self.is_unmanaged(obj):
                log.info("Generic special resource %s", name_of(obj))
                return True
            log.debug("Skipping generic unmanaged special resource %s", name_of(obj))
            return False
        if self.owned(obj):
            log.info("Generic owned resource %s/%s (%s)", namespace_of(obj), name_of(obj), kind_of(obj))
            return True
        log.debug("Skipping generic object %s (%s)", name_of(obj), kind_of(obj))
        return False