"""Access to cluster objects, plus an in-memory client that keeps them in a dictionary."""

from __future__ import annotations

import copy
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Protocol

from .unstructured import kind_of, labels_of, name_of, namespace_of, nested_slice

TAINT_NO_SCHEDULE = "NoSchedule"
TAINT_NO_EXECUTE = "NoExecute"


class ApiError(Exception):
    """A request to the cluster failed."""


class NotFoundError(ApiError):
    """The requested object does not exist."""


class AlreadyExistsError(ApiError):
    """An object with the same kind, namespace and name already exists."""


class ForbiddenError(ApiError):
    """The request was refused."""


class UnauthorizedError(ApiError):
    """The request was not authenticated."""


@dataclass(frozen=True)
class ObjectKey:
    """Namespace and name of an object; cluster-scoped objects have an empty namespace."""

    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}" if self.namespace else self.name


class KubeClient(Protocol):
    """Operations the operator performs against a cluster."""

    def get(self, kind: str, key: ObjectKey) -> dict[str, Any]: ...

    def list(
        self,
        kind: str,
        namespace: str | None = None,
        labels: Mapping[str, str] | None = None,
    ) -> list[dict[str, Any]]: ...

    def create(self, obj: dict[str, Any]) -> None: ...

    def update(self, obj: dict[str, Any]) -> None: ...

    def delete(self, obj: dict[str, Any]) -> None: ...

    def invalidate(self) -> None: ...

    def server_groups(self) -> list[str]: ...

    def get_pod_logs(self, namespace: str, name: str) -> str: ...


def _labels_match(labels: Mapping[str, str], selector: Mapping[str, str]) -> bool:
    return all(labels.get(key) == value for key, value in selector.items())


def _as_key(key: ObjectKey | tuple[str, str]) -> ObjectKey:
    return key if isinstance(key, ObjectKey) else ObjectKey(*key)


class InMemoryClient:
    """A client whose cluster is a dictionary of objects held in memory."""

    def __init__(
        self,
        objects: Iterable[dict[str, Any]] | None = None,
        pod_logs: Mapping[ObjectKey | tuple[str, str], str] | None = None,
    ) -> None:
        self._objects: dict[tuple[str, str, str], dict[str, Any]] = {}
        self._pod_logs = {_as_key(key): text for key, text in (pod_logs or {}).items()}
        self.invalidations = 0
        for obj in objects or ():
            self.create(obj)

    @staticmethod
    def _storage_key(obj: dict[str, Any]) -> tuple[str, str, str]:
        kind = kind_of(obj)
        name = name_of(obj)
        if not kind:
            raise ValueError("object has no kind")
        if not name:
            raise ValueError(f"{kind} object has no name")
        return kind.lower(), namespace_of(obj), name

    def get(self, kind: str, key: ObjectKey) -> dict[str, Any]:
        """Return a copy of the object, or raise NotFoundError."""
        stored = self._objects.get((kind.lower(), key.namespace, key.name))
        if stored is None:
            raise NotFoundError(f'{kind} "{key}" not found')
        return copy.deepcopy(stored)

    def list(
        self,
        kind: str,
        namespace: str | None = None,
        labels: Mapping[str, str] | None = None,
    ) -> list[dict[str, Any]]:
        """Return copies of the objects of a kind, filtered by namespace and labels."""
        selector = labels or {}
        return [
            copy.deepcopy(obj)
            for (stored_kind, stored_ns, _), obj in self._objects.items()
            if stored_kind == kind.lower()
            and (namespace is None or stored_ns == namespace)
            and _labels_match(labels_of(obj), selector)
        ]

    def create(self, obj: dict[str, Any]) -> None:
        """Store a new object; raise AlreadyExistsError if it is already there."""
        key = self._storage_key(obj)
        if key in self._objects:
            raise AlreadyExistsError(f'{kind_of(obj)} "{key[2]}" already exists')
        self._objects[key] = copy.deepcopy(obj)

    def update(self, obj: dict[str, Any]) -> None:
        """Replace an existing object; raise NotFoundError if it is absent."""
        key = self._storage_key(obj)
        if key not in self._objects:
            raise NotFoundError(f'{kind_of(obj)} "{key[2]}" not found')
        self._objects[key] = copy.deepcopy(obj)

    def delete(self, obj: dict[str, Any]) -> None:
        """Remove an object; raise NotFoundError if it is absent."""
        key = self._storage_key(obj)
        if self._objects.pop(key, None) is None:
            raise NotFoundError(f'{kind_of(obj)} "{key[2]}" not found')

    def invalidate(self) -> None:
        """Drop cached discovery information."""
        self.invalidations += 1

    def server_groups(self) -> list[str]:
        """Return the named API groups of the stored objects, sorted."""
        groups = set()
        for obj in self._objects.values():
            api_version = obj.get("apiVersion")
            if isinstance(api_version, str) and "/" in api_version:
                groups.add(api_version.rpartition("/")[0])
        return sorted(groups)

    def get_pod_logs(self, namespace: str, name: str) -> str:
        """Return the logs of a pod, or raise NotFoundError."""
        key = ObjectKey(namespace, name)
        try:
            return self._pod_logs[key]
        except KeyError:
            raise NotFoundError(f'logs of pod "{key}" not found') from None


def is_not_schedulable(node: dict[str, Any]) -> bool:
    """Whether the node carries a NoSchedule or NoExecute taint."""
    taints, found = nested_slice(node, "spec", "taints")
    if not found:
        return False
    return any(
        isinstance(taint, dict)
        and taint.get("effect") in (TAINT_NO_SCHEDULE, TAINT_NO_EXECUTE)
        for taint in taints
    )


def get_nodes_by_labels(client: KubeClient, labels: Mapping[str, str]) -> list[dict[str, Any]]:
    """Return the nodes that carry all the labels and no blocking taint."""
    nodes = client.list("Node", None, labels)
    return [node for node in nodes if not is_not_schedulable(node)]