"""Finding the pods that belong to a DaemonSet or a Deployment."""

from __future__ import annotations

import logging
from typing import Any

from .clients import ApiError, KubeClient, ObjectKey
from .unstructured import FieldTypeError, nested_map

log = logging.getLogger(__name__)


class Lifecycle:
    """Looks up the pods managed by higher-level workload objects."""

    def __init__(self, client: KubeClient) -> None:
        self.client = client

    def pods_from_daemonset(self, key: ObjectKey) -> list[dict[str, Any]]:
        """Return the pods selected by the DaemonSet, or an empty list."""
        return self._pods_of("DaemonSet", key)

    def pods_from_deployment(self, key: ObjectKey) -> list[dict[str, Any]]:
        """Return the pods selected by the Deployment, or an empty list."""
        return self._pods_of("Deployment", key)

    def _pods_of(self, kind: str, key: ObjectKey) -> list[dict[str, Any]]:
        try:
            owner = self.client.get(kind, key)
        except ApiError as err:
            log.warning("Failed to get %s %s: %s", kind, key, err)
            return []

        try:
            match_labels, _ = nested_map(owner, "spec", "selector", "matchLabels")
        except FieldTypeError as err:
            log.warning("Invalid selector in %s %s: %s", kind, key, err)
            return []
        labels = {str(k): str(v) for k, v in (match_labels or {}).items()}

        try:
            return self.client.list("Pod", key.namespace, labels)
        except ApiError as err:
            log.warning("Failed to list Pods in %s with labels %s: %s", key.namespace, labels, err)
            return []