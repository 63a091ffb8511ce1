"""Waiting for cluster objects to become available, ready or gone."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from .clients import ApiError, KubeClient, NotFoundError, ObjectKey
from .lifecycle import Lifecycle
from .readiness import (
    ReadinessError,
    daemonset_ready,
    job_complete,
    log_tail_matches,
    replicasets_ready,
    statefulset_ready,
    status_matches,
)
from .unstructured import (
    FieldTypeError,
    annotations_of,
    kind_of,
    labels_of,
    name_of,
    namespace_of,
    nested_map,
    nested_slice,
    nested_string,
)

log = logging.getLogger(__name__)

TEMPLATE_GENERATION_ANNOTATION = "deprecated.daemonset.template.generation"
TEMPLATE_GENERATION_LABEL = "pod-template-generation"

Check = Callable[[dict[str, Any]], bool]


class PollError(Exception):
    """A resource has not reached the awaited state, or could not be checked."""


def _ref(obj: dict[str, Any]) -> str:
    return f"{namespace_of(obj)}/{name_of(obj)}"


def _key(obj: dict[str, Any]) -> ObjectKey:
    return ObjectKey(namespace_of(obj), name_of(obj))


class Poller:
    """Checks whether objects created for a special resource are ready."""

    def __init__(
        self,
        client: KubeClient,
        lifecycle: Lifecycle | None = None,
        namespace: str | None = None,
    ) -> None:
        self.client = client
        self.lifecycle = lifecycle if lifecycle is not None else Lifecycle(client)
        self.namespace = namespace or None
        self._wait_for: dict[str, Callable[[dict[str, Any]], None]] = {
            "Pod": self._for_pod,
            "DaemonSet": self.for_daemonset,
            "BuildConfig": self._for_build,
            "Secret": self._for_resource_availability,
            "CustomResourceDefinition": self._for_crd,
            "Job": self._for_job,
            "Deployment": self._for_deployment,
            "StatefulSet": self._for_statefulset,
            "Namespace": self._for_resource_availability,
            "Certificates": self._for_resource_availability,
        }

    def for_resource(self, obj: dict[str, Any]) -> None:
        """Raise PollError unless the object is ready; kinds without a check pass."""
        kind = kind_of(obj)
        wait = self._wait_for.get(kind)
        if wait is None:
            log.warning("Missing wait function for the kind %s", kind)
            return
        try:
            wait(obj)
        except PollError as err:
            raise PollError(
                f"waiting too long for resource {kind} {_ref(obj)}: {err}"
            ) from err

    def for_resource_unavailability(self, obj: dict[str, Any]) -> None:
        """Raise PollError unless the object is gone from the cluster."""
        try:
            self.client.get(kind_of(obj), _key(obj))
        except NotFoundError:
            return
        except ApiError as err:
            raise PollError(
                f"failed to get {_ref(obj)}, not due to unfound error: {err}"
            ) from err
        raise PollError(f"resource {_ref(obj)} still exists")

    def for_daemonset(self, obj: dict[str, Any]) -> None:
        """Raise PollError unless the DaemonSet exists, has no old pods and is available."""
        try:
            self._for_resource_availability(obj)
        except PollError as err:
            raise PollError(
                f"DaemonSet {_ref(obj)} is not available, probably not fully created yet: {err}"
            ) from err
        try:
            self._for_lifecycle_availability(obj)
        except PollError as err:
            raise PollError(
                f"lifecycle availability of the DaemonSet {_ref(obj)} is not verified yet: {err}"
            ) from err
        self._for_full_availability(obj, daemonset_ready)

    def for_daemonset_logs(self, obj: dict[str, Any], pattern: str) -> None:
        """Raise PollError unless the log tail of every DaemonSet pod matches ``pattern``."""
        selector = labels_of(obj).get("app")
        if selector is None:
            raise PollError(
                f"cannot find Label app= for DaemonSet {_ref(obj)}, "
                "missing take a look at the manifests"
            )
        try:
            pods = self.client.list("Pod", self.namespace, {"app": selector})
        except ApiError as err:
            raise PollError(f"could not get PodList of Daemonset {_ref(obj)}: {err}") from err

        for pod in pods:
            try:
                logs = self.client.get_pod_logs(namespace_of(pod), name_of(pod))
            except ApiError as err:
                raise PollError(
                    f"error in opening stream for pod {_ref(pod)}: {err}"
                ) from err
            try:
                matched = log_tail_matches(logs, pattern)
            except ReadinessError as err:
                raise PollError(str(err)) from err
            if not matched:
                raise PollError(f"not yet done; not matched against {pattern!r}")

    def _for_resource_availability(self, obj: dict[str, Any]) -> None:
        try:
            self.client.get(kind_of(obj), _key(obj))
        except NotFoundError as err:
            raise PollError(f"{_ref(obj)} does not exist yet") from err
        except ApiError as err:
            raise PollError(f"failed to get {_ref(obj)}: {err}") from err

    def _for_full_availability(self, obj: dict[str, Any], check: Check) -> None:
        kind = kind_of(obj)
        try:
            found = self.client.get(kind, _key(obj))
        except ApiError as err:
            raise PollError(f"failed to get object {kind}/{_ref(obj)}: {err}") from err
        try:
            ready = check(found)
        except ReadinessError as err:
            raise PollError(f"callback failed for {kind}/{_ref(obj)}: {err}") from err
        if not ready:
            raise PollError(f"resource {kind}/{_ref(obj)} not available")

    def _checked_availability(self, obj: dict[str, Any], what: str) -> None:
        try:
            self._for_resource_availability(obj)
        except PollError as err:
            raise PollError(
                f"failed resource availability for {what} {_ref(obj)}: {err}"
            ) from err

    def _for_crd(self, obj: dict[str, Any]) -> None:
        self.client.invalidate()
        self._checked_availability(obj, "CRD")
        try:
            self.client.server_groups()
        except ApiError as err:
            log.warning("failed to get ServerGroups for CRD: %s", err)

    def _for_pod(self, obj: dict[str, Any]) -> None:
        self._checked_availability(obj, "Pod")
        self._for_full_availability(
            obj, lambda found: status_matches(found, "Succeeded", "status", "phase")
        )

    def _for_statefulset(self, obj: dict[str, Any]) -> None:
        self._checked_availability(obj, "statefulset")
        self._for_full_availability(obj, statefulset_ready)

    def _for_job(self, obj: dict[str, Any]) -> None:
        self._checked_availability(obj, "job")
        self._for_full_availability(obj, job_complete)

    def _for_deployment(self, obj: dict[str, Any]) -> None:
        self._checked_availability(obj, "Deployment")
        self._for_full_availability(obj, self._deployment_ready)

    def _deployment_ready(self, deployment: dict[str, Any]) -> bool:
        try:
            match_labels, found = nested_map(deployment, "spec", "selector", "matchLabels")
        except FieldTypeError as err:
            raise ReadinessError(
                f"failed to obtain match labels from Deployment {_ref(deployment)}: {err}"
            ) from err
        if not found:
            return False
        labels = {str(k): str(v) for k, v in match_labels.items()}
        try:
            replicasets = self.client.list("ReplicaSet", namespace_of(deployment), labels)
        except ApiError as err:
            raise ReadinessError(f"failed to list ReplicaSets: {err}") from err
        return replicasets_ready(replicasets)

    def _for_lifecycle_availability(self, obj: dict[str, Any]) -> None:
        if kind_of(obj) != "DaemonSet":
            return
        try:
            strategy, found = nested_string(obj, "spec", "updateStrategy", "type")
        except FieldTypeError as err:
            raise PollError(
                f"failed to extract updatestrategy from DaemonSet {_ref(obj)}: {err}"
            ) from err
        if not found or strategy != "OnDelete":
            return

        template_generation = annotations_of(obj).get(TEMPLATE_GENERATION_ANNOTATION, "")
        for pod in self.lifecycle.pods_from_daemonset(_key(obj)):
            pod_generation = labels_of(pod).get(TEMPLATE_GENERATION_LABEL, "")
            if pod_generation != template_generation:
                raise PollError(
                    f"old pod {namespace_of(obj)}/{name_of(pod)} is still running"
                )

    def _for_build(self, obj: dict[str, Any]) -> None:
        self._checked_availability(obj, "Build")
        try:
            builds = self.client.list("Build", self.namespace)
        except ApiError as err:
            raise PollError(f"could not get BuildList: {err}") from err

        build = None
        for candidate in builds:
            try:
                owners, _ = nested_slice(candidate, "metadata", "ownerReferences")
            except FieldTypeError as err:
                raise PollError(
                    f"failed to get ownerreferences for BuildConfig {_ref(candidate)}: {err}"
                ) from err
            if any(
                isinstance(owner, dict) and owner.get("name") == name_of(obj)
                for owner in owners or []
            ):
                build = candidate
                break
        if build is None:
            raise PollError(f"Build {_ref(obj)} object not yet available")

        self._for_full_availability(
            build, lambda found: status_matches(found, "Complete", "status", "phase")
        )