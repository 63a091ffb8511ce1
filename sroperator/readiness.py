"""Checks that tell whether a workload object has reached its ready state."""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Any

from .unstructured import (
    FieldTypeError,
    name_of,
    namespace_of,
    nested_int,
    nested_map,
    nested_slice,
    nested_string,
)

LOG_TAIL_BYTES = 100


class ReadinessError(Exception):
    """An object cannot be checked for readiness."""


def _ref(obj: dict[str, Any]) -> str:
    return f"{namespace_of(obj)}/{name_of(obj)}"


def _int_if_present(obj: dict[str, Any], *fields: str) -> tuple[int | None, bool]:
    """Read an integer field; a value of the wrong type counts as absent."""
    try:
        return nested_int(obj, *fields)
    except FieldTypeError:
        return None, False


def status_matches(obj: dict[str, Any], expected: int | str, *args: str) -> bool:
    """Whether the field at ``args`` equals ``expected``; the field must exist."""
    if isinstance(expected, bool) or not isinstance(expected, (int, str)):
        raise ReadinessError(
            f"unhandled type for status field: {type(expected).__name__}"
        )
    reader, label = (nested_string, "string") if isinstance(expected, str) else (nested_int, "int")
    try:
        current, found = reader(obj, *args)
    except FieldTypeError as err:
        raise ReadinessError(f"error accessing unstructured object {_ref(obj)}: {err}") from err
    if not found:
        raise ReadinessError(
            f"{label} field {','.join(args)} in unstructured object {_ref(obj)} not found"
        )
    return current == expected


def statefulset_ready(obj: dict[str, Any]) -> bool:
    """Whether the StatefulSet runs as many current replicas as it asks for."""
    try:
        replicas, found = nested_int(obj, "spec", "replicas")
    except FieldTypeError as err:
        raise ReadinessError(
            f"failed to obtain amount of replicas from StatefulSet {_ref(obj)}: {err}"
        ) from err
    if not found:
        raise ReadinessError(f"missing .spec.replicas from StatefulSet {_ref(obj)}")
    try:
        status, found = nested_map(obj, "status")
    except FieldTypeError as err:
        raise ReadinessError(
            f"failed to obtain status from StatefulSet {_ref(obj)}: {err}"
        ) from err
    if not found or "currentReplicas" not in status:
        return False
    return status["currentReplicas"] == replicas


def job_complete(obj: dict[str, Any]) -> bool:
    """Whether the Job has a true condition of type Complete."""
    try:
        conditions, found = nested_slice(obj, "status", "conditions")
    except FieldTypeError as err:
        raise ReadinessError(
            f"failed to obtain conditions from Job {_ref(obj)}: {err}"
        ) from err
    if not found:
        return False

    for condition in conditions:
        if not isinstance(condition, dict):
            raise ReadinessError(f"malformed condition in job {_ref(obj)}: {condition!r}")
        try:
            status, found = nested_string(condition, "status")
        except FieldTypeError as err:
            raise ReadinessError(
                f"failed to obtain condition status from job {_ref(obj)}: {err}"
            ) from err
        if not found:
            raise ReadinessError(
                f"status of the condition is not found in the job {_ref(obj)}"
            )
        if status != "True":
            continue
        try:
            condition_type, found = nested_string(condition, "type")
        except FieldTypeError as err:
            raise ReadinessError(
                f"failed to obtain type of the condition of job {_ref(obj)}: {err}"
            ) from err
        if not found:
            raise ReadinessError(
                f"type field of the condition of the job {_ref(obj)} is not found"
            )
        if condition_type == "Complete":
            return True
    return False


def daemonset_ready(obj: dict[str, Any]) -> bool:
    """Whether the DaemonSet's pods are available on every node that should run them."""
    try:
        desired, found = nested_int(obj, "status", "desiredNumberScheduled")
    except FieldTypeError as err:
        raise ReadinessError(
            f"failed to get desiredNumberScheduled from status of DaemonSet {_ref(obj)}: {err}"
        ) from err
    if not found:
        raise ReadinessError(
            f"failed to find desiredNumberScheduled from status of DaemonSet {_ref(obj)}"
        )

    _, has_available = _int_if_present(obj, "status", "numberAvailable")
    if has_available:
        return status_matches(obj, desired, "status", "numberAvailable")
    _, has_unavailable = _int_if_present(obj, "status", "numberUnavailable")
    if has_unavailable:
        return status_matches(obj, 0, "status", "numberUnavailable")
    return False


def _replica_count(rs: dict[str, Any], status: dict[str, Any], field: str) -> int:
    value = status[field]
    if isinstance(value, bool) or not isinstance(value, int):
        raise ReadinessError(f"{field} of ReplicaSet {_ref(rs)} is not an integer: {value!r}")
    return value


def replicasets_ready(replicasets: Iterable[dict[str, Any]]) -> bool:
    """Whether every ReplicaSet with replicas has all of them available."""
    for rs in replicasets:
        try:
            status, found = nested_map(rs, "status")
        except FieldTypeError as err:
            raise ReadinessError(
                f"failed to obtain status from ReplicaSet {_ref(rs)}: {err}"
            ) from err
        if not found or "replicas" not in status:
            return False
        replicas = _replica_count(rs, status, "replicas")
        if replicas == 0:
            continue
        if "availableReplicas" not in status:
            return False
        if _replica_count(rs, status, "availableReplicas") != replicas:
            return False
    return True


def log_tail_matches(logs: str | bytes, pattern: str) -> bool:
    """Whether the last hundred bytes of the logs contain a match of ``pattern``."""
    data = logs.encode("utf-8") if isinstance(logs, str) else bytes(logs)
    tail = data[-LOG_TAIL_BYTES:].decode("utf-8", errors="replace")
    try:
        return re.search(pattern, tail) is not None
    except re.error as err:
        raise ReadinessError(f"error matching pattern {pattern!r}: {err}") from err