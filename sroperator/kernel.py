"""Kernel version handling and kernel-affine naming of workload objects."""

from __future__ import annotations

from typing import Any

from .unstructured import (
    FieldTypeError,
    annotations_of,
    kind_of,
    name_of,
    nested_field,
    nested_map,
    set_nested_field,
)

KERNEL_AFFINE_ANNOTATION = "specialresource.openshift.io/kernel-affine"
KERNEL_VERSION_LABEL = "feature.node.kubernetes.io/kernel-version.full"

_FNV64_OFFSET = 0xCBF29CE484222325
_FNV64_PRIME = 0x100000001B3
_MASK64 = (1 << 64) - 1

_APP_LABEL_PATHS: dict[str, tuple[tuple[str, ...], ...]] = {
    "BuildRun": (("spec", "buildRef", "name"),),
    **{
        kind: (
            ("metadata", "labels", "app"),
            ("spec", "selector", "matchLabels", "app"),
            ("spec", "template", "metadata", "labels", "app"),
        )
        for kind in ("DaemonSet", "Deployment", "StatefulSet")
    },
}

# The spelling "Statefulset" is intentional: only that spelling receives affinity.
_NODE_SELECTOR_PATHS: dict[str, tuple[str, ...]] = {
    "DaemonSet": ("spec", "template", "spec", "nodeSelector"),
    "Deployment": ("spec", "template", "spec", "nodeSelector"),
    "Statefulset": ("spec", "template", "spec", "nodeSelector"),
    "Pod": ("spec", "nodeSelector"),
    "BuildConfig": ("spec", "nodeSelector"),
}


class KernelError(Exception):
    """Kernel information is missing or an object could not be made kernel affine."""


def _fnv64a(text: str) -> str:
    value = _FNV64_OFFSET
    for byte in text.encode("utf-8"):
        value ^= byte
        value = (value * _FNV64_PRIME) & _MASK64
    return format(value, "x")


def set_affine_attributes(
    obj: dict[str, Any], kernel_full_version: str, operating_system_major_minor: str
) -> None:
    """Rename the object after the OS and kernel version and pin it to that kernel."""
    kernel_version = kernel_full_version.replace("_", "-")
    digest = _fnv64a(f"{operating_system_major_minor}-{kernel_version}")
    name = f"{name_of(obj)}-{digest}"
    kind = kind_of(obj)

    try:
        set_nested_field(obj, name, "metadata", "name")
    except FieldTypeError as err:
        raise KernelError(f"could not set metadata.name in {kind} object: {err}") from err

    for path in _APP_LABEL_PATHS.get(kind, ()):
        try:
            set_nested_field(obj, name, *path)
        except FieldTypeError as err:
            raise KernelError(
                f"could not set {'.'.join(path)} in {kind} object: {err}"
            ) from err

    try:
        set_version_node_affinity(obj, kernel_full_version)
    except KernelError as err:
        raise KernelError(
            f"cannot set kernel version node affinity for obj {kind}: {err}"
        ) from err


def set_version_node_affinity(obj: dict[str, Any], kernel_full_version: str) -> None:
    """Add the kernel version to the node selector of the kinds that have one."""
    kind = kind_of(obj)
    fields = _NODE_SELECTOR_PATHS.get(kind)
    if fields is None:
        return
    joined = ".".join(fields)
    try:
        selector, found = nested_map(obj, *fields)
    except FieldTypeError as err:
        raise KernelError(
            f"cannot setup {kind}'s kernel version affinity: couldn't find {joined}: {err}"
        ) from err
    if not found:
        selector = {}
    selector[KERNEL_VERSION_LABEL] = kernel_full_version
    try:
        set_nested_field(obj, selector, *fields)
    except FieldTypeError as err:
        raise KernelError(
            f"cannot setup {kind}'s kernel version affinity: couldn't set {joined}: {err}"
        ) from err


def is_object_affine(obj: dict[str, Any]) -> bool:
    """Whether the object is annotated as kernel affine."""
    return annotations_of(obj).get(KERNEL_AFFINE_ANNOTATION) == "true"


def full_version(nodes: list[dict[str, Any]]) -> str:
    """Return the kernel version of the nodes, which are assumed to share one."""
    version = ""
    for node in nodes:
        try:
            value, found = nested_field(node, "status", "nodeInfo", "kernelVersion")
        except FieldTypeError:
            value, found = None, False
        version = value if found and isinstance(value, str) else ""
        if not version:
            raise KernelError(f"kernel not found for node {name_of(node)}")
    return version


def patch_version(kernel_full_version: str) -> str:
    """Return ``version.major.minor-patch``, or ``version.major.minor`` without a patch."""
    version, sep, rest = kernel_full_version.partition("-")
    if not sep:
        short = kernel_full_version.split(".")
        if len(short) < 3:
            raise KernelError(f"malformed kernel version {kernel_full_version!r}")
        return ".".join(short[:3])
    patch = rest.split("-")[0].split(".")[0]
    return f"{version}-{patch}"