"""Queries about the cluster itself: version, OS image and driver toolkit images."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from .clients import ApiError, KubeClient, ObjectKey
from .unstructured import FieldTypeError, nested_slice, nested_string

DTK_KEY = ObjectKey("openshift", "driver-toolkit")
OS_IMAGE_URL_KEY = ObjectKey("openshift-machine-config-operator", "machine-config-osimageurl")
CLUSTER_VERSION_KEY = ObjectKey("", "version")

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class ClusterError(Exception):
    """Cluster information could not be obtained."""


def _created(value: Any) -> datetime:
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, str) and value:
        moment = datetime.fromisoformat(value.replace("Z", "+00:00"))
    else:
        return _EPOCH
    return moment if moment.tzinfo else moment.replace(tzinfo=timezone.utc)


class Cluster:
    """Reads cluster-wide information through a client."""

    def __init__(self, client: KubeClient) -> None:
        self.client = client

    def get_dtk_images(self) -> list[str]:
        """Return the driver toolkit image references tagged latest, newest first."""
        try:
            stream = self.client.get("ImageStream", DTK_KEY)
        except ApiError as err:
            raise ClusterError(
                f"could not obtain openshift/driver-toolkit ImageStream: {err}"
            ) from err

        tags, _ = nested_slice(stream, "status", "tags")
        refs = [
            (item.get("dockerImageReference", ""), _created(item.get("created")))
            for tag in tags or []
            if isinstance(tag, dict) and tag.get("tag") == "latest"
            for item in tag.get("items") or []
            if isinstance(item, dict)
        ]
        refs.sort(key=lambda ref: ref[1], reverse=True)
        return [ref for ref, _ in refs]

    def version(self) -> tuple[str, str]:
        """Return the first completed version and its ``major.minor`` form."""
        try:
            cluster_version = self.client.get("ClusterVersion", CLUSTER_VERSION_KEY)
        except ApiError as err:
            raise ClusterError(f"failed to get cluster version object: {err}") from err

        history, _ = nested_slice(cluster_version, "status", "history")
        for entry in history or []:
            if not isinstance(entry, dict) or entry.get("state") != "Completed":
                continue
            full = entry.get("version", "")
            parts = full.split(".")
            major_minor = ".".join(parts[:2])
            return full, major_minor
        raise ClusterError("no cluster version deployment was completed")

    def os_image_url(self) -> str:
        """Return the OS image URL recorded by the machine config operator."""
        try:
            config_map = self.client.get("ConfigMap", OS_IMAGE_URL_KEY)
        except ApiError as err:
            raise ClusterError(
                "failed to find configmap machine-config-osimageurl in "
                f"openshift-machine-config-operator namespace: {err}"
            ) from err

        try:
            url, found = nested_string(config_map, "data", "osImageURL")
        except FieldTypeError as err:
            raise ClusterError(
                f"configmap machine-config-osimageurl invalid format: {err}"
            ) from err
        if not found:
            raise ClusterError(
                "osImageURL was not found in data of configmap machine-config-osimageurl"
            )
        return url