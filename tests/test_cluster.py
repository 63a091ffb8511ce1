import pytest

from sroperator.clients import InMemoryClient, NotFoundError, UnauthorizedError
from sroperator.cluster import Cluster, ClusterError

REGISTRY = "reg.io/release/repo"


class FailingClient(InMemoryClient):
    def __init__(self, error):
        super().__init__()
        self.error = error

    def get(self, kind, key):
        raise self.error


def cluster_version(history):
    return {
        "apiVersion": "config.openshift.io/v1",
        "kind": "ClusterVersion",
        "metadata": {"name": "version"},
        "status": {"history": history},
    }


def test_version_client_error():
    error = UnauthorizedError("some error")
    with pytest.raises(ClusterError) as info:
        Cluster(FailingClient(error)).version()
    assert info.value.__cause__ is error


def test_version_without_history():
    client = InMemoryClient([cluster_version([])])
    with pytest.raises(ClusterError):
        Cluster(client).version()


@pytest.mark.parametrize(
    "given, full, major_minor",
    [("1.2", "1.2", "1.2"), ("1", "1", "1")],
)
def test_version_completed(given, full, major_minor):
    client = InMemoryClient([cluster_version([{"state": "Completed", "version": given}])])
    assert Cluster(client).version() == (full, major_minor)


def test_version_skips_partial_entries():
    client = InMemoryClient(
        [
            cluster_version(
                [
                    {"state": "Partial", "version": "4.11.0"},
                    {"state": "Completed", "version": "4.10.3"},
                ]
            )
        ]
    )
    assert Cluster(client).version() == ("4.10.3", "4.10")


def config_map(data):
    return {
        "apiVersion": "v1",
        "kind": "ConfigMap",
        "metadata": {
            "name": "machine-config-osimageurl",
            "namespace": "openshift-machine-config-operator",
        },
        "data": data,
    }


def test_os_image_url_missing_config_map():
    with pytest.raises(ClusterError) as info:
        Cluster(InMemoryClient()).os_image_url()
    assert isinstance(info.value.__cause__, NotFoundError)


def test_os_image_url_missing_field():
    with pytest.raises(ClusterError):
        Cluster(InMemoryClient([config_map({})])).os_image_url()


def test_os_image_url_found():
    client = InMemoryClient([config_map({"osImageURL": "value"})])
    assert Cluster(client).os_image_url() == "value"


def test_dtk_images_get_failure():
    with pytest.raises(ClusterError):
        Cluster(FailingClient(UnauthorizedError("random error"))).get_dtk_images()


def test_dtk_images_sorted_newest_first():
    stream = {
        "apiVersion": "image.openshift.io/v1",
        "kind": "ImageStream",
        "metadata": {"name": "driver-toolkit", "namespace": "openshift"},
        "status": {
            "tags": [
                {
                    "tag": "latest",
                    "items": [
                        {"created": "2021-01-01T00:00:00Z", "dockerImageReference": REGISTRY + "@sha256:1"},
                        {"created": "2020-01-01T00:00:00Z", "dockerImageReference": REGISTRY + "@sha256:2"},
                        {"created": "2022-01-01T00:00:00Z", "dockerImageReference": REGISTRY + "@sha256:3"},
                    ],
                },
                {
                    "tag": "other",
                    "items": [
                        {"created": "2023-01-01T00:00:00Z", "dockerImageReference": REGISTRY + "@sha256:9"},
                    ],
                },
            ]
        },
    }
    urls = Cluster(InMemoryClient([stream])).get_dtk_images()
    assert urls == [REGISTRY + "@sha256:3", REGISTRY + "@sha256:1", REGISTRY + "@sha256:2"]