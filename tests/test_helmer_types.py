import pytest

from sroperator.helmer_types import HelmChart, HelmRepo


def _repo():
    password = "password"
    return HelmRepo(
        name="chart-repo",
        url="cm://simple-kmod/simple-kmod-chart",
        username="user",
        password=password,
        cert_file="/certs/client.crt",
        key_file="/certs/client.key",
        ca_file="/certs/ca.crt",
        insecure_skip_tls_verify=True,
    )


def test_repo_serialised_keys():
    data = _repo().to_dict()
    assert data["certFile"] == "/certs/client.crt"
    assert data["keyFile"] == "/certs/client.key"
    assert data["caFile"] == "/certs/ca.crt"
    assert data["insecure_skip_tls_verify"] is True


def test_repo_round_trip():
    repo = _repo()
    assert HelmRepo.from_dict(repo.to_dict()) == repo


def test_repo_defaults_for_optional_fields():
    repo = HelmRepo.from_dict({"name": "r", "url": "cm://ns/r"})
    assert repo == HelmRepo(name="r", url="cm://ns/r")
    assert repo.insecure_skip_tls_verify is False


@pytest.mark.parametrize("missing", ["name", "url"])
def test_repo_requires_name_and_url(missing):
    data = {"name": "r", "url": "cm://ns/r", "password": "password"}
    del data[missing]
    with pytest.raises(ValueError):
        HelmRepo.from_dict(data)


def test_chart_round_trip():
    chart = HelmChart(
        name="simple-kmod", version="0.0.1", repository=_repo(), tags=["kmod", "driver"]
    )
    assert HelmChart.from_dict(chart.to_dict()) == chart


def test_chart_requires_repository():
    with pytest.raises(ValueError):
        HelmChart.from_dict({"name": "simple-kmod", "version": "0.0.1"})


def test_chart_null_tags_become_empty():
    chart = HelmChart.from_dict(
        {"name": "c", "version": "1", "repository": {"name": "r", "url": "u"}, "tags": None}
    )
    assert chart.tags == []


def test_chart_copy_is_independent():
    chart = HelmChart(name="c", version="1", repository=_repo(), tags=["a"])
    duplicate = chart.copy()
    assert duplicate == chart
    duplicate.tags.append("b")
    duplicate.repository.url = "cm://other/other-chart"
    assert chart.tags == ["a"]
    assert chart.repository == _repo()