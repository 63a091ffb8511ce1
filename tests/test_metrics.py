import pytest

from sroperator.metrics import (
    COMPLETED_KIND_QUERY,
    COMPLETED_STATES_QUERY,
    CREATED_SPECIAL_RESOURCES_QUERY,
    UPGRADE_ALERT_QUERY,
    USED_NODES_QUERY,
    Gauge,
    GaugeVec,
    Metrics,
    Registry,
)

SR = "simple-kmod"
STATE = "templates/0000-buildconfig.yaml"
KIND = "BuildConfig"
NAME = "simple-kmod-driver-build"
NAMESPACE = "openshift-special-resource-operator"
NODES_LIST = "node1,node2,node3"


def find(families, query):
    return next((family for family in families if family.name == query), None)


def test_metrics_pass_calls_to_collectors():
    registry = Registry()
    m = Metrics(registry)
    m.set_special_resources_created(1)
    m.set_completed_state(SR, STATE, 2)
    m.set_completed_kind(SR, KIND, NAME, NAMESPACE, 2)
    m.set_used_nodes(SR, KIND, NAME, NAMESPACE, NODES_LIST)
    m.set_upgrade_alert(SR, 1)

    expected = [
        (CREATED_SPECIAL_RESOURCES_QUERY, 1),
        (COMPLETED_STATES_QUERY, 2),
        (COMPLETED_KIND_QUERY, 2),
        (USED_NODES_QUERY, 1),
        (UPGRADE_ALERT_QUERY, 1),
    ]
    data = registry.gather()
    assert len(data) == len(expected)
    for query, value in expected:
        family = find(data, query)
        assert family is not None
        assert len(family.samples) == 1
        assert family.samples[0].value == value


def test_used_nodes_labels():
    registry = Registry()
    Metrics(registry).set_used_nodes(SR, KIND, NAME, NAMESPACE, NODES_LIST)
    family = find(registry.gather(), USED_NODES_QUERY)
    assert family.samples[0].labels == {
        "cr": SR,
        "kind": KIND,
        "name": NAME,
        "namespace": NAMESPACE,
        "nodes": NODES_LIST,
    }


def test_unset_vectors_are_not_gathered():
    registry = Registry()
    Metrics(registry)
    assert [family.name for family in registry.gather()] == [CREATED_SPECIAL_RESOURCES_QUERY]


def test_gauge_vec_wrong_label_count():
    vec = GaugeVec("x", "help", ["a", "b"])
    with pytest.raises(ValueError):
        vec.labels("only-one")


def test_gauge_vec_reuses_child():
    vec = GaugeVec("x", "help", ["a"])
    vec.labels("one").set(3)
    vec.labels("one").set(5)
    registry = Registry()
    registry.register(vec)
    (family,) = registry.gather()
    assert [(s.labels, s.value) for s in family.samples] == [({"a": "one"}, 5.0)]


def test_duplicate_registration_rejected():
    registry = Registry()
    registry.register(Gauge("dup", "help"))
    with pytest.raises(ValueError):
        registry.register(Gauge("dup", "other"))