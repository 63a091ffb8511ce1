import pytest

from sroperator.unstructured import (
    FieldTypeError,
    annotations_of,
    kind_of,
    labels_of,
    name_of,
    namespace_of,
    nested_field,
    nested_int,
    nested_map,
    nested_slice,
    nested_string,
    owner_references_of,
    set_nested_field,
)


def test_set_then_get_round_trip_creates_parents():
    obj = {}
    set_nested_field(obj, "test-obj", "spec", "buildRef", "name")
    assert obj == {"spec": {"buildRef": {"name": "test-obj"}}}
    assert nested_string(obj, "spec", "buildRef", "name") == ("test-obj", True)


def test_missing_field_is_not_found():
    obj = {"spec": {}}
    assert nested_field(obj, "spec", "nodeSelector") == (None, False)
    assert nested_map(obj, "spec", "nodeSelector") == (None, False)


def test_accessing_through_non_mapping_raises():
    obj = {"spec": "text"}
    with pytest.raises(FieldTypeError):
        nested_field(obj, "spec", "replicas")


def test_set_through_non_mapping_raises():
    obj = {"spec": ["a"]}
    with pytest.raises(FieldTypeError):
        set_nested_field(obj, 1, "spec", "replicas")
    assert obj == {"spec": ["a"]}


def test_set_without_path_raises():
    with pytest.raises(ValueError):
        set_nested_field({}, 1)


def test_typed_accessors_check_types():
    obj = {"status": {"phase": 3, "replicas": "3", "flag": True}}
    with pytest.raises(FieldTypeError):
        nested_string(obj, "status", "phase")
    with pytest.raises(FieldTypeError):
        nested_int(obj, "status", "replicas")
    with pytest.raises(FieldTypeError):
        nested_int(obj, "status", "flag")
    with pytest.raises(FieldTypeError):
        nested_slice(obj, "status", "phase")


def test_nested_int_returns_value():
    obj = {}
    set_nested_field(obj, 7, "spec", "replicas")
    assert nested_int(obj, "spec", "replicas") == (7, True)


def test_nested_map_and_slice_return_copies():
    obj = {"spec": {"nodeSelector": {"a": "b"}, "items": [{"x": 1}]}}
    selector, found = nested_map(obj, "spec", "nodeSelector")
    assert found
    selector["c"] = "d"
    items, _ = nested_slice(obj, "spec", "items")
    items[0]["x"] = 2
    assert obj == {"spec": {"nodeSelector": {"a": "b"}, "items": [{"x": 1}]}}


def test_set_stores_a_copy():
    value = {"key": "value"}
    obj = {}
    set_nested_field(obj, value, "metadata", "labels")
    value["other"] = "x"
    assert labels_of(obj) == {"key": "value"}


def test_metadata_accessors():
    obj = {
        "kind": "DaemonSet",
        "metadata": {
            "name": "ds",
            "namespace": "ns",
            "labels": {"app": "ds"},
            "annotations": {"specialresource.openshift.io/kernel-affine": "true"},
            "ownerReferences": [{"kind": "SpecialResource", "name": "sr"}, "junk"],
        },
    }
    assert kind_of(obj) == "DaemonSet"
    assert name_of(obj) == "ds"
    assert namespace_of(obj) == "ns"
    assert labels_of(obj) == {"app": "ds"}
    assert annotations_of(obj) == {"specialresource.openshift.io/kernel-affine": "true"}
    assert owner_references_of(obj) == [{"kind": "SpecialResource", "name": "sr"}]


def test_metadata_accessors_on_empty_object():
    obj = {}
    assert (kind_of(obj), name_of(obj), namespace_of(obj)) == ("", "", "")
    assert labels_of(obj) == {}
    assert annotations_of(obj) == {}
    assert owner_references_of(obj) == []