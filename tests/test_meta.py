from dataclasses import dataclass, field

import pytest

from foocontroller.meta import (
    GROUP_NAME,
    GroupKind,
    GroupResource,
    GroupVersion,
    NotFoundError,
    ObjectMeta,
    ObjectName,
    OwnerReference,
    get_controller_of,
    is_controlled_by,
    new_controller_ref,
    object_to_name,
)


@dataclass
class _Thing:
    metadata: ObjectMeta = field(default_factory=ObjectMeta)


GV = GroupVersion(GROUP_NAME, "v1alpha1")


def test_group_version_string():
    assert str(GV) == "samplecontroller.k8s.io/v1alpha1"


def test_core_group_version_string_is_version():
    assert str(GroupVersion("", "v1")) == "v1"


def test_with_kind_group_kind():
    gvk = GV.with_kind("Foo")
    assert gvk.kind == "Foo"
    assert gvk.group_kind() == GroupKind(GROUP_NAME, "Foo")
    assert gvk.api_version == str(GV)


def test_with_resource_group_resource():
    gvr = GV.with_resource("foos")
    assert gvr.version == "v1alpha1"
    assert gvr.group_resource() == GroupResource(GROUP_NAME, "foos")


def test_new_controller_ref():
    owner = _Thing(ObjectMeta(name="test", namespace="default", uid="uid-1"))
    ref = new_controller_ref(owner, GV.with_kind("Foo"))
    assert ref.controller is True
    assert ref.block_owner_deletion is True
    assert ref.name == "test"
    assert ref.uid == "uid-1"
    assert ref.kind == "Foo"
    assert ref.api_version == str(GV)


def test_get_controller_of_none_without_refs():
    assert get_controller_of(_Thing()) is None


def test_get_controller_of_picks_controller():
    plain = OwnerReference("v1", "Other", "a")
    ctrl = OwnerReference("v1", "Foo", "b", uid="u", controller=True)
    obj = _Thing(ObjectMeta(owner_references=[plain, ctrl]))
    assert get_controller_of(obj) == ctrl


def test_is_controlled_by():
    owner = _Thing(ObjectMeta(name="test", uid="u1"))
    ref = new_controller_ref(owner, GV.with_kind("Foo"))
    child = _Thing(ObjectMeta(owner_references=[ref]))
    assert is_controlled_by(child, owner)
    stranger = _Thing(ObjectMeta(name="test", uid="u2"))
    assert not is_controlled_by(child, stranger)
    assert not is_controlled_by(_Thing(), owner)


def test_object_to_name():
    obj = _Thing(ObjectMeta(name="test", namespace="default"))
    name = object_to_name(obj)
    assert name == ObjectName("default", "test")
    assert str(name) == "default/test"


def test_object_name_without_namespace():
    assert str(ObjectName("", "test")) == "test"


def test_object_to_name_rejects_plain_values():
    with pytest.raises(TypeError):
        object_to_name(42)


def test_not_found_error_message():
    err = NotFoundError(GroupResource(GROUP_NAME, "foos"), "missing")
    assert err.name == "missing"
    assert '"missing"' in str(err)