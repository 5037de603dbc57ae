import pytest

from foocontroller.meta import (
    GROUP_NAME,
    GroupKind,
    GroupResource,
    ObjectMeta,
    OwnerReference,
    TypeMeta,
)
from foocontroller.types import (
    SCHEME_GROUP_VERSION,
    Foo,
    FooList,
    FooSpec,
    FooStatus,
    Scheme,
    add_to_scheme,
    kind,
    resource,
)


def _foo(name="test", replicas=1):
    return Foo(
        type_meta=TypeMeta(api_version=str(SCHEME_GROUP_VERSION)),
        metadata=ObjectMeta(name=name, namespace="default"),
        spec=FooSpec(deployment_name=f"{name}-deployment", replicas=replicas),
    )


def test_scheme_group_version():
    assert SCHEME_GROUP_VERSION.group == GROUP_NAME == "samplecontroller.k8s.io"
    assert SCHEME_GROUP_VERSION.version == "v1alpha1"
    gvk = SCHEME_GROUP_VERSION.with_kind("Foo")
    assert gvk.group_kind() == GroupKind("samplecontroller.k8s.io", "Foo")


def test_kind_and_resource_are_group_qualified():
    assert kind("Foo") == GroupKind(GROUP_NAME, "Foo")
    assert resource("foos") == GroupResource(GROUP_NAME, "foos")


def test_name_and_namespace_properties():
    foo = _foo()
    assert foo.name == "test"
    assert foo.namespace == "default"


def test_deep_copy_is_independent():
    foo = _foo()
    foo.metadata.labels["app"] = "nginx"
    dup = foo.deep_copy()
    assert dup == foo
    dup.status.available_replicas = 3
    dup.metadata.labels["app"] = "other"
    assert foo.status.available_replicas == 0
    assert foo.metadata.labels["app"] == "nginx"


def test_to_dict_spec_and_status():
    data = _foo().to_dict()
    assert data["spec"] == {"deploymentName": "test-deployment", "replicas": 1}
    assert data["status"] == {"availableReplicas": 0}
    assert data["metadata"] == {"name": "test", "namespace": "default"}
    assert data["apiVersion"] == str(SCHEME_GROUP_VERSION)


def test_to_dict_keeps_missing_replicas_as_null():
    data = _foo(replicas=None).to_dict()
    assert data["spec"]["replicas"] is None


def test_round_trip_through_dict():
    foo = _foo()
    foo.metadata.owner_references.append(
        OwnerReference("v1", "Thing", "owner", uid="u", controller=True)
    )
    foo.metadata.labels["controller"] = "test"
    foo.status = FooStatus(available_replicas=2)
    assert Foo.from_dict(foo.to_dict()) == foo


def test_from_dict_defaults():
    foo = Foo.from_dict({})
    assert foo.spec.replicas is None
    assert foo.spec.deployment_name == ""
    assert foo.status.available_replicas == 0


def test_foo_list_deep_copy():
    items = FooList(items=[_foo("a"), _foo("b")])
    dup = items.deep_copy()
    assert dup == items
    dup.items[0].spec.replicas = 9
    assert items.items[0].spec.replicas == 1


def test_scheme_registration():
    scheme = Scheme()
    add_to_scheme(scheme)
    gvk = SCHEME_GROUP_VERSION.with_kind("Foo")
    assert scheme.type_for(gvk) is Foo
    assert scheme.kind_for(Foo()) == [gvk]
    assert scheme.type_for(SCHEME_GROUP_VERSION.with_kind("FooList")) is FooList


def test_scheme_registration_is_idempotent():
    scheme = Scheme()
    add_to_scheme(scheme)
    add_to_scheme(scheme)
    assert len(scheme.kind_for(Foo())) == 1


def test_scheme_unknown_lookups_raise():
    scheme = Scheme()
    with pytest.raises(KeyError):
        scheme.type_for(SCHEME_GROUP_VERSION.with_kind("Foo"))
    with pytest.raises(KeyError):
        scheme.kind_for(object())


def test_scheme_rejects_conflicting_type():
    scheme = Scheme()
    add_to_scheme(scheme)

    class Foo:  # noqa: F811 - deliberately clashes by name
        pass

    with pytest.raises(ValueError):
        scheme.add_known_types(SCHEME_GROUP_VERSION, Foo)