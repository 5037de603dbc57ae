"""The Foo resource of the v1alpha1 API version and its scheme registration."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Optional

from foocontroller.meta import (
    GROUP_NAME,
    GroupKind,
    GroupResource,
    GroupVersion,
    GroupVersionKind,
    ListMeta,
    ObjectMeta,
    OwnerReference,
    TypeMeta,
)

SCHEME_GROUP_VERSION = GroupVersion(GROUP_NAME, "v1alpha1")


@dataclass
class FooSpec:
    deployment_name: str = ""
    replicas: Optional[int] = None


@dataclass
class FooStatus:
    available_replicas: int = 0


def _owner_ref_to_dict(ref: OwnerReference) -> dict[str, Any]:
    data: dict[str, Any] = {
        "apiVersion": ref.api_version,
        "kind": ref.kind,
        "name": ref.name,
        "uid": ref.uid,
    }
    if ref.controller is not None:
        data["controller"] = ref.controller
    if ref.block_owner_deletion is not None:
        data["blockOwnerDeletion"] = ref.block_owner_deletion
    return data


def _owner_ref_from_dict(data: dict[str, Any]) -> OwnerReference:
    return OwnerReference(
        api_version=data.get("apiVersion", ""),
        kind=data.get("kind", ""),
        name=data.get("name", ""),
        uid=data.get("uid", ""),
        controller=data.get("controller"),
        block_owner_deletion=data.get("blockOwnerDeletion"),
    )


def _meta_to_dict(meta: ObjectMeta) -> dict[str, Any]:
    fields = (
        ("name", meta.name),
        ("namespace", meta.namespace),
        ("uid", meta.uid),
        ("resourceVersion", meta.resource_version),
    )
    data: dict[str, Any] = {key: value for key, value in fields if value}
    if meta.labels:
        data["labels"] = dict(meta.labels)
    if meta.owner_references:
        data["ownerReferences"] = [_owner_ref_to_dict(r) for r in meta.owner_references]
    return data


def _meta_from_dict(data: dict[str, Any]) -> ObjectMeta:
    return ObjectMeta(
        name=data.get("name", ""),
        namespace=data.get("namespace", ""),
        uid=data.get("uid", ""),
        resource_version=data.get("resourceVersion", ""),
        labels=dict(data.get("labels") or {}),
        owner_references=[_owner_ref_from_dict(r) for r in data.get("ownerReferences") or []],
    )


@dataclass
class Foo:
    """A specification for a Foo resource."""

    type_meta: TypeMeta = field(default_factory=TypeMeta)
    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    spec: FooSpec = field(default_factory=FooSpec)
    status: FooStatus = field(default_factory=FooStatus)

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> str:
        return self.metadata.namespace

    def deep_copy(self) -> Foo:
        return copy.deepcopy(self)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-shaped representation of this resource."""
        data: dict[str, Any] = {}
        if self.type_meta.api_version:
            data["apiVersion"] = self.type_meta.api_version
        if self.type_meta.kind:
            data["kind"] = self.type_meta.kind
        data["metadata"] = _meta_to_dict(self.metadata)
        data["spec"] = {
            "deploymentName": self.spec.deployment_name,
            "replicas": self.spec.replicas,
        }
        data["status"] = {"availableReplicas": self.status.available_replicas}
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Foo:
        spec = data.get("spec") or {}
        status = data.get("status") or {}
        return cls(
            type_meta=TypeMeta(data.get("apiVersion", ""), data.get("kind", "")),
            metadata=_meta_from_dict(data.get("metadata") or {}),
            spec=FooSpec(spec.get("deploymentName", ""), spec.get("replicas")),
            status=FooStatus(status.get("availableReplicas", 0)),
        )


@dataclass
class FooList:
    """A list of Foo resources."""

    type_meta: TypeMeta = field(default_factory=TypeMeta)
    metadata: ListMeta = field(default_factory=ListMeta)
    items: list[Foo] = field(default_factory=list)

    def deep_copy(self) -> FooList:
        return copy.deepcopy(self)


class Scheme:
    """A registry mapping group/version/kind triples to Python types."""

    def __init__(self) -> None:
        self._types: dict[GroupVersionKind, type] = {}
        self._kinds: dict[type, list[GroupVersionKind]] = {}

    def add_known_types(self, group_version: GroupVersion, *args: type) -> None:
        for typ in args:
            gvk = group_version.with_kind(typ.__name__)
            existing = self._types.get(gvk)
            if existing is typ:
                continue
            if existing is not None:
                raise ValueError(
                    f"kind {gvk.kind!r} of {group_version} is already registered "
                    f"to a different type"
                )
            self._types[gvk] = typ
            self._kinds.setdefault(typ, []).append(gvk)

    def type_for(self, gvk: GroupVersionKind) -> type:
        try:
            return self._types[gvk]
        except KeyError:
            raise KeyError(
                f"no kind {gvk.kind!r} is registered for version {gvk.api_version!r}"
            ) from None

    def kind_for(self, obj: Any) -> list[GroupVersionKind]:
        kinds = self._kinds.get(type(obj))
        if not kinds:
            raise KeyError(f"type {type(obj).__name__} is not registered")
        return list(kinds)


def kind(kind: str) -> GroupKind:
    """Qualify an unqualified kind with this API group."""
    return SCHEME_GROUP_VERSION.with_kind(kind).group_kind()


def resource(resource: str) -> GroupResource:
    """Qualify an unqualified resource with this API group."""
    return SCHEME_GROUP_VERSION.with_resource(resource).group_resource()


def add_to_scheme(scheme: Scheme) -> None:
    scheme.add_known_types(SCHEME_GROUP_VERSION, Foo, FooList)