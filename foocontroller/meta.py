"""API group identifiers, object metadata and owner-reference helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

GROUP_NAME = "samplecontroller.k8s.io"


@dataclass(frozen=True)
class GroupVersion:
    """An API group together with one of its versions."""

    group: str
    version: str

    def with_kind(self, kind: str) -> GroupVersionKind:
        return GroupVersionKind(self.group, self.version, kind)

    def with_resource(self, resource: str) -> GroupVersionResource:
        return GroupVersionResource(self.group, self.version, resource)

    def __str__(self) -> str:
        return f"{self.group}/{self.version}" if self.group else self.version


@dataclass(frozen=True)
class GroupKind:
    group: str
    kind: str

    def __str__(self) -> str:
        return f"{self.kind}.{self.group}" if self.group else self.kind


@dataclass(frozen=True)
class GroupResource:
    group: str
    resource: str

    def __str__(self) -> str:
        return f"{self.resource}.{self.group}" if self.group else self.resource


@dataclass(frozen=True)
class GroupVersionKind:
    group: str
    version: str
    kind: str

    def group_kind(self) -> GroupKind:
        return GroupKind(self.group, self.kind)

    @property
    def api_version(self) -> str:
        return str(GroupVersion(self.group, self.version))


@dataclass(frozen=True)
class GroupVersionResource:
    group: str
    version: str
    resource: str

    def group_resource(self) -> GroupResource:
        return GroupResource(self.group, self.resource)


@dataclass
class TypeMeta:
    api_version: str = ""
    kind: str = ""


@dataclass(frozen=True)
class OwnerReference:
    """A reference from a dependent object to the object that owns it."""

    api_version: str
    kind: str
    name: str
    uid: str = ""
    controller: Optional[bool] = None
    block_owner_deletion: Optional[bool] = None


@dataclass
class ObjectMeta:
    name: str = ""
    namespace: str = ""
    uid: str = ""
    resource_version: str = ""
    labels: dict[str, str] = field(default_factory=dict)
    owner_references: list[OwnerReference] = field(default_factory=list)


@dataclass
class ListMeta:
    resource_version: str = ""
    continue_token: str = ""


@dataclass(frozen=True)
class ObjectName:
    """The namespace and name that identify an object."""

    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}" if self.namespace else self.name


class NotFoundError(LookupError):
    """Raised when a requested object does not exist."""

    def __init__(self, resource: Any, name: str) -> None:
        self.resource = resource
        self.name = name
        super().__init__(f'{resource} "{name}" not found')


def _metadata(obj: Any) -> ObjectMeta:
    if isinstance(obj, ObjectMeta):
        return obj
    meta = getattr(obj, "metadata", None)
    if isinstance(meta, ObjectMeta):
        return meta
    raise TypeError(f"object of type {type(obj).__name__} has no object metadata")


def new_controller_ref(owner: Any, gvk: GroupVersionKind) -> OwnerReference:
    """Build a controlling owner reference pointing at ``owner``."""
    meta = _metadata(owner)
    return OwnerReference(
        api_version=gvk.api_version,
        kind=gvk.kind,
        name=meta.name,
        uid=meta.uid,
        controller=True,
        block_owner_deletion=True,
    )


def get_controller_of(obj: Any) -> Optional[OwnerReference]:
    """Return the owner reference marked as controller, if any."""
    return next(
        (ref for ref in _metadata(obj).owner_references if ref.controller),
        None,
    )


def is_controlled_by(obj: Any, owner: Any) -> bool:
    ref = get_controller_of(obj)
    return ref is not None and ref.uid == _metadata(owner).uid


def object_to_name(obj: Any) -> ObjectName:
    meta = _metadata(obj)
    return ObjectName(meta.namespace, meta.name)