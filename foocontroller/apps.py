"""The Deployment objects that the controller creates and watches."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Optional

from foocontroller.meta import ObjectMeta, TypeMeta


@dataclass
class Container:
    name: str
    image: str = ""


@dataclass
class PodSpec:
    containers: list[Container] = field(default_factory=list)


@dataclass
class PodTemplateSpec:
    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    spec: PodSpec = field(default_factory=PodSpec)


@dataclass
class LabelSelector:
    match_labels: dict[str, str] = field(default_factory=dict)


@dataclass
class DeploymentSpec:
    replicas: Optional[int] = None
    selector: Optional[LabelSelector] = None
    template: PodTemplateSpec = field(default_factory=PodTemplateSpec)


@dataclass
class DeploymentStatus:
    replicas: int = 0
    ready_replicas: int = 0
    available_replicas: int = 0


@dataclass
class Deployment:
    type_meta: TypeMeta = field(default_factory=TypeMeta)
    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    spec: DeploymentSpec = field(default_factory=DeploymentSpec)
    status: DeploymentStatus = field(default_factory=DeploymentStatus)

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> str:
        return self.metadata.namespace

    def deep_copy(self) -> Deployment:
        return copy.deepcopy(self)