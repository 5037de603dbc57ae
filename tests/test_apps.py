from foocontroller.apps import (
    Container,
    Deployment,
    DeploymentSpec,
    LabelSelector,
    PodSpec,
    PodTemplateSpec,
)
from foocontroller.meta import ObjectMeta


def _deployment():
    labels = {"app": "nginx", "controller": "test"}
    return Deployment(
        metadata=ObjectMeta(name="test-deployment", namespace="default"),
        spec=DeploymentSpec(
            replicas=1,
            selector=LabelSelector(match_labels=dict(labels)),
            template=PodTemplateSpec(
                metadata=ObjectMeta(labels=dict(labels)),
                spec=PodSpec(containers=[Container("nginx", "nginx:latest")]),
            ),
        ),
    )


def test_defaults():
    d = Deployment()
    assert d.spec.replicas is None
    assert d.spec.selector is None
    assert d.spec.template.spec.containers == []
    assert d.status.available_replicas == 0


def test_name_and_namespace():
    d = _deployment()
    assert d.name == "test-deployment"
    assert d.namespace == "default"


def test_deep_copy_is_independent():
    d = _deployment()
    dup = d.deep_copy()
    assert dup == d
    dup.spec.selector.match_labels["app"] = "changed"
    dup.spec.template.spec.containers.append(Container("sidecar"))
    dup.spec.replicas = 5
    assert d.spec.selector.match_labels["app"] == "nginx"
    assert len(d.spec.template.spec.containers) == 1
    assert d.spec.replicas == 1