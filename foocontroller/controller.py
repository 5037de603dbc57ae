"""The Foo controller: keeps a Deployment in step with every Foo resource."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Protocol

from foocontroller.apps import (
    Container,
    Deployment,
    DeploymentSpec,
    LabelSelector,
    PodSpec,
    PodTemplateSpec,
)
from foocontroller.meta import (
    NotFoundError,
    ObjectMeta,
    ObjectName,
    get_controller_of,
    is_controlled_by,
    new_controller_ref,
    object_to_name,
)
from foocontroller.types import SCHEME_GROUP_VERSION, Foo, Scheme, add_to_scheme
from foocontroller.workqueue import (
    RateLimitingQueue,
    ShutDown,
    default_controller_rate_limiter,
)

log = logging.getLogger(__name__)

CONTROLLER_AGENT_NAME = "sample-controller"
FIELD_MANAGER = CONTROLLER_AGENT_NAME

SUCCESS_SYNCED = "Synced"
ERR_RESOURCE_EXISTS = "ErrResourceExists"
MESSAGE_RESOURCE_EXISTS = 'Resource "{}" already exists and is not managed by Foo'
MESSAGE_RESOURCE_SYNCED = "Foo synced successfully"

EVENT_TYPE_NORMAL = "Normal"
EVENT_TYPE_WARNING = "Warning"

_SYNC_POLL_INTERVAL = 0.1
_WORKER_RESTART_PERIOD = 1.0


class FooLister(Protocol):
    def get(self, namespace: str, name: str) -> Foo: ...


class DeploymentLister(Protocol):
    def get(self, namespace: str, name: str) -> Deployment: ...


class DeploymentClient(Protocol):
    def create(self, deployment: Deployment, *, field_manager: str) -> Deployment: ...

    def update(self, deployment: Deployment, *, field_manager: str) -> Deployment: ...


class FooClient(Protocol):
    def update_status(self, foo: Foo, *, field_manager: str) -> Foo: ...


class EventRecorder(Protocol):
    def event(self, obj: Any, event_type: str, reason: str, message: str) -> None: ...


@dataclass(frozen=True)
class DeletedFinalStateUnknown:
    """Stands in for an object whose deletion was seen only after the fact."""

    key: str
    obj: Any


@dataclass(frozen=True)
class Event:
    object_ref: ObjectName
    event_type: str
    reason: str
    message: str


@dataclass
class RecordingEventRecorder:
    """An event recorder that keeps every event it is given and logs it."""

    events: list[Event] = field(default_factory=list)

    def event(self, obj: Any, event_type: str, reason: str, message: str) -> None:
        ev = Event(object_to_name(obj), event_type, reason, message)
        self.events.append(ev)
        log.info("Event(%s): type=%s reason=%s %s", ev.object_ref, event_type, reason, message)


class CacheSyncError(RuntimeError):
    """Raised when the caches did not sync before shutdown was requested."""


class ResourceExistsError(RuntimeError):
    """Raised when a Deployment of the wanted name is not owned by the Foo."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(MESSAGE_RESOURCE_EXISTS.format(name))


def _has_object_meta(obj: Any) -> bool:
    return isinstance(getattr(obj, "metadata", None), ObjectMeta)


def new_deployment(foo: Foo) -> Deployment:
    """Build the Deployment a Foo asks for, owned by that Foo."""
    labels = {"app": "nginx", "controller": foo.name}
    return Deployment(
        metadata=ObjectMeta(
            name=foo.spec.deployment_name,
            namespace=foo.namespace,
            owner_references=[new_controller_ref(foo, SCHEME_GROUP_VERSION.with_kind("Foo"))],
        ),
        spec=DeploymentSpec(
            replicas=foo.spec.replicas,
            selector=LabelSelector(match_labels=dict(labels)),
            template=PodTemplateSpec(
                metadata=ObjectMeta(labels=dict(labels)),
                spec=PodSpec(containers=[Container(name="nginx", image="nginx:latest")]),
            ),
        ),
    )


class Controller:
    """Reconciles Foo resources with the Deployments they describe.

    Event sources should call ``enqueue_foo`` for added or updated Foos,
    ``handle_object`` for added or deleted Deployments and
    ``handle_deployment_update`` for updated Deployments.
    """

    def __init__(
        self,
        deployments: DeploymentClient,
        foos: FooClient,
        deployment_lister: DeploymentLister,
        foo_lister: FooLister,
        *,
        recorder: Optional[EventRecorder] = None,
        queue: Optional[RateLimitingQueue] = None,
        deployments_synced: Optional[Callable[[], bool]] = None,
        foos_synced: Optional[Callable[[], bool]] = None,
        scheme: Optional[Scheme] = None,
    ) -> None:
        if scheme is not None:
            add_to_scheme(scheme)
        self.deployments = deployments
        self.foos = foos
        self.deployment_lister = deployment_lister
        self.foo_lister = foo_lister
        self.recorder: EventRecorder = recorder if recorder is not None else RecordingEventRecorder()
        self.queue = (
            queue if queue is not None else RateLimitingQueue(default_controller_rate_limiter())
        )
        self.deployments_synced = deployments_synced or (lambda: True)
        self.foos_synced = foos_synced or (lambda: True)

    def enqueue_foo(self, obj: Any) -> None:
        """Queue the namespace/name of a Foo for processing."""
        try:
            ref = object_to_name(obj)
        except TypeError as exc:
            log.error("%s", exc)
            return
        self.queue.add(ref)

    def handle_object(self, obj: Any) -> None:
        """Queue the Foo that controls ``obj``, if a Foo controls it."""
        if not _has_object_meta(obj):
            if not isinstance(obj, DeletedFinalStateUnknown):
                log.error("Error decoding object, invalid type: %s", type(obj).__name__)
                return
            if not _has_object_meta(obj.obj):
                log.error("Error decoding object tombstone, invalid type: %s", type(obj.obj).__name__)
                return
            obj = obj.obj
            log.debug("Recovered deleted object %s", obj.metadata.name)
        log.debug("Processing object %s", object_to_name(obj))
        owner = get_controller_of(obj)
        if owner is None or owner.kind != "Foo":
            return
        try:
            foo = self.foo_lister.get(obj.metadata.namespace, owner.name)
        except NotFoundError:
            log.debug("Ignore orphaned object %s of foo %s", object_to_name(obj), owner.name)
            return
        self.enqueue_foo(foo)

    def handle_deployment_update(self, old: Deployment, new: Deployment) -> None:
        """Handle a Deployment update, skipping periodic resyncs of the same version."""
        if new.metadata.resource_version == old.metadata.resource_version:
            return
        self.handle_object(new)

    def sync_handler(self, object_ref: ObjectName) -> None:
        """Bring the Deployment of one Foo to the desired state and record its status."""
        try:
            foo = self.foo_lister.get(object_ref.namespace, object_ref.name)
        except NotFoundError:
            log.error("Foo referenced by item in work queue no longer exists: %s", object_ref)
            return

        deployment_name = foo.spec.deployment_name
        if not deployment_name:
            log.error("Deployment name missing from object reference: %s", object_ref)
            return

        try:
            deployment = self.deployment_lister.get(foo.namespace, deployment_name)
        except NotFoundError:
            deployment = self.deployments.create(new_deployment(foo), field_manager=FIELD_MANAGER)

        if not is_controlled_by(deployment, foo):
            error = ResourceExistsError(deployment.name)
            self.recorder.event(foo, EVENT_TYPE_WARNING, ERR_RESOURCE_EXISTS, str(error))
            raise error

        if foo.spec.replicas is not None and foo.spec.replicas != deployment.spec.replicas:
            log.debug(
                "Update deployment resource: current replicas %s, desired replicas %s",
                deployment.spec.replicas,
                foo.spec.replicas,
            )
            deployment = self.deployments.update(new_deployment(foo), field_manager=FIELD_MANAGER)

        self.update_foo_status(foo, deployment)
        self.recorder.event(foo, EVENT_TYPE_NORMAL, SUCCESS_SYNCED, MESSAGE_RESOURCE_SYNCED)

    def update_foo_status(self, foo: Foo, deployment: Deployment) -> Foo:
        """Write the Deployment's available replicas into a copy of the Foo's status."""
        foo_copy = foo.deep_copy()
        foo_copy.status.available_replicas = deployment.status.available_replicas
        return self.foos.update_status(foo_copy, field_manager=FIELD_MANAGER)

    def process_next_work_item(self) -> bool:
        """Process one queued item; return False once the queue has shut down."""
        try:
            ref = self.queue.get()
        except ShutDown:
            return False
        try:
            self.sync_handler(ref)
        except Exception:
            log.exception("Error syncing %s; requeuing for later retry", ref)
            self.queue.add_rate_limited(ref)
        else:
            self.queue.forget(ref)
            log.info("Successfully synced %s", ref)
        finally:
            self.queue.done(ref)
        return True

    def run_worker(self) -> None:
        while self.process_next_work_item():
            pass

    def _worker_loop(self, stop_event: threading.Event) -> None:
        while not stop_event.is_set() and not self.queue.shutting_down():
            try:
                self.run_worker()
            except Exception:
                log.exception("Worker crashed")
            stop_event.wait(_WORKER_RESTART_PERIOD)

    def run(self, stop_event: threading.Event, workers: int) -> None:
        """Wait for caches, run workers until ``stop_event`` is set, then shut down."""
        threads: list[threading.Thread] = []
        try:
            log.info("Starting Foo controller")
            log.info("Waiting for informer caches to sync")
            while not (self.deployments_synced() and self.foos_synced()):
                if stop_event.wait(_SYNC_POLL_INTERVAL):
                    raise CacheSyncError("failed to wait for caches to sync")

            log.info("Starting %d workers", workers)
            for n in range(workers):
                thread = threading.Thread(
                    target=self._worker_loop, args=(stop_event,), name=f"foo-worker-{n}", daemon=True
                )
                thread.start()
                threads.append(thread)
            log.info("Started workers")
            stop_event.wait()
            log.info("Shutting down workers")
        finally:
            self.queue.shut_down()
            for thread in threads:
                thread.join()