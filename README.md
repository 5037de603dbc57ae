# foocontroller

`foocontroller` reconciles `Foo` resources with Deployments. Each `Foo` names
a Deployment in `spec.deployment_name`, and the controller makes sure that
Deployment exists. It also keeps the Deployment's replica count equal to
`spec.replicas` and copies the Deployment's available replicas into the
`Foo`'s status.

The package is pure Python and has no runtime dependencies.

## Modules

### `foocontroller.meta`

This module holds identifiers, metadata and owner-reference helpers.

- **Identifiers.** `GroupVersion` has `with_kind()` and `with_resource()`.
  `GroupVersionKind` has `group_kind()` and an `api_version` property.
  `GroupVersionResource` has `group_resource()`. The module also defines
  `GroupKind` and `GroupResource`.
- **Constant.** `GROUP_NAME` is `"samplecontroller.k8s.io"`.
- **Metadata.** `TypeMeta`, `ObjectMeta` and `ListMeta`. `ObjectMeta` has
  `name`, `namespace`, `uid`, `resource_version`, `labels` and
  `owner_references`. `OwnerReference` is frozen.
- **Object keys.** `ObjectName(namespace, name)` is the key used in the work
  queue. Its `str()` form is `namespace/name`.
- **Owner references:**
  - `new_controller_ref(owner, gvk)` builds a reference with
    `controller=True` and `block_owner_deletion=True`.
  - `get_controller_of(obj)` returns the owner reference marked as
    controller, or `None`.
  - `is_controlled_by(obj, owner)` compares the uid of that reference with
    the owner's uid.
  - `object_to_name(obj)` returns the object's `ObjectName`.

  These helpers raise `TypeError` when an object has no `ObjectMeta`.
- **Errors.** `NotFoundError(resource, name)` is a `LookupError`. Listers
  raise it when an object is missing.

### `foocontroller.types`

This module holds the `Foo` resource and the scheme that registers it.

- **`Foo`.** It has `type_meta`, `metadata`, `spec` (`FooSpec`:
  `deployment_name`, `replicas`) and `status` (`FooStatus`:
  `available_replicas`). The `name` and `namespace` properties read from
  `metadata`.
  - `deep_copy()` returns an independent copy.
  - `to_dict()` and `Foo.from_dict()` convert to and from the camelCase JSON
    shape: `apiVersion`, `metadata`, `spec.deploymentName`, `spec.replicas`
    and `status.availableReplicas`.
- **`FooList`.** It has `items` and a `deep_copy()`.
- **`Scheme`.** It maps group/version/kind to Python types.
  - `add_known_types(group_version, *types)` registers each type under its
    class name. Registering a kind again with a different type raises
    `ValueError`.
  - `type_for(gvk)` returns the registered type and raises `KeyError` if
    there is none.
  - `kind_for(obj)` returns the kinds registered for the object's type and
    raises `KeyError` if there are none.
- **Registration.** `SCHEME_GROUP_VERSION` is
  `samplecontroller.k8s.io/v1alpha1`. `add_to_scheme(scheme)` registers
  `Foo` and `FooList` under it.
- **Qualifying names.** `kind(name)` returns a name qualified with this
  group as a `GroupKind`, and `resource(name)` returns one as a
  `GroupResource`.

### `foocontroller.apps`

This module holds the Deployment model: `Deployment`, `DeploymentSpec`,
`DeploymentStatus`, `LabelSelector`, `PodTemplateSpec`, `PodSpec` and
`Container`. `Deployment` has `name`, `namespace` and `deep_copy()`.

### `foocontroller.workqueue`

This module holds the rate limiters and the work queue.

**Rate limiters.** Each one has `when(item)`, which returns a delay in
seconds, `forget(item)` and `num_requeues(item)`.

- `ItemExponentialFailureRateLimiter(base_delay, max_delay)` gives a delay of
  `base_delay * 2**failures` for each item, capped at `max_delay`.
- `BucketRateLimiter(rate, burst, clock=time.monotonic)` is one token bucket
  shared by all items. A `rate` that is not positive raises `ValueError`.
- `MaxOfRateLimiter(*limiters)` uses the longest delay of its limiters.
- `default_controller_rate_limiter()` combines a per-item backoff from 5 ms
  to 1000 s with a bucket of 50 per second and a burst of 300.

**`RateLimitingQueue(rate_limiter=None, clock=time.monotonic)`.** It never
hands the same item to two workers at once.

- `add(item)` queues an item. An item added while it is already queued is
  coalesced with the queued one.
- An item added while it is being processed is queued again when
  `done(item)` is called for it.
- `add_after(item, delay)` queues the item after a delay. `add_rate_limited(item)`
  uses the delay that the rate limiter asks for.
- `get(timeout=None)` blocks until an item is ready.
  - It raises `ShutDown` once the queue has been shut down and is empty.
  - It raises `queue.Empty` if `timeout` runs out first.
- `forget(item)` and `num_requeues(item)` pass through to the limiter.
- `shut_down()` drops delayed items and wakes any waiters. `shutting_down()`
  reports whether the queue has been shut down.
- `len(queue)` is the number of items ready to be taken.

### `foocontroller.signals`

- `shutdown_signals()` returns the signals this module watches: SIGINT and
  SIGTERM, or SIGINT alone on Windows.
- `setup_signal_handler()` installs handlers for those signals and returns a
  `threading.Event`.
  - The first signal sets the event.
  - A second signal ends the process with exit status 1.
  - Calling the function a second time raises `RuntimeError`.

### `foocontroller.controller`

- `new_deployment(foo)` builds the Deployment that a `Foo` asks for:
  - the name from `spec.deployment_name`, in the Foo's namespace;
  - the Foo's `spec.replicas`;
  - labels `app=nginx` and `controller=<foo name>` on both the selector and
    the pod template;
  - one `nginx` container running `nginx:latest`;
  - a controller owner reference to the `Foo`.
- `Controller(deployments, foos, deployment_lister, foo_lister, *, recorder=None, queue=None, deployments_synced=None, foos_synced=None, scheme=None)`
  takes these arguments:
  - `deployments` has `create(deployment, *, field_manager)` and
    `update(deployment, *, field_manager)`.
  - `foos` has `update_status(foo, *, field_manager)`.
  - Both listers have `get(namespace, name)` and raise `NotFoundError` when
    nothing is found.
  - `field_manager` is always `"sample-controller"`.
  - Left out, the recorder defaults to a `RecordingEventRecorder`. The queue
    defaults to a `RateLimitingQueue` with the default rate limiter. The
    sync checks default to "always synced".
  - If a `scheme` is given, `Foo` and `FooList` are registered in it.
- `RecordingEventRecorder` keeps every `Event(object_ref, event_type, reason, message)`
  in its `events` list and logs it.
- `DeletedFinalStateUnknown(key, obj)` is a tombstone for an object whose
  deletion was missed.

## Reconciling

`Controller.sync_handler(object_ref)` handles one `Foo`, given by its
`ObjectName`:

1. If the `Foo` is not found, it logs an error and returns.
2. If the `Foo` has an empty `deployment_name`, it logs an error and returns.
3. If the Deployment is not found, it creates one from `new_deployment(foo)`.
4. If the Deployment is not controlled by the `Foo`, it records a `Warning`
   event with reason `ErrResourceExists` and raises `ResourceExistsError`.
5. If `spec.replicas` is set and differs from the Deployment's, it updates
   the Deployment.
6. It calls `update_foo_status(foo, deployment)` and records a `Normal` event
   with reason `Synced`. `update_foo_status` writes the available replicas
   into a copy of the `Foo` and returns the result of `update_status`.

Errors from the listers or clients, other than `NotFoundError`, propagate to
the caller.

## Feeding the queue

- `enqueue_foo(obj)` queues the object's `ObjectName`.
- `handle_object(obj)` queues the `Foo` that controls a Deployment. It
  accepts a `DeletedFinalStateUnknown` tombstone.
  - It ignores objects that are not controlled by a `Foo`.
  - It ignores objects whose owning `Foo` is not found.
- `handle_deployment_update(old, new)` skips updates whose resource version
  has not changed.

## Running

`process_next_work_item()` takes one item and syncs it.

- On success the limiter forgets the item.
- On failure the item is requeued with `add_rate_limited`.
- It returns `False` once the queue has shut down.

`run_worker()` loops over `process_next_work_item()`.

`run(stop_event, workers)` works in four steps:

1. It waits until both sync checks return true. If `stop_event` is set first,
   it raises `CacheSyncError`.
2. It starts `workers` worker threads. A worker that crashes is restarted
   after one second.
3. It blocks until `stop_event` is set.
4. It shuts the queue down and joins the threads.

## Example

This example reconciles one `Foo` using objects kept in memory:

```python
from foocontroller.controller import Controller
from foocontroller.meta import NotFoundError, ObjectMeta, ObjectName
from foocontroller.types import Foo, FooSpec


class Store:
    def __init__(self):
        self.objects = {}

    def get(self, namespace, name):
        try:
            return self.objects[namespace, name]
        except KeyError:
            raise NotFoundError("object", name) from None


class Deployments:
    def __init__(self, store):
        self.store = store

    def create(self, deployment, *, field_manager):
        self.store.objects[deployment.namespace, deployment.name] = deployment
        return deployment

    update = create


class Foos:
    def __init__(self, store):
        self.store = store

    def update_status(self, foo, *, field_manager):
        self.store.objects[foo.namespace, foo.name] = foo
        return foo


deployment_store, foo_store = Store(), Store()
foo = Foo(
    metadata=ObjectMeta(name="example", namespace="default", uid="uid-1"),
    spec=FooSpec(deployment_name="example-deployment", replicas=1),
)
foo_store.objects["default", "example"] = foo

controller = Controller(
    Deployments(deployment_store), Foos(foo_store), deployment_store, foo_store
)
controller.sync_handler(ObjectName("default", "example"))
print(controller.recorder.events[-1].reason)  # Synced
```

To run workers until SIGINT or SIGTERM arrives:

```python
from foocontroller.signals import setup_signal_handler

controller.run(setup_signal_handler(), 2)
```

## What the package does not do

The package does not talk to a cluster API server. It has no clients,
informers or caches of its own, and no command-line program. You supply the
clients and listers described above. Your own event source calls
`enqueue_foo`, `handle_object` and `handle_deployment_update`.

## Tests

The tests use pytest, which is installed with the `test` extra.