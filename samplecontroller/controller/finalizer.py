"""Finalizer protocol.

`finalizer()` keeps a finalizer token on a Foo for as long as the Foo lives
and only drops it once cleanup has succeeded:

- not deleting, token missing: add the token and wait for the resulting change
- not deleting, token present: run the apply callback
- deleting, token present: run the cleanup callback, then remove the token
- deleting, token missing: nothing left to do

Token updates are JSON patches guarded by `test` operations, so a concurrent
writer makes them fail with a retryable error instead of clobbering data.
"""

import enum
import logging
from typing import Awaitable, Callable, Dict, List, NamedTuple
from samplecontroller.controller.action import Action
from samplecontroller.resources.foo import FooResource
from samplecontroller.utils.errors import FinalizerError

logger = logging.getLogger(__name__)


class EventKind(enum.Enum):
    APPLY = "apply"
    CLEANUP = "cleanup"


class FinalizerEvent(NamedTuple):
    """Lifecycle event handed to the reconcile callback."""

    kind: EventKind
    resource: FooResource

    @classmethod
    def apply(cls, resource: FooResource) -> "FinalizerEvent":
        return cls(EventKind.APPLY, resource)

    @classmethod
    def cleanup(cls, resource: FooResource) -> "FinalizerEvent":
        return cls(EventKind.CLEANUP, resource)


def prepare_add_finalizer_patch(
    finalizers: List[str], resource_version: str, finalizer_name: str
) -> List[Dict]:
    patch = [
        {"op": "test", "path": "/metadata/resourceVersion", "value": resource_version}
    ]
    if finalizers:
        patch.append(
            {"op": "add", "path": "/metadata/finalizers/-", "value": finalizer_name}
        )
    else:
        patch.append(
            {"op": "add", "path": "/metadata/finalizers", "value": [finalizer_name]}
        )
    return patch


def prepare_remove_finalizer_patch(
    finalizers: List[str], finalizer_name: str
) -> List[Dict]:
    index = finalizers.index(finalizer_name)
    path = f"/metadata/finalizers/{index}"
    return [
        {"op": "test", "path": path, "value": finalizer_name},
        {"op": "remove", "path": path},
    ]


async def finalizer(
    resource: FooResource,
    finalizer_name: str,
    reconcile: Callable[[FinalizerEvent], Awaitable[Action]],
) -> Action:
    """Run `reconcile` for the lifecycle stage of `resource`, managing the token.

    Raises:
        FinalizerError: the callback or a token update failed.
    """
    foo = resource.model
    sensor = resource.sensor
    finalizers = foo.metadata.finalizers

    if not foo.is_deleting:
        if foo.has_finalizer(finalizer_name):
            try:
                return await reconcile(FinalizerEvent.apply(resource))
            except Exception as ex:
                raise FinalizerError(FinalizerError.APPLY, ex) from ex

        logger.info(f"Adding finalizer {finalizer_name} to {foo.KIND}/{foo.name}")
        try:
            await resource.patch_metadata(
                prepare_add_finalizer_patch(
                    finalizers, foo.metadata.resource_version, finalizer_name
                )
            )
        except Exception as ex:
            raise FinalizerError(FinalizerError.ADD_FINALIZER, ex) from ex
        sensor.on_finalizer_update(foo.name, foo.namespace, "add")
        # The patch produces a new event for this Foo, which applies it.
        return Action.await_change()

    if not foo.has_finalizer(finalizer_name):
        logger.debug(f"{foo.KIND}/{foo.name} is being deleted without our finalizer")
        return Action.await_change()

    try:
        action = await reconcile(FinalizerEvent.cleanup(resource))
    except Exception as ex:
        raise FinalizerError(FinalizerError.CLEANUP, ex) from ex

    try:
        await resource.patch_metadata(
            prepare_remove_finalizer_patch(finalizers, finalizer_name)
        )
    except Exception as ex:
        raise FinalizerError(FinalizerError.REMOVE_FINALIZER, ex) from ex
    sensor.on_finalizer_update(foo.name, foo.namespace, "remove")
    logger.info(f"Removed finalizer {finalizer_name} from {foo.KIND}/{foo.name}")
    return action
