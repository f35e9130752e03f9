import logging
from typing import Mapping
from samplecontroller.controller.action import Action
from samplecontroller.controller.context import Context
from samplecontroller.controller.finalizer import EventKind, FinalizerEvent, finalizer
from samplecontroller.resources.foo import FooResource
from samplecontroller.types.models import Foo
from samplecontroller.utils.errors import FinalizerError, KubeError
from samplecontroller.utils.events import event_body, post_event

logger = logging.getLogger(__name__)


async def _handle(event: FinalizerEvent) -> Action:
    if event.kind is EventKind.APPLY:
        return await event.resource.apply()
    return await event.resource.cleanup()


async def reconcile(foo: Foo, ctx: Context) -> Action:
    """Reconcile a Foo against its managed deployment.

    Works purely from the observed Foo and the cluster's answers, so running
    it again after a crash or a failure is always safe. Failures propagate to
    the caller, which hands them to `error_policy`.
    """
    logger.info(f"Reconciling {Foo.KIND}/{foo.name} in {foo.namespace} namespace.")
    resource = FooResource.from_model(foo, ctx)
    return await finalizer(resource, ctx.settings.finalizer_name, _handle)


def error_policy(body: Mapping, error: Exception, ctx: Context) -> Action:
    """Map any reconciliation failure of `body` to a delayed requeue."""
    metadata = body.get("metadata") or {}
    name, namespace = metadata.get("name"), metadata.get("namespace")
    delay = ctx.settings.error_requeue_seconds

    if isinstance(error, (FinalizerError, KubeError)) and error.is_conflict:
        logger.warning(
            f"Conflict while reconciling {Foo.KIND}/{name} in {namespace} namespace, "
            f"retrying in {delay}s: {error}"
        )
    elif isinstance(error, (FinalizerError, KubeError)):
        logger.error(
            f"Error reconciling {Foo.KIND}/{name} in {namespace} namespace, "
            f"retrying in {delay}s: {error}"
        )
    else:
        logger.exception(
            f"Unexpected error reconciling {Foo.KIND}/{name} in {namespace} namespace, "
            f"retrying in {delay}s: {error}",
            exc_info=error,
        )

    post_event(
        event_body(
            body.get("apiVersion") or Foo.API_VERSION,
            body.get("kind") or Foo.KIND,
            name,
            namespace,
            metadata.get("uid"),
        ),
        reason="ReconcileFailed",
        message=str(error),
        type="Warning",
    )
    return Action.requeue(delay)
