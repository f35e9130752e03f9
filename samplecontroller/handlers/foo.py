import kopf
import logging
from samplecontroller.controller.driver import object_ref
from samplecontroller.resources.deployment import owning_foo
from samplecontroller.types.models import Foo

DEPLOYMENT_TRIGGER = "owned"


class WatchLogFilter(logging.Filter):
    def filter(self, record):
        """Drop kopf's per-event success logs for the watch handlers below."""
        if record.levelno >= logging.WARNING:
            return True
        message = record.getMessage()
        return not ("Handler 'on_" in message and "succeeded" in message)


kopf_logger = logging.getLogger("kopf.objects")
kopf_logger.addFilter(WatchLogFilter())


@kopf.on.event(Foo.GROUP, Foo.VERSION, Foo.PLURAL)
async def on_foo_event(event, memo: kopf.Memo, logger, **kwargs):
    """Feed Foo watch events into the controller."""
    body = event.get("object") or {}
    ref = object_ref(body)
    if ref is None:
        return
    if event.get("type") == "DELETED":
        logger.debug(f"{Foo.KIND} {ref} was deleted")
        memo.controller.forget(ref)
        return
    memo.controller.observe(body)


@kopf.on.event("apps", "v1", "deployments", labels={"controller": kopf.PRESENT})
async def on_deployment_event(event, memo: kopf.Memo, **kwargs):
    """Reconcile the Foo controlling a changed deployment."""
    ref = owning_foo(event.get("object") or {})
    if ref is not None:
        memo.controller.enqueue(ref, DEPLOYMENT_TRIGGER)
