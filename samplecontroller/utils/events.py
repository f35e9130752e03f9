import kopf
import logging
from typing import Mapping

logger = logging.getLogger(__name__)


def post_event(body: Mapping, reason: str, message: str, type: str = "Normal") -> None:
    """Post a Kubernetes event for `body` through kopf's event poster.

    Posting is asynchronous and never fails the caller. Outside of a running
    operator (no poster in context) the event is only logged.
    """
    try:
        kopf.event(body, type=type, reason=reason, message=message)
    except LookupError:
        logger.debug(f"No event poster running, skipped {type} event {reason}: {message}")


def event_body(api_version: str, kind: str, name: str, namespace: str, uid: str) -> dict:
    """Minimal object body kopf needs to build an event's involved object."""
    return {
        "apiVersion": api_version,
        "kind": kind,
        "metadata": {"name": name, "namespace": namespace, "uid": uid},
    }
