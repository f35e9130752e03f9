"""Instrumentation hooks of the controller.

Every hook is a no-op here. Backends subclass `OperatorSensor` and implement
the hooks they record. Paired hooks share state: whatever `on_*_start()`
returns is handed back to the matching `on_*_complete()`.
"""

from typing import Dict, Optional, Any


class OperatorSensor:
    """Receives controller lifecycle notifications.

    Covers the control loop (queueing, runs, requeues), operations on the
    managed Deployment, and bookkeeping on the Foo itself (status and
    finalizer patches).
    """

    # =============================================================================
    # Control Loop Hooks
    # =============================================================================

    def on_reconcile_start(
        self,
        name: str,
        namespace: str,
        generation: Optional[int],
        trigger_source: str,
    ) -> Optional[Dict[str, Any]]:
        """A reconciliation of Foo `namespace/name` is about to run.

        Args:
            generation: metadata.generation of the observed Foo, if known
            trigger_source: why it runs: `object`, `owned` or `requeue`

        Returns:
            State handed to `on_reconcile_complete`.
        """
        pass

    def on_reconcile_complete(
        self,
        name: str,
        namespace: str,
        state: Optional[Dict[str, Any]],
        success: bool,
        error: Optional[Exception] = None,
    ) -> None:
        pass

    def on_reconcile_queued(self, name: str, namespace: str, queue_depth: int) -> None:
        pass

    def on_reconcile_dequeued(self, name: str, namespace: str, wait_time: float) -> None:
        """A worker picked up the Foo after `wait_time` seconds in the queue."""
        pass

    def on_reconcile_requeued(
        self, name: str, namespace: str, delay: float, reason: str
    ) -> None:
        """The Foo runs again in `delay` seconds."""
        pass

    # =============================================================================
    # Managed Resource Hooks
    # =============================================================================

    def on_resource_sync_start(
        self,
        name: str,
        resource_name: str,
        namespace: str,
        resource_type: str,
        operation: str,
    ) -> Optional[Dict[str, Any]]:
        """An `apply` or `delete` of the resource owned by Foo `name` begins.

        Returns:
            State handed to `on_resource_sync_complete`.
        """
        pass

    def on_resource_sync_complete(
        self,
        name: str,
        resource_name: str,
        namespace: str,
        resource_type: str,
        operation: str,
        state: Optional[Dict[str, Any]],
        success: bool,
        error: Optional[Exception] = None,
    ) -> None:
        pass

    # =============================================================================
    # Foo Bookkeeping Hooks
    # =============================================================================

    def on_status_update(self, name: str, namespace: str, update_field: str) -> None:
        pass

    def on_finalizer_update(self, name: str, namespace: str, operation: str) -> None:
        """The finalizer token was added (`add`) or removed (`remove`)."""
        pass
