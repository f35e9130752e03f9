"""Fan-out of sensor hooks to several backends.

A backend raising from a hook is logged and skipped; the reconciliation
reporting to it carries on.
"""

from typing import Set, Dict, Optional, Any
import logging

from samplecontroller.sensors.base import OperatorSensor

logger = logging.getLogger(__name__)


class SensorDelegate(OperatorSensor):
    """Forwards every hook to each registered sensor.

    Start hooks return a dict keyed by sensor, so each backend gets its own
    state back on completion.

    Example:
        delegate = SensorDelegate()
        delegate.add(PrometheusMonitor())

        state = delegate.on_reconcile_start("example-foo", "default", 1, "object")
        delegate.on_reconcile_complete("example-foo", "default", state, True)
    """

    def __init__(self) -> None:
        self._sensors: Set[OperatorSensor] = set()

    def add(self, sensor: OperatorSensor) -> None:
        logger.info(f"Registered sensor {type(sensor).__name__}")
        self._sensors.add(sensor)

    def remove(self, sensor: OperatorSensor) -> None:
        logger.info(f"Unregistered sensor {type(sensor).__name__}")
        self._sensors.discard(sensor)

    def clear(self) -> None:
        logger.info(f"Unregistered all {len(self._sensors)} sensors")
        self._sensors.clear()

    def __len__(self) -> int:
        return len(self._sensors)

    def _call(self, sensor: OperatorSensor, hook: str, *args: Any) -> Any:
        try:
            return getattr(sensor, hook)(*args)
        except Exception as e:
            logger.error(
                f"Error in {sensor.__class__.__name__}.{hook}: {e}",
                exc_info=True,
            )
            return None

    def _start(self, hook: str, *args: Any) -> Optional[Dict[OperatorSensor, Any]]:
        states = {}
        for sensor in self._sensors:
            state = self._call(sensor, hook, *args)
            if state is not None:
                states[sensor] = state
        return states or None

    def _broadcast(self, hook: str, *args: Any) -> None:
        for sensor in self._sensors:
            self._call(sensor, hook, *args)

    # =============================================================================
    # Control Loop Hooks
    # =============================================================================

    def on_reconcile_start(
        self,
        name: str,
        namespace: str,
        generation: Optional[int],
        trigger_source: str,
    ) -> Optional[Dict[OperatorSensor, Any]]:
        return self._start(
            "on_reconcile_start", name, namespace, generation, trigger_source
        )

    def on_reconcile_complete(
        self,
        name: str,
        namespace: str,
        state: Optional[Dict[OperatorSensor, Any]],
        success: bool,
        error: Optional[Exception] = None,
    ) -> None:
        for sensor in self._sensors:
            sensor_state = state.get(sensor) if state else None
            self._call(
                sensor,
                "on_reconcile_complete",
                name,
                namespace,
                sensor_state,
                success,
                error,
            )

    def on_reconcile_queued(self, name: str, namespace: str, queue_depth: int) -> None:
        self._broadcast("on_reconcile_queued", name, namespace, queue_depth)

    def on_reconcile_dequeued(self, name: str, namespace: str, wait_time: float) -> None:
        self._broadcast("on_reconcile_dequeued", name, namespace, wait_time)

    def on_reconcile_requeued(
        self, name: str, namespace: str, delay: float, reason: str
    ) -> None:
        self._broadcast("on_reconcile_requeued", name, namespace, delay, reason)

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
    ) -> Optional[Dict[OperatorSensor, Any]]:
        return self._start(
            "on_resource_sync_start",
            name,
            resource_name,
            namespace,
            resource_type,
            operation,
        )

    def on_resource_sync_complete(
        self,
        name: str,
        resource_name: str,
        namespace: str,
        resource_type: str,
        operation: str,
        state: Optional[Dict[OperatorSensor, Any]],
        success: bool,
        error: Optional[Exception] = None,
    ) -> None:
        for sensor in self._sensors:
            sensor_state = state.get(sensor) if state else None
            self._call(
                sensor,
                "on_resource_sync_complete",
                name,
                resource_name,
                namespace,
                resource_type,
                operation,
                sensor_state,
                success,
                error,
            )

    # =============================================================================
    # Foo Bookkeeping Hooks
    # =============================================================================

    def on_status_update(self, name: str, namespace: str, update_field: str) -> None:
        self._broadcast("on_status_update", name, namespace, update_field)

    def on_finalizer_update(self, name: str, namespace: str, operation: str) -> None:
        self._broadcast("on_finalizer_update", name, namespace, operation)
