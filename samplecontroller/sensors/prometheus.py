"""Prometheus backend: turns sensor hooks into `samplecontroller_*` metrics."""

from typing import Dict, Optional, Any
import time
import logging

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram, Gauge

from samplecontroller.sensors.base import OperatorSensor

logger = logging.getLogger(__name__)


class PrometheusMonitor(OperatorSensor):
    """Records controller activity as Prometheus metrics.

    Metrics go to `registry`, the process default served by the metrics
    server unless another one is given.
    """

    def __init__(self, registry: CollectorRegistry = REGISTRY):
        super().__init__()

        # =============================================================================
        # Control Loop Metrics
        # =============================================================================

        self.reconcile_duration = Histogram(
            'samplecontroller_reconcile_duration_seconds',
            'Wall time of one Foo reconciliation',
            labelnames=['name', 'namespace', 'trigger_source', 'result'],
            buckets=[0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0],
            registry=registry,
        )

        self.reconcile_total = Counter(
            'samplecontroller_reconcile_total',
            'Foo reconciliations run, by trigger and outcome',
            labelnames=['name', 'namespace', 'trigger_source', 'result'],
            registry=registry,
        )

        self.reconcile_errors = Counter(
            'samplecontroller_reconcile_errors_total',
            'Failed Foo reconciliations, by error class',
            labelnames=['name', 'namespace', 'error_type'],
            registry=registry,
        )

        self.reconcile_queue_depth = Gauge(
            'samplecontroller_reconcile_queue_depth',
            'Number of Foo resources waiting for a reconciliation worker',
            registry=registry,
        )

        self.reconcile_queue_wait_seconds = Histogram(
            'samplecontroller_reconcile_queue_wait_seconds',
            'Seconds a queued Foo waited for a worker',
            labelnames=['name', 'namespace'],
            buckets=[0.005, 0.05, 0.25, 1.0, 5.0, 15.0, 60.0],
            registry=registry,
        )

        self.reconcile_requeues = Counter(
            'samplecontroller_reconcile_requeues_total',
            'Total number of delayed reconciliation requeues',
            labelnames=['name', 'namespace', 'reason'],
            registry=registry,
        )

        # =============================================================================
        # Managed Resource Metrics
        # =============================================================================

        self.resource_sync_duration = Histogram(
            'samplecontroller_resource_sync_duration_seconds',
            'Time spent syncing managed Kubernetes resources',
            labelnames=['name', 'namespace', 'resource_type', 'operation', 'result'],
            buckets=[0.025, 0.1, 0.25, 0.5, 1.0, 3.0, 10.0, 30.0],
            registry=registry,
        )

        self.resource_sync_total = Counter(
            'samplecontroller_resource_sync_total',
            'Total number of managed resource operations',
            labelnames=['name', 'namespace', 'resource_type', 'operation', 'result'],
            registry=registry,
        )

        self.resource_sync_errors = Counter(
            'samplecontroller_resource_sync_errors_total',
            'Total number of managed resource operation errors',
            labelnames=['name', 'namespace', 'resource_type', 'error_type'],
            registry=registry,
        )

        # =============================================================================
        # Foo Bookkeeping Metrics
        # =============================================================================

        self.status_updates = Counter(
            'samplecontroller_status_updates_total',
            'Total number of Foo status updates',
            labelnames=['name', 'namespace', 'update_field'],
            registry=registry,
        )

        self.finalizer_updates = Counter(
            'samplecontroller_finalizer_updates_total',
            'Total number of finalizer additions and removals',
            labelnames=['name', 'namespace', 'operation'],
            registry=registry,
        )

        logger.debug("Registered samplecontroller_* metrics")

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
        return {'start_time': time.time(), 'trigger_source': trigger_source}

    def on_reconcile_complete(
        self,
        name: str,
        namespace: str,
        state: Optional[Dict[str, Any]],
        success: bool,
        error: Optional[Exception] = None,
    ) -> None:
        """Observe duration and outcome; failures also count by error class."""
        if state:
            labels = dict(
                name=name,
                namespace=namespace,
                trigger_source=state['trigger_source'],
                result='success' if success else 'failure',
            )
            self.reconcile_duration.labels(**labels).observe(
                time.time() - state['start_time']
            )
            self.reconcile_total.labels(**labels).inc()

        if error:
            self.reconcile_errors.labels(
                name=name,
                namespace=namespace,
                error_type=error.__class__.__name__,
            ).inc()

    def on_reconcile_queued(self, name: str, namespace: str, queue_depth: int) -> None:
        self.reconcile_queue_depth.set(queue_depth)

    def on_reconcile_dequeued(self, name: str, namespace: str, wait_time: float) -> None:
        self.reconcile_queue_wait_seconds.labels(
            name=name, namespace=namespace
        ).observe(wait_time)

    def on_reconcile_requeued(
        self, name: str, namespace: str, delay: float, reason: str
    ) -> None:
        self.reconcile_requeues.labels(
            name=name, namespace=namespace, reason=reason
        ).inc()

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
        return {'start_time': time.time()}

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
        result = 'success' if success else 'failure'
        labels = dict(
            name=name,
            namespace=namespace,
            resource_type=resource_type,
            operation=operation,
            result=result,
        )
        if state:
            self.resource_sync_duration.labels(**labels).observe(
                time.time() - state['start_time']
            )
        self.resource_sync_total.labels(**labels).inc()

        if error:
            self.resource_sync_errors.labels(
                name=name,
                namespace=namespace,
                resource_type=resource_type,
                error_type=error.__class__.__name__,
            ).inc()

    # =============================================================================
    # Foo Bookkeeping Hooks
    # =============================================================================

    def on_status_update(self, name: str, namespace: str, update_field: str) -> None:
        self.status_updates.labels(
            name=name, namespace=namespace, update_field=update_field
        ).inc()

    def on_finalizer_update(self, name: str, namespace: str, operation: str) -> None:
        self.finalizer_updates.labels(
            name=name, namespace=namespace, operation=operation
        ).inc()
