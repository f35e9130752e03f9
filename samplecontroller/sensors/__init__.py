"""Sensor framework for sample-controller.

Non-invasive instrumentation of operator lifecycle events through a hook-based
pattern.

Key components:
- OperatorSensor: Base class defining lifecycle hooks for operator events
- SensorDelegate: Fan-out pattern for routing events to multiple sensor backends
- PrometheusMonitor: Prometheus metrics exporter
"""

from samplecontroller.sensors.base import OperatorSensor
from samplecontroller.sensors.delegate import SensorDelegate
from samplecontroller.sensors.prometheus import PrometheusMonitor
from samplecontroller.sensors.server import init_metrics_server

__all__ = [
    'OperatorSensor',
    'SensorDelegate',
    'PrometheusMonitor',
    'init_metrics_server',
]
