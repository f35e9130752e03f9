import os
from typing import Any

_TRUE, _FALSE = {"True", "true", "yes", "1"}, {"False", "false", "no", "0"}


def _getenv(name: str, *default: Any) -> Any:
    try:
        v = os.environ[name]
        if v in _TRUE:
            return True
        elif v in _FALSE:
            return False
        else:
            return v
    except KeyError:
        pass
    if default:
        return default[0]
    raise KeyError(name)


# ------------------------------------------------
# ---- Defaults and environment variables ----
# ------------------------------------------------

#: Field manager identity used for server-side apply patches
FIELD_MANAGER_NAME = str(_getenv("SAMPLE_CONTROLLER_FIELD_MANAGER_NAME", "sample-controller"))

#: Finalizer token recorded on Foo resources until cleanup has completed
FINALIZER_NAME = str(_getenv("SAMPLE_CONTROLLER_FINALIZER_NAME", "sample-controller/finalizer"))

#: Seconds to wait before retrying a Foo whose reconciliation failed
ERROR_REQUEUE_SECONDS = float(_getenv("SAMPLE_CONTROLLER_ERROR_REQUEUE_SECONDS", 10.0))

#: Timeout in seconds applied to every cluster API call
API_TIMEOUT_SECONDS = float(_getenv("SAMPLE_CONTROLLER_API_TIMEOUT_SECONDS", 30.0))

#: Upper bound in seconds for a single reconciliation
RECONCILE_TIMEOUT_SECONDS = float(_getenv("SAMPLE_CONTROLLER_RECONCILE_TIMEOUT_SECONDS", 120.0))

#: Maximum number of Foo resources reconciled concurrently
WORKER_LIMIT = int(_getenv("SAMPLE_CONTROLLER_WORKER_LIMIT", 16))

#: Seconds in-flight reconciliations get to finish on shutdown
SHUTDOWN_GRACE_SECONDS = float(_getenv("SAMPLE_CONTROLLER_SHUTDOWN_GRACE_SECONDS", 10.0))

#: Container name of the managed deployment's pod template
CONTAINER_NAME = str(_getenv("SAMPLE_CONTROLLER_CONTAINER_NAME", "nginx"))

#: Container image of the managed deployment's pod template
CONTAINER_IMAGE = str(_getenv("SAMPLE_CONTROLLER_CONTAINER_IMAGE", "nginx:latest"))

#: Value of the `app` label stamped on managed deployments and their pods
APP_LABEL_VALUE = str(_getenv("SAMPLE_CONTROLLER_APP_LABEL_VALUE", "nginx"))

#: Port of the Prometheus metrics endpoint, 0 disables it
METRICS_PORT = int(_getenv("SAMPLE_CONTROLLER_METRICS_PORT", 8000))


class Settings:
    """Operator settings"""

    field_manager_name: str = FIELD_MANAGER_NAME
    finalizer_name: str = FINALIZER_NAME
    error_requeue_seconds: float = ERROR_REQUEUE_SECONDS
    api_timeout_seconds: float = API_TIMEOUT_SECONDS
    reconcile_timeout_seconds: float = RECONCILE_TIMEOUT_SECONDS
    worker_limit: int = WORKER_LIMIT
    shutdown_grace_seconds: float = SHUTDOWN_GRACE_SECONDS
    container_name: str = CONTAINER_NAME
    container_image: str = CONTAINER_IMAGE
    app_label_value: str = APP_LABEL_VALUE
    metrics_port: int = METRICS_PORT

    def __init__(
        self,
        *args,
        field_manager_name: str = None,
        finalizer_name: str = None,
        error_requeue_seconds: float = None,
        api_timeout_seconds: float = None,
        reconcile_timeout_seconds: float = None,
        worker_limit: int = None,
        shutdown_grace_seconds: float = None,
        container_name: str = None,
        container_image: str = None,
        app_label_value: str = None,
        metrics_port: int = None,
        **kwargs,
    ):
        if field_manager_name is not None:
            self.field_manager_name = field_manager_name

        if finalizer_name is not None:
            self.finalizer_name = finalizer_name

        if error_requeue_seconds is not None:
            self.error_requeue_seconds = error_requeue_seconds

        if api_timeout_seconds is not None:
            self.api_timeout_seconds = api_timeout_seconds

        if reconcile_timeout_seconds is not None:
            self.reconcile_timeout_seconds = reconcile_timeout_seconds

        if worker_limit is not None:
            self.worker_limit = worker_limit

        if shutdown_grace_seconds is not None:
            self.shutdown_grace_seconds = shutdown_grace_seconds

        if container_name is not None:
            self.container_name = container_name

        if container_image is not None:
            self.container_image = container_image

        if app_label_value is not None:
            self.app_label_value = app_label_value

        if metrics_port is not None:
            self.metrics_port = metrics_port
