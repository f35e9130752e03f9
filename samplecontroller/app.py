import kopf
import logging
from samplecontroller.controller.context import Context
from samplecontroller.controller.driver import Controller
from samplecontroller.controller.reconciler import error_policy, reconcile
from samplecontroller.resources import FooResource
from samplecontroller.sensors import init_metrics_server, SensorDelegate, PrometheusMonitor
from samplecontroller.types.settings import Settings
from samplecontroller.utils.errors import KubeError
from kubernetes_asyncio import config
from kubernetes_asyncio.client.api_client import ApiClient


# Configure Kopf settings
@kopf.on.startup()
async def setup(
    settings: kopf.OperatorSettings, memo: kopf.Memo, logger: logging.Logger, **kwargs
):
    # Load Kubernetes config - try in-cluster first (for production), then local kubeconfig (for dev)
    try:
        config.load_incluster_config()
        logger.info("Loaded in-cluster Kubernetes configuration")
    except config.ConfigException:
        logger.info("In-cluster config not found, trying local kubeconfig")
        try:
            await config.load_kube_config()
            logger.info("Loaded local Kubernetes configuration")
        except config.ConfigException as e:
            logger.error(f"Failed to load Kubernetes configuration: {e}")
            raise

    conf = Settings()

    # One ApiClient (and connection pool) shared by every reconciliation
    api_client = ApiClient()
    logger.info("Shared Kubernetes API client initialized")

    sensor_delegate = SensorDelegate()
    sensor_delegate.add(PrometheusMonitor())
    logger.info("Sensor infrastructure initialized with PrometheusMonitor")

    try:
        init_metrics_server(conf.metrics_port)
    except Exception as e:
        logger.error(f"Failed to start metrics server: {e}")
        logger.warning("Continuing without metrics server")

    ctx = Context(api_client=api_client, settings=conf, sensor=sensor_delegate)
    controller = Controller(reconcile, error_policy, ctx)

    # Fail fast when the Foo CRD is not installed
    logger.info("Checking if Foo CRD is installed")
    try:
        foos = await FooResource.default(ctx).list_all()
    except KubeError as e:
        await api_client.close()
        raise kopf.PermanentError(
            f"Unable to list Foo resources, is the CRD installed? {e}"
        ) from e
    for body in foos:
        controller.observe(body)
    logger.info(f"Found {len(foos)} existing Foo resources")

    controller.start()
    memo.ctx = ctx
    memo.controller = controller

    # Only warnings and errors are posted as Kubernetes events
    settings.posting.enabled = True
    settings.posting.level = logging.WARNING


@kopf.on.cleanup()
async def cleanup(memo: kopf.Memo, logger: logging.Logger, **kwargs):
    """Cleanup handler for operator shutdown."""
    logger.info("Shutting down operator...")

    controller = getattr(memo, "controller", None)
    if controller is not None:
        await controller.shutdown()

    ctx = getattr(memo, "ctx", None)
    if ctx is not None and ctx.api_client is not None:
        await ctx.api_client.close()
        logger.info("Shared API client closed")

    logger.info("Operator shutdown complete")
