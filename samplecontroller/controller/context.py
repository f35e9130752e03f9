from kubernetes_asyncio.client import AppsV1Api, CustomObjectsApi
from kubernetes_asyncio.client.api_client import ApiClient
from samplecontroller.sensors import OperatorSensor
from samplecontroller.types.settings import Settings


class Context:
    """Shared state handed to every reconciliation.

    The API client and its connection pool are shared by all workers; the
    typed API wrappers are created on first use.
    """

    def __init__(
        self,
        api_client: ApiClient = None,
        settings: Settings = None,
        sensor: OperatorSensor = None,
        apps_v1_api: AppsV1Api = None,
        custom_objects_api: CustomObjectsApi = None,
    ):
        self.api_client = api_client
        self.settings = settings or Settings()
        self.sensor = sensor or OperatorSensor()
        self._apps_v1_api = apps_v1_api
        self._custom_objects_api = custom_objects_api

    @property
    def apps_v1_api(self) -> AppsV1Api:
        if self._apps_v1_api is None:
            self._apps_v1_api = AppsV1Api(self.api_client)
        return self._apps_v1_api

    @property
    def custom_objects_api(self) -> CustomObjectsApi:
        if self._custom_objects_api is None:
            self._custom_objects_api = CustomObjectsApi(self.api_client)
        return self._custom_objects_api
