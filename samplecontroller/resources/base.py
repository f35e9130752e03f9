from typing import Dict, List
from kubernetes_asyncio.client import (
    ApiException,
    AppsV1Api,
    CustomObjectsApi,
    V1DeleteOptions,
    V1Deployment,
)
from samplecontroller.types.settings import Settings
from samplecontroller.sensors import OperatorSensor
from samplecontroller.utils.errors import api_errors, not_found_error

APPLY_PATCH = "application/apply-patch+yaml"
JSON_PATCH = "application/json-patch+json"


class BaseResource:
    """Base resource model.

    Holds the cluster API helpers shared by resources. Deletes treat a
    missing object as done, every other API failure surfaces as `KubeError`.
    """

    OPERATOR_NAME = "sample-controller"

    _namespace: str
    _settings: Settings
    _sensor: OperatorSensor

    def __init__(
        self,
        namespace: str,
        settings: Settings,
        sensor: OperatorSensor = None,
    ):
        self._namespace = namespace
        self._settings = settings
        self._sensor = sensor or OperatorSensor()

    @property
    def namespace(self) -> str:
        return self._namespace

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def sensor(self) -> OperatorSensor:
        return self._sensor

    @property
    def request_timeout(self) -> float:
        return self._settings.api_timeout_seconds

    @api_errors
    async def apply_deployment(
        self,
        apps_v1_api: AppsV1Api,
        name: str,
        namespace: str,
        deployment: V1Deployment,
    ) -> V1Deployment:
        """Server-side apply a deployment, forcing ownership of conflicting fields."""
        return await apps_v1_api.patch_namespaced_deployment(
            name=name,
            namespace=namespace,
            body=deployment,
            field_manager=self._settings.field_manager_name,
            force=True,
            _content_type=APPLY_PATCH,
            _request_timeout=self.request_timeout,
        )

    @api_errors
    async def delete_deployment(
        self,
        apps_v1_api: AppsV1Api,
        name: str,
        namespace: str,
        delete_options: V1DeleteOptions = None,
    ) -> bool:
        """Delete a deployment.

        Returns:
            False if the deployment was already gone, True otherwise.
        """
        try:
            await apps_v1_api.delete_namespaced_deployment(
                name=name,
                namespace=namespace,
                body=delete_options,
                _request_timeout=self.request_timeout,
            )
        except ApiException as ex:
            if not_found_error(ex):
                return False
            raise
        return True

    @api_errors
    async def list_cluster_custom_objects(
        self,
        custom_objects_api: CustomObjectsApi,
        group: str,
        version: str,
        plural: str,
    ) -> Dict:
        return await custom_objects_api.list_cluster_custom_object(
            group=group,
            version=version,
            plural=plural,
            _request_timeout=self.request_timeout,
        )

    @api_errors
    async def json_patch_custom_object(
        self,
        custom_objects_api: CustomObjectsApi,
        namespace: str,
        group: str,
        version: str,
        plural: str,
        name: str,
        patch: List[Dict],
    ) -> Dict:
        """Apply a JSON patch; `test` operations make it fail on concurrent writes."""
        return await custom_objects_api.patch_namespaced_custom_object(
            group=group,
            version=version,
            namespace=namespace,
            plural=plural,
            name=name,
            body=patch,
            _content_type=JSON_PATCH,
            _request_timeout=self.request_timeout,
        )

    @api_errors
    async def apply_custom_object_status(
        self,
        custom_objects_api: CustomObjectsApi,
        namespace: str,
        group: str,
        version: str,
        plural: str,
        name: str,
        body: Dict,
    ) -> Dict:
        """Server-side apply the status subresource of a custom object."""
        return await custom_objects_api.patch_namespaced_custom_object_status(
            group=group,
            version=version,
            namespace=namespace,
            plural=plural,
            name=name,
            body=body,
            field_manager=self._settings.field_manager_name,
            force=True,
            _content_type=APPLY_PATCH,
            _request_timeout=self.request_timeout,
        )
