"""Shared fixtures for unit tests."""

import json
import pytest
from unittest.mock import AsyncMock
from kubernetes_asyncio.client import ApiException, V1Deployment, V1DeploymentStatus
from samplecontroller.controller.context import Context
from samplecontroller.types.settings import Settings


def _foo_body(
    name="example-foo",
    namespace="default",
    deployment_name="example-foo",
    replicas=1,
    uid="2d9b5b9e-4c1f-4a8e-9a77-3c0c1b2f8e11",
    resource_version="1001",
    generation=1,
    finalizers=None,
    deletion_timestamp=None,
    status=None,
):
    metadata = {
        "name": name,
        "namespace": namespace,
        "uid": uid,
        "resourceVersion": resource_version,
        "generation": generation,
    }
    if finalizers is not None:
        metadata["finalizers"] = list(finalizers)
    if deletion_timestamp is not None:
        metadata["deletionTimestamp"] = deletion_timestamp
    body = {
        "apiVersion": "samplecontroller.k8s.io/v1alpha1",
        "kind": "Foo",
        "metadata": metadata,
        "spec": {"deploymentName": deployment_name, "replicas": replicas},
    }
    if status is not None:
        body["status"] = status
    return body


def _api_exception(status: int, reason: str, message: str = "") -> ApiException:
    ex = ApiException(status=status, reason=reason)
    ex.body = json.dumps({"kind": "Status", "message": message, "reason": reason})
    return ex


@pytest.fixture
def make_foo_body():
    """Factory building raw Foo payloads as returned by the API server."""
    return _foo_body


@pytest.fixture
def api_exception():
    """Factory building ApiExceptions with a Status body."""
    return _api_exception


@pytest.fixture
def settings():
    return Settings(
        field_manager_name="sample-controller",
        finalizer_name="sample-controller/finalizer",
        error_requeue_seconds=10.0,
        api_timeout_seconds=30.0,
        reconcile_timeout_seconds=120.0,
        worker_limit=16,
        shutdown_grace_seconds=10.0,
        container_name="nginx",
        container_image="nginx:latest",
        app_label_value="nginx",
        metrics_port=0,
    )


@pytest.fixture
def apps_v1_api():
    api = AsyncMock()
    api.patch_namespaced_deployment.return_value = V1Deployment(
        status=V1DeploymentStatus(available_replicas=1)
    )
    return api


@pytest.fixture
def custom_objects_api():
    api = AsyncMock()
    api.patch_namespaced_custom_object.return_value = {}
    api.patch_namespaced_custom_object_status.return_value = {}
    api.list_cluster_custom_object.return_value = {"items": []}
    return api


@pytest.fixture
def ctx(settings, apps_v1_api, custom_objects_api):
    return Context(
        settings=settings,
        apps_v1_api=apps_v1_api,
        custom_objects_api=custom_objects_api,
    )
