import logging
from contextlib import asynccontextmanager
from typing import Dict, List, Optional
from kubernetes_asyncio.client import V1DeleteOptions, V1Deployment
from samplecontroller.controller.action import Action
from samplecontroller.controller.context import Context
from samplecontroller.resources.base import BaseResource
from samplecontroller.resources.deployment import (
    DEPLOYMENT_KIND,
    RESOURCE_HASH_ANNOTATION,
    observed_available_replicas,
    prepare_deployment,
)
from samplecontroller.types.models import Foo, FooStatus
from samplecontroller.types.schemas import FooStatusSchema
from samplecontroller.utils.events import event_body, post_event

logger = logging.getLogger(__name__)


class FooResource(BaseResource):
    """Foo resource and the Deployment it manages."""

    KIND = Foo.KIND
    GROUP_NAME = Foo.GROUP
    GROUP_VERSION = Foo.VERSION
    PLURAL_NAME = Foo.PLURAL

    _foo: Optional[Foo]
    _deployment: V1Deployment = None

    def __init__(self, ctx: Context, foo: Foo = None):
        super().__init__(
            namespace=foo.namespace if foo else None,
            settings=ctx.settings,
            sensor=ctx.sensor,
        )
        self._foo = foo
        self._ctx = ctx

    @classmethod
    def from_model(cls, foo: Foo, ctx: Context) -> "FooResource":
        return cls(ctx, foo)

    @classmethod
    def default(cls, ctx: Context) -> "FooResource":
        """Resource not bound to any Foo, for cluster-wide operations."""
        return cls(ctx)

    @property
    def model(self) -> Foo:
        return self._foo

    @property
    def name(self) -> str:
        return self._foo.name

    @property
    def deployment_name(self) -> str:
        return self._foo.spec.deployment_name

    @property
    def deployment(self) -> V1Deployment:
        if self._deployment is None:
            self._deployment = prepare_deployment(self._foo, self.settings)
        return self._deployment

    @property
    def hash(self) -> str:
        return self.deployment.metadata.annotations[RESOURCE_HASH_ANNOTATION]

    @property
    def event_body(self) -> Dict:
        return event_body(
            Foo.API_VERSION,
            Foo.KIND,
            self.name,
            self.namespace,
            self._foo.metadata.uid,
        )

    @asynccontextmanager
    async def _syncing(self, resource_name: str, operation: str):
        state = self.sensor.on_resource_sync_start(
            self.name, resource_name, self.namespace, DEPLOYMENT_KIND, operation
        )
        try:
            yield
        except Exception as error:
            self.sensor.on_resource_sync_complete(
                self.name,
                resource_name,
                self.namespace,
                DEPLOYMENT_KIND,
                operation,
                state,
                False,
                error,
            )
            raise
        self.sensor.on_resource_sync_complete(
            self.name,
            resource_name,
            self.namespace,
            DEPLOYMENT_KIND,
            operation,
            state,
            True,
        )

    async def apply(self) -> Action:
        """Drive the managed deployment to the Foo's spec and report its status."""
        async with self._syncing(self.deployment_name, "apply"):
            deployment = await self.apply_deployment(
                self._ctx.apps_v1_api,
                self.deployment_name,
                self.namespace,
                self.deployment,
            )
        logger.debug(
            f"Applied {DEPLOYMENT_KIND}/{self.deployment_name} "
            f"in {self.namespace} namespace (hash {self.hash})."
        )
        status = FooStatus(available_replicas=observed_available_replicas(deployment))
        await self.patch_status(status)
        return Action.await_change()

    async def cleanup(self) -> Action:
        """Delete the managed deployment; an already missing one counts as deleted."""
        logger.info(
            f"Cleaning up {DEPLOYMENT_KIND}/{self.deployment_name} "
            f"before removing {self.KIND}/{self.name}"
        )
        async with self._syncing(self.deployment_name, "delete"):
            deleted = await self.delete_deployment(
                self._ctx.apps_v1_api,
                self.deployment_name,
                self.namespace,
                V1DeleteOptions(propagation_policy="Background"),
            )
        if not deleted:
            logger.info(
                f"{DEPLOYMENT_KIND}/{self.deployment_name} was already deleted."
            )
        post_event(
            self.event_body,
            reason="CleanupCompleted",
            message=f"Deployment `{self.deployment_name}` deleted.",
        )
        return Action.await_change()

    def prepare_status_body(self, status: FooStatus) -> Dict:
        return {
            "apiVersion": Foo.API_VERSION,
            "kind": Foo.KIND,
            "metadata": {"name": self.name, "namespace": self.namespace},
            "status": FooStatusSchema().dump(status),
        }

    async def patch_status(self, status: FooStatus) -> Dict:
        """Replace the controller-owned status of the Foo."""
        result = await self.apply_custom_object_status(
            self._ctx.custom_objects_api,
            namespace=self.namespace,
            group=self.GROUP_NAME,
            version=self.GROUP_VERSION,
            plural=self.PLURAL_NAME,
            name=self.name,
            body=self.prepare_status_body(status),
        )
        self.sensor.on_status_update(self.name, self.namespace, "available_replicas")
        return result

    async def patch_metadata(self, patch: List[Dict]) -> Dict:
        """JSON patch the Foo, used for finalizer bookkeeping."""
        return await self.json_patch_custom_object(
            self._ctx.custom_objects_api,
            namespace=self.namespace,
            group=self.GROUP_NAME,
            version=self.GROUP_VERSION,
            plural=self.PLURAL_NAME,
            name=self.name,
            patch=patch,
        )

    async def list_all(self) -> List[Dict]:
        """List Foo payloads across all namespaces."""
        result = await self.list_cluster_custom_objects(
            self._ctx.custom_objects_api,
            group=self.GROUP_NAME,
            version=self.GROUP_VERSION,
            plural=self.PLURAL_NAME,
        )
        return result.get("items", []) if result else []
