"""Translation of a Foo into the Deployment it manages.

Everything here is pure: no I/O, and the same Foo always yields the same
Deployment, so repeated applies of an unchanged Foo are no-ops server side.
"""

from typing import Dict, Mapping, Optional
from kubernetes_asyncio.client import (
    V1Container,
    V1Deployment,
    V1DeploymentSpec,
    V1LabelSelector,
    V1ObjectMeta,
    V1OwnerReference,
    V1PodSpec,
    V1PodTemplateSpec,
)
from samplecontroller.common.models.labels import Labels
from samplecontroller.types.models import Foo, ObjectRef
from samplecontroller.types.settings import Settings
from samplecontroller.utils.errors import OwnerReferenceError
from samplecontroller.utils.helpers import compute_hash

DEPLOYMENT_KIND = "Deployment"
DEPLOYMENT_API_VERSION = "apps/v1"
RESOURCE_HASH_ANNOTATION = f"{Foo.GROUP}/resource-hash"


def controller_owner_reference(foo: Foo) -> V1OwnerReference:
    """Owner reference marking `foo` as the controlling owner.

    Raises:
        OwnerReferenceError: the Foo has not been persisted yet (no uid).
    """
    if not foo.metadata.uid:
        raise OwnerReferenceError(
            f"Foo `{foo.namespace}/{foo.name}` has no uid; "
            "it must be persisted before it can own resources."
        )
    return V1OwnerReference(
        api_version=Foo.API_VERSION,
        kind=Foo.KIND,
        name=foo.name,
        uid=foo.metadata.uid,
        controller=True,
        block_owner_deletion=True,
    )


def prepare_hash_annotation(hash: str) -> Dict[str, str]:
    return {RESOURCE_HASH_ANNOTATION: hash}


def prepare_deployment(foo: Foo, settings: Settings) -> V1Deployment:
    """Desired Deployment for `foo`."""
    labels = Labels.generate_selector_labels(settings.app_label_value, foo.name)
    deployment = V1Deployment(
        api_version=DEPLOYMENT_API_VERSION,
        kind=DEPLOYMENT_KIND,
        metadata=V1ObjectMeta(
            name=foo.spec.deployment_name,
            namespace=foo.namespace,
            labels=labels.as_dict(),
            owner_references=[controller_owner_reference(foo)],
        ),
        spec=V1DeploymentSpec(
            replicas=foo.spec.replicas,
            selector=V1LabelSelector(match_labels=labels.as_dict()),
            template=V1PodTemplateSpec(
                metadata=V1ObjectMeta(labels=labels.as_dict()),
                spec=V1PodSpec(
                    containers=[
                        V1Container(
                            name=settings.container_name,
                            image=settings.container_image,
                        )
                    ]
                ),
            ),
        ),
    )
    # Hash is computed before the annotation is added
    deployment.metadata.annotations = prepare_hash_annotation(
        compute_hash(deployment.to_dict())
    )
    return deployment


def observed_available_replicas(deployment: V1Deployment) -> int:
    """Available replicas reported by the platform for `deployment`."""
    if deployment is None or deployment.status is None:
        return 0
    return deployment.status.available_replicas or 0


def owning_foo(body: Mapping) -> Optional[ObjectRef]:
    """Reference to the Foo controlling a Deployment payload, if any."""
    metadata = body.get("metadata") or {}
    for owner in metadata.get("ownerReferences") or []:
        api_group = (owner.get("apiVersion") or "").split("/")[0]
        if (
            owner.get("controller")
            and owner.get("kind") == Foo.KIND
            and api_group == Foo.GROUP
        ):
            return ObjectRef(metadata.get("namespace"), owner.get("name"))
    return None
