from typing import List, NamedTuple, Optional
from samplecontroller.types.base import BaseModel, JSON


class ObjectRef(NamedTuple):
    """Identity of a namespaced object."""

    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


class ObjectMeta(BaseModel):
    name: str
    namespace: str
    uid: Optional[str]
    resource_version: Optional[str]
    generation: Optional[int]
    deletion_timestamp: Optional[str]
    finalizers: List[str]


class FooSpec(BaseModel):
    deployment_name: str
    replicas: int


class FooStatus(BaseModel):
    available_replicas: int


class Foo(BaseModel):
    """Declared Foo resource as observed in the cluster."""

    GROUP = "samplecontroller.k8s.io"
    VERSION = "v1alpha1"
    API_VERSION = f"{GROUP}/{VERSION}"
    KIND = "Foo"
    PLURAL = "foos"

    api_version: str
    kind: str
    metadata: ObjectMeta
    spec: FooSpec
    status: Optional[FooStatus]

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> str:
        return self.metadata.namespace

    @property
    def is_deleting(self) -> bool:
        return self.metadata.deletion_timestamp is not None

    def has_finalizer(self, finalizer_name: str) -> bool:
        return finalizer_name in self.metadata.finalizers

    @classmethod
    def from_body(cls, body: JSON) -> "Foo":
        """Load a Foo from a raw API payload."""
        # Imported here since the schemas module depends on this one.
        from samplecontroller.types.schemas.foo import FooSchema

        return FooSchema().load_body(body)
