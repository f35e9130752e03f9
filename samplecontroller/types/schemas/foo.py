from typing import Mapping
from marshmallow import ValidationError, fields, validate
from samplecontroller.types.base import BaseSchema, JSON
from samplecontroller.types.models import ObjectMeta, FooSpec, FooStatus, Foo
from samplecontroller.utils.errors import SerializationError


class ObjectMetaSchema(BaseSchema):
    __model__ = ObjectMeta

    name = fields.Str(data_key="name", required=True)
    namespace = fields.Str(data_key="namespace", required=True)
    uid = fields.Str(data_key="uid", allow_none=True, load_default=None)
    resource_version = fields.Str(
        data_key="resourceVersion", allow_none=True, load_default=None
    )
    generation = fields.Int(data_key="generation", allow_none=True, load_default=None)
    deletion_timestamp = fields.Str(
        data_key="deletionTimestamp", allow_none=True, load_default=None
    )
    finalizers = fields.List(
        fields.Str(), data_key="finalizers", allow_none=False, load_default=list
    )


class FooSpecSchema(BaseSchema):
    __model__ = FooSpec

    deployment_name = fields.Str(
        data_key="deploymentName",
        required=True,
        validate=validate.Length(min=1),
    )
    replicas = fields.Int(
        data_key="replicas", required=True, validate=validate.Range(min=0)
    )


class FooStatusSchema(BaseSchema):
    __model__ = FooStatus

    available_replicas = fields.Int(data_key="available_replicas", load_default=0)


class FooSchema(BaseSchema):
    __model__ = Foo

    api_version = fields.Str(data_key="apiVersion", load_default=None)
    kind = fields.Str(data_key="kind", load_default=None)
    metadata = fields.Nested(ObjectMetaSchema(), data_key="metadata", required=True)
    spec = fields.Nested(FooSpecSchema(), data_key="spec", required=True)
    status = fields.Nested(
        FooStatusSchema(), data_key="status", allow_none=True, load_default=None
    )

    def load_body(self, body: JSON) -> Foo:
        """Load a Foo, raising `SerializationError` for malformed payloads."""
        try:
            return self.load(body)
        except ValidationError as ex:
            meta = (body.get("metadata") or {}) if isinstance(body, Mapping) else {}
            raise SerializationError(
                f"Invalid Foo `{meta.get('namespace')}/{meta.get('name')}`: {ex.messages}"
            ) from ex
