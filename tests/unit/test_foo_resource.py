"""Unit tests for FooResource cluster operations."""

import pytest
from samplecontroller.resources import FooResource
from samplecontroller.types.models import Foo, FooStatus
from samplecontroller.utils.errors import KubeError


class TestFooResource:
    @pytest.mark.asyncio
    async def test_list_all(self, ctx, custom_objects_api, make_foo_body):
        custom_objects_api.list_cluster_custom_object.return_value = {
            "items": [make_foo_body(name="a"), make_foo_body(name="b")]
        }
        items = await FooResource.default(ctx).list_all()

        assert [item["metadata"]["name"] for item in items] == ["a", "b"]
        kwargs = custom_objects_api.list_cluster_custom_object.await_args.kwargs
        assert kwargs["group"] == "samplecontroller.k8s.io"
        assert kwargs["version"] == "v1alpha1"
        assert kwargs["plural"] == "foos"

    @pytest.mark.asyncio
    async def test_list_all_missing_crd(self, ctx, custom_objects_api, api_exception):
        custom_objects_api.list_cluster_custom_object.side_effect = api_exception(
            404, "NotFound", "the server could not find the requested resource"
        )
        with pytest.raises(KubeError) as exc_info:
            await FooResource.default(ctx).list_all()
        assert exc_info.value.status == 404
        assert not exc_info.value.is_conflict

    def test_status_body(self, ctx, make_foo_body):
        resource = FooResource.from_model(Foo.from_body(make_foo_body()), ctx)
        assert resource.prepare_status_body(FooStatus(available_replicas=2)) == {
            "apiVersion": "samplecontroller.k8s.io/v1alpha1",
            "kind": "Foo",
            "metadata": {"name": "example-foo", "namespace": "default"},
            "status": {"available_replicas": 2},
        }

    def test_hash_matches_deployment(self, ctx, make_foo_body):
        resource = FooResource.from_model(Foo.from_body(make_foo_body()), ctx)
        annotations = resource.deployment.metadata.annotations
        assert annotations["samplecontroller.k8s.io/resource-hash"] == resource.hash
