"""Unit tests for label helpers."""

from samplecontroller.common.models.labels import Labels


class TestLabels:
    def test_selector_labels(self):
        labels = Labels.generate_selector_labels("nginx", "example-foo")
        assert labels.as_dict() == {"app": "nginx", "controller": "example-foo"}

    def test_as_dict_is_a_copy(self):
        labels = Labels({"app": "nginx"})
        labels.as_dict()["app"] = "other"
        assert labels.as_dict() == {"app": "nginx"}

    def test_include_overrides(self):
        labels = Labels().include_app("nginx").include_app("web")
        assert labels.as_dict() == {"app": "web"}
