from typing import Dict


class ResourceLabels:
    APP_LABEL = "app"

    CONTROLLER_LABEL = "controller"


class Labels(ResourceLabels):
    _labels: Dict[str, str]

    def __init__(self, labels: Dict[str, str] = None) -> None:
        self._labels = labels if labels else dict()

    def update(self, labels: Dict[str, str]) -> "Labels":
        self._labels.update(labels.copy())
        return self

    def as_dict(self) -> Dict[str, str]:
        """Return labels as dictionary."""
        return self._labels.copy()

    def include(self, label: str, value: str) -> "Labels":
        self.update({label: value})
        return self

    def include_app(self, app: str) -> "Labels":
        return self.include(self.APP_LABEL, app)

    def include_controller(self, name: str) -> "Labels":
        return self.include(self.CONTROLLER_LABEL, name)

    def __str__(self):
        return f"Labels<{self._labels}>"

    @classmethod
    def generate_selector_labels(cls, app: str, foo_name: str) -> "Labels":
        """Labels shared by a Foo's deployment selector and pod template."""
        return Labels().include_app(app).include_controller(foo_name)
