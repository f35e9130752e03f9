from typing import Optional


class Action:
    """Scheduling directive returned by a reconciliation.

    `requeue_after` is None when the controller should wait for the next
    change, otherwise the number of seconds after which the resource is
    reconciled again.
    """

    __slots__ = ("requeue_after",)

    def __init__(self, requeue_after: Optional[float] = None):
        self.requeue_after = requeue_after

    @classmethod
    def await_change(cls) -> "Action":
        return cls(None)

    @classmethod
    def requeue(cls, delay: float) -> "Action":
        if delay < 0:
            raise ValueError(f"Requeue delay must not be negative, got {delay}")
        return cls(delay)

    @classmethod
    def requeue_now(cls) -> "Action":
        return cls(0.0)

    @property
    def is_requeue(self) -> bool:
        return self.requeue_after is not None

    def __eq__(self, other) -> bool:
        return isinstance(other, Action) and self.requeue_after == other.requeue_after

    def __hash__(self) -> int:
        return hash(self.requeue_after)

    def __repr__(self) -> str:
        if self.requeue_after is None:
            return "Action.await_change()"
        return f"Action.requeue({self.requeue_after})"
