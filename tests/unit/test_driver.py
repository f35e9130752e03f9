"""Unit tests for the controller loop."""

import asyncio
import pytest
from unittest.mock import Mock
from samplecontroller.controller.action import Action
from samplecontroller.controller.context import Context
from samplecontroller.controller.driver import Controller, object_ref
from samplecontroller.types.models import ObjectRef
from samplecontroller.types.settings import Settings
from samplecontroller.utils.errors import ReconcileError, SerializationError


async def settle(controller: Controller, timeout: float = 2.0) -> None:
    """Wait until nothing is queued or running."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while controller.queue_depth or controller.in_flight:
        if loop.time() > deadline:
            raise AssertionError("controller did not settle")
        await asyncio.sleep(0.01)


class Recorder:
    """Reconciler recording calls, optionally blocking until released."""

    def __init__(self, actions=None, block=False):
        self.calls = []
        self.actions = list(actions or [])
        self.release = asyncio.Event()
        if not block:
            self.release.set()
        self.running = 0
        self.max_running = 0

    async def __call__(self, foo, ctx):
        self.calls.append(foo)
        self.running += 1
        self.max_running = max(self.max_running, self.running)
        try:
            await self.release.wait()
        finally:
            self.running -= 1
        if self.actions:
            action = self.actions.pop(0)
            if isinstance(action, Exception):
                raise action
            return action
        return Action.await_change()


@pytest.fixture
def driver_ctx():
    return Context(
        settings=Settings(
            worker_limit=4,
            error_requeue_seconds=0.05,
            reconcile_timeout_seconds=1.0,
            shutdown_grace_seconds=0.5,
        )
    )


@pytest.fixture
def policy():
    return Mock(return_value=Action.await_change())


class TestObjectRef:
    def test_from_body(self, make_foo_body):
        assert object_ref(make_foo_body(name="a", namespace="ns")) == ObjectRef("ns", "a")

    def test_incomplete_body(self):
        assert object_ref({"metadata": {"name": "a"}}) is None
        assert object_ref({}) is None


class TestController:
    @pytest.mark.asyncio
    async def test_reconciles_observed_foo(self, driver_ctx, policy, make_foo_body):
        reconciler = Recorder()
        controller = Controller(reconciler, policy, driver_ctx)
        controller.start()
        controller.observe(make_foo_body(replicas=2))
        await settle(controller)

        assert len(reconciler.calls) == 1
        assert reconciler.calls[0].spec.replicas == 2
        policy.assert_not_called()
        await controller.shutdown()

    @pytest.mark.asyncio
    async def test_queued_events_collapse(self, driver_ctx, policy, make_foo_body):
        reconciler = Recorder()
        controller = Controller(reconciler, policy, driver_ctx)
        for replicas in (1, 2, 3):
            controller.observe(make_foo_body(replicas=replicas))
        assert controller.queue_depth == 1

        controller.start()
        await settle(controller)

        assert len(reconciler.calls) == 1
        assert reconciler.calls[0].spec.replicas == 3
        await controller.shutdown()

    @pytest.mark.asyncio
    async def test_one_reconciliation_per_foo_at_a_time(
        self, driver_ctx, policy, make_foo_body
    ):
        reconciler = Recorder(block=True)
        controller = Controller(reconciler, policy, driver_ctx)
        controller.start()
        controller.observe(make_foo_body(replicas=1))
        await asyncio.sleep(0.05)
        assert controller.in_flight == 1

        # Changes while running collapse into one follow-up run
        controller.observe(make_foo_body(replicas=2))
        controller.observe(make_foo_body(replicas=3))
        await asyncio.sleep(0.05)
        assert len(reconciler.calls) == 1

        reconciler.release.set()
        await settle(controller)

        assert reconciler.max_running == 1
        assert [foo.spec.replicas for foo in reconciler.calls] == [1, 3]
        await controller.shutdown()

    @pytest.mark.asyncio
    async def test_distinct_foos_run_concurrently(
        self, driver_ctx, policy, make_foo_body
    ):
        reconciler = Recorder(block=True)
        controller = Controller(reconciler, policy, driver_ctx)
        controller.start()
        controller.observe(make_foo_body(name="foo-a"))
        controller.observe(make_foo_body(name="foo-b"))
        await asyncio.sleep(0.05)

        assert reconciler.max_running == 2
        reconciler.release.set()
        await settle(controller)
        await controller.shutdown()

    @pytest.mark.asyncio
    async def test_worker_limit(self, policy, make_foo_body):
        ctx = Context(settings=Settings(worker_limit=1))
        reconciler = Recorder(block=True)
        controller = Controller(reconciler, policy, ctx)
        controller.start()
        controller.observe(make_foo_body(name="foo-a"))
        controller.observe(make_foo_body(name="foo-b"))
        await asyncio.sleep(0.05)

        assert reconciler.max_running == 1
        reconciler.release.set()
        await settle(controller)
        assert len(reconciler.calls) == 2
        await controller.shutdown()

    @pytest.mark.asyncio
    async def test_requeue_after_delay(self, driver_ctx, policy, make_foo_body):
        reconciler = Recorder(actions=[Action.requeue(0.1)])
        controller = Controller(reconciler, policy, driver_ctx)
        controller.start()
        controller.observe(make_foo_body())
        await settle(controller)
        assert len(reconciler.calls) == 1

        await asyncio.sleep(0.02)
        assert len(reconciler.calls) == 1
        await asyncio.sleep(0.2)
        await settle(controller)
        assert len(reconciler.calls) == 2
        await controller.shutdown()

    @pytest.mark.asyncio
    async def test_failure_goes_through_error_policy(
        self, driver_ctx, make_foo_body
    ):
        error = ReconcileError("boom")
        policy = Mock(return_value=Action.requeue(0.1))
        reconciler = Recorder(actions=[error])
        controller = Controller(reconciler, policy, driver_ctx)
        controller.start()
        body = make_foo_body()
        controller.observe(body)
        await settle(controller)

        policy.assert_called_once_with(body, error, driver_ctx)
        await asyncio.sleep(0.05)
        assert len(reconciler.calls) == 1
        await asyncio.sleep(0.2)
        await settle(controller)
        assert len(reconciler.calls) == 2
        await controller.shutdown()

    @pytest.mark.asyncio
    async def test_invalid_payload_goes_through_error_policy(
        self, driver_ctx, policy, make_foo_body
    ):
        reconciler = Recorder()
        controller = Controller(reconciler, policy, driver_ctx)
        controller.start()
        body = make_foo_body()
        del body["spec"]
        controller.observe(body)
        await settle(controller)

        assert reconciler.calls == []
        assert isinstance(policy.call_args.args[1], SerializationError)
        await controller.shutdown()

    @pytest.mark.asyncio
    async def test_timeout_goes_through_error_policy(self, policy, make_foo_body):
        ctx = Context(settings=Settings(reconcile_timeout_seconds=0.05))
        reconciler = Recorder(block=True)
        controller = Controller(reconciler, policy, ctx)
        controller.start()
        controller.observe(make_foo_body())
        await settle(controller)

        error = policy.call_args.args[1]
        assert isinstance(error, ReconcileError)
        assert "timed out" in str(error)
        await controller.shutdown()

    @pytest.mark.asyncio
    async def test_forgotten_foo_is_skipped(self, driver_ctx, policy, make_foo_body):
        reconciler = Recorder()
        controller = Controller(reconciler, policy, driver_ctx)
        body = make_foo_body()
        controller.observe(body)
        controller.forget(object_ref(body))
        controller.start()
        await settle(controller)

        assert reconciler.calls == []
        controller.enqueue(object_ref(body), "owned")
        assert controller.queue_depth == 0
        await controller.shutdown()

    @pytest.mark.asyncio
    async def test_unknown_ref_not_queued(self, driver_ctx, policy):
        controller = Controller(Recorder(), policy, driver_ctx)
        controller.enqueue(ObjectRef("default", "missing"), "owned")
        assert controller.queue_depth == 0

    @pytest.mark.asyncio
    async def test_owned_trigger_reconciles_known_foo(
        self, driver_ctx, policy, make_foo_body
    ):
        reconciler = Recorder()
        controller = Controller(reconciler, policy, driver_ctx)
        controller.start()
        body = make_foo_body()
        controller.observe(body)
        await settle(controller)

        controller.enqueue(object_ref(body), "owned")
        await settle(controller)
        assert len(reconciler.calls) == 2
        await controller.shutdown()


class TestShutdown:
    @pytest.mark.asyncio
    async def test_waits_for_in_flight(self, driver_ctx, policy, make_foo_body):
        reconciler = Recorder(block=True)
        controller = Controller(reconciler, policy, driver_ctx)
        controller.start()
        controller.observe(make_foo_body())
        await asyncio.sleep(0.05)

        asyncio.get_running_loop().call_later(0.05, reconciler.release.set)
        await controller.shutdown(grace_period=1.0)

        assert not controller.is_running
        assert controller.in_flight == 0
        policy.assert_not_called()

    @pytest.mark.asyncio
    async def test_cancels_after_grace_period(self, driver_ctx, policy, make_foo_body):
        reconciler = Recorder(block=True)
        controller = Controller(reconciler, policy, driver_ctx)
        controller.start()
        controller.observe(make_foo_body())
        await asyncio.sleep(0.05)

        await controller.shutdown(grace_period=0.05)

        assert controller.in_flight == 0
        assert reconciler.running == 0

    @pytest.mark.asyncio
    async def test_no_work_after_shutdown(self, driver_ctx, policy, make_foo_body):
        reconciler = Recorder(actions=[Action.requeue(0.05)])
        controller = Controller(reconciler, policy, driver_ctx)
        controller.start()
        controller.observe(make_foo_body())
        await settle(controller)
        await controller.shutdown()

        controller.observe(make_foo_body(replicas=5))
        await asyncio.sleep(0.1)
        assert controller.queue_depth == 0
        assert len(reconciler.calls) == 1
