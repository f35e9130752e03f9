"""Control loop driving reconciliations of observed Foo resources.

Watch events feed `observe()` / `forget()` / `enqueue()`; the controller keeps
the latest observed payload per Foo, queues each Foo at most once, runs at most
one reconciliation per Foo at a time and executes the returned directive
(wait for the next change, or run again after a delay).
"""

import time
import asyncio
import logging
from typing import Awaitable, Callable, Dict, Mapping, Optional, Set
from samplecontroller.controller.action import Action
from samplecontroller.controller.context import Context
from samplecontroller.types.models import Foo, ObjectRef
from samplecontroller.utils.errors import ReconcileError

logger = logging.getLogger(__name__)

Reconciler = Callable[[Foo, Context], Awaitable[Action]]
ErrorPolicy = Callable[[Mapping, Exception, Context], Action]


def object_ref(body: Mapping) -> Optional[ObjectRef]:
    metadata = body.get("metadata") or {}
    name, namespace = metadata.get("name"), metadata.get("namespace")
    if not name or not namespace:
        return None
    return ObjectRef(namespace, name)


class Controller:
    """Per-Foo work queue with delayed requeues and bounded concurrency."""

    def __init__(
        self,
        reconciler: Reconciler,
        error_policy: ErrorPolicy,
        ctx: Context,
        worker_limit: int = None,
        reconcile_timeout: float = None,
    ):
        self._reconciler = reconciler
        self._error_policy = error_policy
        self._ctx = ctx
        self._sensor = ctx.sensor
        self._worker_limit = worker_limit or ctx.settings.worker_limit
        self._reconcile_timeout = (
            reconcile_timeout or ctx.settings.reconcile_timeout_seconds
        )

        # Latest observed payload per Foo
        self._store: Dict[ObjectRef, Mapping] = {}
        self._queue: asyncio.Queue = asyncio.Queue()
        # Queued refs and when they were queued
        self._pending: Dict[ObjectRef, float] = {}
        # Refs being reconciled, and those that changed meanwhile
        self._active: Set[ObjectRef] = set()
        self._dirty: Dict[ObjectRef, str] = {}
        self._timers: Dict[ObjectRef, asyncio.TimerHandle] = {}
        self._inflight: Set[asyncio.Task] = set()
        self._slots = asyncio.Semaphore(self._worker_limit)
        self._dispatcher: Optional[asyncio.Task] = None
        self._stopping = False

    @property
    def queue_depth(self) -> int:
        return len(self._pending)

    @property
    def in_flight(self) -> int:
        return len(self._active)

    @property
    def is_running(self) -> bool:
        return self._dispatcher is not None and not self._dispatcher.done()

    def observe(self, body: Mapping, trigger: str = "object") -> None:
        """Record the latest payload of a Foo and queue it for reconciliation."""
        ref = object_ref(body)
        if ref is None:
            logger.warning(f"Ignoring {Foo.KIND} without name or namespace")
            return
        self._store[ref] = body
        self.enqueue(ref, trigger)

    def forget(self, ref: ObjectRef) -> None:
        """Drop a Foo that no longer exists."""
        self._store.pop(ref, None)
        self._dirty.pop(ref, None)
        self._cancel_timer(ref)

    def enqueue(self, ref: ObjectRef, trigger: str) -> None:
        """Queue `ref` for reconciliation unless it is already queued.

        A queued reconciliation supersedes a pending delayed requeue. When the
        Foo is being reconciled right now, it runs again once that finishes.
        """
        if self._stopping:
            return
        if ref not in self._store:
            logger.debug(f"Not queueing unknown {Foo.KIND} {ref} ({trigger})")
            return
        self._cancel_timer(ref)
        if ref in self._active:
            self._dirty.setdefault(ref, trigger)
            return
        if ref in self._pending:
            return
        self._pending[ref] = time.monotonic()
        self._queue.put_nowait((ref, trigger))
        self._sensor.on_reconcile_queued(ref.name, ref.namespace, self.queue_depth)

    def _cancel_timer(self, ref: ObjectRef) -> None:
        timer = self._timers.pop(ref, None)
        if timer is not None:
            timer.cancel()

    def _schedule(self, ref: ObjectRef, delay: float, reason: str) -> None:
        self._cancel_timer(ref)
        if delay <= 0:
            self.enqueue(ref, reason)
            return
        loop = asyncio.get_running_loop()
        self._timers[ref] = loop.call_later(delay, self._fire, ref)
        self._sensor.on_reconcile_requeued(ref.name, ref.namespace, delay, reason)

    def _fire(self, ref: ObjectRef) -> None:
        self._timers.pop(ref, None)
        self.enqueue(ref, "requeue")

    def start(self) -> None:
        if self.is_running:
            return
        self._stopping = False
        self._dispatcher = asyncio.create_task(self._dispatch())
        logger.info(f"Starting up controller loop with {self._worker_limit} workers")

    async def _dispatch(self) -> None:
        while True:
            await self._slots.acquire()
            ref, trigger = await self._queue.get()
            task = asyncio.create_task(self._run(ref, trigger))
            self._inflight.add(task)
            task.add_done_callback(self._inflight.discard)

    async def _run(self, ref: ObjectRef, trigger: str) -> None:
        queued_at = self._pending.pop(ref, time.monotonic())
        self._active.add(ref)
        try:
            self._sensor.on_reconcile_dequeued(
                ref.name, ref.namespace, time.monotonic() - queued_at
            )
            action = await self._process(ref, trigger)
            if action is not None and action.is_requeue and not self._stopping:
                self._schedule(ref, action.requeue_after, trigger)
        finally:
            self._active.discard(ref)
            self._slots.release()
            dirty_trigger = self._dirty.pop(ref, None)
            if dirty_trigger is not None:
                self.enqueue(ref, dirty_trigger)

    async def _process(self, ref: ObjectRef, trigger: str) -> Optional[Action]:
        body = self._store.get(ref)
        if body is None:
            logger.debug(f"{Foo.KIND} {ref} is gone, nothing to reconcile")
            return None

        metadata = body.get("metadata") or {}
        state = self._sensor.on_reconcile_start(
            ref.name, ref.namespace, metadata.get("generation"), trigger
        )
        try:
            foo = Foo.from_body(body)
            action = await asyncio.wait_for(
                self._reconciler(foo, self._ctx), timeout=self._reconcile_timeout
            )
        except asyncio.TimeoutError:
            error = ReconcileError(
                f"Reconciliation timed out after {self._reconcile_timeout}s"
            )
        except Exception as ex:
            error = ex
        else:
            self._sensor.on_reconcile_complete(
                ref.name, ref.namespace, state, True
            )
            return action

        self._sensor.on_reconcile_complete(
            ref.name, ref.namespace, state, False, error
        )
        return self._error_policy(body, error, self._ctx)

    async def shutdown(self, grace_period: float = None) -> None:
        """Stop dispatching and give in-flight reconciliations `grace_period` to finish.

        Reconciliations still running afterwards are cancelled; the next run
        of the controller starts them over from the observed state.
        """
        if grace_period is None:
            grace_period = self._ctx.settings.shutdown_grace_seconds
        self._stopping = True
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()

        if self._dispatcher is not None:
            self._dispatcher.cancel()
            await asyncio.gather(self._dispatcher, return_exceptions=True)
            self._dispatcher = None

        inflight = set(self._inflight)
        if inflight:
            logger.info(f"Waiting up to {grace_period}s for {len(inflight)} reconciliations")
            _, pending = await asyncio.wait(inflight, timeout=grace_period)
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
                logger.warning(f"Aborted {len(pending)} in-flight reconciliations")

        logger.info("Controller has been terminated")
