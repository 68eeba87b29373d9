# ============================================================================
# RECONCILE MANAGER
# ============================================================================
# STATUS: Reconciler - Pass scheduling
# PURPOSE: Queue, run, retry and resync reconciliation passes
# CREATED: 14 OCT 2026
# ============================================================================
"""
Reconcile Manager

Hosts the reconcilers and decides when each object is reconciled:

1. Triggers (HTTP, resync, delayed requeue) enqueue (kind, key)
2. Worker tasks take items off the queue and run one pass each
3. Pass outcome decides what happens next:
   - clean pass            -> nothing until the next trigger
   - requeue_after set     -> enqueue again after that delay
   - error / timeout       -> enqueue again after exponential backoff
   - missing capability    -> logged critical, not retried

Guarantees:
- An item is queued at most once (duplicate triggers collapse)
- An object never has two passes running; a trigger that arrives while
  a pass is in flight is replayed once the pass finishes
- Backoff for an object resets after its first clean pass

Runs as background tasks in the FastAPI application.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set, Tuple

from core.config import ReconcilerDefaults, get_defaults
from core.contracts import ObjectKey, ResourceKind
from core.errors import MissingCapabilityError, ReconciliationError
from core.logging import ComponentType, get_logger
from core.observability import MetricsCollector, get_metrics
from reconciler.pipeline import PipelineReconciler
from reconciler.requeue import ReconcileResult

logger = get_logger(__name__, ComponentType.MANAGER)

WorkItem = Tuple[ResourceKind, ObjectKey]
KeyLister = Callable[[], Awaitable[List[ObjectKey]]]


@dataclass
class Registration:
    """A reconciler and the function listing every object it owns."""
    reconciler: PipelineReconciler
    lister: KeyLister


def _describe(item: WorkItem) -> str:
    kind, key = item
    return f"{kind.value} {key}"


class ReconcileManager:
    """
    Work queue and worker pool for reconciliation passes.

    Usage:
        manager = ReconcileManager()
        manager.register(ResourceKind.CLUSTER, cluster_reconciler, cluster_repo.list_keys)
        await manager.start()
        manager.enqueue(ResourceKind.CLUSTER, key)
        ...
        await manager.stop()
    """

    def __init__(
        self,
        defaults: Optional[ReconcilerDefaults] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.defaults = defaults or get_defaults().reconciler
        self.metrics = metrics or get_metrics()

        self._registrations: Dict[ResourceKind, Registration] = {}

        self._queue: asyncio.Queue = asyncio.Queue()
        self._queued: Set[WorkItem] = set()
        self._in_flight: Set[WorkItem] = set()
        self._dirty: Set[WorkItem] = set()
        self._failures: Dict[WorkItem, int] = {}
        self._delayed: Dict[WorkItem, asyncio.TimerHandle] = {}

        # State
        self._running = False
        self._stop_event = asyncio.Event()
        self._workers: List[asyncio.Task] = []
        self._resync_task: Optional[asyncio.Task] = None

        # Stats
        self._started_at: Optional[datetime] = None
        self._passes = 0
        self._errors = 0
        self._requeues = 0
        self._resyncs = 0
        self._last_resync_at: Optional[datetime] = None

    # =========================================================================
    # REGISTRATION / TRIGGERS
    # =========================================================================

    def register(
        self,
        kind: ResourceKind,
        reconciler: PipelineReconciler,
        lister: KeyLister,
    ) -> None:
        """Register the reconciler for a kind."""
        if kind in self._registrations:
            raise ValueError(f"A reconciler is already registered for {kind.value}")
        self._registrations[kind] = Registration(reconciler=reconciler, lister=lister)
        logger.info(f"Registered {type(reconciler).__name__} for {kind.value}")

    @property
    def kinds(self) -> List[ResourceKind]:
        return list(self._registrations)

    def get_reconciler(self, kind: ResourceKind) -> PipelineReconciler:
        return self._registrations[kind].reconciler

    def enqueue(self, kind: ResourceKind, key: ObjectKey) -> bool:
        """
        Trigger a pass for an object.

        Returns:
            False if the object was already queued, True otherwise

        Raises:
            KeyError: if no reconciler is registered for kind
        """
        if kind not in self._registrations:
            raise KeyError(f"No reconciler registered for {kind.value}")

        item = (kind, key)
        timer = self._delayed.pop(item, None)
        if timer is not None:
            timer.cancel()

        if item in self._queued:
            return False
        if item in self._in_flight:
            self._dirty.add(item)
            return True

        self._queued.add(item)
        self._queue.put_nowait(item)
        return True

    def enqueue_after(self, kind: ResourceKind, key: ObjectKey, delay: float) -> None:
        """Trigger a pass after delay seconds, replacing any pending delayed trigger."""
        item = (kind, key)
        timer = self._delayed.pop(item, None)
        if timer is not None:
            timer.cancel()

        if delay <= 0:
            self.enqueue(kind, key)
            return

        loop = asyncio.get_running_loop()
        self._delayed[item] = loop.call_later(delay, self._fire_delayed, item)

    def _fire_delayed(self, item: WorkItem) -> None:
        self._delayed.pop(item, None)
        if self._running:
            self.enqueue(*item)

    async def resync(self) -> int:
        """Enqueue every object of every registered kind. Returns the count."""
        count = 0
        for kind, registration in self._registrations.items():
            try:
                keys = await registration.lister()
            except Exception as e:
                logger.error(f"Resync could not list {kind.value} objects: {e}")
                continue
            for key in keys:
                self.enqueue(kind, key)
                count += 1

        self._resyncs += 1
        self._last_resync_at = datetime.now(timezone.utc)
        logger.debug(f"Resync enqueued {count} objects")
        return count

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def start(self) -> None:
        """Start workers and the periodic resync loop."""
        if self._running:
            logger.warning("Reconcile manager already running")
            return

        self._running = True
        self._started_at = datetime.now(timezone.utc)
        self._stop_event.clear()

        worker_count = max(1, self.defaults.max_concurrent_reconciles)
        self._workers = [
            asyncio.create_task(self._worker_loop(i), name=f"reconcile-worker-{i}")
            for i in range(worker_count)
        ]
        self._resync_task = asyncio.create_task(self._resync_loop(), name="reconcile-resync")

        logger.info(
            f"Reconcile manager started (workers={worker_count}, "
            f"resync={self.defaults.resync_period_seconds}s, "
            f"kinds={[k.value for k in self._registrations]})"
        )

    async def stop(self) -> None:
        """Stop workers and the resync loop, dropping delayed triggers."""
        logger.info("Stopping reconcile manager")

        self._running = False
        self._stop_event.set()

        for timer in self._delayed.values():
            timer.cancel()
        self._delayed.clear()

        tasks = [*self._workers, self._resync_task]
        for task in tasks:
            if task:
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass

        self._workers = []
        self._resync_task = None

        logger.info(
            f"Reconcile manager stopped (passes={self._passes}, "
            f"errors={self._errors}, requeues={self._requeues})"
        )

    async def wait_idle(self) -> None:
        """Wait until every queued item has been processed."""
        await self._queue.join()

    # =========================================================================
    # LOOPS
    # =========================================================================

    async def _worker_loop(self, worker_id: int) -> None:
        logger.debug(f"Worker {worker_id} started")
        while self._running:
            item = await self._queue.get()
            try:
                await self.process(item)
            finally:
                self._queue.task_done()

    async def _resync_loop(self) -> None:
        while self._running and not self._stop_event.is_set():
            await self.resync()

            try:
                await asyncio.wait_for(
                    self._stop_event.wait(),
                    timeout=self.defaults.resync_period_seconds,
                )
                break
            except asyncio.TimeoutError:
                pass

    # =========================================================================
    # PASS
    # =========================================================================

    async def process(self, item: WorkItem) -> Optional[ReconcileResult]:
        """
        Run one pass for a queued item and schedule what comes next.

        Returns:
            The pass result, or None if the pass raised
        """
        kind, key = item
        registration = self._registrations[kind]

        self._queued.discard(item)
        self._in_flight.add(item)
        self._passes += 1
        failed = False
        try:
            result = await asyncio.wait_for(
                registration.reconciler.reconcile(key),
                timeout=self.defaults.reconcile_timeout_seconds,
            )
        except MissingCapabilityError as e:
            self._errors += 1
            logger.critical(f"Cannot reconcile {_describe(item)}: {e}")
            return None
        except asyncio.TimeoutError:
            failed = True
            self._errors += 1
            logger.error(
                f"Reconciliation of {_describe(item)} timed out after "
                f"{self.defaults.reconcile_timeout_seconds}s"
            )
            self._retry_with_backoff(item)
            return None
        except ReconciliationError as e:
            # Already logged and recorded by the requeue controller
            failed = True
            self._errors += 1
            logger.debug(f"Reconciliation of {_describe(item)} failed: {e}")
            self._retry_with_backoff(item)
            return None
        except Exception as e:
            failed = True
            self._errors += 1
            logger.error(f"Reconciliation of {_describe(item)} failed: {e}", exc_info=True)
            self._retry_with_backoff(item)
            return None
        finally:
            self._in_flight.discard(item)
            if item in self._dirty:
                self._dirty.discard(item)
                # A failed pass already scheduled its retry; keep the backoff
                if not failed:
                    self.enqueue(kind, key)

        self._failures.pop(item, None)
        if result.requeue:
            self._requeues += 1
            self.metrics.counter("fdb_reconcile_requeues", tags={"kind": kind.value, "reason": "pending"})
            self.enqueue_after(kind, key, result.requeue_after)
        return result

    def _retry_with_backoff(self, item: WorkItem) -> None:
        failures = self._failures.get(item, 0) + 1
        self._failures[item] = failures
        delay = self.defaults.backoff_for(failures)
        self.metrics.counter("fdb_reconcile_requeues", tags={"kind": item[0].value, "reason": "error"})
        logger.info(f"Retrying {_describe(item)} in {delay:.3f}s (failures={failures})")
        self.enqueue_after(item[0], item[1], delay)

    def failures(self, kind: ResourceKind, key: ObjectKey) -> int:
        """Consecutive failed passes for an object."""
        return self._failures.get((kind, key), 0)

    # =========================================================================
    # STATUS
    # =========================================================================

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def stats(self) -> Dict[str, Any]:
        """Get manager statistics."""
        uptime_seconds = None
        if self._started_at:
            uptime_seconds = (datetime.now(timezone.utc) - self._started_at).total_seconds()

        return {
            "running": self._running,
            "started_at": self._started_at.isoformat() if self._started_at else None,
            "uptime_seconds": uptime_seconds,
            "kinds": [k.value for k in self._registrations],
            "workers": len(self._workers),
            "queued": len(self._queued),
            "in_flight": len(self._in_flight),
            "delayed": len(self._delayed),
            "backing_off": len(self._failures),
            "passes": self._passes,
            "errors": self._errors,
            "requeues": self._requeues,
            "resyncs": self._resyncs,
            "last_resync_at": self._last_resync_at.isoformat() if self._last_resync_at else None,
        }


__all__ = ["Registration", "ReconcileManager"]
