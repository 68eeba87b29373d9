# ============================================================================
# SUB-RECONCILER PIPELINE
# ============================================================================
# STATUS: Reconciler - Pass driver
# PURPOSE: Run an ordered list of idempotent steps against one object
# CREATED: 11 OCT 2026
# ============================================================================
"""
Sub-Reconciler Pipeline

A reconciliation pass loads the current object, runs each sub-reconciler
in declared order and stops at the first one that returns a signal:

    Start -> Running(0) -> Running(1) -> ... -> Done
                 |              |
                 +--------------+--> Stopped(step, signal) -> requeue controller

Steps are idempotent: every pass starts from freshly loaded state, and
a step whose work is already done returns None without side effects.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Optional, Tuple

import psycopg

from core.config import ReconcilerDefaults, get_defaults
from core.contracts import EventKind, ObjectKey, PassState, ResourceKind
from core.errors import ConflictError, MissingCapabilityError, ReconcilerError
from core.logging import ComponentType, get_logger, log_context
from core.observability import MetricsCollector, Tracer, get_metrics, get_tracer
from reconciler.requeue import (
    PassOutcome,
    ReconcileResult,
    RequeueSignal,
    classify,
    process_requeue,
)
from services.admin_client import AdminClient, DatabaseClientProvider
from services.process_manager import ProcessGroupManager

logger = get_logger(__name__, ComponentType.RECONCILER)

# Errors a step converts into a RetryableError instead of raising
RECOVERABLE_ERRORS = (ReconcilerError, psycopg.Error, OSError, asyncio.TimeoutError)


class SubReconciler(ABC):
    """
    One step of a pipeline.

    reconcile() returns None to continue, or a RetryableError /
    PendingMessage to stop the pass.
    """

    name: ClassVar[str] = ""

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        if not cls.__dict__.get("name"):
            cls.name = cls.__name__

    @abstractmethod
    async def reconcile(self, reconciler: "PipelineReconciler", obj: Any) -> Optional[RequeueSignal]:
        ...

    def __repr__(self) -> str:
        return f"<{self.name}>"


class PipelineReconciler(ABC):
    """
    Base class for reconcilers of one resource kind.

    Subclasses declare `kind` and the fixed `sub_reconcilers` tuple.
    """

    kind: ClassVar[ResourceKind]
    sub_reconcilers: ClassVar[Tuple[SubReconciler, ...]] = ()

    def __init__(
        self,
        repository,
        recorder,
        database_client_provider: Optional[DatabaseClientProvider] = None,
        process_group_manager: Optional[ProcessGroupManager] = None,
        defaults: Optional[ReconcilerDefaults] = None,
        tracer: Optional[Tracer] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        """
        Args:
            repository: Store for this kind (get / update_status)
            recorder: EventRecorder
            database_client_provider: Creates admin clients
            process_group_manager: Tears down process groups
            defaults: Requeue delay settings (defaults from env)
            tracer: Tracer (global one if omitted)
            metrics: MetricsCollector (global one if omitted)
        """
        self.repository = repository
        self.recorder = recorder
        self.database_client_provider = database_client_provider
        self.process_group_manager = process_group_manager
        self.defaults = defaults or get_defaults().reconciler
        self.tracer = tracer or get_tracer()
        self.metrics = metrics or get_metrics()

    @property
    def name(self) -> str:
        return type(self).__name__

    # =========================================================================
    # CAPABILITIES
    # =========================================================================

    def get_database_client_provider(self) -> DatabaseClientProvider:
        if self.database_client_provider is None:
            raise MissingCapabilityError(self.name, "DatabaseClientProvider")
        return self.database_client_provider

    def get_process_group_manager(self) -> ProcessGroupManager:
        if self.process_group_manager is None:
            raise MissingCapabilityError(self.name, "ProcessGroupManager")
        return self.process_group_manager

    async def get_admin_client(self, cluster) -> AdminClient:
        """Admin client for a cluster, from the configured provider."""
        provider = self.get_database_client_provider()
        return await provider.get_admin_client(cluster, self.name)

    def validate_capabilities(self) -> None:
        """
        Check every capability this reconciler needs is configured.

        Raises:
            MissingCapabilityError: on the first missing capability
        """

    # =========================================================================
    # STORE / EVENTS
    # =========================================================================

    async def load(self, key: ObjectKey) -> Optional[Any]:
        """Load the current object, or None if it no longer exists."""
        return await self.repository.get(key)

    async def update_status(self, obj: Any) -> None:
        """
        Persist the object's status.

        Raises:
            ConflictError: if another writer updated the object first
        """
        if not await self.repository.update_status(obj):
            raise ConflictError(
                self.kind.value, str(obj.metadata.key), obj.metadata.resource_version
            )

    async def commit_status(self, obj: Any, status: Any) -> None:
        """
        Swap in a status built on a scratch copy and persist it.

        On failure the object keeps its previous status.
        """
        previous = obj.status
        obj.status = status
        try:
            await self.update_status(obj)
        except Exception:
            obj.status = previous
            raise

    async def record_event(self, obj: Any, event_type: EventKind, reason: str, message: str) -> None:
        await self.recorder.record(self.kind, obj.metadata.key, event_type, reason, message)

    def observe(self, obj: Any) -> None:
        """Called with the object as it stands after every pass."""

    def forget(self, key: ObjectKey) -> None:
        """Called when the object of a pass no longer exists."""

    # =========================================================================
    # PASS
    # =========================================================================

    async def run_steps(self, obj: Any) -> PassOutcome:
        """Run the steps in order until one stops the pipeline."""
        for step in self.sub_reconcilers:
            with log_context(reconciler=step.name):
                with self.tracer.start_span(
                    f"{self.kind.value}.{step.name}",
                    {"kind": self.kind.value, "object": str(obj.metadata.key), "step": step.name},
                ):
                    logger.debug(f"Attempting to run sub-reconciler {step.name}")
                    signal = await step.reconcile(self, obj)

            if signal is not None:
                return PassOutcome(state=classify(signal), step=step.name, signal=signal)

        return PassOutcome(state=PassState.DONE)

    async def reconcile(self, request: ObjectKey) -> ReconcileResult:
        """
        Run one reconciliation pass for the object named by request.

        Returns:
            ReconcileResult; requeue_after is set when a step asked to wait

        Raises:
            ReconciliationError: when a step stopped the pass with an error
            MissingCapabilityError: when a required capability is not wired
        """
        with log_context(
            kind=self.kind.value,
            namespace=request.namespace,
            name=request.name,
            component=ComponentType.RECONCILER.value,
        ):
            obj = await self.load(request)
            if obj is None:
                logger.info(f"{self.kind.value} {request} not found, nothing to reconcile")
                self.forget(request)
                return ReconcileResult()

            with self.tracer.start_span(
                f"{self.kind.value}.reconcile",
                {"kind": self.kind.value, "object": str(request)},
            ):
                outcome = await self.run_steps(obj)

            self.observe(obj)
            self.metrics.counter(
                "fdb_reconcile_passes",
                tags={"kind": self.kind.value, "outcome": outcome.state.value},
            )

            if outcome.state == PassState.DONE:
                logger.info("Reconciliation complete")
                return ReconcileResult()

            return await process_requeue(
                outcome.signal,
                outcome.step,
                self.kind,
                request,
                self.recorder,
                logger,
                self.defaults,
            )


__all__ = [
    "RECOVERABLE_ERRORS",
    "SubReconciler",
    "PipelineReconciler",
]
