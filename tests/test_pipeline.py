# ============================================================================
# PIPELINE + REQUEUE CONTROLLER TESTS
# ============================================================================
# STATUS: Tests - Pass driver and stop handling
# PURPOSE: Verify step ordering, short-circuit, stop classification,
#          events per stop and idempotent re-entry
# CREATED: 17 OCT 2026
# ============================================================================
"""
Pipeline + Requeue Controller Tests

Uses in-memory fakes from conftest.py and asyncio.run for async calls.

Run with:
    pytest tests/test_pipeline.py -v
"""

import asyncio
from typing import List, Optional

import pytest

from core.contracts import EventKind, ObjectKey, PassState, ResourceKind
from core.errors import MissingCapabilityError, ReconciliationError
from core.models import EventReason
from reconciler import FoundationDBClusterReconciler
from reconciler.pipeline import PipelineReconciler, SubReconciler
from reconciler.requeue import (
    PendingMessage,
    ReconcileResult,
    RetryableError,
    classify,
    process_requeue,
)

from conftest import make_cluster, make_group


# ============================================================================
# HELPERS
# ============================================================================

class ScriptedStep(SubReconciler):
    """Step returning a fixed signal and recording that it ran."""

    def __init__(self, name: str, signal=None, calls: Optional[List[str]] = None):
        self.name = name
        self.signal = signal
        self.calls = calls if calls is not None else []

    async def reconcile(self, reconciler, obj):
        self.calls.append(self.name)
        return self.signal


class ScriptedReconciler(PipelineReconciler):
    kind = ResourceKind.CLUSTER


def _make_reconciler(repo, recorder, defaults, tracer, metrics, steps):
    reconciler = ScriptedReconciler(repo, recorder, defaults=defaults, tracer=tracer, metrics=metrics)
    reconciler.sub_reconcilers = tuple(steps)
    return reconciler


KEY = ObjectKey(namespace="db", name="sample-cluster")


# ============================================================================
# DRIVER
# ============================================================================

class TestPipelineDriver:

    def test_all_steps_continue(self, repo, recorder, defaults, tracer, metrics):
        repo.add(make_cluster([]))
        calls: List[str] = []
        reconciler = _make_reconciler(
            repo, recorder, defaults, tracer, metrics,
            [ScriptedStep("a", calls=calls), ScriptedStep("b", calls=calls)],
        )

        result = asyncio.run(reconciler.reconcile(KEY))

        assert result == ReconcileResult()
        assert result.requeue is False
        assert calls == ["a", "b"]
        assert recorder.events == []
        assert metrics.get_counter("fdb_reconcile_passes", {"kind": "cluster", "outcome": "done"}) == 1

    def test_pending_message_short_circuits(self, repo, recorder, defaults, tracer, metrics):
        repo.add(make_cluster([]))
        calls: List[str] = []
        reconciler = _make_reconciler(
            repo, recorder, defaults, tracer, metrics,
            [
                ScriptedStep("a", calls=calls),
                ScriptedStep("b", PendingMessage("waiting for agents"), calls=calls),
                ScriptedStep("c", calls=calls),
            ],
        )

        result = asyncio.run(reconciler.reconcile(KEY))

        assert calls == ["a", "b"]
        assert result.requeue_after == defaults.pending_requeue_delay_seconds
        assert len(recorder.events) == 1
        event = recorder.events[0]
        assert event.event_type == EventKind.NORMAL
        assert event.reason == EventReason.RECONCILIATION_TERMINATED_EARLY.value
        assert event.message == "waiting for agents"

    def test_error_raises_with_cause(self, repo, recorder, defaults, tracer, metrics):
        repo.add(make_cluster([]))
        cause = RuntimeError("admin client unreachable")
        calls: List[str] = []
        reconciler = _make_reconciler(
            repo, recorder, defaults, tracer, metrics,
            [ScriptedStep("a", RetryableError(cause), calls=calls), ScriptedStep("b", calls=calls)],
        )

        with pytest.raises(ReconciliationError) as exc_info:
            asyncio.run(reconciler.reconcile(KEY))

        assert exc_info.value.step == "a"
        assert exc_info.value.key == "db/sample-cluster"
        assert exc_info.value.__cause__ is cause
        assert calls == ["a"]
        assert [e.event_type for e in recorder.events] == [EventKind.WARNING]
        assert recorder.events[0].message == "admin client unreachable"

    def test_run_steps_reports_stop_point(self, repo, recorder, defaults, tracer, metrics):
        cluster = repo.add(make_cluster([]))
        signal = PendingMessage("later")
        reconciler = _make_reconciler(
            repo, recorder, defaults, tracer, metrics,
            [ScriptedStep("a"), ScriptedStep("b", signal)],
        )

        outcome = asyncio.run(reconciler.run_steps(cluster))

        assert outcome.state == PassState.STOPPED_MESSAGE
        assert outcome.step == "b"
        assert outcome.signal is signal

    def test_missing_object_is_a_clean_pass(self, repo, recorder, defaults, tracer, metrics):
        calls: List[str] = []
        reconciler = _make_reconciler(
            repo, recorder, defaults, tracer, metrics, [ScriptedStep("a", calls=calls)]
        )

        result = asyncio.run(reconciler.reconcile(KEY))

        assert result == ReconcileResult()
        assert calls == []
        assert recorder.events == []

    def test_step_name_defaults_to_class_name(self):
        class WaitForSomething(SubReconciler):
            async def reconcile(self, reconciler, obj):
                return None

        assert WaitForSomething().name == "WaitForSomething"


# ============================================================================
# REQUEUE CONTROLLER
# ============================================================================

class TestRequeueController:

    def test_classify(self):
        assert classify(None) == PassState.DONE
        assert classify(RetryableError(ValueError("x"))) == PassState.STOPPED_ERROR
        assert classify(PendingMessage("x")) == PassState.STOPPED_MESSAGE

    @pytest.mark.parametrize("delay,expected", [(None, 2.0), (10.0, 10.0), (10_000.0, 300.0), (-5.0, 0.0)])
    def test_pending_delay_is_clamped(self, recorder, defaults, delay, expected):
        import logging

        result = asyncio.run(process_requeue(
            PendingMessage("wait", delay=delay),
            "step",
            ResourceKind.CLUSTER,
            KEY,
            recorder,
            logging.getLogger("test"),
            defaults,
        ))
        assert result.requeue_after == expected

    def test_unknown_signal_rejected(self, recorder, defaults):
        import logging

        with pytest.raises(TypeError):
            asyncio.run(process_requeue(
                "not a signal", "step", ResourceKind.CLUSTER, KEY, recorder,
                logging.getLogger("test"), defaults,
            ))


# ============================================================================
# CLUSTER PIPELINE
# ============================================================================

class TestClusterPipeline:

    def test_steps_in_order(self):
        assert [step.name for step in FoundationDBClusterReconciler.sub_reconcilers] == [
            "ChooseRemovals", "AddProcessGroups", "ExcludeProcesses", "RemoveProcessGroups",
        ]

    def test_idempotent_re_entry(self, repo, recorder, cluster_reconciler):
        repo.add(make_cluster([]))

        first = asyncio.run(cluster_reconciler.reconcile(KEY))
        writes, events = repo.status_writes, len(recorder.events)
        second = asyncio.run(cluster_reconciler.reconcile(KEY))

        assert first == second == ReconcileResult()
        assert writes == 1
        assert repo.status_writes == writes
        assert len(recorder.events) == events

    def test_missing_capability_is_not_a_signal(self, repo, recorder, defaults, tracer, metrics):
        repo.add(make_cluster([make_group("storage-1", marked_for_removal=True, excluded=True)]))
        reconciler = FoundationDBClusterReconciler(
            repo, recorder, defaults=defaults, tracer=tracer, metrics=metrics
        )

        with pytest.raises(MissingCapabilityError) as exc_info:
            asyncio.run(reconciler.reconcile(KEY))

        assert str(exc_info.value) == (
            "FoundationDBClusterReconciler does not have a ProcessGroupManager defined"
        )
        assert not any(
            e.reason == EventReason.RECONCILIATION_TERMINATED_EARLY.value for e in recorder.events
        )

    def test_validate_capabilities(self, repo, recorder, client_provider, defaults, tracer, metrics):
        reconciler = FoundationDBClusterReconciler(
            repo, recorder, database_client_provider=client_provider,
            defaults=defaults, tracer=tracer, metrics=metrics,
        )
        with pytest.raises(MissingCapabilityError):
            reconciler.validate_capabilities()
