# ============================================================================
# RECONCILER MODULE
# ============================================================================
# STATUS: Reconciler - Pipeline engine
# PURPOSE: Export reconcilers, requeue signals and the manager
# CREATED: 11 OCT 2026
# ============================================================================
"""
Reconciler Module

- pipeline: SubReconciler / PipelineReconciler pass driver
- requeue: stop signals and the requeue controller
- cluster_controller / restore_controller: the two pipelines
- metrics: process group status aggregation
- manager: queue, workers, backoff and resync
"""

from .requeue import (
    RetryableError,
    PendingMessage,
    RequeueSignal,
    ReconcileResult,
    PassOutcome,
    classify,
    process_requeue,
)
from .pipeline import RECOVERABLE_ERRORS, SubReconciler, PipelineReconciler
from .cluster_controller import FoundationDBClusterReconciler
from .restore_controller import FoundationDBRestoreReconciler, StartRestore
from .metrics import (
    get_process_group_metrics,
    ProcessGroupMetricsSnapshot,
    export_process_group_metrics,
)
from .manager import ReconcileManager

__all__ = [
    "RetryableError",
    "PendingMessage",
    "RequeueSignal",
    "ReconcileResult",
    "PassOutcome",
    "classify",
    "process_requeue",
    "RECOVERABLE_ERRORS",
    "SubReconciler",
    "PipelineReconciler",
    "FoundationDBClusterReconciler",
    "FoundationDBRestoreReconciler",
    "StartRestore",
    "get_process_group_metrics",
    "ProcessGroupMetricsSnapshot",
    "export_process_group_metrics",
    "ReconcileManager",
]
