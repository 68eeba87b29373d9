# ============================================================================
# CLUSTER RECONCILER
# ============================================================================
# STATUS: Reconciler - FoundationDBCluster pipeline
# PURPOSE: Keep process groups in line with the declared process counts
# CREATED: 13 OCT 2026
# ============================================================================
"""
Cluster Reconciler

Pipeline, in order:
    1. ChooseRemovals      - mark requested and surplus groups
    2. AddProcessGroups    - allocate identities for missing capacity
    3. ExcludeProcesses    - evacuate data from marked groups
    4. RemoveProcessGroups - tear down excluded groups, drop records

Process group gauges are refreshed after every pass and dropped once the
cluster is gone.
"""

from typing import ClassVar, Tuple

from core.contracts import ObjectKey, ResourceKind
from core.models import FoundationDBCluster
from reconciler.metrics import export_process_group_metrics, remove_process_group_metrics
from reconciler.pipeline import PipelineReconciler, SubReconciler
from reconciler.steps import (
    AddProcessGroups,
    ChooseRemovals,
    ExcludeProcesses,
    RemoveProcessGroups,
)


class FoundationDBClusterReconciler(PipelineReconciler):
    """Reconciles FoundationDBCluster objects."""

    kind: ClassVar[ResourceKind] = ResourceKind.CLUSTER
    sub_reconcilers: ClassVar[Tuple[SubReconciler, ...]] = (
        ChooseRemovals(),
        AddProcessGroups(),
        ExcludeProcesses(),
        RemoveProcessGroups(),
    )

    def validate_capabilities(self) -> None:
        self.get_database_client_provider()
        self.get_process_group_manager()

    def observe(self, cluster: FoundationDBCluster) -> None:
        export_process_group_metrics(cluster, self.metrics)

    def forget(self, key: ObjectKey) -> None:
        remove_process_group_metrics(key, self.metrics)


__all__ = ["FoundationDBClusterReconciler"]
