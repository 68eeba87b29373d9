# ============================================================================
# PROCESS GROUP METRICS
# ============================================================================
# STATUS: Reconciler - Status aggregation
# PURPOSE: Fold a cluster's process group records into per-class counts
# CREATED: 13 OCT 2026
# ============================================================================
"""
Process Group Metrics

get_process_group_metrics() is a pure fold over cluster.status:

- stats[class][condition]: for every class with at least one record,
  every condition type (Ready included) is present, starting at 0.
  A record without conditions counts as Ready; each condition on a
  record counts toward its type.
- removals[class]: records marked for removal
- exclusions[class]: records excluded

Records marked for removal are counted like live ones, so a condition
free record on its way out still shows up as Ready.

The snapshot is served over HTTP and exported as gauges:
    fdb_process_groups{namespace,name,process_class,condition}
    fdb_process_groups_marked_for_removal{namespace,name,process_class}
    fdb_process_groups_excluded{namespace,name,process_class}
"""

from typing import Dict, Iterable, Tuple

from pydantic import BaseModel, Field

from core.contracts import ALL_CONDITION_TYPES, ObjectKey, ProcessClass, ProcessGroupConditionType
from core.models import FoundationDBCluster
from core.observability import MetricsCollector

ConditionStats = Dict[ProcessClass, Dict[ProcessGroupConditionType, int]]
ClassCounts = Dict[ProcessClass, int]

METRIC_PROCESS_GROUPS = "fdb_process_groups"
METRIC_MARKED_FOR_REMOVAL = "fdb_process_groups_marked_for_removal"
METRIC_EXCLUDED = "fdb_process_groups_excluded"
PROCESS_GROUP_METRICS = (METRIC_PROCESS_GROUPS, METRIC_MARKED_FOR_REMOVAL, METRIC_EXCLUDED)


def get_process_group_metrics(
    cluster: FoundationDBCluster,
) -> Tuple[ConditionStats, ClassCounts, ClassCounts]:
    """
    Aggregate process group records per class.

    Returns:
        (stats, removals, exclusions)
    """
    stats: ConditionStats = {}
    removals: ClassCounts = {}
    exclusions: ClassCounts = {}

    for process_group in cluster.status.process_groups:
        process_class = process_group.process_class
        if process_class not in stats:
            stats[process_class] = {condition: 0 for condition in ALL_CONDITION_TYPES}
            removals[process_class] = 0
            exclusions[process_class] = 0

        if process_group.marked_for_removal:
            removals[process_class] += 1
        if process_group.excluded:
            exclusions[process_class] += 1

        if not process_group.conditions:
            stats[process_class][ProcessGroupConditionType.READY] += 1
            continue

        for condition in process_group.conditions:
            stats[process_class][condition.type] += 1

    return stats, removals, exclusions


class ProcessGroupMetricsSnapshot(BaseModel):
    """Read-only view of one cluster's aggregated process group state."""

    namespace: str
    name: str
    process_groups: Dict[str, Dict[str, int]] = Field(default_factory=dict)
    marked_for_removal: Dict[str, int] = Field(default_factory=dict)
    excluded: Dict[str, int] = Field(default_factory=dict)

    @classmethod
    def from_cluster(cls, cluster: FoundationDBCluster) -> "ProcessGroupMetricsSnapshot":
        stats, removals, exclusions = get_process_group_metrics(cluster)
        return cls(
            namespace=cluster.metadata.namespace,
            name=cluster.metadata.name,
            process_groups={
                pc.value: {condition.value: count for condition, count in by_condition.items()}
                for pc, by_condition in stats.items()
            },
            marked_for_removal={pc.value: count for pc, count in removals.items()},
            excluded={pc.value: count for pc, count in exclusions.items()},
        )


def export_process_group_metrics(
    cluster: FoundationDBCluster,
    collector: MetricsCollector,
) -> ProcessGroupMetricsSnapshot:
    """
    Replace the process group gauges of one cluster and return the snapshot.

    Series for classes that no longer have records are dropped.
    """
    snapshot = ProcessGroupMetricsSnapshot.from_cluster(cluster)
    base = {"namespace": snapshot.namespace, "name": snapshot.name}
    collector.remove_gauges(base, PROCESS_GROUP_METRICS)

    for process_class, by_condition in snapshot.process_groups.items():
        for condition, count in by_condition.items():
            collector.gauge(
                METRIC_PROCESS_GROUPS,
                count,
                tags={**base, "process_class": process_class, "condition": condition},
            )
        collector.gauge(
            METRIC_MARKED_FOR_REMOVAL,
            snapshot.marked_for_removal[process_class],
            tags={**base, "process_class": process_class},
        )
        collector.gauge(
            METRIC_EXCLUDED,
            snapshot.excluded[process_class],
            tags={**base, "process_class": process_class},
        )

    return snapshot


def remove_process_group_metrics(key: ObjectKey, collector: MetricsCollector) -> None:
    """Drop the process group gauges of a cluster that no longer exists."""
    collector.remove_gauges({"namespace": key.namespace, "name": key.name}, PROCESS_GROUP_METRICS)


def export_all(
    clusters: Iterable[FoundationDBCluster],
    collector: MetricsCollector,
) -> Dict[str, ProcessGroupMetricsSnapshot]:
    """Export every cluster; snapshots keyed by "namespace/name"."""
    return {
        str(cluster.key): export_process_group_metrics(cluster, collector)
        for cluster in clusters
    }


__all__ = [
    "METRIC_PROCESS_GROUPS",
    "METRIC_MARKED_FOR_REMOVAL",
    "METRIC_EXCLUDED",
    "get_process_group_metrics",
    "ProcessGroupMetricsSnapshot",
    "PROCESS_GROUP_METRICS",
    "export_process_group_metrics",
    "remove_process_group_metrics",
    "export_all",
]
