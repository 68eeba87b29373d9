# ============================================================================
# PROCESS GROUP METRICS TESTS
# ============================================================================
# STATUS: Tests - Status aggregation
# PURPOSE: Verify per-class condition counts, removals and exclusions
# CREATED: 17 OCT 2026
# ============================================================================
"""
Process Group Metrics Tests

Run with:
    pytest tests/test_metrics.py -v
"""

import asyncio

from core.contracts import ALL_CONDITION_TYPES, ObjectKey, ProcessClass, ProcessGroupConditionType
from core.models import ProcessGroupCondition, ProcessGroupStatus
from core.observability import MetricsCollector
from reconciler.metrics import (
    METRIC_EXCLUDED,
    METRIC_MARKED_FOR_REMOVAL,
    METRIC_PROCESS_GROUPS,
    ProcessGroupMetricsSnapshot,
    export_all,
    export_process_group_metrics,
    get_process_group_metrics,
    remove_process_group_metrics,
)

from conftest import make_cluster, make_group


def _mixed_cluster():
    return make_cluster([
        make_group("storage-1"),
        make_group(
            "log-1",
            ProcessClass.LOG,
            conditions=[ProcessGroupCondition(type=ProcessGroupConditionType.MISSING_PROCESSES)],
        ),
        make_group("storage-2", marked_for_removal=True),
        make_group("stateless-1", ProcessClass.STATELESS, marked_for_removal=True, excluded=True),
    ])


class TestGetProcessGroupMetrics:

    def test_mixed_cluster(self):
        stats, removals, exclusions = get_process_group_metrics(_mixed_cluster())

        assert len(stats) == 3
        for process_class in (ProcessClass.STORAGE, ProcessClass.LOG, ProcessClass.STATELESS):
            assert len(stats[process_class]) == len(ALL_CONDITION_TYPES)

        assert stats[ProcessClass.STORAGE][ProcessGroupConditionType.READY] == 2
        assert stats[ProcessClass.LOG][ProcessGroupConditionType.READY] == 0
        assert stats[ProcessClass.LOG][ProcessGroupConditionType.MISSING_PROCESSES] == 1
        assert stats[ProcessClass.STATELESS][ProcessGroupConditionType.READY] == 1
        assert removals[ProcessClass.STORAGE] == 1
        assert exclusions[ProcessClass.STORAGE] == 0
        assert removals[ProcessClass.STATELESS] == 1
        assert exclusions[ProcessClass.STATELESS] == 1

    def test_empty_cluster(self):
        assert get_process_group_metrics(make_cluster([])) == ({}, {}, {})

    def test_each_condition_counted(self):
        cluster = make_cluster([
            make_group(
                "storage-1",
                conditions=[
                    ProcessGroupCondition(type=ProcessGroupConditionType.PROCESS_FAILING),
                    ProcessGroupCondition(type=ProcessGroupConditionType.MISSING_VOLUME),
                ],
            ),
        ])
        stats, _, _ = get_process_group_metrics(cluster)
        assert stats[ProcessClass.STORAGE][ProcessGroupConditionType.PROCESS_FAILING] == 1
        assert stats[ProcessClass.STORAGE][ProcessGroupConditionType.MISSING_VOLUME] == 1
        assert stats[ProcessClass.STORAGE][ProcessGroupConditionType.READY] == 0

    def test_ready_never_exceeds_records(self):
        cluster = _mixed_cluster()
        stats, _, _ = get_process_group_metrics(cluster)
        for process_class, by_condition in stats.items():
            records = [pg for pg in cluster.status.process_groups if pg.process_class == process_class]
            assert by_condition[ProcessGroupConditionType.READY] <= len(records)

    def test_duplicate_conditions_counted_once(self):
        record = ProcessGroupStatus.model_validate({
            "process_group_id": "log-1",
            "process_class": "log",
            "conditions": [{"type": "MissingProcesses"}, {"type": "MissingProcesses"}, {"type": "Ready"}],
        })
        stats, _, _ = get_process_group_metrics(make_cluster([record]))

        assert stats[ProcessClass.LOG][ProcessGroupConditionType.MISSING_PROCESSES] == 1
        assert stats[ProcessClass.LOG][ProcessGroupConditionType.READY] == 0

    def test_input_not_mutated(self):
        cluster = _mixed_cluster()
        before = cluster.model_copy(deep=True)
        get_process_group_metrics(cluster)
        assert cluster == before


class TestExport:

    def test_snapshot_uses_string_keys(self):
        snapshot = ProcessGroupMetricsSnapshot.from_cluster(_mixed_cluster())
        assert snapshot.namespace == "db"
        assert snapshot.process_groups["storage"]["Ready"] == 2
        assert snapshot.process_groups["log"]["MissingProcesses"] == 1
        assert snapshot.marked_for_removal == {"storage": 1, "log": 0, "stateless": 1}
        assert snapshot.excluded == {"storage": 0, "log": 0, "stateless": 1}

    def test_gauges_set(self):
        collector = MetricsCollector("fdb-reconciler-test", enabled=False)
        export_process_group_metrics(_mixed_cluster(), collector)

        base = {"namespace": "db", "name": "sample-cluster"}
        assert collector.get_gauge(
            METRIC_PROCESS_GROUPS,
            {**base, "process_class": "storage", "condition": "Ready"},
        ) == 2
        assert collector.get_gauge(
            METRIC_PROCESS_GROUPS,
            {**base, "process_class": "log", "condition": "IncorrectCommandLine"},
        ) == 0
        assert collector.get_gauge(METRIC_MARKED_FOR_REMOVAL, {**base, "process_class": "stateless"}) == 1
        assert collector.get_gauge(METRIC_EXCLUDED, {**base, "process_class": "storage"}) == 0

    def test_reexport_drops_series_of_vanished_classes(self):
        collector = MetricsCollector("fdb-reconciler-test", enabled=False)
        cluster = _mixed_cluster()
        export_process_group_metrics(cluster, collector)

        cluster.status.process_groups = [make_group("storage-1")]
        export_process_group_metrics(cluster, collector)

        base = {"namespace": "db", "name": "sample-cluster"}
        assert collector.get_gauge(
            METRIC_PROCESS_GROUPS,
            {**base, "process_class": "stateless", "condition": "Ready"},
        ) is None
        assert collector.get_gauge(METRIC_EXCLUDED, {**base, "process_class": "stateless"}) is None
        assert collector.get_gauge(
            METRIC_PROCESS_GROUPS,
            {**base, "process_class": "storage", "condition": "Ready"},
        ) == 1

    def test_other_clusters_untouched(self):
        collector = MetricsCollector("fdb-reconciler-test", enabled=False)
        export_all([_mixed_cluster(), make_cluster([make_group("storage-1")], name="other")], collector)

        remove_process_group_metrics(ObjectKey(namespace="db", name="sample-cluster"), collector)

        assert collector.get_gauge(
            METRIC_PROCESS_GROUPS,
            {"namespace": "db", "name": "sample-cluster", "process_class": "storage", "condition": "Ready"},
        ) is None
        assert collector.get_gauge(
            METRIC_PROCESS_GROUPS,
            {"namespace": "db", "name": "other", "process_class": "storage", "condition": "Ready"},
        ) == 1


class TestPassExport:

    def test_gauges_follow_every_pass(self, repo, cluster_reconciler, metrics):
        key = ObjectKey(namespace="db", name="sample-cluster")
        repo.add(make_cluster([]))
        ready = {"namespace": "db", "name": "sample-cluster", "process_class": "storage", "condition": "Ready"}

        asyncio.run(cluster_reconciler.reconcile(key))
        assert metrics.get_gauge(METRIC_PROCESS_GROUPS, ready) == 3

        del repo.objects[key]
        asyncio.run(cluster_reconciler.reconcile(key))
        assert metrics.get_gauge(METRIC_PROCESS_GROUPS, ready) is None
