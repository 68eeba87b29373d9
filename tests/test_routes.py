# ============================================================================
# API ROUTES TESTS
# ============================================================================
# STATUS: Tests - HTTP surface
# PURPOSE: Verify object, metrics, events and trigger endpoints
# CREATED: 18 OCT 2026
# ============================================================================
"""
API Routes Tests

Uses FastAPI TestClient with in-memory stores and a mocked manager.

Run with:
    pytest tests/test_routes.py -v
"""

import asyncio
from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from psycopg import errors as pg_errors

from core.contracts import EventKind, ObjectKey, ProcessGroupConditionType, ResourceKind
from core.observability import MetricsCollector
from api.routes import router, set_services

from conftest import FakeRecorder, FakeRepository, make_cluster, make_group


# ============================================================================
# FIXTURES
# ============================================================================

class DuplicateRepository(FakeRepository):
    async def create(self, obj):
        if obj.metadata.key in self.objects:
            raise pg_errors.UniqueViolation("duplicate key value violates unique constraint")
        return self.add(obj)


def _make_manager():
    manager = MagicMock()
    manager.enqueue.return_value = True
    manager.stats = {
        "running": True,
        "started_at": "2026-10-18T09:00:00+00:00",
        "uptime_seconds": 12.5,
        "kinds": ["cluster", "restore"],
        "workers": 1,
        "queued": 0,
        "in_flight": 0,
        "delayed": 2,
        "backing_off": 1,
        "passes": 7,
        "errors": 1,
        "requeues": 3,
        "resyncs": 1,
        "last_resync_at": "2026-10-18T09:00:00+00:00",
    }
    return manager


class Services:
    def __init__(self):
        self.manager = _make_manager()
        self.clusters = DuplicateRepository()
        self.restores = DuplicateRepository()
        self.recorder = FakeRecorder()
        self.metrics = MetricsCollector("fdb-reconciler-test", enabled=False)


@pytest.fixture
def services():
    return Services()


@pytest.fixture
def client(services):
    app = FastAPI()
    app.include_router(router, prefix="/api/v1")
    set_services(
        manager=services.manager,
        cluster_repo=services.clusters,
        restore_repo=services.restores,
        event_service=services.recorder,
        metrics=services.metrics,
    )
    yield TestClient(app)
    set_services(None, None, None, None)


KEY = ObjectKey(namespace="db", name="sample-cluster")


# ============================================================================
# CLUSTERS
# ============================================================================

class TestClusterRoutes:

    def test_create_cluster_triggers_pass(self, client, services):
        response = client.post("/api/v1/clusters", json={
            "namespace": "db",
            "name": "sample-cluster",
            "spec": {"process_counts": {"storage": 3}},
        })

        assert response.status_code == 201
        assert response.json()["metadata"]["name"] == "sample-cluster"
        assert KEY in services.clusters.objects
        services.manager.enqueue.assert_called_once_with(ResourceKind.CLUSTER, KEY)

    def test_create_duplicate(self, client, services):
        services.clusters.add(make_cluster([]))

        response = client.post("/api/v1/clusters", json={"namespace": "db", "name": "sample-cluster"})

        assert response.status_code == 409
        services.manager.enqueue.assert_not_called()

    def test_create_invalid(self, client):
        response = client.post("/api/v1/clusters", json={"namespace": "", "name": "x"})
        assert response.status_code == 422

    def test_get_cluster(self, client, services):
        services.clusters.add(make_cluster([make_group("storage-1")]))

        response = client.get("/api/v1/clusters/db/sample-cluster")

        assert response.status_code == 200
        groups = response.json()["status"]["process_groups"]
        assert [g["process_group_id"] for g in groups] == ["storage-1"]

    def test_get_missing_cluster(self, client):
        assert client.get("/api/v1/clusters/db/nope").status_code == 404


# ============================================================================
# METRICS
# ============================================================================

class TestMetricsRoutes:

    def test_cluster_snapshot(self, client, services):
        failing = make_group("storage-2")
        failing.update_condition(ProcessGroupConditionType.MISSING_PROCESSES, True)
        services.clusters.add(make_cluster([
            make_group("storage-1"),
            failing,
            make_group("storage-3", marked_for_removal=True, excluded=True),
        ]))

        response = client.get("/api/v1/clusters/db/sample-cluster/process-groups/metrics")

        assert response.status_code == 200
        body = response.json()
        assert body["process_groups"]["storage"]["Ready"] == 2
        assert body["process_groups"]["storage"]["MissingProcesses"] == 1
        assert body["marked_for_removal"] == {"storage": 1}
        assert body["excluded"] == {"storage": 1}
        assert services.metrics.get_gauge(
            "fdb_process_groups_excluded",
            {"namespace": "db", "name": "sample-cluster", "process_class": "storage"},
        ) == 1

    def test_all_snapshots(self, client, services):
        services.clusters.add(make_cluster([make_group("storage-1")]))
        services.clusters.add(make_cluster([], name="empty-cluster"))

        response = client.get("/api/v1/metrics/process-groups")

        assert response.status_code == 200
        assert [s["name"] for s in response.json()] == ["empty-cluster", "sample-cluster"]

    def test_snapshot_missing_cluster(self, client):
        assert client.get("/api/v1/clusters/db/nope/process-groups/metrics").status_code == 404


# ============================================================================
# RESTORES
# ============================================================================

class TestRestoreRoutes:

    def test_create_and_get_restore(self, client, services):
        response = client.post("/api/v1/restores", json={
            "namespace": "db",
            "name": "sample-restore",
            "spec": {
                "destination_cluster_name": "sample-cluster",
                "backup_url": "blobstore://backups/sample-cluster",
            },
        })

        assert response.status_code == 201
        services.manager.enqueue.assert_called_once_with(
            ResourceKind.RESTORE, ObjectKey(namespace="db", name="sample-restore")
        )

        response = client.get("/api/v1/restores/db/sample-restore")
        assert response.status_code == 200
        assert response.json()["status"]["running"] is False

    def test_restore_requires_backup_url(self, client):
        response = client.post("/api/v1/restores", json={
            "namespace": "db",
            "name": "sample-restore",
            "spec": {"destination_cluster_name": "sample-cluster"},
        })
        assert response.status_code == 422


# ============================================================================
# EVENTS
# ============================================================================

class TestEventRoutes:

    def _record(self, services, event_type, reason, message):
        asyncio.run(services.recorder.record(ResourceKind.CLUSTER, KEY, event_type, reason, message))

    def test_events_newest_first(self, client, services):
        self._record(services, EventKind.NORMAL, "AddingProcesses", "Adding 3 storage processes")
        self._record(services, EventKind.WARNING, "ReconciliationTerminatedEarly", "boom")

        response = client.get("/api/v1/cluster/db/sample-cluster/events")

        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 2
        assert [e["reason"] for e in body["events"]] == ["ReconciliationTerminatedEarly", "AddingProcesses"]

    def test_filter_by_type(self, client, services):
        self._record(services, EventKind.NORMAL, "AddingProcesses", "Adding 3 storage processes")
        self._record(services, EventKind.WARNING, "ReconciliationTerminatedEarly", "boom")

        response = client.get("/api/v1/cluster/db/sample-cluster/events?event_type=Warning&limit=5")

        assert [e["message"] for e in response.json()["events"]] == ["boom"]

    def test_unknown_kind(self, client):
        assert client.get("/api/v1/widget/db/sample-cluster/events").status_code == 422


# ============================================================================
# MANAGER
# ============================================================================

class TestManagerRoutes:

    def test_trigger(self, client, services):
        response = client.post("/api/v1/reconcile/cluster/db/sample-cluster")

        assert response.status_code == 202
        assert response.json()["queued"] is True
        services.manager.enqueue.assert_called_once_with(ResourceKind.CLUSTER, KEY)

    def test_trigger_unregistered_kind(self, client, services):
        services.manager.enqueue.side_effect = KeyError("restore")

        response = client.post("/api/v1/reconcile/restore/db/sample-restore")

        assert response.status_code == 400

    def test_status(self, client):
        response = client.get("/api/v1/manager/status")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "running"
        assert body["kinds"] == ["cluster", "restore"]
        assert body["metrics"]["requeues"] == 3
