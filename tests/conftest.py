# ============================================================================
# SHARED TEST FIXTURES
# ============================================================================
# STATUS: Tests - In-memory fakes for the store, recorder and capabilities
# PURPOSE: Run reconcilers without a database or a live cluster
# CREATED: 16 OCT 2026
# ============================================================================
"""
Shared fixtures.

The fakes keep the same contracts as the real implementations:
- FakeRepository.update_status bumps resource_version and returns False
  on a stale version (or when told to conflict)
- FakeRecorder keeps every recorded event in order
- FakeAdminClient records every command it receives
"""

from typing import Dict, List, Optional, Set

import pytest

from core.config import ReconcilerDefaults
from core.contracts import ObjectKey, ObjectMeta, ProcessClass
from core.models import (
    ClusterSpec,
    ClusterStatus,
    FoundationDBCluster,
    ProcessCounts,
    ProcessGroupStatus,
    ReconcileEvent,
)
from core.observability import MetricsCollector, Tracer
from services.admin_client import AdminClient, DatabaseClientProvider
from services.process_manager import ProcessGroupManager


# ============================================================================
# FAKES
# ============================================================================

class FakeRepository:
    """In-memory object store with optimistic status writes."""

    def __init__(self):
        self.objects: Dict[ObjectKey, object] = {}
        self.status_writes = 0
        self.conflict_next = False

    def add(self, obj):
        self.objects[obj.metadata.key] = obj.model_copy(deep=True)
        return obj

    async def create(self, obj):
        return self.add(obj)

    async def get(self, key: ObjectKey):
        obj = self.objects.get(key)
        return obj.model_copy(deep=True) if obj is not None else None

    async def update_status(self, obj) -> bool:
        stored = self.objects.get(obj.metadata.key)
        if self.conflict_next or stored is None:
            self.conflict_next = False
            return False
        if stored.metadata.resource_version != obj.metadata.resource_version:
            return False
        obj.metadata.resource_version += 1
        self.objects[obj.metadata.key] = obj.model_copy(deep=True)
        self.status_writes += 1
        return True

    async def list_keys(self) -> List[ObjectKey]:
        return sorted(self.objects, key=lambda k: (k.namespace, k.name))


class FakeRecorder:
    """Event recorder keeping events in memory."""

    def __init__(self):
        self.events: List[ReconcileEvent] = []

    async def record(self, kind, key, event_type, reason, message):
        event = ReconcileEvent.for_object(kind, key, event_type, reason, message)
        event.event_id = len(self.events) + 1
        self.events.append(event)
        return event

    async def list_for_object(self, kind, key, limit=100, event_type=None):
        matching = [
            e for e in reversed(self.events)
            if e.kind == kind and e.key == key and (event_type is None or e.event_type == event_type)
        ]
        return matching[:limit]

    def reasons(self) -> List[str]:
        return [e.reason for e in self.events]


class FakeAdminClient(AdminClient):
    """Admin client recording commands."""

    def __init__(self):
        self.excluded: List[str] = []
        self.included: List[str] = []
        self.not_safe: Set[str] = set()
        self.restore_status = ""
        self.restores_started: List[tuple] = []
        self.knobs: List[str] = []
        self.closed = 0
        self.fail_with: Optional[Exception] = None

    async def exclude_processes(self, addresses):
        if self.fail_with:
            raise self.fail_with
        self.excluded.extend(addresses)

    async def include_processes(self, addresses):
        self.included.extend(addresses)

    async def can_safely_remove(self, addresses):
        return [a for a in addresses if a in self.not_safe]

    async def get_restore_status(self):
        if self.fail_with:
            raise self.fail_with
        return self.restore_status

    async def start_restore(self, backup_url, key_ranges):
        self.restores_started.append((backup_url, list(key_ranges)))
        self.restore_status = "Restoring"

    async def set_knobs(self, knobs):
        self.knobs = list(knobs)

    async def close(self):
        self.closed += 1


class FakeClientProvider(DatabaseClientProvider):
    def __init__(self, admin_client: FakeAdminClient):
        self.admin_client = admin_client
        self.requests: List[tuple] = []

    async def get_admin_client(self, cluster, reconciler):
        self.requests.append((cluster.metadata.key, reconciler))
        return self.admin_client


class FakeProcessGroupManager(ProcessGroupManager):
    """Process manager where removal completes once `finished` contains the ID."""

    def __init__(self, remove_immediately: bool = True):
        self.remove_immediately = remove_immediately
        self.remove_requests: List[str] = []
        self.finished: Set[str] = set()

    async def remove_process_group(self, cluster, process_group):
        self.remove_requests.append(process_group.process_group_id)
        if self.remove_immediately:
            self.finished.add(process_group.process_group_id)

    async def process_group_is_removed(self, cluster, process_group):
        return process_group.process_group_id in self.finished


class CallableProcessGroupManager(FakeProcessGroupManager):
    """Process manager instance that also happens to be callable."""

    def __call__(self, *args, **kwargs):
        raise AssertionError("instances must not be called when loaded")


CALLABLE_PROCESS_GROUP_MANAGER = CallableProcessGroupManager()


def build_process_group_manager() -> FakeProcessGroupManager:
    return FakeProcessGroupManager(remove_immediately=False)


# ============================================================================
# BUILDERS
# ============================================================================

def make_cluster(
    process_groups=None,
    name="sample-cluster",
    namespace="db",
    **spec_fields,
) -> FoundationDBCluster:
    """Cluster with explicit counts; only storage=3 by default so tests stay small."""
    counts = spec_fields.pop("process_counts", None) or ProcessCounts(
        storage=3, log=-1, stateless=-1
    )
    return FoundationDBCluster(
        metadata=ObjectMeta(namespace=namespace, name=name),
        spec=ClusterSpec(process_counts=counts, **spec_fields),
        status=ClusterStatus(process_groups=list(process_groups or [])),
    )


def make_group(process_group_id: str, process_class=ProcessClass.STORAGE, **fields) -> ProcessGroupStatus:
    return ProcessGroupStatus(process_group_id=process_group_id, process_class=process_class, **fields)


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def defaults():
    return ReconcilerDefaults(
        pending_requeue_delay_seconds=2.0,
        max_requeue_delay_seconds=300.0,
        backoff_base_seconds=0.01,
        backoff_max_seconds=1.0,
        reconcile_timeout_seconds=5.0,
    )


@pytest.fixture
def repo():
    return FakeRepository()


@pytest.fixture
def recorder():
    return FakeRecorder()


@pytest.fixture
def admin_client():
    return FakeAdminClient()


@pytest.fixture
def client_provider(admin_client):
    return FakeClientProvider(admin_client)


@pytest.fixture
def process_manager():
    return FakeProcessGroupManager()


@pytest.fixture
def metrics():
    return MetricsCollector("fdb-reconciler-test", enabled=False)


@pytest.fixture
def tracer():
    return Tracer("fdb-reconciler-test", enabled=False)


@pytest.fixture
def cluster_reconciler(repo, recorder, client_provider, process_manager, defaults, tracer, metrics):
    from reconciler import FoundationDBClusterReconciler

    return FoundationDBClusterReconciler(
        repo,
        recorder,
        database_client_provider=client_provider,
        process_group_manager=process_manager,
        defaults=defaults,
        tracer=tracer,
        metrics=metrics,
    )
