# ============================================================================
# API ROUTES
# ============================================================================
# STATUS: Core - FastAPI route definitions
# PURPOSE: HTTP endpoints for objects, telemetry and reconcile triggers
# CREATED: 15 OCT 2026
# ============================================================================
"""
API Routes

FastAPI routes for the reconciliation engine:
- create / read clusters and restores
- process group metrics snapshots
- event history per object
- reconcile triggers and manager status
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query
from psycopg import errors as pg_errors

from core.contracts import EventKind, ObjectKey, ObjectMeta, ResourceKind
from core.models import FoundationDBCluster, FoundationDBRestore
from core.observability import get_metrics
from reconciler.metrics import ProcessGroupMetricsSnapshot, export_all, export_process_group_metrics
from .schemas import (
    ClusterCreate,
    RestoreCreate,
    EventResponse,
    EventListResponse,
    ReconcileTriggerResponse,
    ManagerStatusResponse,
    ErrorResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# DEPENDENCY INJECTION
# ============================================================================
# These will be set by the main app at startup

_manager = None
_cluster_repo = None
_restore_repo = None
_event_service = None
_metrics = None


def set_services(manager, cluster_repo, restore_repo, event_service, metrics=None):
    """Set service instances for dependency injection."""
    global _manager, _cluster_repo, _restore_repo, _event_service, _metrics
    _manager = manager
    _cluster_repo = cluster_repo
    _restore_repo = restore_repo
    _event_service = event_service
    _metrics = metrics


def get_manager():
    if _manager is None:
        raise HTTPException(500, "Reconcile manager not initialized")
    return _manager


def get_repository(kind: ResourceKind):
    repo = _cluster_repo if kind == ResourceKind.CLUSTER else _restore_repo
    if repo is None:
        raise HTTPException(500, "Repositories not initialized")
    return repo


def get_event_service():
    if _event_service is None:
        raise HTTPException(500, "Event service not initialized")
    return _event_service


def _get_metrics():
    return _metrics or get_metrics()


def _trigger(kind: ResourceKind, key: ObjectKey) -> bool:
    """Enqueue a pass if a manager is running; creation never fails on it."""
    if _manager is None:
        return False
    return _manager.enqueue(kind, key)


# ============================================================================
# MANAGER STATUS
# ============================================================================

@router.get("/manager/status", tags=["Manager"], response_model=ManagerStatusResponse)
async def get_manager_status():
    """
    Get reconcile manager status and statistics.

    Returns:
    - Running state and uptime
    - Queue depth, in-flight and delayed passes
    - Pass, error and requeue counts
    """
    stats = get_manager().stats

    return ManagerStatusResponse(
        status="running" if stats["running"] else "stopped",
        started_at=stats["started_at"],
        uptime_seconds=stats["uptime_seconds"],
        kinds=stats["kinds"],
        metrics={
            k: stats[k]
            for k in (
                "workers", "queued", "in_flight", "delayed", "backing_off",
                "passes", "errors", "requeues", "resyncs", "last_resync_at",
            )
        },
    )


# ============================================================================
# CLUSTERS
# ============================================================================

@router.post(
    "/clusters",
    tags=["Clusters"],
    status_code=201,
    responses={409: {"model": ErrorResponse}},
)
async def create_cluster(request: ClusterCreate):
    """Create a cluster and trigger its first reconciliation."""
    cluster = FoundationDBCluster(
        metadata=ObjectMeta(namespace=request.namespace, name=request.name),
        spec=request.spec,
    )
    try:
        await get_repository(ResourceKind.CLUSTER).create(cluster)
    except pg_errors.UniqueViolation:
        raise HTTPException(409, f"Cluster already exists: {cluster.key}")

    _trigger(ResourceKind.CLUSTER, cluster.key)
    return cluster.model_dump(mode="json")


@router.get(
    "/clusters/{namespace}/{name}",
    tags=["Clusters"],
    responses={404: {"model": ErrorResponse}},
)
async def get_cluster(namespace: str, name: str):
    """Get a cluster with its process group status."""
    key = ObjectKey(namespace=namespace, name=name)
    cluster = await get_repository(ResourceKind.CLUSTER).get(key)
    if cluster is None:
        raise HTTPException(404, f"Cluster not found: {key}")
    return cluster.model_dump(mode="json")


@router.get(
    "/clusters/{namespace}/{name}/process-groups/metrics",
    tags=["Clusters"],
    response_model=ProcessGroupMetricsSnapshot,
    responses={404: {"model": ErrorResponse}},
)
async def get_cluster_process_group_metrics(namespace: str, name: str):
    """
    Aggregated process group state for one cluster.

    Per process class: count by condition (Ready for groups without
    conditions), groups marked for removal, groups excluded.
    """
    key = ObjectKey(namespace=namespace, name=name)
    cluster = await get_repository(ResourceKind.CLUSTER).get(key)
    if cluster is None:
        raise HTTPException(404, f"Cluster not found: {key}")
    return export_process_group_metrics(cluster, _get_metrics())


@router.get(
    "/metrics/process-groups",
    tags=["Clusters"],
    response_model=List[ProcessGroupMetricsSnapshot],
)
async def list_process_group_metrics():
    """Process group snapshots for every cluster; also refreshes the gauges."""
    repo = get_repository(ResourceKind.CLUSTER)
    clusters = []
    for key in await repo.list_keys():
        cluster = await repo.get(key)
        if cluster is not None:
            clusters.append(cluster)
    return list(export_all(clusters, _get_metrics()).values())


# ============================================================================
# RESTORES
# ============================================================================

@router.post(
    "/restores",
    tags=["Restores"],
    status_code=201,
    responses={409: {"model": ErrorResponse}},
)
async def create_restore(request: RestoreCreate):
    """Create a restore and trigger its reconciliation."""
    restore = FoundationDBRestore(
        metadata=ObjectMeta(namespace=request.namespace, name=request.name),
        spec=request.spec,
    )
    try:
        await get_repository(ResourceKind.RESTORE).create(restore)
    except pg_errors.UniqueViolation:
        raise HTTPException(409, f"Restore already exists: {restore.key}")

    _trigger(ResourceKind.RESTORE, restore.key)
    return restore.model_dump(mode="json")


@router.get(
    "/restores/{namespace}/{name}",
    tags=["Restores"],
    responses={404: {"model": ErrorResponse}},
)
async def get_restore(namespace: str, name: str):
    """Get a restore with its status."""
    key = ObjectKey(namespace=namespace, name=name)
    restore = await get_repository(ResourceKind.RESTORE).get(key)
    if restore is None:
        raise HTTPException(404, f"Restore not found: {key}")
    return restore.model_dump(mode="json")


# ============================================================================
# EVENTS
# ============================================================================

@router.get(
    "/{kind}/{namespace}/{name}/events",
    tags=["Events"],
    response_model=EventListResponse,
)
async def get_object_events(
    kind: ResourceKind,
    namespace: str,
    name: str,
    limit: int = Query(100, ge=1, le=1000, description="Maximum events to return"),
    event_type: Optional[EventKind] = Query(None, description="Normal or Warning"),
):
    """
    Get the event history of an object, newest first.

    The newest ReconciliationTerminatedEarly event names the step the
    pipeline is currently blocked on.
    """
    key = ObjectKey(namespace=namespace, name=name)
    events = await get_event_service().list_for_object(
        kind, key, limit=limit, event_type=event_type
    )

    return EventListResponse(
        kind=kind,
        namespace=namespace,
        name=name,
        count=len(events),
        events=[
            EventResponse(
                event_id=e.event_id,
                event_type=e.event_type,
                reason=e.reason,
                message=e.message,
                created_at=e.created_at,
                source=e.source,
            )
            for e in events
        ],
    )


# ============================================================================
# RECONCILE TRIGGER
# ============================================================================

@router.post(
    "/reconcile/{kind}/{namespace}/{name}",
    tags=["Manager"],
    status_code=202,
    response_model=ReconcileTriggerResponse,
)
async def trigger_reconcile(kind: ResourceKind, namespace: str, name: str):
    """
    Queue a reconciliation pass for an object.

    queued is false when a pass for the object was already waiting.
    """
    key = ObjectKey(namespace=namespace, name=name)
    try:
        queued = get_manager().enqueue(kind, key)
    except KeyError:
        raise HTTPException(400, f"No reconciler registered for {kind.value}")

    logger.info(f"Reconcile triggered for {kind.value} {key} (queued={queued})")
    return ReconcileTriggerResponse(kind=kind, namespace=namespace, name=name, queued=queued)
