# ============================================================================
# REPOSITORIES MODULE
# ============================================================================
# STATUS: Core - Database access layer
# PURPOSE: Persistence for clusters, restores and events
# CREATED: 09 OCT 2026
# ============================================================================
"""
Repositories Module

Provides database access for reconciled objects and their events.
Uses psycopg3 async with connection pooling.

Usage:
    from repositories import ClusterRepository, init_pool

    pool = await init_pool()
    cluster_repo = ClusterRepository(pool)
    cluster = await cluster_repo.get(key)
"""

from .database import init_pool, close_pool, init_schema
from .resource_repo import ResourceRepository
from .cluster_repo import ClusterRepository
from .restore_repo import RestoreRepository
from .event_repo import EventRepository

__all__ = [
    "init_pool",
    "close_pool",
    "init_schema",
    "ResourceRepository",
    "ClusterRepository",
    "RestoreRepository",
    "EventRepository",
]
