# ============================================================================
# MODELS MODULE
# ============================================================================
# STATUS: Model exports
# PURPOSE: Central export point for all Pydantic models
# CREATED: 06 OCT 2026
# ============================================================================
"""
Models Module - Central Export Point

All Pydantic models for the reconciliation engine. Resources are stored
as JSONB spec/status documents; these models are the single source of
truth for their structure.
"""

from core.models.process_group import ProcessGroupID, ProcessGroupCondition, ProcessGroupStatus
from core.models.cluster import (
    ProcessCounts,
    RoleCounts,
    ClusterSpec,
    ClusterStatus,
    FoundationDBCluster,
)
from core.models.restore import KeyRange, RestoreSpec, RestoreStatus, FoundationDBRestore
from core.models.events import ReconcileEvent, EventReason

__all__ = [
    # Process groups
    "ProcessGroupID",
    "ProcessGroupCondition",
    "ProcessGroupStatus",
    # Cluster
    "ProcessCounts",
    "RoleCounts",
    "ClusterSpec",
    "ClusterStatus",
    "FoundationDBCluster",
    # Restore
    "KeyRange",
    "RestoreSpec",
    "RestoreStatus",
    "FoundationDBRestore",
    # Events
    "ReconcileEvent",
    "EventReason",
]
