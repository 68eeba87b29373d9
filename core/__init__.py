# ============================================================================
# CORE MODULE
# ============================================================================
# STATUS: Core module initialization
# PURPOSE: Export core contracts, errors and models
# CREATED: 06 OCT 2026
# ============================================================================

from core.contracts import (
    ProcessClass,
    ProcessGroupConditionType,
    EventKind,
    PassState,
    ResourceKind,
    ObjectKey,
)
from core.models import (
    ProcessGroupID,
    ProcessGroupStatus,
    FoundationDBCluster,
    FoundationDBRestore,
    ReconcileEvent,
)

__all__ = [
    # Enums
    "ProcessClass",
    "ProcessGroupConditionType",
    "EventKind",
    "PassState",
    "ResourceKind",
    # Contracts
    "ObjectKey",
    # Models
    "ProcessGroupID",
    "ProcessGroupStatus",
    "FoundationDBCluster",
    "FoundationDBRestore",
    "ReconcileEvent",
]
