# ============================================================================
# BASE CONTRACTS & ENUMS
# ============================================================================
# STATUS: Foundation - Core enums and base contracts
# PURPOSE: Define process classes, condition types and object identity
# CREATED: 06 OCT 2026
# EXPORTS: ProcessClass, ProcessGroupConditionType, RedundancyMode, EventKind,
#          PassState, ResourceKind, ObjectKey, ObjectMeta
# DEPENDENCIES: enum, pydantic
# ============================================================================
"""
Base contracts for the reconciliation engine.

These define the minimal identity fields that cross boundaries:
- SQL (PostgreSQL JSONB status documents)
- HTTP (telemetry and trigger endpoints)
- Python (sub-reconciler pipeline)

Resource models inherit from these contracts.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


# ============================================================================
# PROCESS CLASSES
# ============================================================================

class ProcessClass(str, Enum):
    """
    Role a worker process plays in the cluster.

    The set is closed. Iteration order over PROCESS_CLASSES is the
    declaration order and is what the allocator walks.
    """
    STORAGE = "storage"
    LOG = "log"
    TRANSACTION = "transaction"
    STATELESS = "stateless"
    CLUSTER_CONTROLLER = "cluster_controller"
    PROXY = "proxy"
    COMMIT_PROXY = "commit_proxy"
    GRV_PROXY = "grv_proxy"
    RESOLVER = "resolver"
    MASTER = "master"
    TEST = "test"


PROCESS_CLASSES: List[ProcessClass] = list(ProcessClass)


class ProcessGroupConditionType(str, Enum):
    """
    Conditions a process group can carry.

    READY is synthetic: it is never stored on a group. The status
    aggregator reports a group without conditions under READY.
    """
    INCORRECT_CONFIGURATION = "IncorrectConfiguration"
    INCORRECT_COMMAND_LINE = "IncorrectCommandLine"
    PROCESS_FAILING = "ProcessFailing"
    PROCESS_PENDING = "ProcessPending"
    MISSING_PROCESSES = "MissingProcesses"
    MISSING_VOLUME = "MissingVolume"
    MISSING_SERVICE = "MissingService"
    SIDECAR_UNREACHABLE = "SidecarUnreachable"
    READY = "Ready"

    def is_synthetic(self) -> bool:
        return self is ProcessGroupConditionType.READY


ALL_CONDITION_TYPES: List[ProcessGroupConditionType] = list(ProcessGroupConditionType)


class RedundancyMode(str, Enum):
    """Replication mode of the database; drives default process counts."""
    SINGLE = "single"
    DOUBLE = "double"
    TRIPLE = "triple"

    @property
    def fault_tolerance(self) -> int:
        """Number of simultaneous failures the mode is designed to survive."""
        return {
            RedundancyMode.SINGLE: 0,
            RedundancyMode.DOUBLE: 1,
            RedundancyMode.TRIPLE: 2,
        }[self]


# ============================================================================
# RECONCILIATION ENUMS
# ============================================================================

class EventKind(str, Enum):
    """Severity of an operational event recorded on an object."""
    NORMAL = "Normal"
    WARNING = "Warning"


class PassState(str, Enum):
    """
    Terminal outcome of one reconciliation pass.

    State transitions:
        Start -> Running(step i) -> Running(step i+1) ... -> DONE
                                 -> STOPPED_ERROR
                                 -> STOPPED_MESSAGE
    """
    DONE = "done"
    STOPPED_ERROR = "stopped_error"
    STOPPED_MESSAGE = "stopped_message"


class ResourceKind(str, Enum):
    """Resource kinds the engine reconciles."""
    CLUSTER = "cluster"
    RESTORE = "restore"


# ============================================================================
# BASE DATA CONTRACTS
# ============================================================================

class ObjectKey(BaseModel):
    """
    Identity of a reconciled object - what a trigger carries.
    """
    namespace: str = Field(..., max_length=253)
    name: str = Field(..., max_length=253)

    model_config = {"frozen": True}

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


class ObjectMeta(BaseModel):
    """
    Object metadata shared by every resource.

    resource_version is the optimistic concurrency token: the store only
    accepts a status write whose resource_version matches the stored one.
    """
    namespace: str = Field(..., max_length=253)
    name: str = Field(..., max_length=253)
    generation: int = Field(default=1, ge=1)
    resource_version: int = Field(default=1, ge=1)
    uid: Optional[str] = Field(default=None, max_length=64)

    model_config = {"frozen": False}

    @property
    def key(self) -> ObjectKey:
        return ObjectKey(namespace=self.namespace, name=self.name)


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "ProcessClass",
    "PROCESS_CLASSES",
    "ProcessGroupConditionType",
    "ALL_CONDITION_TYPES",
    "RedundancyMode",
    "EventKind",
    "PassState",
    "ResourceKind",
    "ObjectKey",
    "ObjectMeta",
]
