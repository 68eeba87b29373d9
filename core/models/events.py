# ============================================================================
# RECONCILE EVENT MODEL
# ============================================================================
# STATUS: Core model - Operational events recorded on objects
# PURPOSE: Human-readable event history per reconciled object
# CREATED: 08 OCT 2026
# EXPORTS: ReconcileEvent, EventReason
# DEPENDENCIES: pydantic, enum
# ============================================================================
"""
Reconcile Event Model

ReconcileEvent records what the engine did to an object, or why it
stopped. Every pipeline stop produces exactly one event, so an operator
can find the current blocking point from the event history alone.

Maps to: fdbapp.fdb_events table
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from core.contracts import EventKind, ObjectKey, ResourceKind


class EventReason(str, Enum):
    """Machine-readable reason attached to an event."""
    ADDING_PROCESSES = "AddingProcesses"
    REMOVING_PROCESSES = "RemovingProcesses"
    EXCLUDING_PROCESSES = "ExcludingProcesses"
    REMOVED_PROCESSES = "RemovedProcesses"
    STARTING_RESTORE = "StartingRestore"
    RECONCILIATION_TERMINATED_EARLY = "ReconciliationTerminatedEarly"


class ReconcileEvent(BaseModel):
    """
    A single operational event on a reconciled object.

    Use cases:
    - Diagnose where the pipeline is currently blocked
    - Audit trail of scaling and removal decisions
    """

    event_id: Optional[int] = Field(
        default=None,
        description="Auto-increment primary key (SERIAL)"
    )
    kind: ResourceKind
    namespace: str = Field(..., max_length=253)
    name: str = Field(..., max_length=253)

    event_type: EventKind = EventKind.NORMAL
    reason: str = Field(..., max_length=128)
    message: str = Field(default="", max_length=2000)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    source: str = Field(default="fdb-reconciler", max_length=64)

    @property
    def key(self) -> ObjectKey:
        return ObjectKey(namespace=self.namespace, name=self.name)

    @classmethod
    def for_object(
        cls,
        kind: ResourceKind,
        key: ObjectKey,
        event_type: EventKind,
        reason: str,
        message: str,
    ) -> "ReconcileEvent":
        """Create an event attached to the object identified by key."""
        return cls(
            kind=kind,
            namespace=key.namespace,
            name=key.name,
            event_type=event_type,
            reason=reason,
            message=message[:2000],
        )


__all__ = ["ReconcileEvent", "EventReason"]
