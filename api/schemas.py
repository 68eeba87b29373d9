# ============================================================================
# API SCHEMAS
# ============================================================================
# STATUS: Core - Request/Response schemas
# PURPOSE: Pydantic models for API validation
# CREATED: 15 OCT 2026
# ============================================================================
"""
API Schemas

Request and response models for the API.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from core.contracts import EventKind, ResourceKind
from core.models import ClusterSpec, RestoreSpec


# ============================================================================
# REQUEST SCHEMAS
# ============================================================================

class ClusterCreate(BaseModel):
    """Request to create a cluster."""
    namespace: str = Field(..., min_length=1, max_length=253)
    name: str = Field(..., min_length=1, max_length=253)
    spec: ClusterSpec = Field(default_factory=ClusterSpec)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "namespace": "db",
                    "name": "sample-cluster",
                    "spec": {
                        "process_counts": {"storage": 3},
                        "redundancy_mode": "double",
                    },
                }
            ]
        }
    }


class RestoreCreate(BaseModel):
    """Request to create a restore."""
    namespace: str = Field(..., min_length=1, max_length=253)
    name: str = Field(..., min_length=1, max_length=253)
    spec: RestoreSpec


# ============================================================================
# RESPONSE SCHEMAS
# ============================================================================

class EventResponse(BaseModel):
    """A recorded event."""
    event_id: Optional[int]
    event_type: EventKind
    reason: str
    message: str
    created_at: datetime
    source: str


class EventListResponse(BaseModel):
    """Events for one object."""
    kind: ResourceKind
    namespace: str
    name: str
    events: List[EventResponse]
    count: int


class ReconcileTriggerResponse(BaseModel):
    """Result of a reconcile trigger."""
    kind: ResourceKind
    namespace: str
    name: str
    queued: bool


class ManagerStatusResponse(BaseModel):
    """Reconcile manager status."""
    status: str
    started_at: Optional[str] = None
    uptime_seconds: Optional[float] = None
    kinds: List[str] = Field(default_factory=list)
    metrics: Dict[str, Any] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    """Error response."""
    detail: str
