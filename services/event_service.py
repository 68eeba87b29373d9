# ============================================================================
# EVENT SERVICE
# ============================================================================
# STATUS: Core - Event emission and retrieval
# PURPOSE: Record operational events on reconciled objects
# CREATED: 10 OCT 2026
# ============================================================================
"""
Event Service

Records events on reconciled objects. Events are fire-and-forget -
failures are logged but don't propagate, so a broken event sink never
changes the outcome of a reconciliation pass.

This enables:
- Finding where a pipeline is currently blocked
- Audit trail of scaling and removal decisions
"""

import logging
from typing import List, Optional, Protocol

from psycopg_pool import AsyncConnectionPool

from core.contracts import EventKind, ObjectKey, ResourceKind
from core.models import ReconcileEvent
from repositories import EventRepository

logger = logging.getLogger(__name__)


class EventRecorder(Protocol):
    """Anything the pipeline can record events with."""

    async def record(
        self,
        kind: ResourceKind,
        key: ObjectKey,
        event_type: EventKind,
        reason: str,
        message: str,
    ) -> Optional[ReconcileEvent]:
        ...


class EventService:
    """Service for recording and retrieving reconcile events."""

    def __init__(self, pool: AsyncConnectionPool):
        """
        Initialize event service.

        Args:
            pool: Database connection pool
        """
        self.pool = pool
        self._repo = EventRepository(pool)

    # =========================================================================
    # CORE RECORD METHOD
    # =========================================================================

    async def record(
        self,
        kind: ResourceKind,
        key: ObjectKey,
        event_type: EventKind,
        reason: str,
        message: str,
    ) -> Optional[ReconcileEvent]:
        """
        Record an event. Fire-and-forget - logs errors but doesn't raise.

        Args:
            kind: Kind of the object the event is attached to
            key: Object key
            event_type: Normal or Warning
            reason: Machine-readable reason (EventReason value)
            message: Human-readable message

        Returns:
            Created ReconcileEvent or None if recording failed
        """
        try:
            event = ReconcileEvent.for_object(kind, key, event_type, reason, message)
            created = await self._repo.create(event)
            logger.debug(f"Event recorded: {reason} on {kind.value} {key}")
            return created

        except Exception as e:
            logger.warning(f"Failed to record event {reason} on {kind.value} {key}: {e}")
            return None

    # =========================================================================
    # QUERIES
    # =========================================================================

    async def list_for_object(
        self,
        kind: ResourceKind,
        key: ObjectKey,
        limit: int = 100,
        event_type: Optional[EventKind] = None,
    ) -> List[ReconcileEvent]:
        """Events for one object, newest first."""
        return await self._repo.list_for_object(kind, key, limit=limit, event_type=event_type)


__all__ = ["EventRecorder", "EventService"]
