# ============================================================================
# EVENT REPOSITORY
# ============================================================================
# STATUS: Core - ReconcileEvent persistence
# PURPOSE: Database access for fdb_events table
# CREATED: 09 OCT 2026
# ============================================================================
"""
Event Repository

Insert and query operations for reconciliation events.
Events are the per-object audit trail of what the engine did and
where a pass stopped.
"""

import logging
from typing import List, Optional

from psycopg import sql
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool

from core.contracts import EventKind, ObjectKey, ResourceKind
from core.models import ReconcileEvent
from .database import TABLE_EVENTS

logger = logging.getLogger(__name__)


class EventRepository:
    """Repository for ReconcileEvent entities."""

    def __init__(self, pool: AsyncConnectionPool):
        self.pool = pool

    async def create(self, event: ReconcileEvent) -> ReconcileEvent:
        """
        Create a new event.

        Args:
            event: ReconcileEvent instance to persist

        Returns:
            Created event with event_id populated
        """
        async with self.pool.connection() as conn:
            conn.row_factory = dict_row
            result = await conn.execute(
                sql.SQL("""
                INSERT INTO {} (
                    kind, namespace, name, event_type, reason, message,
                    created_at, source
                ) VALUES (
                    %(kind)s, %(namespace)s, %(name)s, %(event_type)s,
                    %(reason)s, %(message)s, %(created_at)s, %(source)s
                )
                RETURNING event_id
                """).format(TABLE_EVENTS),
                {
                    "kind": event.kind.value,
                    "namespace": event.namespace,
                    "name": event.name,
                    "event_type": event.event_type.value,
                    "reason": event.reason,
                    "message": event.message,
                    "created_at": event.created_at,
                    "source": event.source,
                },
            )
            row = await result.fetchone()
            event.event_id = row["event_id"]
            return event

    async def list_for_object(
        self,
        kind: ResourceKind,
        key: ObjectKey,
        limit: int = 100,
        event_type: Optional[EventKind] = None,
    ) -> List[ReconcileEvent]:
        """
        Get events for one object.

        Args:
            kind: Resource kind
            key: Object key
            limit: Maximum number of events to return
            event_type: Optional filter (Normal or Warning)

        Returns:
            List of ReconcileEvent instances, newest first
        """
        query = sql.SQL("""
            SELECT * FROM {}
            WHERE kind = %(kind)s AND namespace = %(namespace)s AND name = %(name)s
            {}
            ORDER BY created_at DESC, event_id DESC
            LIMIT %(limit)s
        """).format(
            TABLE_EVENTS,
            sql.SQL("AND event_type = %(event_type)s") if event_type else sql.SQL(""),
        )
        params = {
            "kind": kind.value,
            "namespace": key.namespace,
            "name": key.name,
            "limit": limit,
            "event_type": event_type.value if event_type else None,
        }

        async with self.pool.connection() as conn:
            conn.row_factory = dict_row
            result = await conn.execute(query, params)
            rows = await result.fetchall()
            return [self._row_to_event(row) for row in rows]

    def _row_to_event(self, row: dict) -> ReconcileEvent:
        """Convert database row to ReconcileEvent model."""
        return ReconcileEvent(
            event_id=row["event_id"],
            kind=ResourceKind(row["kind"]),
            namespace=row["namespace"],
            name=row["name"],
            event_type=EventKind(row["event_type"]),
            reason=row["reason"],
            message=row.get("message") or "",
            created_at=row["created_at"],
            source=row.get("source") or "fdb-reconciler",
        )
