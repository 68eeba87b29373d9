# ============================================================================
# RESOURCE REPOSITORY
# ============================================================================
# STATUS: Core - Reconciled object persistence
# PURPOSE: Shared CRUD for resources stored as JSONB spec/status documents
# CREATED: 09 OCT 2026
# ============================================================================
"""
Resource Repository

Clusters and restores share one table layout: identity and metadata
columns plus JSONB spec and status documents. Status writes use
resource_version for optimistic locking.
"""

import logging
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from psycopg import sql
from psycopg.rows import dict_row
from psycopg.types.json import Json
from psycopg_pool import AsyncConnectionPool
from pydantic import BaseModel

from core.contracts import ObjectKey, ObjectMeta

logger = logging.getLogger(__name__)

ResourceT = TypeVar("ResourceT", bound=BaseModel)


class ResourceRepository(Generic[ResourceT]):
    """
    Base repository for a resource table.

    Subclasses set `model` (the pydantic resource class) and `table`.
    """

    model: Type[ResourceT]
    table: sql.Identifier

    def __init__(self, pool: AsyncConnectionPool):
        self.pool = pool

    def _from_row(self, row: Dict[str, Any]) -> ResourceT:
        return self.model.model_validate({
            "metadata": {
                "namespace": row["namespace"],
                "name": row["name"],
                "uid": row.get("uid"),
                "generation": row["generation"],
                "resource_version": row["resource_version"],
            },
            "spec": row["spec"],
            "status": row["status"] or {},
        })

    async def create(self, obj: ResourceT) -> ResourceT:
        """
        Persist a new object.

        Args:
            obj: Resource instance to persist

        Returns:
            The same instance
        """
        meta: ObjectMeta = obj.metadata
        async with self.pool.connection() as conn:
            await conn.execute(
                sql.SQL("""
                INSERT INTO {} (
                    namespace, name, uid, generation, resource_version, spec, status
                ) VALUES (
                    %(namespace)s, %(name)s, %(uid)s, %(generation)s,
                    %(resource_version)s, %(spec)s, %(status)s
                )
                """).format(self.table),
                {
                    "namespace": meta.namespace,
                    "name": meta.name,
                    "uid": meta.uid,
                    "generation": meta.generation,
                    "resource_version": meta.resource_version,
                    "spec": Json(obj.spec.model_dump(mode="json")),
                    "status": Json(obj.status.model_dump(mode="json")),
                },
            )
        logger.info(f"Created {self.model.__name__} {meta.key}")
        return obj

    async def get(self, key: ObjectKey) -> Optional[ResourceT]:
        """Get an object by key, or None if it does not exist."""
        async with self.pool.connection() as conn:
            conn.row_factory = dict_row
            result = await conn.execute(
                sql.SQL("""
                SELECT namespace, name, uid, generation, resource_version, spec, status
                FROM {}
                WHERE namespace = %(namespace)s AND name = %(name)s
                """).format(self.table),
                {"namespace": key.namespace, "name": key.name},
            )
            row = await result.fetchone()
            if row is None:
                return None
            return self._from_row(row)

    async def update_status(self, obj: ResourceT) -> bool:
        """
        Write the status document with optimistic locking.

        The write only applies if the stored resource_version still
        matches the one the object was loaded with.

        Returns:
            True if update succeeded, False on version conflict
        """
        meta: ObjectMeta = obj.metadata
        async with self.pool.connection() as conn:
            result = await conn.execute(
                sql.SQL("""
                UPDATE {} SET
                    status = %(status)s,
                    resource_version = resource_version + 1,
                    updated_at = now()
                WHERE namespace = %(namespace)s
                  AND name = %(name)s
                  AND resource_version = %(resource_version)s
                """).format(self.table),
                {
                    "namespace": meta.namespace,
                    "name": meta.name,
                    "resource_version": meta.resource_version,
                    "status": Json(obj.status.model_dump(mode="json")),
                },
            )

            if result.rowcount == 0:
                logger.warning(
                    f"Version conflict updating {self.model.__name__} {meta.key} "
                    f"(expected resource_version {meta.resource_version})"
                )
                return False

            meta.resource_version += 1
            logger.debug(
                f"Updated {self.model.__name__} {meta.key} "
                f"resource_version={meta.resource_version}"
            )
            return True

    async def list_keys(self) -> List[ObjectKey]:
        """Keys of every stored object, ordered by namespace and name."""
        async with self.pool.connection() as conn:
            conn.row_factory = dict_row
            result = await conn.execute(
                sql.SQL("SELECT namespace, name FROM {} ORDER BY namespace, name").format(
                    self.table
                )
            )
            rows = await result.fetchall()
            return [ObjectKey(namespace=r["namespace"], name=r["name"]) for r in rows]

    async def delete(self, key: ObjectKey) -> bool:
        """Delete an object. Returns True if a row was removed."""
        async with self.pool.connection() as conn:
            result = await conn.execute(
                sql.SQL("DELETE FROM {} WHERE namespace = %(namespace)s AND name = %(name)s").format(
                    self.table
                ),
                {"namespace": key.namespace, "name": key.name},
            )
            return result.rowcount > 0
