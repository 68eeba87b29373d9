# ============================================================================
# DATABASE CONNECTION POOL
# ============================================================================
# STATUS: Core - Async PostgreSQL connection management
# PURPOSE: Connection pooling for psycopg3 async, schema bootstrap
# CREATED: 09 OCT 2026
# ============================================================================
"""
Database Connection Pool

Manages async PostgreSQL connections using psycopg3 and psycopg_pool.
Singleton pattern ensures one pool per application.

Connection settings come from DATABASE_URL, or from the individual
POSTGRES_* variables when it is not set.

Usage:
    from repositories.database import init_pool

    pool = await init_pool()
    async with pool.connection() as conn:
        result = await conn.execute("SELECT 1")
"""

import os
import logging
from typing import List, Optional

from psycopg import sql
from psycopg_pool import AsyncConnectionPool

logger = logging.getLogger(__name__)

# Global pool instance
_pool: Optional[AsyncConnectionPool] = None


def get_connection_string() -> str:
    """
    Get database connection string from environment.

    Priority:
    1. DATABASE_URL environment variable
    2. Individual POSTGRES_* components

    Returns:
        PostgreSQL connection string
    """
    if url := os.environ.get("DATABASE_URL"):
        return url

    host = os.environ.get("POSTGRES_HOST", "localhost")
    port = os.environ.get("POSTGRES_PORT", "5432")
    name = os.environ.get("POSTGRES_DB", "postgres")
    user = os.environ.get("POSTGRES_USER", "postgres")
    password = os.environ.get("POSTGRES_PASSWORD", "")
    sslmode = os.environ.get("POSTGRES_SSLMODE", "prefer")

    return f"postgresql://{user}:{password}@{host}:{port}/{name}?sslmode={sslmode}"


def _mask(conninfo: str) -> str:
    if "@" in conninfo:
        return conninfo.split("@")[-1]
    if "password=" in conninfo:
        return conninfo.split("password=")[0] + "password=***"
    return conninfo


async def init_pool(
    min_size: int = 2,
    max_size: int = 10,
    connection_string: Optional[str] = None,
) -> AsyncConnectionPool:
    """
    Initialize the global connection pool.

    Args:
        min_size: Minimum connections to maintain
        max_size: Maximum connections allowed
        connection_string: Override connection string (defaults to env)

    Returns:
        AsyncConnectionPool instance
    """
    global _pool

    if _pool is not None:
        logger.warning("Pool already initialized, returning existing pool")
        return _pool

    conninfo = connection_string or get_connection_string()
    logger.info(f"Initializing connection pool: {_mask(conninfo)}")

    _pool = AsyncConnectionPool(
        conninfo=conninfo,
        min_size=min_size,
        max_size=max_size,
        open=False,
    )

    await _pool.open()
    logger.info(f"Connection pool opened (min={min_size}, max={max_size})")

    return _pool


async def close_pool() -> None:
    """Close the global connection pool."""
    global _pool

    if _pool is not None:
        await _pool.close()
        _pool = None
        logger.info("Connection pool closed")


# ============================================================================
# SCHEMA CONSTANTS
# ============================================================================

SCHEMA = "fdbapp"

# Table identifiers for use with psycopg sql.SQL().format()
TABLE_CLUSTERS = sql.Identifier(SCHEMA, "fdb_clusters")
TABLE_RESTORES = sql.Identifier(SCHEMA, "fdb_restores")
TABLE_EVENTS = sql.Identifier(SCHEMA, "fdb_events")


def schema_statements() -> List[sql.Composed]:
    """DDL for the schema. Every statement is idempotent."""
    resource_table = """
        CREATE TABLE IF NOT EXISTS {} (
            namespace VARCHAR(253) NOT NULL,
            name VARCHAR(253) NOT NULL,
            uid VARCHAR(64),
            generation INTEGER NOT NULL DEFAULT 1,
            resource_version INTEGER NOT NULL DEFAULT 1,
            spec JSONB NOT NULL,
            status JSONB NOT NULL DEFAULT '{{}}'::jsonb,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            PRIMARY KEY (namespace, name)
        )
    """
    return [
        sql.SQL("CREATE SCHEMA IF NOT EXISTS {}").format(sql.Identifier(SCHEMA)),
        sql.SQL(resource_table).format(TABLE_CLUSTERS),
        sql.SQL(resource_table).format(TABLE_RESTORES),
        sql.SQL("""
            CREATE TABLE IF NOT EXISTS {} (
                event_id SERIAL PRIMARY KEY,
                kind VARCHAR(32) NOT NULL,
                namespace VARCHAR(253) NOT NULL,
                name VARCHAR(253) NOT NULL,
                event_type VARCHAR(16) NOT NULL,
                reason VARCHAR(128) NOT NULL,
                message VARCHAR(2000) NOT NULL DEFAULT '',
                created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
                source VARCHAR(64) NOT NULL DEFAULT 'fdb-reconciler'
            )
        """).format(TABLE_EVENTS),
        sql.SQL("CREATE INDEX IF NOT EXISTS {} ON {} (kind, namespace, name, created_at)").format(
            sql.Identifier("idx_fdb_events_object"), TABLE_EVENTS
        ),
    ]


async def init_schema(pool: AsyncConnectionPool) -> None:
    """Create the schema and tables if they do not exist."""
    async with pool.connection() as conn:
        for statement in schema_statements():
            await conn.execute(statement)
    logger.info(f"Schema {SCHEMA} ready")

