# ============================================================================
# FDB RECONCILER - MAIN APPLICATION
# ============================================================================
# STATUS: Core - FastAPI application entry point
# PURPOSE: Main application with the reconcile manager
# CREATED: 16 OCT 2026
# ============================================================================
"""
FDB Reconciler Main Application

FastAPI application that:
1. Provides HTTP API for clusters, restores, events and metrics
2. Runs the reconcile manager (workers + periodic resync) in the background
3. Manages database connections

Usage:
    uvicorn main:app --host 0.0.0.0 --port 8000
"""

import os
from contextlib import asynccontextmanager
from typing import Iterable, Optional

from fastapi import FastAPI

from __version__ import __version__, BUILD_DATE, CODENAME

from core.config import get_defaults
from core.contracts import ResourceKind
from core.observability import get_metrics, initialize as initialize_observability
from repositories import ClusterRepository, RestoreRepository, init_pool, close_pool, init_schema
from services import Capabilities, EventService, load_capabilities
from reconciler import (
    FoundationDBClusterReconciler,
    FoundationDBRestoreReconciler,
    PipelineReconciler,
    ReconcileManager,
)
from api.routes import router, set_services

# Configure logging using our structured logging system
from core.logging import configure_logging, get_logger

configure_logging(
    level=os.environ.get("LOG_LEVEL", "INFO"),
    json_output=os.environ.get("LOG_FORMAT", "").lower() == "json",
)
logger = get_logger(__name__)

# Global instances
_manager: Optional[ReconcileManager] = None


def validate_capabilities(reconcilers: Iterable[PipelineReconciler]) -> None:
    """
    Fail startup if any reconciler is missing a capability it needs.

    Raises:
        MissingCapabilityError: naming the reconciler and capability
    """
    for reconciler in reconcilers:
        reconciler.validate_capabilities()


def build_manager(
    cluster_repo: ClusterRepository,
    restore_repo: RestoreRepository,
    recorder,
    capabilities: Capabilities,
) -> ReconcileManager:
    """Create both reconcilers and register them with a new manager."""
    defaults = get_defaults().reconciler
    cluster_reconciler = FoundationDBClusterReconciler(
        cluster_repo,
        recorder,
        database_client_provider=capabilities.database_client_provider,
        process_group_manager=capabilities.process_group_manager,
        defaults=defaults,
    )
    restore_reconciler = FoundationDBRestoreReconciler(
        restore_repo,
        recorder,
        cluster_repository=cluster_repo,
        database_client_provider=capabilities.database_client_provider,
        defaults=defaults,
    )
    validate_capabilities([cluster_reconciler, restore_reconciler])

    manager = ReconcileManager(defaults=defaults)
    manager.register(ResourceKind.CLUSTER, cluster_reconciler, cluster_repo.list_keys)
    manager.register(ResourceKind.RESTORE, restore_reconciler, restore_repo.list_keys)
    return manager


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Initializes services on startup, cleans up on shutdown.
    """
    global _manager

    logger.info(f"Starting FDB Reconciler v{__version__} ({CODENAME}, Build {BUILD_DATE})")

    initialize_observability()

    # Initialize database pool
    pool = await init_pool()
    logger.info("Database pool initialized")

    # Optional: Bootstrap schema on startup (for development)
    if os.environ.get("AUTO_BOOTSTRAP_SCHEMA", "").lower() == "true":
        await init_schema(pool)

    cluster_repo = ClusterRepository(pool)
    restore_repo = RestoreRepository(pool)
    event_service = EventService(pool)

    try:
        capabilities = load_capabilities(get_defaults().capabilities)
        _manager = build_manager(cluster_repo, restore_repo, event_service, capabilities)
    except Exception:
        await close_pool()
        raise

    set_services(
        manager=_manager,
        cluster_repo=cluster_repo,
        restore_repo=restore_repo,
        event_service=event_service,
        metrics=get_metrics(),
    )

    await _manager.start()
    logger.info("Reconcile manager started")

    yield

    # Shutdown
    logger.info("Shutting down FDB Reconciler...")

    await _manager.stop()
    await close_pool()

    logger.info("FDB Reconciler stopped")


# Create FastAPI app
app = FastAPI(
    title="FDB Reconciler",
    description="Process group reconciliation for FoundationDB clusters",
    version=__version__,
    lifespan=lifespan,
)

# Include API routes
app.include_router(router, prefix="/api/v1")


@app.get("/livez", tags=["Health"])
async def livez():
    """Liveness probe: the process is up and serving."""
    return {"status": "alive"}


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "FDB Reconciler",
        "version": __version__,
        "codename": CODENAME,
        "build_date": BUILD_DATE,
        "status": "running",
        "docs": "/docs",
    }


# ============================================================================
# MAIN ENTRY POINT
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", "8000"))

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=os.environ.get("RELOAD", "false").lower() == "true",
    )
