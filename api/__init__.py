# ============================================================================
# API MODULE
# ============================================================================
# STATUS: Core - FastAPI routes
# PURPOSE: HTTP API for objects, events, metrics and reconcile triggers
# CREATED: 15 OCT 2026
# ============================================================================
"""
API Module

FastAPI routes for the reconciliation engine.
"""

from .routes import router, set_services
from .schemas import (
    ClusterCreate,
    RestoreCreate,
    EventListResponse,
    ReconcileTriggerResponse,
)

__all__ = [
    "router",
    "set_services",
    "ClusterCreate",
    "RestoreCreate",
    "EventListResponse",
    "ReconcileTriggerResponse",
]
