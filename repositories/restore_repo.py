# ============================================================================
# RESTORE REPOSITORY
# ============================================================================
# STATUS: Core - FoundationDBRestore persistence
# PURPOSE: Database access for fdb_restores table
# CREATED: 09 OCT 2026
# ============================================================================
"""
Restore Repository

CRUD operations for FoundationDBRestore objects.
"""

from core.models import FoundationDBRestore
from .database import TABLE_RESTORES
from .resource_repo import ResourceRepository


class RestoreRepository(ResourceRepository[FoundationDBRestore]):
    """Repository for FoundationDBRestore entities."""

    model = FoundationDBRestore
    table = TABLE_RESTORES
