# ============================================================================
# CLUSTER REPOSITORY
# ============================================================================
# STATUS: Core - FoundationDBCluster persistence
# PURPOSE: Database access for fdb_clusters table
# CREATED: 09 OCT 2026
# ============================================================================
"""
Cluster Repository

CRUD operations for FoundationDBCluster objects.
"""

from core.models import FoundationDBCluster
from .database import TABLE_CLUSTERS
from .resource_repo import ResourceRepository


class ClusterRepository(ResourceRepository[FoundationDBCluster]):
    """Repository for FoundationDBCluster entities."""

    model = FoundationDBCluster
    table = TABLE_CLUSTERS
