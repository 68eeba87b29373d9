# ============================================================================
# ADMIN CLIENT INTERFACE
# ============================================================================
# STATUS: Service - Database administration boundary
# PURPOSE: Commands the engine issues against a running database
# CREATED: 10 OCT 2026
# ============================================================================
"""
Admin Client Interface

The engine never speaks the database wire protocol itself. Every
cluster-altering command goes through an AdminClient obtained from a
DatabaseClientProvider, which deployments supply by import path
(DATABASE_CLIENT_PROVIDER).

Implementations raise AdminClientError (or OSError for transport
failures); the steps turn either into a retryable stop.
"""

from abc import ABC, abstractmethod
from typing import List

from core.models import FoundationDBCluster, KeyRange


class AdminClient(ABC):
    """Administrative commands against one database cluster."""

    @abstractmethod
    async def exclude_processes(self, addresses: List[str]) -> None:
        """Ask the database to move data off the given process addresses."""

    @abstractmethod
    async def include_processes(self, addresses: List[str]) -> None:
        """Clear exclusions for the given addresses."""

    @abstractmethod
    async def can_safely_remove(self, addresses: List[str]) -> List[str]:
        """
        Check whether excluded addresses still hold data.

        Returns:
            The subset of addresses that are NOT yet safe to remove
        """

    @abstractmethod
    async def get_restore_status(self) -> str:
        """Current restore status text; empty when no restore is running."""

    @abstractmethod
    async def start_restore(self, backup_url: str, key_ranges: List[KeyRange]) -> None:
        """Start restoring the backup at backup_url into the cluster."""

    @abstractmethod
    async def set_knobs(self, knobs: List[str]) -> None:
        """Set command line knobs ("--name=value") for subsequent commands."""

    async def close(self) -> None:
        """Release client resources."""


class DatabaseClientProvider(ABC):
    """Creates admin clients for clusters."""

    @abstractmethod
    async def get_admin_client(
        self,
        cluster: FoundationDBCluster,
        reconciler: str,
    ) -> AdminClient:
        """
        Get an admin client for a cluster.

        Args:
            cluster: Cluster the commands will run against
            reconciler: Name of the requesting reconciler (for client logs)
        """


__all__ = ["AdminClient", "DatabaseClientProvider"]
