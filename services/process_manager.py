# ============================================================================
# PROCESS GROUP MANAGER INTERFACE
# ============================================================================
# STATUS: Service - Physical process lifecycle boundary
# PURPOSE: Tear down the runtime resources behind a process group
# CREATED: 10 OCT 2026
# ============================================================================
"""
Process Group Manager Interface

Whatever hosts the worker processes (pods, VMs, bare metal) is hidden
behind ProcessGroupManager. Deployments supply an implementation by
import path (PROCESS_GROUP_MANAGER).
"""

from abc import ABC, abstractmethod

from core.models import FoundationDBCluster, ProcessGroupStatus


class ProcessGroupManager(ABC):
    """Removes the physical resources of process groups."""

    @abstractmethod
    async def remove_process_group(
        self,
        cluster: FoundationDBCluster,
        process_group: ProcessGroupStatus,
    ) -> None:
        """Start tearing down a process group. Must be idempotent."""

    @abstractmethod
    async def process_group_is_removed(
        self,
        cluster: FoundationDBCluster,
        process_group: ProcessGroupStatus,
    ) -> bool:
        """True once no runtime resource of the process group remains."""


__all__ = ["ProcessGroupManager"]
