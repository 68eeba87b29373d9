# ============================================================================
# CLUSTER RESOURCE MODEL
# ============================================================================
# STATUS: Core model - Declared cluster configuration and observed status
# PURPOSE: Desired process counts, removal requests, process group status
# CREATED: 07 OCT 2026
# EXPORTS: ProcessCounts, RoleCounts, ClusterSpec, ClusterStatus,
#          FoundationDBCluster, get_knobs_for_cli
# DEPENDENCIES: pydantic
# ============================================================================
"""
Cluster Resource Model

FoundationDBCluster is the object the cluster pipeline reconciles.

- spec   = DECLARED (process counts, redundancy, removal requests)
- status = OBSERVED (ordered list of ProcessGroupStatus records)

Maps to: fdbapp.fdb_clusters (spec and status stored as JSONB)
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from core.contracts import ObjectKey, ObjectMeta, ProcessClass, RedundancyMode
from core.errors import ProcessCountsError
from core.models.process_group import ProcessGroupID, ProcessGroupStatus


# ============================================================================
# COUNTS
# ============================================================================

class ProcessCounts(BaseModel):
    """
    Desired number of process groups per class.

    0 means "unset, derive a default"; a negative value means "explicitly
    none" and normalises to zero.
    """

    storage: int = 0
    log: int = 0
    transaction: int = 0
    stateless: int = 0
    cluster_controller: int = 0
    proxy: int = 0
    commit_proxy: int = 0
    grv_proxy: int = 0
    resolver: int = 0
    master: int = 0
    test: int = 0

    def get(self, process_class: ProcessClass) -> int:
        return getattr(self, process_class.value)

    def as_map(self) -> Dict[ProcessClass, int]:
        """Counts for every class, negatives normalised to zero."""
        return {pc: max(0, self.get(pc)) for pc in ProcessClass}


class RoleCounts(BaseModel):
    """Number of database roles the configuration asks for. 0 means default."""

    storage: int = 0
    logs: int = 0
    proxies: int = 0
    resolvers: int = 0


def get_knobs_for_cli(custom_parameters: List[str]) -> List[str]:
    """Turn "knob_name=value" parameters into admin CLI arguments."""
    return [f"--{parameter.strip()}" for parameter in custom_parameters if parameter.strip()]


# ============================================================================
# SPEC / STATUS
# ============================================================================

class ClusterSpec(BaseModel):
    """Declared configuration of a cluster."""

    process_counts: ProcessCounts = Field(default_factory=ProcessCounts)
    role_counts: RoleCounts = Field(default_factory=RoleCounts)
    redundancy_mode: str = Field(default=RedundancyMode.DOUBLE.value, max_length=32)
    process_group_id_prefix: Optional[str] = Field(default=None, max_length=128)
    process_groups_to_remove: List[str] = Field(
        default_factory=list,
        description="Process group IDs the operator asked to decommission",
    )
    custom_parameters: List[str] = Field(default_factory=list)


class ClusterStatus(BaseModel):
    """Observed state of a cluster."""

    process_groups: List[ProcessGroupStatus] = Field(default_factory=list)


class FoundationDBCluster(BaseModel):
    """A database cluster under reconciliation."""

    metadata: ObjectMeta
    spec: ClusterSpec = Field(default_factory=ClusterSpec)
    status: ClusterStatus = Field(default_factory=ClusterStatus)

    @property
    def key(self) -> ObjectKey:
        return self.metadata.key

    # =========================================================================
    # DESIRED COUNTS
    # =========================================================================

    def get_redundancy_mode(self) -> RedundancyMode:
        try:
            return RedundancyMode(self.spec.redundancy_mode)
        except ValueError:
            raise ProcessCountsError(
                f"unknown redundancy mode {self.spec.redundancy_mode!r}",
                field="redundancy_mode",
            ) from None

    def desired_fault_tolerance(self) -> int:
        return self.get_redundancy_mode().fault_tolerance

    def get_role_counts_with_defaults(self) -> RoleCounts:
        """
        Role counts with defaults filled in.

        Raises:
            ProcessCountsError: on an unknown redundancy mode or negative role count
        """
        counts = self.spec.role_counts.model_copy()
        for field_name in RoleCounts.model_fields:
            if getattr(counts, field_name) < 0:
                raise ProcessCountsError(
                    f"role count {field_name} must not be negative",
                    field=f"role_counts.{field_name}",
                )

        fault_tolerance = self.desired_fault_tolerance()
        if counts.storage == 0:
            counts.storage = 2 * fault_tolerance + 1
        if counts.logs == 0:
            counts.logs = 3
        if counts.proxies == 0:
            counts.proxies = 3
        if counts.resolvers == 0:
            counts.resolvers = 1
        return counts

    def _calculate_process_count(self, add_fault_tolerance: bool, *counts: int) -> int:
        total = sum(count for count in counts if count > 0)
        if total == 0:
            return -1
        if add_fault_tolerance:
            return total + self.desired_fault_tolerance()
        return total

    @staticmethod
    def _process_count_from_role(count: int, *alternatives: int) -> int:
        # A dedicated process class for the role takes it off the stateless pool.
        if any(alternative > 0 for alternative in alternatives):
            return 0
        return max(0, count)

    def get_process_counts_with_defaults(self) -> ProcessCounts:
        """
        Desired process counts with defaults derived from the configuration.

        Raises:
            ProcessCountsError: if the configuration is malformed
        """
        role_counts = self.get_role_counts_with_defaults()
        counts = self.spec.process_counts.model_copy()

        if counts.storage == 0:
            counts.storage = role_counts.storage

        if counts.log == 0:
            counts.log = self._calculate_process_count(True, role_counts.logs)

        if counts.stateless == 0:
            counts.stateless = self._calculate_process_count(
                True,
                self._process_count_from_role(1, counts.master),
                self._process_count_from_role(1, counts.cluster_controller),
                self._process_count_from_role(
                    role_counts.proxies, counts.proxy, counts.commit_proxy, counts.grv_proxy
                ),
                self._process_count_from_role(role_counts.resolvers, counts.resolver),
            )

        return counts

    # =========================================================================
    # PROCESS GROUP HELPERS
    # =========================================================================

    def get_process_group_id(self, process_class: ProcessClass, index: int) -> ProcessGroupID:
        return ProcessGroupID(
            process_class=process_class,
            index=index,
            prefix=self.spec.process_group_id_prefix or None,
        )

    def find_process_group(self, process_group_id: str) -> Optional[ProcessGroupStatus]:
        for process_group in self.status.process_groups:
            if process_group.process_group_id == process_group_id:
                return process_group
        return None

    def process_group_is_being_removed(self, process_group_id: str) -> bool:
        """True if the ID is listed in spec.process_groups_to_remove or marked in status."""
        if process_group_id in self.spec.process_groups_to_remove:
            return True
        process_group = self.find_process_group(process_group_id)
        return process_group is not None and process_group.marked_for_removal


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "ProcessCounts",
    "RoleCounts",
    "ClusterSpec",
    "ClusterStatus",
    "FoundationDBCluster",
    "get_knobs_for_cli",
]
