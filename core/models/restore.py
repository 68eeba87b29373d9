# ============================================================================
# RESTORE RESOURCE MODEL
# ============================================================================
# STATUS: Core model - Restore request and progress
# PURPOSE: Declare a restore from a backup into a destination cluster
# CREATED: 08 OCT 2026
# EXPORTS: KeyRange, RestoreSpec, RestoreStatus, FoundationDBRestore
# DEPENDENCIES: pydantic
# ============================================================================
"""
Restore Resource Model

FoundationDBRestore is the object the restore pipeline reconciles.
The backup URL is supplied ready-made; constructing it from blob store
settings is the responsibility of whoever creates the restore.

Maps to: fdbapp.fdb_restores
"""

from typing import List

from pydantic import BaseModel, Field

from core.contracts import ObjectKey, ObjectMeta
from core.models.cluster import get_knobs_for_cli


class KeyRange(BaseModel):
    """A half-open key range [start, end) to restore."""

    start: str
    end: str


class RestoreSpec(BaseModel):
    """Declared restore request."""

    destination_cluster_name: str = Field(..., max_length=253)
    backup_url: str = Field(..., min_length=1, max_length=2048)
    key_ranges: List[KeyRange] = Field(default_factory=list)
    custom_parameters: List[str] = Field(default_factory=list)

    def get_knobs_for_cli(self) -> List[str]:
        return get_knobs_for_cli(self.custom_parameters)


class RestoreStatus(BaseModel):
    """Observed restore progress."""

    running: bool = False


class FoundationDBRestore(BaseModel):
    """A restore under reconciliation."""

    metadata: ObjectMeta
    spec: RestoreSpec
    status: RestoreStatus = Field(default_factory=RestoreStatus)

    @property
    def key(self) -> ObjectKey:
        return self.metadata.key

    @property
    def destination_key(self) -> ObjectKey:
        """Key of the cluster the restore writes into (same namespace)."""
        return ObjectKey(
            namespace=self.metadata.namespace,
            name=self.spec.destination_cluster_name,
        )


__all__ = ["KeyRange", "RestoreSpec", "RestoreStatus", "FoundationDBRestore"]
