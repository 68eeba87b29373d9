# ============================================================================
# ERRORS
# ============================================================================
# STATUS: Foundation - Exception hierarchy
# PURPOSE: Shared exception types for models, steps, stores and clients
# CREATED: 06 OCT 2026
# ============================================================================
"""
Exception hierarchy for the reconciliation engine.

Recoverable errors (everything under ReconcilerError except
MissingCapabilityError) are turned into RetryableError signals by the
sub-reconcilers and retried with backoff. MissingCapabilityError is an
invariant violation and aborts the pass immediately.
"""

from typing import Optional


class ReconcilerError(Exception):
    """Base exception for reconciliation errors."""
    pass


class ProcessCountsError(ReconcilerError):
    """Raised when desired process counts cannot be derived from the cluster configuration."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class InvalidProcessGroupIDError(ReconcilerError):
    """Raised when a process group ID string cannot be parsed."""

    def __init__(self, process_group_id: str):
        self.process_group_id = process_group_id
        super().__init__(f"could not parse process group ID {process_group_id!r}")


class ConflictError(ReconcilerError):
    """Raised when an optimistic status write loses against a concurrent writer."""

    def __init__(self, kind: str, key: str, resource_version: int):
        self.kind = kind
        self.key = key
        self.resource_version = resource_version
        super().__init__(
            f"conflict updating {kind} {key}: resource_version {resource_version} is stale"
        )


class ObjectNotFoundError(ReconcilerError):
    """Raised when an object another object refers to does not exist."""

    def __init__(self, kind: str, key: str):
        self.kind = kind
        self.key = key
        super().__init__(f"{kind} {key} not found")


class AdminClientError(ReconcilerError):
    """Raised by admin client implementations when a database command fails."""

    def __init__(self, message: str, command: Optional[str] = None):
        self.command = command
        super().__init__(message)


class ReconciliationError(ReconcilerError):
    """
    Raised by the requeue controller when a step stopped the pipeline
    with an error. The original error is chained as __cause__.
    """

    def __init__(self, step: str, key: str, cause: BaseException):
        self.step = step
        self.key = key
        self.cause = cause
        super().__init__(f"{step} failed for {key}: {cause}")


class MissingCapabilityError(Exception):
    """
    A required injected capability is not configured.

    Not a ReconcilerError: retrying cannot fix wiring, so this is never
    converted into a requeue signal.
    """

    def __init__(self, reconciler: str, capability: str):
        self.reconciler = reconciler
        self.capability = capability
        super().__init__(f"{reconciler} does not have a {capability} defined")


__all__ = [
    "ReconcilerError",
    "ProcessCountsError",
    "InvalidProcessGroupIDError",
    "ConflictError",
    "ObjectNotFoundError",
    "AdminClientError",
    "ReconciliationError",
    "MissingCapabilityError",
]
