# ============================================================================
# CONFIGURATION DEFAULTS
# ============================================================================
# STATUS: Core - Default configuration values
# PURPOSE: Centralized defaults for requeue timing, concurrency, resync
# CREATED: 07 OCT 2026
# ============================================================================
"""
Configuration Defaults

Provides defaults for the reconcile manager and requeue controller.
These can be overridden via environment variables.

Design:
- Immutable dataclasses for defaults
- Environment variable overrides
- Type-safe access
"""

import os
from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class ReconcilerDefaults:
    """
    Defaults for pass scheduling.

    Controls how many passes run at once, how soon a blocked pass is
    retried, and how often every object is re-reconciled.
    """
    # Concurrency (passes for different objects)
    max_concurrent_reconciles: int = 1

    # Periodic resync of every known object
    resync_period_seconds: float = 600.0

    # Delay for benign "not ready yet" stops
    pending_requeue_delay_seconds: float = 2.0
    max_requeue_delay_seconds: float = 300.0

    # Exponential per-object backoff for error stops
    backoff_base_seconds: float = 0.005
    backoff_max_seconds: float = 1000.0

    # Upper bound for a single pass
    reconcile_timeout_seconds: float = 300.0

    def clamp_delay(self, delay: Optional[float]) -> float:
        """Bound a requeue delay hint to [0, max_requeue_delay_seconds]."""
        if delay is None:
            delay = self.pending_requeue_delay_seconds
        return min(max(0.0, delay), self.max_requeue_delay_seconds)

    def backoff_for(self, failures: int) -> float:
        """Backoff before retrying an object that failed `failures` times in a row."""
        if failures <= 0:
            return 0.0
        return min(self.backoff_base_seconds * (2 ** (failures - 1)), self.backoff_max_seconds)

    @classmethod
    def from_env(cls) -> "ReconcilerDefaults":
        """Create from environment variables."""
        return cls(
            max_concurrent_reconciles=int(os.getenv("MAX_CONCURRENT_RECONCILES", 1)),
            resync_period_seconds=float(os.getenv("RESYNC_PERIOD_SEC", 600)),
            pending_requeue_delay_seconds=float(os.getenv("PENDING_REQUEUE_DELAY_SEC", 2)),
            max_requeue_delay_seconds=float(os.getenv("MAX_REQUEUE_DELAY_SEC", 300)),
            backoff_base_seconds=float(os.getenv("BACKOFF_BASE_SEC", 0.005)),
            backoff_max_seconds=float(os.getenv("BACKOFF_MAX_SEC", 1000)),
            reconcile_timeout_seconds=float(os.getenv("RECONCILE_TIMEOUT_SEC", 300)),
        )


@dataclass(frozen=True)
class CapabilityDefaults:
    """
    Import paths of injected capabilities ("package.module:attribute").

    The attribute may be an instance or a zero-argument factory.
    """
    database_client_provider: Optional[str] = None
    process_group_manager: Optional[str] = None

    @classmethod
    def from_env(cls) -> "CapabilityDefaults":
        """Create from environment variables."""
        return cls(
            database_client_provider=os.getenv("DATABASE_CLIENT_PROVIDER") or None,
            process_group_manager=os.getenv("PROCESS_GROUP_MANAGER") or None,
        )


# ============================================================================
# GLOBAL DEFAULTS INSTANCE
# ============================================================================

@dataclass
class Defaults:
    """Container for all default configurations."""
    reconciler: ReconcilerDefaults = field(default_factory=ReconcilerDefaults)
    capabilities: CapabilityDefaults = field(default_factory=CapabilityDefaults)

    @classmethod
    def from_env(cls) -> "Defaults":
        """Create all defaults from environment variables."""
        return cls(
            reconciler=ReconcilerDefaults.from_env(),
            capabilities=CapabilityDefaults.from_env(),
        )


_defaults: Optional[Defaults] = None


def get_defaults() -> Defaults:
    """Get global defaults instance."""
    global _defaults
    if _defaults is None:
        _defaults = Defaults.from_env()
    return _defaults


def reset_defaults() -> None:
    """Reset defaults (for testing)."""
    global _defaults
    _defaults = None


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "ReconcilerDefaults",
    "CapabilityDefaults",
    "Defaults",
    "get_defaults",
    "reset_defaults",
]
