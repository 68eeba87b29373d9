# ============================================================================
# CONFIGURATION MODULE
# ============================================================================
# STATUS: Core - Configuration and defaults
# PURPOSE: Centralized configuration management
# CREATED: 07 OCT 2026
# ============================================================================
"""
Configuration Module

Provides centralized configuration and defaults for the reconciler.
"""

from core.config.defaults import (
    ReconcilerDefaults,
    CapabilityDefaults,
    Defaults,
    get_defaults,
    reset_defaults,
)

__all__ = [
    "ReconcilerDefaults",
    "CapabilityDefaults",
    "Defaults",
    "get_defaults",
    "reset_defaults",
]
