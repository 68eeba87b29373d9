# ============================================================================
# CAPABILITY LOADING
# ============================================================================
# STATUS: Service - Injected capability wiring
# PURPOSE: Resolve admin client provider and process manager from config
# CREATED: 10 OCT 2026
# ============================================================================
"""
Capability Loading

Capabilities are configured as import paths of the form
"package.module:attribute". The attribute may be an instance or a
zero-argument factory (class or function) returning one.

Usage:
    from services.capabilities import load_capabilities

    capabilities = load_capabilities(get_defaults().capabilities)
"""

import importlib
import inspect
from dataclasses import dataclass
from typing import Any, Optional

from core.config import CapabilityDefaults
from core.logging import get_logger, ComponentType
from services.admin_client import DatabaseClientProvider
from services.process_manager import ProcessGroupManager

logger = get_logger(__name__, ComponentType.SERVICE)


@dataclass
class Capabilities:
    """Injected capabilities shared by the reconcilers."""
    database_client_provider: Optional[DatabaseClientProvider] = None
    process_group_manager: Optional[ProcessGroupManager] = None


def load_object(path: str) -> Any:
    """
    Import "package.module:attribute" and return the attribute, calling
    it first if it is a class or function. Instances are returned as is,
    callable or not.

    Raises:
        ValueError: if the path is malformed
        ImportError / AttributeError: if the target does not exist
    """
    module_name, sep, attribute = path.partition(":")
    if not sep or not module_name or not attribute:
        raise ValueError(f"Invalid import path {path!r}, expected 'module:attribute'")

    target = getattr(importlib.import_module(module_name), attribute)
    if isinstance(target, type) or inspect.isfunction(target):
        target = target()
    return target


def _load(path: Optional[str], expected: type, label: str) -> Any:
    if not path:
        return None
    capability = load_object(path)
    if not isinstance(capability, expected):
        raise TypeError(f"{label} {path!r} is not a {expected.__name__}")
    logger.info(f"Loaded {label}: {path}")
    return capability


def load_capabilities(config: CapabilityDefaults) -> Capabilities:
    """Resolve every configured capability. Unset paths stay None."""
    return Capabilities(
        database_client_provider=_load(
            config.database_client_provider, DatabaseClientProvider, "database client provider"
        ),
        process_group_manager=_load(
            config.process_group_manager, ProcessGroupManager, "process group manager"
        ),
    )


__all__ = ["Capabilities", "load_object", "load_capabilities"]
