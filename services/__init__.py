# ============================================================================
# SERVICES MODULE
# ============================================================================
# STATUS: Service layer
# PURPOSE: Event recording and external capability interfaces
# CREATED: 10 OCT 2026
# ============================================================================
"""
Services Module

- EventService: records reconcile events (fire-and-forget)
- AdminClient / DatabaseClientProvider: database administration boundary
- ProcessGroupManager: physical process lifecycle boundary
- load_capabilities: resolves configured implementations
"""

from .event_service import EventRecorder, EventService
from .admin_client import AdminClient, DatabaseClientProvider
from .process_manager import ProcessGroupManager
from .capabilities import Capabilities, load_capabilities, load_object

__all__ = [
    "EventRecorder",
    "EventService",
    "AdminClient",
    "DatabaseClientProvider",
    "ProcessGroupManager",
    "Capabilities",
    "load_capabilities",
    "load_object",
]
