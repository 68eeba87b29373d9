# ============================================================================
# RECONCILER STEPS
# ============================================================================
# STATUS: Reconciler - Sub-reconciler implementations
# PURPOSE: Export the steps the pipelines are built from
# CREATED: 12 OCT 2026
# ============================================================================

from .choose_removals import ChooseRemovals, choose_process_groups_to_remove
from .add_process_groups import AddProcessGroups, plan_new_process_groups
from .exclude_processes import ExcludeProcesses
from .remove_process_groups import RemoveProcessGroups

__all__ = [
    "ChooseRemovals",
    "choose_process_groups_to_remove",
    "AddProcessGroups",
    "plan_new_process_groups",
    "ExcludeProcesses",
    "RemoveProcessGroups",
]
