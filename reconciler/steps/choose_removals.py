# ============================================================================
# CHOOSE REMOVALS
# ============================================================================
# STATUS: Reconciler step - Removal selection
# PURPOSE: Mark process groups for removal (requested or surplus)
# CREATED: 12 OCT 2026
# ============================================================================
"""
Choose Removals

Marks process groups for removal when either:
- their ID is listed in spec.process_groups_to_remove, or
- their class has more live groups than desired; the surplus with the
  highest indices is chosen so the low, stable indices are kept.

Runs before allocation, so a group replaced on request is marked first
and its replacement is allocated in the same pass.
"""

from collections import defaultdict
from typing import Dict, List, Optional

from core.contracts import EventKind, ProcessClass
from core.logging import ComponentType, get_logger
from core.models import EventReason, FoundationDBCluster, ProcessGroupStatus
from reconciler.pipeline import RECOVERABLE_ERRORS, SubReconciler
from reconciler.requeue import RequeueSignal, RetryableError

logger = get_logger(__name__, ComponentType.RECONCILER)


def choose_process_groups_to_remove(cluster: FoundationDBCluster) -> List[str]:
    """
    IDs of live process groups that should be marked for removal.

    Raises:
        ProcessCountsError: if desired counts cannot be derived
        InvalidProcessGroupIDError: if a surplus candidate has a corrupt ID
    """
    desired_counts = cluster.get_process_counts_with_defaults().as_map()
    requested = set(cluster.spec.process_groups_to_remove)

    chosen: List[str] = []
    remaining: Dict[ProcessClass, List[ProcessGroupStatus]] = defaultdict(list)
    for process_group in cluster.status.process_groups:
        if process_group.marked_for_removal:
            continue
        if process_group.process_group_id in requested:
            chosen.append(process_group.process_group_id)
        else:
            remaining[process_group.process_class].append(process_group)

    for process_class, live in remaining.items():
        surplus = len(live) - desired_counts[process_class]
        if surplus <= 0:
            continue
        by_index = sorted(live, key=lambda pg: pg.id.index, reverse=True)
        chosen.extend(pg.process_group_id for pg in by_index[:surplus])

    return chosen


class ChooseRemovals(SubReconciler):
    """Marks requested and surplus process groups for removal."""

    async def reconcile(self, reconciler, cluster: FoundationDBCluster) -> Optional[RequeueSignal]:
        try:
            to_remove = choose_process_groups_to_remove(cluster)
        except RECOVERABLE_ERRORS as e:
            return RetryableError(e)

        if not to_remove:
            return None

        status = cluster.status.model_copy(deep=True)
        marked = set(to_remove)
        for process_group in status.process_groups:
            if process_group.process_group_id in marked:
                process_group.mark_for_removal()

        try:
            await reconciler.commit_status(cluster, status)
        except RECOVERABLE_ERRORS as e:
            return RetryableError(e)

        logger.info(f"Marked process groups for removal: {', '.join(to_remove)}")
        await reconciler.record_event(
            cluster,
            EventKind.NORMAL,
            EventReason.REMOVING_PROCESSES.value,
            f"Removing {len(to_remove)} process groups: {', '.join(to_remove)}",
        )
        return None
