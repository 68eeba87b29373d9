# ============================================================================
# ADD PROCESS GROUPS
# ============================================================================
# STATUS: Reconciler step - Identity allocation
# PURPOSE: Create process group records until every class reaches its
#          desired count
# CREATED: 12 OCT 2026
# ============================================================================
"""
Add Process Groups

For each process class (in PROCESS_CLASSES order) the step compares the
desired count with the number of live records (records not marked for
removal) and allocates the missing identities.

Allocation takes the lowest free indices, scanning upward from 1 and
skipping any index still held by a record of that class (live or marked
for removal) and any ID listed in spec.process_groups_to_remove. The result only
depends on the cluster passed in, so two passes over the same state
allocate the same IDs.

The plan is computed before anything is touched; a corrupt ID or bad
configuration leaves the cluster unchanged.
"""

from collections import defaultdict
from typing import Dict, List, Optional, Set

from core.contracts import EventKind, PROCESS_CLASSES, ProcessClass
from core.logging import ComponentType, get_logger
from core.models import EventReason, FoundationDBCluster, ProcessGroupID, ProcessGroupStatus
from reconciler.pipeline import RECOVERABLE_ERRORS, SubReconciler
from reconciler.requeue import RequeueSignal, RetryableError

logger = get_logger(__name__, ComponentType.RECONCILER)


def plan_new_process_groups(cluster: FoundationDBCluster) -> Dict[ProcessClass, List[ProcessGroupID]]:
    """
    IDs to allocate per class, in PROCESS_CLASSES order.

    Classes that need nothing are left out.

    Raises:
        ProcessCountsError: if desired counts cannot be derived
        InvalidProcessGroupIDError: if an existing record has a corrupt ID
    """
    desired_counts = cluster.get_process_counts_with_defaults().as_map()

    live_counts: Dict[ProcessClass, int] = defaultdict(int)
    used_indices: Dict[ProcessClass, Set[int]] = defaultdict(set)
    for process_group in cluster.status.process_groups:
        index = process_group.id.index
        used_indices[process_group.process_class].add(index)
        if not process_group.marked_for_removal:
            live_counts[process_group.process_class] += 1

    plan: Dict[ProcessClass, List[ProcessGroupID]] = {}
    for process_class in PROCESS_CLASSES:
        gap = desired_counts[process_class] - live_counts[process_class]
        if gap <= 0:
            continue

        new_ids: List[ProcessGroupID] = []
        index = 1
        while len(new_ids) < gap:
            candidate = cluster.get_process_group_id(process_class, index)
            if (
                index not in used_indices[process_class]
                and not cluster.process_group_is_being_removed(str(candidate))
            ):
                new_ids.append(candidate)
            index += 1
        plan[process_class] = new_ids

    return plan


class AddProcessGroups(SubReconciler):
    """Allocates process group records for missing capacity."""

    async def reconcile(self, reconciler, cluster: FoundationDBCluster) -> Optional[RequeueSignal]:
        try:
            plan = plan_new_process_groups(cluster)
        except RECOVERABLE_ERRORS as e:
            return RetryableError(e)

        if not plan:
            return None

        status = cluster.status.model_copy(deep=True)
        for new_ids in plan.values():
            status.process_groups.extend(ProcessGroupStatus.new(pg_id) for pg_id in new_ids)

        try:
            await reconciler.commit_status(cluster, status)
        except RECOVERABLE_ERRORS as e:
            return RetryableError(e)

        for process_class, new_ids in plan.items():
            logger.info(
                f"Adding {len(new_ids)} {process_class.value} process groups: "
                f"{', '.join(str(pg_id) for pg_id in new_ids)}"
            )
            await reconciler.record_event(
                cluster,
                EventKind.NORMAL,
                EventReason.ADDING_PROCESSES.value,
                f"Adding {len(new_ids)} {process_class.value} processes",
            )

        return None
