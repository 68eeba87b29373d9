# ============================================================================
# REMOVE PROCESS GROUPS
# ============================================================================
# STATUS: Reconciler step - Teardown
# PURPOSE: Tear down excluded process groups and drop their records
# CREATED: 12 OCT 2026
# ============================================================================
"""
Remove Process Groups

Excluded process groups are torn down through the process group
manager. Once a group is confirmed gone its record is dropped from the
status list and its addresses are re-included so a future process on
the same address can take data. The index becomes free for allocation
again unless the ID is still listed in spec.process_groups_to_remove.
"""

from typing import List, Optional

from core.contracts import EventKind
from core.logging import ComponentType, get_logger
from core.models import EventReason, FoundationDBCluster, ProcessGroupStatus
from reconciler.pipeline import RECOVERABLE_ERRORS, SubReconciler
from reconciler.requeue import PendingMessage, RequeueSignal, RetryableError

logger = get_logger(__name__, ComponentType.RECONCILER)


class RemoveProcessGroups(SubReconciler):
    """Removes excluded process groups."""

    async def reconcile(self, reconciler, cluster: FoundationDBCluster) -> Optional[RequeueSignal]:
        candidates = [
            pg for pg in cluster.status.process_groups
            if pg.marked_for_removal and pg.excluded
        ]
        if not candidates:
            return None

        process_group_manager = reconciler.get_process_group_manager()

        removed: List[ProcessGroupStatus] = []
        waiting: List[str] = []
        try:
            for process_group in candidates:
                await process_group_manager.remove_process_group(cluster, process_group)
                if await process_group_manager.process_group_is_removed(cluster, process_group):
                    removed.append(process_group)
                else:
                    waiting.append(process_group.process_group_id)

            if removed:
                addresses = sorted({address for pg in removed for address in pg.addresses})
                if addresses:
                    admin_client = await reconciler.get_admin_client(cluster)
                    try:
                        await admin_client.include_processes(addresses)
                    finally:
                        await admin_client.close()

                removed_ids = {pg.process_group_id for pg in removed}
                status = cluster.status.model_copy(deep=True)
                status.process_groups = [
                    pg for pg in status.process_groups if pg.process_group_id not in removed_ids
                ]
                await reconciler.commit_status(cluster, status)
        except RECOVERABLE_ERRORS as e:
            return RetryableError(e)

        if removed:
            removed_names = ", ".join(pg.process_group_id for pg in removed)
            logger.info(f"Removed process groups: {removed_names}")
            await reconciler.record_event(
                cluster,
                EventKind.NORMAL,
                EventReason.REMOVED_PROCESSES.value,
                f"Removed {len(removed)} process groups: {removed_names}",
            )

        if waiting:
            return PendingMessage(f"Waiting for {len(waiting)} process groups to be removed")

        return None
