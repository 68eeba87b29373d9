# ============================================================================
# EXCLUDE PROCESSES
# ============================================================================
# STATUS: Reconciler step - Data evacuation
# PURPOSE: Exclude marked process groups and confirm they hold no data
# CREATED: 12 OCT 2026
# ============================================================================
"""
Exclude Processes

For every group marked for removal but not yet excluded:
- groups without addresses never joined the database and are marked
  excluded directly
- the addresses of the others are excluded through the admin client,
  and groups whose addresses all report safe to remove are marked
  excluded

Groups still holding data stop the pipeline with a pending message.
"""

from typing import List, Optional, Set

from core.contracts import EventKind
from core.logging import ComponentType, get_logger
from core.models import EventReason, FoundationDBCluster
from reconciler.pipeline import RECOVERABLE_ERRORS, SubReconciler
from reconciler.requeue import PendingMessage, RequeueSignal, RetryableError

logger = get_logger(__name__, ComponentType.RECONCILER)


class ExcludeProcesses(SubReconciler):
    """Excludes process groups that are marked for removal."""

    async def reconcile(self, reconciler, cluster: FoundationDBCluster) -> Optional[RequeueSignal]:
        pending = [
            pg for pg in cluster.status.process_groups
            if pg.marked_for_removal and not pg.excluded
        ]
        if not pending:
            return None

        addresses = sorted({address for pg in pending for address in pg.addresses})
        not_safe: Set[str] = set()
        if addresses:
            try:
                admin_client = await reconciler.get_admin_client(cluster)
                try:
                    logger.info(f"Excluding processes: {', '.join(addresses)}")
                    await admin_client.exclude_processes(addresses)
                    not_safe = set(await admin_client.can_safely_remove(addresses))
                finally:
                    await admin_client.close()
            except RECOVERABLE_ERRORS as e:
                return RetryableError(e)

        excluded: List[str] = []
        waiting: List[str] = []
        for process_group in pending:
            if not_safe.intersection(process_group.addresses):
                waiting.append(process_group.process_group_id)
            else:
                excluded.append(process_group.process_group_id)

        if excluded:
            status = cluster.status.model_copy(deep=True)
            for process_group in status.process_groups:
                if process_group.process_group_id in excluded:
                    process_group.mark_excluded()

            try:
                await reconciler.commit_status(cluster, status)
            except RECOVERABLE_ERRORS as e:
                return RetryableError(e)

            await reconciler.record_event(
                cluster,
                EventKind.NORMAL,
                EventReason.EXCLUDING_PROCESSES.value,
                f"Excluded {len(excluded)} process groups: {', '.join(excluded)}",
            )

        if waiting:
            logger.info(f"Process groups still holding data: {', '.join(waiting)}")
            return PendingMessage(f"Waiting for exclusion of {len(waiting)} process groups")

        return None
