# ============================================================================
# RESTORE RECONCILER
# ============================================================================
# STATUS: Reconciler - FoundationDBRestore pipeline
# PURPOSE: Start a restore into the destination cluster exactly once
# CREATED: 13 OCT 2026
# ============================================================================
"""
Restore Reconciler

The restore pipeline has a single step, StartRestore. Admin clients are
created for the destination cluster, which lives in the restore's
namespace, with the restore's custom parameters applied as knobs.
"""

from typing import ClassVar, Optional, Tuple

from core.contracts import EventKind, ResourceKind
from core.errors import ObjectNotFoundError
from core.logging import ComponentType, get_logger
from core.models import EventReason, FoundationDBRestore
from reconciler.pipeline import RECOVERABLE_ERRORS, PipelineReconciler, SubReconciler
from reconciler.requeue import RequeueSignal, RetryableError
from services.admin_client import AdminClient

logger = get_logger(__name__, ComponentType.RECONCILER)


class StartRestore(SubReconciler):
    """Starts the restore if the destination reports none running."""

    async def reconcile(
        self,
        reconciler: "FoundationDBRestoreReconciler",
        restore: FoundationDBRestore,
    ) -> Optional[RequeueSignal]:
        if restore.status.running:
            return None

        try:
            admin_client = await reconciler.admin_client_for_restore(restore)
            try:
                restore_status = await admin_client.get_restore_status()
                if not restore_status.strip():
                    logger.info(f"Starting restore from {restore.spec.backup_url}")
                    await admin_client.start_restore(restore.spec.backup_url, restore.spec.key_ranges)
                    await reconciler.record_event(
                        restore,
                        EventKind.NORMAL,
                        EventReason.STARTING_RESTORE.value,
                        f"Starting restore into {restore.spec.destination_cluster_name}",
                    )
                else:
                    logger.info(f"Restore already in progress: {restore_status.strip()}")
            finally:
                await admin_client.close()

            status = restore.status.model_copy(update={"running": True})
            await reconciler.commit_status(restore, status)
        except RECOVERABLE_ERRORS as e:
            return RetryableError(e)

        return None


class FoundationDBRestoreReconciler(PipelineReconciler):
    """Reconciles FoundationDBRestore objects."""

    kind: ClassVar[ResourceKind] = ResourceKind.RESTORE
    sub_reconcilers: ClassVar[Tuple[SubReconciler, ...]] = (StartRestore(),)

    def __init__(self, repository, recorder, cluster_repository, **kwargs):
        """
        Args:
            repository: Restore store
            recorder: EventRecorder
            cluster_repository: Store the destination cluster is read from
            **kwargs: Passed to PipelineReconciler
        """
        super().__init__(repository, recorder, **kwargs)
        self.cluster_repository = cluster_repository

    def validate_capabilities(self) -> None:
        self.get_database_client_provider()

    async def admin_client_for_restore(self, restore: FoundationDBRestore) -> AdminClient:
        """
        Admin client for the restore's destination cluster.

        Raises:
            ObjectNotFoundError: if the destination cluster does not exist
            MissingCapabilityError: if no DatabaseClientProvider is configured
        """
        cluster = await self.cluster_repository.get(restore.destination_key)
        if cluster is None:
            raise ObjectNotFoundError(ResourceKind.CLUSTER.value, str(restore.destination_key))

        admin_client = await self.get_admin_client(cluster)
        try:
            await admin_client.set_knobs(restore.spec.get_knobs_for_cli())
        except Exception:
            await admin_client.close()
            raise
        return admin_client


__all__ = ["StartRestore", "FoundationDBRestoreReconciler"]
