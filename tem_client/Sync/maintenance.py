# tem_client/Sync/maintenance.py
# Description: Closed set of backend maintenance actions, their result shapes, and the runner that invokes them.
#
# Imports
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Type
#
# 3rd-Party Imports
from loguru import logger
from pydantic import ValidationError
#
# Local Imports
from ..notifications import NotificationCenter, Severity
from ..tem_api.exceptions import RemoteRejectedError
from ..tem_api.gateway import RemoteCallGateway
from ..tem_api.schemas import (BulkImportRequest, BulkImportResponse, CacheResult, CleanupResult,
                               MaintenanceResult, RemoteOperation, ReportResult, ResourceResult)
from .error_classifier import ErrorKind, classify
from .exceptions import SyncProtocolError
from .retry_policy import RetryPolicy
from .snapshot_engine import SnapshotSyncEngine
from .sync_session import SyncSession, SyncState
#
########################################################################################################################
#
# Functions:

class MaintenanceAction(str, Enum):
    CLEANUP_DUPLICATE_SHORTCUTS = "cleanupDuplicateShortcuts"
    CLEANUP_DUPLICATE_FAVORITES = "cleanupDuplicateFavorites"
    CLEANUP_ALL_DUPLICATES = "cleanupAllDuplicates"
    REMOVE_EMPTY_ENTRIES = "removeEmptyEntries"
    FIND_EMPTY_ENTRIES = "findEmptyEntries"
    GENERATE_CLEANUP_REPORT = "generateCleanupReport"
    WARM_CACHE = "warmShortcutsCache"
    CACHE_STATISTICS = "showCacheStatistics"
    TEST_CACHE_PERFORMANCE = "testCachePerformance"
    INVALIDATE_CACHE = "invalidateShortcutsCache"
    REBUILD_CACHE = "rebuildShortcutsCache"
    EXPORT_ALL = "exportAllTEMData"
    BACKUP_TO_DRIVE = "backupTEMToDrive"
    CREATE_PROJECT_FOLDER = "MASTER_createProjectFolder"
    RESTORE_FROM_BACKUP = "restoreFromBackup"
    IMPORT_DATA = "importTEMData"
    SHOW_STATISTICS = "showTEMStatistics"


@dataclass(frozen=True)
class MaintenanceActionSpec:
    label: str
    # Actions that change the backend data set are followed by a full resync
    resyncs: bool
    result_model: Type[MaintenanceResult]


MAINTENANCE_ACTIONS: Dict[MaintenanceAction, MaintenanceActionSpec] = {
    # Cleanup
    MaintenanceAction.CLEANUP_DUPLICATE_SHORTCUTS: MaintenanceActionSpec("Removing duplicate shortcuts", True, CleanupResult),
    MaintenanceAction.CLEANUP_DUPLICATE_FAVORITES: MaintenanceActionSpec("Removing duplicate favorites", True, CleanupResult),
    MaintenanceAction.CLEANUP_ALL_DUPLICATES: MaintenanceActionSpec("Removing all duplicates", True, CleanupResult),
    MaintenanceAction.REMOVE_EMPTY_ENTRIES: MaintenanceActionSpec("Removing empty entries", True, CleanupResult),
    # Reports
    MaintenanceAction.FIND_EMPTY_ENTRIES: MaintenanceActionSpec("Finding empty entries", False, ReportResult),
    MaintenanceAction.GENERATE_CLEANUP_REPORT: MaintenanceActionSpec("Generating cleanup report", False, ReportResult),
    MaintenanceAction.SHOW_STATISTICS: MaintenanceActionSpec("Collecting statistics", False, ReportResult),
    # Cache
    MaintenanceAction.WARM_CACHE: MaintenanceActionSpec("Warming cache", False, CacheResult),
    MaintenanceAction.CACHE_STATISTICS: MaintenanceActionSpec("Reading cache statistics", False, CacheResult),
    MaintenanceAction.TEST_CACHE_PERFORMANCE: MaintenanceActionSpec("Testing cache performance", False, CacheResult),
    MaintenanceAction.INVALIDATE_CACHE: MaintenanceActionSpec("Invalidating cache", False, CacheResult),
    MaintenanceAction.REBUILD_CACHE: MaintenanceActionSpec("Rebuilding cache", True, CacheResult),
    # Resources
    MaintenanceAction.EXPORT_ALL: MaintenanceActionSpec("Exporting all data", False, ResourceResult),
    MaintenanceAction.BACKUP_TO_DRIVE: MaintenanceActionSpec("Backing up to Drive", False, ResourceResult),
    MaintenanceAction.CREATE_PROJECT_FOLDER: MaintenanceActionSpec("Creating project folder", False, ResourceResult),
    # Data replacement
    MaintenanceAction.RESTORE_FROM_BACKUP: MaintenanceActionSpec("Restoring from backup", True, ResourceResult),
    MaintenanceAction.IMPORT_DATA: MaintenanceActionSpec("Importing data", True, ResourceResult),
}


class MaintenanceRunner:
    def __init__(self,
                 gateway: RemoteCallGateway,
                 session: SyncSession,
                 sync_engine: SnapshotSyncEngine,
                 retry_policy: Optional[RetryPolicy] = None,
                 notifier: Optional[NotificationCenter] = None):
        self.gateway = gateway
        self.session = session
        self.sync_engine = sync_engine
        self.retry_policy = retry_policy or RetryPolicy()
        self.notifier = notifier

    async def run(self, action: MaintenanceAction, label: Optional[str] = None) -> Optional[MaintenanceResult]:
        """
        Runs one maintenance action on the backend.

        Returns the typed result on success and None on failure. Failures are
        reported through a notification, never raised.
        """
        action = MaintenanceAction(action)
        spec = MAINTENANCE_ACTIONS[action]
        label = label or spec.label
        previous_view = self._busy(f"{label}...")
        logger.info(f"Maintenance '{action.value}' started")

        try:
            result = await self._call(action.value, [], spec.result_model)
        except Exception as e:
            self._report_failure(label, e)
            self._restore(previous_view)
            return None

        self._notify(f"{label}: {result.detail()}", "success")
        logger.info(f"Maintenance '{action.value}' finished: {result.detail()}")
        if spec.resyncs:
            logger.info(f"'{action.value}' changed backend data; starting full resync")
            await self.sync_engine.start()
        else:
            self._restore(previous_view)
        return result

    async def bulk_import(self, request: BulkImportRequest) -> Optional[BulkImportResponse]:
        """Sends pasted text to bulkImport in merge or replace mode."""
        previous_view = self._busy(f"Importing ({request.mode})...")
        payload = request.model_dump(by_alias=True, exclude_none=True)

        try:
            response = await self._call(RemoteOperation.BULK_IMPORT.value, [payload], BulkImportResponse)
        except Exception as e:
            self._report_failure("Import", e)
            self._restore(previous_view)
            return None

        summary = f"Imported: {response.inserted} new, {response.updated} updated"
        if response.errors:
            summary += f", {len(response.errors)} rejected"
            for line in response.errors:
                logger.warning(f"Bulk import rejected: {line}")
        self._notify(summary, "warning" if response.errors else "success")

        if response.inserted or response.updated or request.mode == 'replace':
            await self.sync_engine.start()
        else:
            self._restore(previous_view)
        return response

    async def _call(self, operation: str, args: List[Any], model):
        async def attempt():
            raw = await self.gateway.invoke(operation, args)
            result = self._parse(operation, raw, model)
            if not result.succeeded:
                raise RemoteRejectedError(operation, result.message)
            return result

        return await self.retry_policy.run(attempt, description=operation)

    def _busy(self, status: str) -> Tuple[bool, str]:
        previous_view = (self.session.loading, self.session.status)
        self.session.set_busy(status)
        return previous_view

    def _restore(self, previous_view: Tuple[bool, str]) -> None:
        # A sync paused in Errored keeps its error view and retry / cancel choices
        loading, status = previous_view
        if loading and self.session.state == SyncState.ERRORED:
            self.session.set_busy(status)
        else:
            self.session.set_idle()

    @staticmethod
    def _parse(operation: str, raw: Any, model):
        try:
            return model.model_validate(raw if raw is not None else {})
        except ValidationError as e:
            raise SyncProtocolError(f"Malformed '{operation}' response: {e}") from e

    def _report_failure(self, label: str, error: Exception) -> None:
        classified = classify(error)
        if classified.kind == ErrorKind.CANCELLED:
            self._notify(f"{label} cancelled", "information")
            return
        logger.opt(exception=error).error(f"{label} failed: {classified}")
        self._notify(f"{label} failed: {classified.description}", "error")

    def _notify(self, message: str, severity: Severity) -> None:
        if self.notifier is not None:
            self.notifier.notify(message, severity=severity)

#
# End of tem_client/Sync/maintenance.py
########################################################################################################################
