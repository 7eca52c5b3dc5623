# tem_client/app.py
# Description: TEMClient, the single object a UI or script holds: store, session, notifier and engines wired together.
#
# Imports
from typing import Dict, Optional, Tuple, Union
#
# 3rd-Party Imports
from loguru import logger
#
# Local Imports
from .config import ClientSettings, load_client_settings
from .notifications import NotificationCenter
from .tem_api.client import HttpScriptBridge, RemoteBridge
from .tem_api.gateway import RemoteCallGateway
from .tem_api.schemas import BulkImportRequest, BulkImportResponse, MaintenanceResult, Record
from .Sync.maintenance import MaintenanceAction, MaintenanceRunner
from .Sync.mutation_engine import ConfirmDelete, MutationEngine
from .Sync.record_store import RecordStore
from .Sync.retry_policy import RetryPolicy
from .Sync.snapshot_engine import SnapshotSyncEngine
from .Sync.sync_session import SyncSession
#
########################################################################################################################
#
# Functions:

class TEMClient:
    """
    Facade over the sync, mutation and maintenance engines.

    All engines share one RecordStore, one SyncSession and one
    NotificationCenter, and run on the caller's event loop.
    """

    def __init__(self,
                 settings: Optional[ClientSettings] = None,
                 bridge: Optional[RemoteBridge] = None,
                 notifier: Optional[NotificationCenter] = None,
                 confirm_delete: Optional[ConfirmDelete] = None,
                 retry_policy: Optional[RetryPolicy] = None):
        self.settings = settings or ClientSettings()
        self.notifier = notifier or NotificationCenter(default_timeout=self.settings.notifications.timeout_seconds)
        self.gateway = RemoteCallGateway(bridge, default_timeout=self.settings.gateway.timeout_seconds)
        self.store = RecordStore(last_write_wins=self.settings.sync.last_write_wins)
        self.session = SyncSession()
        self.retry_policy = retry_policy or RetryPolicy.from_settings(self.settings.retry)

        self.sync_engine = SnapshotSyncEngine(
            self.gateway, self.store, self.session,
            retry_policy=self.retry_policy,
            batch_size=self.settings.sync.batch_size,
            notifier=self.notifier,
        )
        self.mutations = MutationEngine(
            self.gateway, self.store,
            settings=self.settings.mutations,
            limits=self.settings.limits,
            retry_policy=self.retry_policy,
            notifier=self.notifier,
            confirm_delete=confirm_delete,
        )
        self.maintenance = MaintenanceRunner(
            self.gateway, self.session, self.sync_engine,
            retry_policy=self.retry_policy,
            notifier=self.notifier,
        )

    @classmethod
    def from_settings(cls, settings: Optional[ClientSettings] = None, **kwargs) -> "TEMClient":
        """Builds an HTTP bridge when an endpoint is configured; otherwise every call is unavailable."""
        settings = settings or load_client_settings()
        bridge = kwargs.pop("bridge", None)
        if bridge is None and settings.gateway.endpoint:
            bridge = HttpScriptBridge(
                settings.gateway.endpoint,
                token=settings.gateway.token,
                timeout=settings.gateway.timeout_seconds,
                dev_mode=settings.gateway.dev_mode,
            )
        elif bridge is None:
            logger.warning("No gateway endpoint configured; remote calls will fail as unavailable")
        return cls(settings, bridge=bridge, **kwargs)

    async def __aenter__(self) -> "TEMClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # --- Sync ---

    async def sync(self) -> SyncSession:
        return await self.sync_engine.start()

    async def retry_sync(self) -> SyncSession:
        return await self.sync_engine.retry()

    def cancel_sync(self) -> bool:
        return self.sync_engine.cancel()

    # --- Mutations ---

    async def upsert(self, record: Record) -> Record:
        return await self.mutations.upsert(record)

    async def delete(self, key: str) -> bool:
        return await self.mutations.delete(key)

    async def toggle_favorite(self, key: str) -> Record:
        return await self.mutations.toggle_favorite(key)

    # --- Maintenance ---

    async def run_maintenance(self, action: Union[MaintenanceAction, str],
                              label: Optional[str] = None) -> Optional[MaintenanceResult]:
        return await self.maintenance.run(MaintenanceAction(action), label)

    async def bulk_import(self, request: BulkImportRequest) -> Optional[BulkImportResponse]:
        return await self.maintenance.bulk_import(request)

    # --- Reads ---

    @property
    def records(self) -> Tuple[Record, ...]:
        return self.store.records

    def language_counts(self) -> Dict[str, int]:
        return self.store.language_counts()

    async def close(self) -> None:
        await self.mutations.drain()
        await self.gateway.close()
        logger.debug("TEMClient closed")

#
# End of tem_client/app.py
########################################################################################################################
