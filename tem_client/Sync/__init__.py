# tem_client/Sync/__init__.py
from .error_classifier import ClassifiedError, ErrorKind, classify
from .exceptions import (
    TEMClientError, SyncCancelledError, SyncSupersededError, SyncProtocolError,
    RecordValidationError, RecordNotFoundError, MutationRevertedError
)
from .maintenance import MAINTENANCE_ACTIONS, MaintenanceAction, MaintenanceActionSpec, MaintenanceRunner
from .mutation_engine import MutationEngine, validate_record
from .record_store import RecordStore
from .retry_policy import RetryPolicy, is_retryable, with_retry
from .snapshot_engine import SnapshotSyncEngine
from .sync_session import SyncCursor, SyncSession, SyncState, format_eta

__all__ = [
    "ClassifiedError", "ErrorKind", "classify",
    "TEMClientError", "SyncCancelledError", "SyncSupersededError", "SyncProtocolError",
    "RecordValidationError", "RecordNotFoundError", "MutationRevertedError",
    "MAINTENANCE_ACTIONS", "MaintenanceAction", "MaintenanceActionSpec", "MaintenanceRunner",
    "MutationEngine", "validate_record", "RecordStore",
    "RetryPolicy", "is_retryable", "with_retry",
    "SnapshotSyncEngine", "SyncCursor", "SyncSession", "SyncState", "format_eta",
]
