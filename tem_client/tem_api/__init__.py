# tem_client/tem_api/__init__.py
from .client import RemoteBridge, HttpScriptBridge
from .gateway import RemoteCallGateway, DEFAULT_TIMEOUT_SECONDS
from .exceptions import (
    TEMAPIError, UnavailableError, APIConnectionError, RemoteTimeoutError,
    APIResponseError, RemoteScriptError, RemoteRejectedError
)
from .schemas import (
    Record, RemoteOperation, LanguageCategory, BulkImportMode, LANGUAGE_CATEGORIES,
    RemoteResponse, BootstrapResponse, SnapshotResponse, BatchResponse,
    MutationResponse, FavoriteResponse, BulkImportRequest, BulkImportResponse,
    MaintenanceResult, CleanupResult, CacheResult, ResourceResult, ReportResult,
)
from .utils import record_from_remote, records_from_remote, record_to_payload, normalize_language

__all__ = [
    "RemoteBridge", "HttpScriptBridge", "RemoteCallGateway", "DEFAULT_TIMEOUT_SECONDS",
    "TEMAPIError", "UnavailableError", "APIConnectionError", "RemoteTimeoutError",
    "APIResponseError", "RemoteScriptError", "RemoteRejectedError",
    "Record", "RemoteOperation", "LanguageCategory", "BulkImportMode", "LANGUAGE_CATEGORIES",
    "RemoteResponse", "BootstrapResponse", "SnapshotResponse", "BatchResponse",
    "MutationResponse", "FavoriteResponse", "BulkImportRequest", "BulkImportResponse",
    "MaintenanceResult", "CleanupResult", "CacheResult", "ResourceResult", "ReportResult",
    "record_from_remote", "records_from_remote", "record_to_payload", "normalize_language",
]
