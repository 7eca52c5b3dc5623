# tem_client/tem_api/schemas.py
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Dict, Any, Literal, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator

# Enum-like Literals from the backend schema
LanguageCategory = Literal['all', 'english', 'spanish']
BulkImportMode = Literal['merge', 'replace']

LANGUAGE_CATEGORIES = ('all', 'english', 'spanish')


class RemoteOperation(str, Enum):
    """Backend functions the sync and mutation engines call."""
    BOOTSTRAP = "getAppBootstrapData"
    OPEN_SNAPSHOT = "beginShortcutsSnapshotHandler"
    FETCH_BATCH = "fetchShortcutsBatch"
    UPSERT = "upsertShortcut"
    DELETE = "deleteShortcut"
    TOGGLE_FAVORITE = "toggleFavorite"
    BULK_IMPORT = "bulkImport"


# --- Record ---
class Record(BaseModel):
    """One text-expansion shortcut. Immutable; edits go through model_copy."""
    model_config = ConfigDict(frozen=True)

    key: str
    body: str
    language: LanguageCategory = 'all'
    style: Optional[str] = None
    description: Optional[str] = None
    tags: Optional[str] = None
    application: Optional[str] = None
    category: Optional[str] = None
    subcategory: Optional[str] = None
    platform: Optional[str] = None
    usage_frequency: Optional[str] = None
    updated_at: Optional[datetime] = None
    favorite: bool = False

    @field_validator('updated_at', mode='before')
    @classmethod
    def lenient_timestamp(cls, value: Any) -> Optional[datetime]:
        # The sheet backend hands back whatever is in the cell; junk becomes "unknown"
        if value is None or value == '':
            return None
        if isinstance(value, str):
            try:
                value = datetime.fromisoformat(value.strip().replace('Z', '+00:00'))
            except ValueError:
                return None
        if isinstance(value, datetime):
            if value.tzinfo is None:
                value = value.replace(tzinfo=timezone.utc)
            return value
        return None


# --- Responses ---
class RemoteResponse(BaseModel):
    """Every backend answer carries a success flag plus payload or message."""
    model_config = ConfigDict(populate_by_name=True, extra='allow')

    ok: bool = False
    message: Optional[str] = None


class BootstrapResponse(RemoteResponse):
    pass


class SnapshotResponse(RemoteResponse):
    snapshot_token: Optional[str] = Field(default=None, alias='snapshotToken')
    total: int = 0
    records: List[Dict[str, Any]] = Field(default_factory=list)
    offset: int = 0
    has_more: bool = Field(default=False, alias='hasMore')


class BatchResponse(RemoteResponse):
    records: List[Dict[str, Any]] = Field(default_factory=list)
    offset: int = 0
    has_more: bool = Field(default=False, alias='hasMore')


class MutationResponse(RemoteResponse):
    pass


class FavoriteResponse(RemoteResponse):
    ok: Optional[bool] = None
    favorite: Optional[bool] = None


# --- Bulk import ---
class BulkImportRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    mode: BulkImportMode = 'merge'
    text: str
    default_application: Optional[str] = Field(default=None, alias='defaultApplication')
    default_language: Optional[LanguageCategory] = Field(default=None, alias='defaultLanguage')

    @field_validator('text')
    @classmethod
    def text_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Import text is empty")
        return value


class BulkImportResponse(RemoteResponse):
    inserted: int = 0
    updated: int = 0
    errors: List[str] = Field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.ok


# --- Maintenance results ---
class MaintenanceResult(BaseModel):
    """
    Shared shape of maintenance answers. Older handlers report `success`,
    newer ones `ok`; either one counts.
    """
    model_config = ConfigDict(populate_by_name=True, extra='allow')

    ok: Optional[bool] = None
    success: Optional[bool] = None
    message: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return bool(self.ok or self.success)

    def detail(self) -> str:
        removed = getattr(self, 'removed', None)
        if removed is not None:
            return f"Removed {removed} entries"
        cached = getattr(self, 'cached', None)
        if cached is not None:
            return f"Cached {cached} shortcuts"
        created = getattr(self, 'resource_created', None)
        if created:
            return "Created resource" if created is True else f"Created {created}"
        return self.message or "Done"


class CleanupResult(MaintenanceResult):
    removed: Optional[int] = None


class CacheResult(MaintenanceResult):
    cached: Optional[int] = None


class ResourceResult(MaintenanceResult):
    resource_created: Optional[Union[bool, str]] = Field(default=None, alias='resourceCreated')
    url: Optional[str] = None


class ReportResult(MaintenanceResult):
    pass

#
# End of tem_client/tem_api/schemas.py
########################################################################################################################
