# tem_client/__init__.py
from .app import TEMClient
from .config import ClientSettings, load_client_settings, load_settings
from .notifications import Notification, NotificationCenter
from .tem_api.schemas import BulkImportRequest, Record

__version__ = "0.1.0"

__all__ = [
    "TEMClient", "ClientSettings", "load_client_settings", "load_settings",
    "Notification", "NotificationCenter", "BulkImportRequest", "Record",
]
