from .scanner import InstallScanner, manifest_index, versions_match
from .sync_service import SyncService
from .utils import SyncReport

__all__ = ["SyncService", "InstallScanner", "SyncReport", "manifest_index", "versions_match"]
