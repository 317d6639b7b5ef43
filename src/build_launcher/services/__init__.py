"""Services package."""

from .exceptions import (
    DownloadError,
    ExecutableMissingError,
    IntegrityError,
    LauncherError,
    NetworkError,
    NotInstalledError,
    OperationInProgressError,
    ParseError,
    SpawnError,
)
from .manifest_store import ManifestStore
from .operation_gate import OperationGate
from .remote_client import RemoteManifestClient

__all__ = [
    "DownloadError",
    "ExecutableMissingError",
    "IntegrityError",
    "LauncherError",
    "NetworkError",
    "NotInstalledError",
    "OperationInProgressError",
    "ParseError",
    "SpawnError",
    "ManifestStore",
    "OperationGate",
    "RemoteManifestClient",
]
