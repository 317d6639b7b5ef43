"""Result and state models returned by launcher operations."""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel

from build_launcher.schemas.manifest import Manifest
from build_launcher.schemas.progress import Operation


class ScanResult(BaseModel):
    """Outcome of a pre-launch quick scan. Stops at the first bad file."""

    ok: bool
    reason: Optional[str] = None
    file: Optional[str] = None


class LaunchResult(BaseModel):
    launched: bool


class DeleteResult(BaseModel):
    deleted: bool


class LauncherState(BaseModel):
    """Best currently-known facts about the installation.

    Reading state never waits for a running operation, so `operation` may be
    set while the other fields describe the tree mid-change.
    """

    installed: bool
    executable_exists: bool
    build_size_label: str
    remote_error: Optional[str] = None
    operation: Optional[Operation] = None
    install_dir: Path
    manifest_file: Path
    local_version: Optional[Manifest] = None
    remote_version: Optional[Manifest] = None
