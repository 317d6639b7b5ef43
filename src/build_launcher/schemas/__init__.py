"""Pydantic schemas for manifests, progress events and launcher state."""

from build_launcher.schemas.manifest import BuildSize, FileEntry, Manifest
from build_launcher.schemas.progress import (
    Operation,
    Phase,
    ProgressCallback,
    ProgressEvent,
    calc_percent,
    scale_progress,
    send_progress,
)
from build_launcher.schemas.state import DeleteResult, LaunchResult, LauncherState, ScanResult

__all__ = [
    "BuildSize",
    "FileEntry",
    "Manifest",
    "Operation",
    "Phase",
    "ProgressCallback",
    "ProgressEvent",
    "calc_percent",
    "scale_progress",
    "send_progress",
    "DeleteResult",
    "LaunchResult",
    "LauncherState",
    "ScanResult",
]
