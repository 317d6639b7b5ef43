"""Manifest models.

A manifest is the authoritative description of one published version of the
build: every file it contains, keyed by relative path, with the SHA-256 hash
and size the file must have on disk.

Wire format (remote and local manifests share it):

    {
      "version": "1.2.0",
      "files": [{"file": "bin/app.exe", "hash": "<64 hex>", "size": 1000}],
      "build_size": {"bytes": 6000, "kb": 5.86, "mb": 0.01, "gb": 0.0}
    }
"""

import re
from typing import Annotated, Dict, List, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator

from build_launcher.utils import normalize_key, normalize_path


# Reserved top-level directory of the install root holding the local manifest
METADATA_DIR_NAME = "version"

SHA256_PATTERN = re.compile(r"^[0-9a-fA-F]{64}$")
DRIVE_PATTERN = re.compile(r"^[A-Za-z]:")


def validate_path_format(path: str) -> str:
    """
    Validate a manifest path and normalize separators.

    The path must name a file inside the install directory, outside the
    reserved metadata directory.
    """
    if not path or not isinstance(path, str):
        raise ValueError("Path must be a non-empty string")
    if DRIVE_PATTERN.match(path):
        raise ValueError(f"Path must be relative to the install directory: {path}")
    normalized = normalize_path(path)
    if not normalized:
        raise ValueError("Path must be a non-empty string")
    parts = normalized.split("/")
    if any(part == ".." for part in parts):
        raise ValueError(f"Path must stay inside the install directory: {path}")
    if parts[0].lower() == METADATA_DIR_NAME:
        raise ValueError(f"Path is inside the reserved {METADATA_DIR_NAME}/ directory: {path}")
    return normalized


def validate_hash_format(value: str) -> str:
    """SHA-256 hex digest, stored lowercase."""
    if not isinstance(value, str) or not SHA256_PATTERN.match(value.strip()):
        raise ValueError(f"Hash must be a 64 character SHA-256 hex digest: {value!r}")
    return value.strip().lower()


def validate_size(value) -> int:
    """Missing or null sizes count as unknown (0)."""
    if value is None:
        return 0
    return int(value)


ManifestPath = Annotated[str, BeforeValidator(validate_path_format)]
ContentHash = Annotated[str, BeforeValidator(validate_hash_format)]
SizeBytes = Annotated[int, BeforeValidator(validate_size)]


class FileEntry(BaseModel):
    """One file of the build."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    path: ManifestPath = Field(alias="file")
    content_hash: ContentHash = Field(alias="hash")
    size_bytes: SizeBytes = Field(default=0, alias="size", ge=0)

    @property
    def key(self) -> str:
        return normalize_key(self.path)


class BuildSize(BaseModel):
    """Aggregate size of the build in several units, as published."""

    bytes: Optional[int] = None
    kb: Optional[float] = None
    mb: Optional[float] = None
    gb: Optional[float] = None

    def label(self) -> str:
        """Human readable size, largest unit that is at least 1."""
        if self.gb is not None and self.gb >= 1:
            return f"{self.gb:.2f} GB"
        if self.mb is not None and self.mb >= 1:
            return f"{self.mb:.2f} MB"
        if self.kb is not None and self.kb >= 1:
            return f"{self.kb:.0f} KB"
        if self.bytes is not None:
            return f"{self.bytes} bytes"
        return "-"


class Manifest(BaseModel):
    """One version of the build."""

    model_config = ConfigDict(populate_by_name=True)

    version: str
    files: List[FileEntry]
    build_size: Optional[BuildSize] = None

    @model_validator(mode="after")
    def check_unique_paths(self) -> "Manifest":
        seen: Dict[str, str] = {}
        for entry in self.files:
            if entry.key in seen:
                raise ValueError(
                    f"Duplicate path in manifest: {entry.path} (conflicts with {seen[entry.key]})"
                )
            seen[entry.key] = entry.path
        return self

    @property
    def total_files(self) -> int:
        return len(self.files)

    def to_wire(self) -> dict:
        """Serialize in the published JSON shape."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
