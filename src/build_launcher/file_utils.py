"""Utilities for file operations."""

import asyncio
import hashlib
import os
import shutil
from pathlib import Path
from typing import List, Optional

import aiofiles
from loguru import logger

from build_launcher.utils import normalize_path

CHUNK_SIZE = 1024 * 1024


class FileError(Exception):
    """Base exception for file operations."""

    pass


class FileWriteError(FileError):
    """Raised when file operations fail."""

    pass


async def compute_checksum(path: Path, chunk_size: int = CHUNK_SIZE) -> str:
    """
    Compute SHA-256 checksum of a file on disk.

    The file is read in chunks, so memory use does not depend on file size.

    Args:
        path: File to hash
        chunk_size: Bytes read per iteration

    Returns:
        Lowercase SHA-256 hex digest

    Raises:
        FileError: If the file cannot be read
    """
    try:
        digest = hashlib.sha256()
        async with aiofiles.open(path, "rb") as f:
            while chunk := await f.read(chunk_size):
                digest.update(chunk)
        return digest.hexdigest()
    except OSError as e:
        logger.error(f"Failed to compute checksum for {path}: {e}")
        raise FileError(f"Failed to compute checksum for {path}: {e}") from e


async def file_matches(path: Path, expected_hash: str, chunk_size: int = CHUNK_SIZE) -> bool:
    """True if `path` is a regular file whose checksum equals `expected_hash`."""
    if not path.is_file():
        return False
    return await compute_checksum(path, chunk_size) == expected_hash.lower()


async def ensure_directory(path: Path) -> None:
    """
    Ensure directory exists, creating if necessary.

    Args:
        path: Directory path to ensure

    Raises:
        FileWriteError: If directory creation fails
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error(f"Failed to create directory: {path}: {e}")
        raise FileWriteError(f"Failed to create directory {path}: {e}") from e


async def write_file_atomic(path: Path, content: str) -> None:
    """
    Write file with atomic operation using temporary file.

    Args:
        path: Target file path
        content: Content to write

    Raises:
        FileWriteError: If write operation fails
    """
    temp_path = path.with_suffix(path.suffix + ".tmp")
    try:
        temp_path.write_text(content, encoding="utf-8")
        os.replace(temp_path, path)
    except OSError as e:
        temp_path.unlink(missing_ok=True)
        logger.error(f"Failed to write file: {path}: {e}")
        raise FileWriteError(f"Failed to write file {path}: {e}") from e


async def delete_file(path: Path) -> None:
    """Delete file if it exists."""
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.error(f"Failed to delete file {path}: {e}")
        raise FileWriteError(f"Failed to delete file {path}: {e}") from e


async def remove_tree(path: Path) -> None:
    """Recursively remove a directory if it exists."""
    if not path.exists():
        return
    try:
        await asyncio.to_thread(shutil.rmtree, path)
    except OSError as e:
        logger.error(f"Failed to remove directory {path}: {e}")
        raise FileWriteError(f"Failed to remove directory {path}: {e}") from e


def list_files(root: Path, exclude_dir: Optional[str] = None) -> List[str]:
    """
    List files under `root` as normalized relative paths.

    Args:
        root: Directory to walk
        exclude_dir: Name of a top-level subdirectory to skip, compared case-insensitively

    Returns:
        Forward-slash relative paths, sorted
    """
    if not root.exists():
        return []

    excluded = exclude_dir.lower() if exclude_dir else None
    files = []
    for dirpath, dirnames, filenames in os.walk(root):
        current = Path(dirpath)
        if current == root and excluded:
            dirnames[:] = [d for d in dirnames if d.lower() != excluded]
        for name in filenames:
            rel = (current / name).relative_to(root)
            files.append(normalize_path(rel.as_posix()))
    return sorted(files)


def remove_empty_dirs(root: Path) -> List[Path]:
    """Remove empty directories below `root` (never `root` itself), bottom-up."""
    removed: List[Path] = []
    if not root.exists():
        return removed
    for dirpath, _, _ in os.walk(root, topdown=False):
        p = Path(dirpath)
        if p == root:
            continue
        if not any(p.iterdir()):
            try:
                p.rmdir()
                removed.append(p)
            except OSError as e:
                logger.debug(f"Could not remove empty directory {p}: {e}")
    return removed
