"""Comparison of manifests against each other and against the install directory."""

from pathlib import Path
from typing import Dict, List, Optional

from loguru import logger

from build_launcher import file_utils
from build_launcher.schemas import (
    Manifest,
    Operation,
    Phase,
    ProgressCallback,
    ScanResult,
    calc_percent,
    send_progress,
)
from build_launcher.utils import normalize_key


def manifest_index(manifest: Manifest) -> Dict[str, str]:
    """Map of normalized lowercase path -> content hash."""
    return {entry.key: entry.content_hash for entry in manifest.files}


def versions_match(remote: Optional[Manifest], local: Optional[Manifest]) -> bool:
    """
    True if both manifests describe the same set of (path, hash) pairs.

    List order and path case are ignored; version strings are not compared.
    """
    if remote is None or local is None:
        return False
    if len(remote.files) != len(local.files):
        return False
    return manifest_index(remote) == manifest_index(local)


class InstallScanner:
    """
    Inspects the install directory against a manifest.
    The manifest is treated as the source of truth.
    """

    def __init__(
        self,
        install_dir: Path,
        metadata_dir_name: str,
        chunk_size: int = file_utils.CHUNK_SIZE,
    ):
        self.install_dir = install_dir
        self.metadata_dir_name = metadata_dir_name
        self.chunk_size = chunk_size

    def file_path(self, rel_path: str) -> Path:
        return self.install_dir / rel_path

    async def matches(self, rel_path: str, expected_hash: str) -> bool:
        return await file_utils.file_matches(self.file_path(rel_path), expected_hash, self.chunk_size)

    def installed_files(self) -> List[str]:
        """Files under the install root, excluding the metadata directory."""
        return file_utils.list_files(self.install_dir, exclude_dir=self.metadata_dir_name)

    def find_stale_files(self, manifest: Manifest) -> List[str]:
        """Files on disk that the manifest does not reference."""
        allowed = manifest_index(manifest)
        stale = [rel for rel in self.installed_files() if normalize_key(rel) not in allowed]
        logger.debug(f"Stale files found: {len(stale)}")
        return stale

    async def quick_scan(
        self,
        manifest: Optional[Manifest],
        on_progress: Optional[ProgressCallback] = None,
        action: Operation = Operation.VERIFY,
    ) -> ScanResult:
        """
        Check every file of an already-trusted manifest, without the network.

        Stops at the first missing or mismatched file.
        """
        if manifest is None:
            return ScanResult(ok=False, reason="version-missing")

        total = manifest.total_files
        for processed, entry in enumerate(manifest.files):
            send_progress(
                on_progress,
                action=action,
                phase=Phase.PRELAUNCH,
                percent=calc_percent(processed, 0, total),
                current=processed,
                total=total,
                file=entry.path,
                status=f"Checking {entry.path}",
            )

            path = self.file_path(entry.path)
            if not path.is_file():
                logger.info(f"Quick scan: missing {entry.path}")
                return ScanResult(ok=False, reason="missing-file", file=entry.path)

            if await file_utils.compute_checksum(path, self.chunk_size) != entry.content_hash:
                logger.info(f"Quick scan: hash mismatch {entry.path}")
                return ScanResult(ok=False, reason="hash-mismatch", file=entry.path)

        send_progress(
            on_progress,
            action=action,
            phase=Phase.PRELAUNCH,
            percent=100,
            current=total,
            total=total,
            status="Pre-launch check complete",
        )
        logger.debug(f"Quick scan passed for {total} files")
        return ScanResult(ok=True)
