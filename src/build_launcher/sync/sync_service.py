"""Service for bringing the install directory in line with a manifest."""

from pathlib import Path
from typing import List, Optional

from loguru import logger

from build_launcher import file_utils
from build_launcher.schemas import (
    FileEntry,
    Manifest,
    Operation,
    Phase,
    ProgressCallback,
    calc_percent,
    send_progress,
)
from build_launcher.services.exceptions import IntegrityError
from build_launcher.services.manifest_store import ManifestStore
from build_launcher.services.remote_client import RemoteManifestClient
from build_launcher.sync.scanner import InstallScanner
from build_launcher.sync.utils import SyncReport


class _FileProgress:
    """Forwards per-file download ratios as overall progress events.

    The ratio restarts at 0 on a retried attempt; percent reported for the
    file never goes backwards.
    """

    def __init__(
        self,
        on_progress: Optional[ProgressCallback],
        action: Operation,
        phase: Phase,
        entry: FileEntry,
        processed: int,
        total: int,
        label: str,
    ):
        self.on_progress = on_progress
        self.action = action
        self.phase = phase
        self.entry = entry
        self.processed = processed
        self.total = total
        self.label = label
        self.ratio = 0.0

    def __call__(self, ratio: float) -> None:
        self.ratio = max(self.ratio, ratio)
        send_progress(
            self.on_progress,
            action=self.action,
            phase=self.phase,
            percent=calc_percent(self.processed, self.ratio, self.total),
            current=self.processed + self.ratio,
            total=self.total,
            file=self.entry.path,
            status=f"{self.label} {self.entry.path} ({round(self.ratio * 100)}%)",
        )


class SyncService:
    """
    Syncs the install directory with a target manifest.

    Files are handled one at a time in manifest order. The local manifest is
    committed only after every file is verified and stale files are gone, so
    an interrupted sync can simply be run again: files already correct are
    re-hashed and skipped, only what is still wrong is downloaded.
    """

    def __init__(
        self,
        scanner: InstallScanner,
        remote_client: RemoteManifestClient,
        manifest_store: ManifestStore,
        max_download_attempts: int = 3,
    ):
        self.scanner = scanner
        self.remote_client = remote_client
        self.manifest_store = manifest_store
        self.max_download_attempts = max_download_attempts

    @property
    def install_dir(self) -> Path:
        return self.scanner.install_dir

    async def ensure_skeleton(self) -> None:
        """Create the install root and its metadata directory."""
        await file_utils.ensure_directory(self.install_dir)
        await file_utils.ensure_directory(self.manifest_store.manifest_path.parent)

    async def download_and_verify(self, entry: FileEntry, on_ratio=None) -> Path:
        """
        Download `entry` and check its hash, retrying on mismatch.

        Raises:
            IntegrityError: If the hash still differs after the last attempt
            NetworkError: If a download fails outright (not retried)
        """
        target = self.scanner.file_path(entry.path)
        for attempt in range(1, self.max_download_attempts + 1):
            await self.remote_client.fetch_file(entry, target, on_ratio)
            if await self.scanner.matches(entry.path, entry.content_hash):
                logger.debug(f"Downloaded {entry.path} (attempt {attempt})")
                return target

            logger.warning(
                f"Hash mismatch for {entry.path} "
                f"(attempt {attempt}/{self.max_download_attempts})"
            )
            await file_utils.delete_file(target)

        logger.error(f"Giving up on {entry.path} after {self.max_download_attempts} attempts")
        raise IntegrityError(entry.path, self.max_download_attempts)

    async def reconcile(
        self,
        target: Manifest,
        on_progress: Optional[ProgressCallback] = None,
        action: Operation = Operation.VERIFY,
    ) -> SyncReport:
        """Repair the install directory against `target` with minimal transfer, then commit."""
        logger.info(f"Reconciling install with version {target.version} ({target.total_files} files)")
        await self.ensure_skeleton()

        report = SyncReport(version=target.version)
        total = target.total_files

        for processed, entry in enumerate(target.files):
            send_progress(
                on_progress,
                action=action,
                phase=Phase.CHECKING,
                percent=calc_percent(processed, 0, total),
                current=processed,
                total=total,
                file=entry.path,
                status=f"Checking {entry.path}",
            )

            if await self.scanner.matches(entry.path, entry.content_hash):
                report.checked.append(entry.path)
            else:
                logger.info(f"Repairing {entry.path}")
                send_progress(
                    on_progress,
                    action=action,
                    phase=Phase.REPAIR,
                    percent=calc_percent(processed, 0, total),
                    current=processed,
                    total=total,
                    file=entry.path,
                    status=f"Repairing {entry.path}",
                )
                await self.download_and_verify(
                    entry,
                    _FileProgress(on_progress, action, Phase.REPAIR, entry, processed, total, "Repairing"),
                )
                report.downloaded.append(entry.path)

            send_progress(
                on_progress,
                action=action,
                phase=Phase.CHECKING,
                percent=calc_percent(processed + 1, 0, total),
                current=processed + 1,
                total=total,
                file=entry.path,
                status=f"Done: {entry.path}",
            )

        report.removed = await self.collect_garbage(target)
        await self.manifest_store.save(target)

        logger.info(
            f"Reconcile complete: {len(report.checked)} ok, "
            f"{len(report.downloaded)} downloaded, {len(report.removed)} removed"
        )
        return report

    async def fresh_install(
        self,
        target: Manifest,
        on_progress: Optional[ProgressCallback] = None,
        action: Operation = Operation.INSTALL,
    ) -> SyncReport:
        """Wipe the install directory and download every file of `target`, then commit."""
        logger.info(f"Fresh install of version {target.version} ({target.total_files} files)")
        await file_utils.remove_tree(self.install_dir)
        await self.ensure_skeleton()

        report = SyncReport(version=target.version)
        total = target.total_files

        for processed, entry in enumerate(target.files):
            send_progress(
                on_progress,
                action=action,
                phase=Phase.DOWNLOADING,
                percent=calc_percent(processed, 0, total),
                current=processed,
                total=total,
                file=entry.path,
                status=f"Downloading {entry.path}",
            )
            await self.download_and_verify(
                entry,
                _FileProgress(on_progress, action, Phase.DOWNLOADING, entry, processed, total, "Downloading"),
            )
            report.downloaded.append(entry.path)
            send_progress(
                on_progress,
                action=action,
                phase=Phase.DOWNLOADING,
                percent=calc_percent(processed + 1, 0, total),
                current=processed + 1,
                total=total,
                file=entry.path,
                status="File installed",
            )

        report.removed = await self.collect_garbage(target)
        await self.manifest_store.save(target)

        logger.info(f"Fresh install complete: {len(report.downloaded)} files")
        return report

    async def collect_garbage(self, target: Manifest) -> List[str]:
        """Delete files the target manifest does not list. Returns their relative paths."""
        stale = self.scanner.find_stale_files(target)
        for rel_path in stale:
            logger.info(f"Removing stale file: {rel_path}")
            await file_utils.delete_file(self.scanner.file_path(rel_path))

        if stale:
            file_utils.remove_empty_dirs(self.install_dir)
        return stale
