"""Use cases exposed to the presentation layer: install, verify, launch, delete."""

from pathlib import Path
from typing import Callable, Optional

import httpx
from loguru import logger

from build_launcher import file_utils
from build_launcher.config import LauncherConfig
from build_launcher.schemas import (
    DeleteResult,
    LaunchResult,
    LauncherState,
    Manifest,
    Operation,
    Phase,
    ProgressCallback,
    scale_progress,
    send_progress,
)
from build_launcher.services import process
from build_launcher.services.exceptions import (
    ExecutableMissingError,
    NetworkError,
    NotInstalledError,
    ParseError,
    SpawnError,
)
from build_launcher.services.manifest_store import ManifestStore
from build_launcher.services.operation_gate import OperationGate
from build_launcher.services.remote_client import RemoteManifestClient
from build_launcher.sync import InstallScanner, SyncReport, SyncService, versions_match

# Share of the overall launch percent given to each stage
LAUNCH_UPDATE_RANGE = (0, 40)
LAUNCH_SCAN_RANGE = (40, 60)
LAUNCH_REPAIR_RANGE = (60, 100)


class LauncherService:
    """
    Entry point for everything the launcher UI can ask for.

    Long-running operations (install, verify, launch, delete) run through the
    operation gate, so only one of them is active at a time; each reports
    progress to an optional callback and returns or raises exactly once.
    `get_state` never takes the gate and can be called at any time.
    """

    def __init__(
        self,
        config: LauncherConfig,
        remote_client: RemoteManifestClient,
        manifest_store: ManifestStore,
        sync_service: SyncService,
        gate: Optional[OperationGate] = None,
        spawner: Callable[[Path], int] = process.spawn_detached,
        folder_opener: Callable[[Path], None] = process.open_folder,
    ):
        self.config = config
        self.remote_client = remote_client
        self.manifest_store = manifest_store
        self.sync_service = sync_service
        self.gate = gate or OperationGate()
        self.spawner = spawner
        self.folder_opener = folder_opener

    @classmethod
    def from_config(
        cls, config: LauncherConfig, http_client: Optional[httpx.AsyncClient] = None, **kwargs
    ) -> "LauncherService":
        """Wire the service and its collaborators from configuration."""
        remote_client = RemoteManifestClient.from_config(config, client=http_client)
        manifest_store = ManifestStore(config.manifest_path)
        scanner = InstallScanner(
            install_dir=config.install_dir,
            metadata_dir_name=config.metadata_dir_name,
            chunk_size=config.hash_chunk_size,
        )
        sync_service = SyncService(
            scanner=scanner,
            remote_client=remote_client,
            manifest_store=manifest_store,
            max_download_attempts=config.max_download_attempts,
        )
        return cls(
            config=config,
            remote_client=remote_client,
            manifest_store=manifest_store,
            sync_service=sync_service,
            **kwargs,
        )

    async def aclose(self) -> None:
        await self.remote_client.aclose()

    @property
    def scanner(self) -> InstallScanner:
        return self.sync_service.scanner

    def is_installed(self) -> bool:
        local = self.manifest_store.load()
        return local is not None and local.total_files > 0

    async def get_state(self, refresh: bool = False) -> LauncherState:
        """
        Current install facts, without waiting for a running operation.

        A failed remote fetch, including one made by an earlier launch, is
        reported in `remote_error` until a fetch succeeds again.

        Args:
            refresh: Drop the cached remote manifest before reading it
        """
        local = self.manifest_store.load()
        if refresh:
            self.remote_client.invalidate()

        remote: Optional[Manifest] = None
        try:
            remote = await self.remote_client.fetch_manifest(force=False)
        except (NetworkError, ParseError) as e:
            logger.debug(f"Remote manifest unavailable for state query: {e}")
        remote_error = self.remote_client.last_error

        installed = local is not None and local.total_files > 0
        build_size = local.build_size if installed else (remote.build_size if remote else None)

        return LauncherState(
            installed=installed,
            executable_exists=self.config.executable_path.is_file(),
            build_size_label=build_size.label() if build_size else "-",
            remote_error=remote_error,
            operation=self.gate.current,
            install_dir=self.config.install_dir,
            manifest_file=self.config.manifest_path,
            local_version=local,
            remote_version=remote,
        )

    async def install(self, on_progress: Optional[ProgressCallback] = None) -> SyncReport:
        """Download the published build from scratch, replacing whatever is installed."""
        async with self.gate.run(Operation.INSTALL):
            send_progress(
                on_progress,
                action=Operation.INSTALL,
                phase=Phase.STARTING,
                percent=0,
                status="Preparing...",
            )
            remote = await self.remote_client.fetch_manifest(force=True)
            return await self.sync_service.fresh_install(remote, on_progress, action=Operation.INSTALL)

    async def verify(self, on_progress: Optional[ProgressCallback] = None) -> SyncReport:
        """Check every installed file against the published manifest and repair what differs."""
        async with self.gate.run(Operation.VERIFY):
            return await self._verify(on_progress, Operation.VERIFY)

    async def _verify(self, on_progress: Optional[ProgressCallback], action: Operation) -> SyncReport:
        if self.manifest_store.load() is None:
            raise NotInstalledError("No local install found. Install the build first.")
        remote = await self.remote_client.fetch_manifest(force=True)
        return await self.sync_service.reconcile(remote, on_progress, action=action)

    async def launch(self, on_progress: Optional[ProgressCallback] = None) -> LaunchResult:
        """
        Bring the install up to date if possible, check it, and start the executable.

        A failed remote fetch does not stop the launch: the local install is
        checked against its own committed manifest instead.

        Progress covers the whole launch: update 0-40, pre-launch check 40-60,
        repair 60-100, then a final event at 100 before the process starts.
        """
        async with self.gate.run(Operation.LAUNCH):
            local = self.manifest_store.load()
            if local is None:
                raise NotInstalledError("Local manifest not found. Reinstall the build.")

            await self.sync_service.ensure_skeleton()

            remote: Optional[Manifest] = None
            try:
                remote = await self.remote_client.fetch_manifest(force=True)
            except (NetworkError, ParseError) as e:
                logger.warning(f"Could not fetch remote manifest before launch, using local install: {e}")

            if remote is not None and not versions_match(remote, local):
                logger.info(f"Remote version {remote.version} differs from local {local.version}, updating")
                update_progress = scale_progress(on_progress, *LAUNCH_UPDATE_RANGE)
                send_progress(
                    update_progress,
                    action=Operation.LAUNCH,
                    phase=Phase.CHECKING,
                    percent=0,
                    status=f"New version {remote.version} found, updating...",
                )
                await self.sync_service.reconcile(remote, update_progress, action=Operation.LAUNCH)
                local = remote

            scan = await self.scanner.quick_scan(
                local, scale_progress(on_progress, *LAUNCH_SCAN_RANGE), action=Operation.LAUNCH
            )
            if not scan.ok:
                logger.warning(f"Pre-launch check failed ({scan.reason}: {scan.file}), repairing")
                repair_progress = scale_progress(on_progress, *LAUNCH_REPAIR_RANGE)
                send_progress(
                    repair_progress,
                    action=Operation.LAUNCH,
                    phase=Phase.REPAIR,
                    percent=0,
                    file=scan.file,
                    status="Damaged files found, repairing...",
                )
                await self._verify(repair_progress, Operation.LAUNCH)

            executable = self.config.executable_path
            if not executable.is_file():
                raise ExecutableMissingError(executable)

            send_progress(
                on_progress,
                action=Operation.LAUNCH,
                phase=Phase.DONE,
                percent=100,
                status=f"Starting {executable.name}",
            )
            try:
                self.spawner(executable)
            except OSError as e:
                logger.error(f"Failed to start {executable}: {e}")
                raise SpawnError(executable, str(e)) from e
            return LaunchResult(launched=True)

    async def delete(self, on_progress: Optional[ProgressCallback] = None) -> DeleteResult:
        """Remove the installed build, leaving an empty install directory behind."""
        async with self.gate.run(Operation.DELETE):
            send_progress(
                on_progress,
                action=Operation.DELETE,
                phase=Phase.STARTING,
                percent=0,
                status="Preparing to delete...",
            )

            install_dir = self.config.install_dir
            if install_dir.exists():
                send_progress(
                    on_progress,
                    action=Operation.DELETE,
                    phase=Phase.REMOVING,
                    percent=10,
                    status="Removing files...",
                )
                logger.info(f"Deleting install directory {install_dir}")
                await file_utils.remove_tree(install_dir)

            send_progress(
                on_progress,
                action=Operation.DELETE,
                phase=Phase.CLEANUP,
                percent=65,
                status="Cleaning up...",
            )
            await self.sync_service.ensure_skeleton()

            send_progress(
                on_progress,
                action=Operation.DELETE,
                phase=Phase.DONE,
                percent=100,
                status="Build deleted",
            )
            return DeleteResult(deleted=True)

    async def open_install_folder(self) -> Path:
        """Show the install directory in the OS file browser."""
        await self.sync_service.ensure_skeleton()
        install_dir = self.config.install_dir
        self.folder_opener(install_dir)
        return install_dir
