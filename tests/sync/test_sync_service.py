"""Test reconcile and fresh install behavior."""

from pathlib import Path

import pytest

from build_launcher.schemas import Manifest, Operation, Phase
from build_launcher.services.exceptions import IntegrityError, NetworkError
from build_launcher.services.manifest_store import ManifestStore
from build_launcher.sync.sync_service import SyncService


@pytest.fixture
def target(remote) -> Manifest:
    return Manifest.model_validate(remote.manifest())


@pytest.fixture
def install_dir(app_config) -> Path:
    return app_config.install_dir


@pytest.mark.asyncio
async def test_reconcile_empty_install(sync_service: SyncService, manifest_store: ManifestStore, remote, target, install_dir):
    report = await sync_service.reconcile(target)

    assert report.downloaded == ["bin/app.exe", "data/pack.bin"]
    assert report.checked == []
    assert (install_dir / "bin" / "app.exe").read_bytes() == remote.files["bin/app.exe"]
    assert (install_dir / "data" / "pack.bin").read_bytes() == remote.files["data/pack.bin"]
    assert manifest_store.load() == target


@pytest.mark.asyncio
async def test_reconcile_is_idempotent(sync_service: SyncService, manifest_store: ManifestStore, remote, target, install_dir):
    """A correct tree is verified without any downloads, every time."""
    remote.write_to(install_dir)

    first = await sync_service.reconcile(target)
    second = await sync_service.reconcile(target)

    assert remote.download_requests == []
    assert first.downloaded == second.downloaded == []
    assert first.checked == second.checked == ["bin/app.exe", "data/pack.bin"]
    assert manifest_store.load() == target


@pytest.mark.asyncio
async def test_reconcile_resumes_after_interruption(sync_service: SyncService, manifest_store: ManifestStore, remote, target):
    pack = remote.files.pop("data/pack.bin")

    # the second file cannot be fetched, so the run stops after the first
    with pytest.raises(NetworkError):
        await sync_service.reconcile(target)
    assert remote.file_requests("bin/app.exe") == 1
    assert manifest_store.load() is None

    remote.files["data/pack.bin"] = pack
    report = await sync_service.reconcile(target)

    assert report.checked == ["bin/app.exe"]
    assert report.downloaded == ["data/pack.bin"]
    # the first file was not fetched again
    assert remote.file_requests("bin/app.exe") == 1
    assert manifest_store.load() == target


@pytest.mark.asyncio
async def test_reconcile_repairs_corrupt_file(sync_service: SyncService, remote, target, install_dir):
    remote.write_to(install_dir)
    corrupt = install_dir / "data" / "pack.bin"
    corrupt.write_bytes(b"bit rot")

    report = await sync_service.reconcile(target)

    assert report.downloaded == ["data/pack.bin"]
    assert report.checked == ["bin/app.exe"]
    assert corrupt.read_bytes() == remote.files["data/pack.bin"]
    assert remote.file_requests("bin/app.exe") == 0


@pytest.mark.asyncio
async def test_reconcile_gives_up_after_three_attempts(
    sync_service: SyncService, manifest_store: ManifestStore, remote, target, install_dir
):
    remote.write_to(install_dir)
    (install_dir / "data" / "pack.bin").unlink()
    remote.corrupt.add("data/pack.bin")

    with pytest.raises(IntegrityError) as exc_info:
        await sync_service.reconcile(target)

    assert exc_info.value.file == "data/pack.bin"
    assert exc_info.value.attempts == 3
    assert remote.file_requests("data/pack.bin") == 3
    # the bad download is not left behind and nothing is committed
    assert not (install_dir / "data" / "pack.bin").exists()
    assert manifest_store.load() is None


@pytest.mark.asyncio
async def test_reconcile_retry_count_is_configurable(
    scanner, remote_client, manifest_store, remote, target
):
    service = SyncService(scanner, remote_client, manifest_store, max_download_attempts=1)
    remote.corrupt.add("bin/app.exe")

    with pytest.raises(IntegrityError):
        await service.reconcile(target)
    assert remote.file_requests("bin/app.exe") == 1


@pytest.mark.asyncio
async def test_reconcile_recovers_on_second_attempt(sync_service: SyncService, remote, target, install_dir):
    """A transient bad payload is retried and the file ends up correct."""
    remote.corrupt_next["bin/app.exe"] = 1

    report = await sync_service.reconcile(target)

    assert "bin/app.exe" in report.downloaded
    assert remote.file_requests("bin/app.exe") == 2
    assert (install_dir / "bin" / "app.exe").read_bytes() == remote.files["bin/app.exe"]


@pytest.mark.asyncio
async def test_reconcile_collects_garbage(sync_service: SyncService, remote, target, install_dir, app_config):
    remote.write_to(install_dir)
    (install_dir / "old").mkdir()
    (install_dir / "old" / "removed.dll").write_bytes(b"stale")
    (install_dir / "data" / "leftover.tmp").write_bytes(b"stale")
    before = (install_dir / "bin" / "app.exe").stat().st_mtime_ns

    report = await sync_service.reconcile(target)

    assert sorted(report.removed) == ["data/leftover.tmp", "old/removed.dll"]
    assert not (install_dir / "old").exists()
    assert not (install_dir / "data" / "leftover.tmp").exists()
    # matching files are left untouched
    assert (install_dir / "bin" / "app.exe").stat().st_mtime_ns == before
    # metadata directory survives collection
    assert app_config.manifest_path.exists()


@pytest.mark.asyncio
async def test_reconcile_keeps_files_differing_only_in_case(sync_service: SyncService, remote, target, install_dir):
    remote.write_to(install_dir)
    (install_dir / "data" / "pack.bin").rename(install_dir / "data" / "PACK.bin")

    report = await sync_service.reconcile(target)

    # the upper-case name is not stale, it maps to a manifest entry
    assert "data/PACK.bin" not in report.removed


@pytest.mark.asyncio
async def test_reconcile_progress(sync_service: SyncService, remote, target, install_dir, progress_events):
    remote.write_to(install_dir)
    (install_dir / "data" / "pack.bin").unlink()

    await sync_service.reconcile(target, progress_events.append, action=Operation.VERIFY)

    assert all(e.action == Operation.VERIFY for e in progress_events)
    percents = [e.percent for e in progress_events]
    assert percents == sorted(percents)
    assert percents[0] == 0
    assert percents[-1] == 100

    phases = [(e.phase, e.file) for e in progress_events]
    assert (Phase.REPAIR, "data/pack.bin") in phases
    assert (Phase.REPAIR, "bin/app.exe") not in phases


@pytest.mark.asyncio
async def test_progress_monotonic_across_retries(sync_service: SyncService, remote, target, progress_events):
    remote.corrupt.add("data/pack.bin")

    with pytest.raises(IntegrityError):
        await sync_service.reconcile(target, progress_events.append)

    percents = [e.percent for e in progress_events]
    assert percents == sorted(percents)


@pytest.mark.asyncio
async def test_fresh_install_downloads_everything(
    sync_service: SyncService, manifest_store: ManifestStore, remote, target, install_dir, progress_events
):
    # even correct files are downloaded again, and unknown files are wiped
    remote.write_to(install_dir)
    (install_dir / "junk.txt").write_text("junk")

    report = await sync_service.fresh_install(target, progress_events.append)

    assert report.downloaded == ["bin/app.exe", "data/pack.bin"]
    assert remote.file_requests("bin/app.exe") == 1
    assert remote.file_requests("data/pack.bin") == 1
    assert not (install_dir / "junk.txt").exists()
    assert manifest_store.load() == target

    assert all(e.phase == Phase.DOWNLOADING for e in progress_events)
    assert all(e.action == Operation.INSTALL for e in progress_events)
    percents = [e.percent for e in progress_events]
    assert percents == sorted(percents)
    assert percents[-1] == 100


@pytest.mark.asyncio
async def test_fresh_install_failure_does_not_commit(sync_service: SyncService, manifest_store: ManifestStore, remote, target):
    remote.corrupt.add("data/pack.bin")

    with pytest.raises(IntegrityError):
        await sync_service.fresh_install(target)

    assert manifest_store.load() is None


@pytest.mark.asyncio
async def test_fresh_install_replaces_previous_commit(sync_service: SyncService, manifest_store: ManifestStore, remote, target):
    await sync_service.fresh_install(target)
    remote.corrupt.add("bin/app.exe")

    with pytest.raises(IntegrityError):
        await sync_service.fresh_install(target)

    # the old tree, and with it the old commit, is gone
    assert manifest_store.load() is None
