"""Common test fixtures."""

import hashlib
from pathlib import Path
from typing import Dict, List, Optional, Set

import httpx
import pytest
import pytest_asyncio

from build_launcher.config import LauncherConfig
from build_launcher.services.launcher_service import LauncherService
from build_launcher.services.manifest_store import ManifestStore
from build_launcher.services.operation_gate import OperationGate
from build_launcher.services.remote_client import RemoteManifestClient
from build_launcher.sync import InstallScanner, SyncService

BASE_URL = "https://builds.test/soundsense"


def sha256(content: bytes) -> str:
    return hashlib.sha256(content).hexdigest()


class FakeRemote:
    """In-memory build server behind an httpx.MockTransport.

    Serves a manifest generated from `files` and the file bodies themselves.
    Paths in `corrupt` are served with wrong bytes.
    """

    def __init__(self, base_url: str = BASE_URL, version: str = "1.2.0"):
        self.base_url = base_url
        self.base_path = httpx.URL(base_url).path.rstrip("/")
        self.version = version
        self.files: Dict[str, bytes] = {}
        self.corrupt: Set[str] = set()
        # path -> number of upcoming requests to serve corrupted
        self.corrupt_next: Dict[str, int] = {}
        self.manifest_status = 200
        self.manifest_body: Optional[bytes] = None
        self.offline = False
        self.requests: List[str] = []

    def add_file(self, path: str, content: bytes) -> None:
        self.files[path] = content

    def manifest(self) -> dict:
        total = sum(len(c) for c in self.files.values())
        return {
            "version": self.version,
            "files": [
                {"file": path, "hash": sha256(content), "size": len(content)}
                for path, content in self.files.items()
            ],
            "build_size": {
                "bytes": total,
                "kb": total / 1024,
                "mb": total / 1024**2,
                "gb": total / 1024**3,
            },
        }

    def write_to(self, install_dir: Path) -> None:
        """Put a correct copy of every file on disk."""
        for path, content in self.files.items():
            target = install_dir / path
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)

    def file_requests(self, path: str) -> int:
        return self.requests.count(f"{self.base_path}/{path}")

    @property
    def manifest_requests(self) -> int:
        return self.requests.count(f"{self.base_path}/version/version_files.json")

    @property
    def download_requests(self) -> List[str]:
        manifest_path = f"{self.base_path}/version/version_files.json"
        return [r for r in self.requests if r != manifest_path]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request.url.path)
        if self.offline:
            raise httpx.ConnectError("network unreachable", request=request)

        rel = request.url.path[len(self.base_path) + 1 :]
        if rel == "version/version_files.json":
            if self.manifest_status != 200:
                return httpx.Response(self.manifest_status)
            if self.manifest_body is not None:
                return httpx.Response(200, content=self.manifest_body)
            return httpx.Response(200, json=self.manifest())

        if rel not in self.files:
            return httpx.Response(404)
        content = self.files[rel]
        if self.corrupt_next.get(rel, 0) > 0:
            self.corrupt_next[rel] -= 1
            content = b"corrupted:" + content
        elif rel in self.corrupt:
            content = b"corrupted:" + content
        return httpx.Response(200, content=content)


@pytest.fixture
def config_home(tmp_path, monkeypatch) -> Path:
    monkeypatch.setenv("BUILD_LAUNCHER_HOME", str(tmp_path / "launcher"))
    return tmp_path / "launcher"


@pytest.fixture
def app_config(config_home) -> LauncherConfig:
    """Create test app configuration."""
    return LauncherConfig(
        home=config_home,
        remote_base_url=BASE_URL,
        executable_name="bin/app.exe",
        download_chunk_size=256,
    )


@pytest.fixture
def remote() -> FakeRemote:
    """Remote build with the two files of a small published version."""
    fake = FakeRemote()
    fake.add_file("bin/app.exe", b"\x4d\x5a" + bytes(range(256)) * 3 + b"\x00" * 230)
    fake.add_file("data/pack.bin", b"pack" * 1250)
    return fake


@pytest_asyncio.fixture
async def http_client(remote: FakeRemote):
    client = httpx.AsyncClient(transport=httpx.MockTransport(remote.handler))
    yield client
    await client.aclose()


@pytest.fixture
def remote_client(app_config: LauncherConfig, http_client) -> RemoteManifestClient:
    return RemoteManifestClient.from_config(app_config, client=http_client)


@pytest.fixture
def manifest_store(app_config: LauncherConfig) -> ManifestStore:
    return ManifestStore(app_config.manifest_path)


@pytest.fixture
def scanner(app_config: LauncherConfig) -> InstallScanner:
    return InstallScanner(
        install_dir=app_config.install_dir,
        metadata_dir_name=app_config.metadata_dir_name,
    )


@pytest.fixture
def sync_service(
    app_config: LauncherConfig,
    scanner: InstallScanner,
    remote_client: RemoteManifestClient,
    manifest_store: ManifestStore,
) -> SyncService:
    return SyncService(
        scanner=scanner,
        remote_client=remote_client,
        manifest_store=manifest_store,
        max_download_attempts=app_config.max_download_attempts,
    )


@pytest.fixture
def spawned() -> List[Path]:
    """Executables the launcher service asked to start."""
    return []


@pytest.fixture
def opened() -> List[Path]:
    return []


@pytest.fixture
def launcher_service(
    app_config: LauncherConfig,
    remote_client: RemoteManifestClient,
    manifest_store: ManifestStore,
    sync_service: SyncService,
    spawned: List[Path],
    opened: List[Path],
) -> LauncherService:
    def spawner(path: Path) -> int:
        spawned.append(path)
        return 4242

    return LauncherService(
        config=app_config,
        remote_client=remote_client,
        manifest_store=manifest_store,
        sync_service=sync_service,
        gate=OperationGate(),
        spawner=spawner,
        folder_opener=opened.append,
    )


@pytest.fixture
def progress_events():
    """Sink collecting progress events."""
    events = []
    return events
