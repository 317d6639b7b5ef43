"""Configuration management for build-launcher."""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from build_launcher.schemas.manifest import METADATA_DIR_NAME

GAMES_DIR_NAME = "Games"
MANIFEST_FILE_NAME = "version_files.json"
DEFAULT_REMOTE_BASE_URL = "https://soundsense.pro/builds/windows/SoundSense"


class LauncherConfig(BaseSettings):
    """Configuration for the launcher and the build it keeps installed."""

    # Default to ~/.build-launcher but allow override with env var
    home: Path = Field(
        default_factory=lambda: Path.home() / ".build-launcher",
        description="Base path for launcher data and installed builds",
    )
    build_name: str = Field(
        default="SoundSense",
        description="Directory name of the build under the games directory",
    )
    executable_name: str = Field(
        default="SSUT.exe",
        description="Runnable artifact, relative to the install directory",
    )
    metadata_dir_name: str = Field(
        default=METADATA_DIR_NAME,
        description="Reserved subdirectory of the install root holding the local manifest",
    )
    manifest_file_name: str = Field(default=MANIFEST_FILE_NAME)

    remote_base_url: str = Field(
        default=DEFAULT_REMOTE_BASE_URL,
        description="Base URL that build files are served from",
    )
    remote_manifest_path: str = Field(
        default=f"{METADATA_DIR_NAME}/{MANIFEST_FILE_NAME}",
        description="Manifest location relative to remote_base_url",
    )

    max_download_attempts: int = Field(
        default=3, ge=1, description="Attempts per file before the file is reported corrupt"
    )
    manifest_cache_ttl: float = Field(
        default=60.0, ge=0, description="Seconds a fetched remote manifest stays fresh"
    )
    http_timeout: float = Field(default=30.0, gt=0)
    download_chunk_size: int = Field(default=64 * 1024, gt=0)
    hash_chunk_size: int = Field(default=1024 * 1024, gt=0)

    log_level: str = "INFO"
    log_file: str = "logs/build-launcher.log"

    model_config = SettingsConfigDict(
        env_prefix="BUILD_LAUNCHER_",
        extra="ignore",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    @property
    def games_dir(self) -> Path:
        return self.home / GAMES_DIR_NAME

    @property
    def install_dir(self) -> Path:
        """Root of the installed build."""
        return self.games_dir / self.build_name

    @property
    def metadata_dir(self) -> Path:
        return self.install_dir / self.metadata_dir_name

    @property
    def manifest_path(self) -> Path:
        """Path of the committed local manifest."""
        return self.metadata_dir / self.manifest_file_name

    @property
    def executable_path(self) -> Path:
        return self.install_dir / self.executable_name

    @property
    def remote_manifest_url(self) -> str:
        return f"{self.remote_base_url.rstrip('/')}/{self.remote_manifest_path.lstrip('/')}"

    @property
    def log_path(self) -> Path:
        return self.home / self.log_file

    @field_validator("home")
    @classmethod
    def ensure_path_exists(cls, v: Path) -> Path:
        """Ensure launcher home exists."""
        if not v.exists():
            v.mkdir(parents=True)
        return v


def get_config() -> LauncherConfig:
    """Load configuration from the environment."""
    return LauncherConfig()
