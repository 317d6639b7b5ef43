from pathlib import Path
from typing import Optional


class LauncherError(Exception):
    """Base class for errors surfaced by launcher operations"""

    pass


class NetworkError(LauncherError):
    """Raised when the manifest or a build file cannot be fetched"""

    pass


class DownloadError(NetworkError):
    """Raised when a fetched file cannot be written into place"""

    pass


class ParseError(LauncherError):
    """Raised when the remote manifest payload is malformed"""

    pass


class IntegrityError(LauncherError):
    """Raised when a file still fails hash verification after every download attempt"""

    def __init__(self, file: str, attempts: int):
        self.file = file
        self.attempts = attempts
        super().__init__(f"Failed to download {file}: hash mismatch after {attempts} attempts")


class NotInstalledError(LauncherError):
    """Raised when an operation needs a committed local install and there is none"""

    pass


class OperationInProgressError(LauncherError):
    """Raised when an operation is started while another one is running"""

    def __init__(self, current: Optional[str], requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot start {requested}: {current} is already running")


class ExecutableMissingError(LauncherError):
    """Raised when the build is verified but its executable is absent"""

    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"Executable not found: {path}")


class SpawnError(LauncherError):
    """Raised when the operating system refuses to start the executable"""

    def __init__(self, path: Path, reason: str):
        self.path = path
        super().__init__(f"Could not start {path}: {reason}")
