"""OS collaborators: starting the build's executable and revealing its folder."""

import os
import subprocess
import sys
from pathlib import Path

from loguru import logger


def spawn_detached(executable: Path) -> int:
    """Start `executable` in its own directory, detached from this process. Returns the pid."""
    kwargs = {
        "cwd": str(executable.parent),
        "stdin": subprocess.DEVNULL,
        "stdout": subprocess.DEVNULL,
        "stderr": subprocess.DEVNULL,
        "close_fds": True,
    }
    if sys.platform == "win32":
        kwargs["creationflags"] = subprocess.DETACHED_PROCESS | subprocess.CREATE_NEW_PROCESS_GROUP
    else:
        kwargs["start_new_session"] = True

    process = subprocess.Popen([str(executable)], **kwargs)
    logger.info(f"Started {executable.name} (pid {process.pid})")
    return process.pid


def open_folder(path: Path) -> None:
    """Ask the desktop environment to show `path`."""
    if sys.platform == "win32":
        os.startfile(str(path))  # type: ignore[attr-defined]
        return

    opener = "open" if sys.platform == "darwin" else "xdg-open"
    subprocess.Popen(
        [opener, str(path)],
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        start_new_session=True,
    )
