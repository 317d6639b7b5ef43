"""Persistence of the committed local manifest."""

import json
from pathlib import Path
from typing import Optional

from loguru import logger
from pydantic import ValidationError

from build_launcher import file_utils
from build_launcher.schemas import Manifest


class ManifestStore:
    """
    Reads and writes the local manifest describing the installed build.

    The stored manifest is the commit point of every sync: it is only written
    once every file has been verified and stale files removed, so its presence
    means the tree on disk matches it. A missing or unreadable manifest means
    "not installed" and is never an error.
    """

    def __init__(self, manifest_path: Path):
        self.manifest_path = manifest_path

    def exists(self) -> bool:
        return self.manifest_path.is_file()

    def load(self) -> Optional[Manifest]:
        """Return the committed manifest, or None if there is no usable one."""
        try:
            raw = self.manifest_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read local manifest {self.manifest_path}: {e}")
            return None

        try:
            return Manifest.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Ignoring invalid local manifest {self.manifest_path}: {e}")
            return None

    async def save(self, manifest: Manifest) -> None:
        """Commit `manifest` as the description of the installed tree."""
        await file_utils.ensure_directory(self.manifest_path.parent)
        content = json.dumps(manifest.to_wire(), indent=2, ensure_ascii=False)
        await file_utils.write_file_atomic(self.manifest_path, content)
        logger.info(
            f"Committed local manifest version={manifest.version} files={manifest.total_files}"
        )

    async def delete(self) -> None:
        await file_utils.delete_file(self.manifest_path)
