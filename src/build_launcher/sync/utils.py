"""Types and utilities for build sync."""

from dataclasses import dataclass, field
from typing import List


@dataclass
class SyncReport:
    """Report of what a sync did to the install directory.

    Attributes:
        version: Manifest version that was committed
        checked: Files already correct on disk, left untouched
        downloaded: Files fetched because they were missing or corrupt
        removed: Files deleted because the manifest no longer lists them
    """

    version: str = ""
    checked: List[str] = field(default_factory=list)
    downloaded: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)

    @property
    def total_changes(self) -> int:
        """Number of files that were written or deleted."""
        return len(self.downloaded) + len(self.removed)
