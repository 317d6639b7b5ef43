"""Progress events streamed to the presentation layer during an operation."""

from enum import Enum
from typing import Callable, Optional

from pydantic import BaseModel, Field


class Operation(str, Enum):
    """Long-running operations. At most one runs at a time."""

    INSTALL = "install"
    VERIFY = "verify"
    LAUNCH = "launch"
    DELETE = "delete"


class Phase(str, Enum):
    STARTING = "starting"
    CHECKING = "checking"
    REPAIR = "repair"
    DOWNLOADING = "downloading"
    PRELAUNCH = "prelaunch"
    REMOVING = "removing"
    CLEANUP = "cleanup"
    DONE = "done"


class ProgressEvent(BaseModel):
    action: Operation
    phase: Phase
    percent: float = Field(ge=0, le=100)
    current: float = 0
    total: int = 0
    file: Optional[str] = None
    status: str = ""


ProgressCallback = Callable[[ProgressEvent], None]


def calc_percent(processed: float, file_ratio: float, total: int) -> float:
    """Overall percent after `processed` whole files plus a fraction of the next one."""
    if not total:
        return 0.0
    percent = (processed + file_ratio) / total * 100
    return min(100.0, max(0.0, percent))


def send_progress(on_progress: Optional[ProgressCallback], **kwargs) -> None:
    """Build an event and hand it to the sink, if there is one."""
    if on_progress is None:
        return
    on_progress(ProgressEvent(**kwargs))


def scale_progress(
    on_progress: Optional[ProgressCallback], start: float, end: float
) -> Optional[ProgressCallback]:
    """
    Sink for one stage of a multi-stage operation.

    The stage reports 0..100 as usual; its events reach `on_progress` mapped
    onto [start, end] of the whole operation.
    """
    if on_progress is None:
        return None

    def forward(event: ProgressEvent) -> None:
        percent = start + (end - start) * event.percent / 100
        on_progress(event.model_copy(update={"percent": percent}))

    return forward
