"""Single-flight control for long-running launcher operations."""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from loguru import logger

from build_launcher.schemas import Operation
from build_launcher.services.exceptions import OperationInProgressError


class OperationGate:
    """
    Allows one named operation to run at a time within this process.

    A second start while one is running fails immediately instead of queueing.
    The gate is released when the operation finishes, whether it succeeded or
    raised. Not reentrant, and not a cross-process lock.
    """

    def __init__(self) -> None:
        self._current: Optional[Operation] = None

    @property
    def current(self) -> Optional[Operation]:
        """The running operation, or None when idle."""
        return self._current

    @property
    def busy(self) -> bool:
        return self._current is not None

    @asynccontextmanager
    async def run(self, operation: Operation) -> AsyncIterator[Operation]:
        # Check-and-set has no await in between, so it is atomic on the event loop
        if self._current is not None:
            logger.warning(f"Rejected {operation.value}: {self._current.value} in progress")
            raise OperationInProgressError(self._current.value, operation.value)

        self._current = operation
        logger.debug(f"Operation started: {operation.value}")
        try:
            yield operation
        finally:
            self._current = None
            logger.debug(f"Operation finished: {operation.value}")
