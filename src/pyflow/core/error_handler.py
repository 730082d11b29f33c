"""Error reporting collaborator.

Tasks report every failed attempt and workflows report every aborted
execution here, before deciding whether to retry or propagate.
Implementations must not raise.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any


class ErrorHandler(ABC):
    """Sink for caught failures."""

    @abstractmethod
    async def handle_error(self, error: BaseException, context: Any) -> None:
        """
        Record a failure.

        Args:
            error: The exception that was caught
            context: The task or workflow context the failure happened in
        """
        pass


class LoggingErrorHandler(ErrorHandler):
    """Default handler: logs the error and nothing else."""

    def __init__(self, logger: logging.Logger | logging.LoggerAdapter | None = None):
        self._logger = logger if logger is not None else logging.getLogger(__name__)

    async def handle_error(self, error: BaseException, context: Any) -> None:
        self._logger.error(f"Error: {error}")
