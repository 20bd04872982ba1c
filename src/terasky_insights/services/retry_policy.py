"""Retry and failure recovery around the command executor."""

import logging
from typing import Sequence

from ..errors import ExecutionFailed
from .executor import CommandExecutor, CommandResult

logger = logging.getLogger(__name__)


class RetryPolicy:
    """
    Wraps a CommandExecutor with a single bounded retry.

    Services inside the container can be briefly unavailable right after
    start, so a command may be retried exactly once. When a command fails
    for good the container logs are fetched and attached to the error
    before it is raised.
    """

    def __init__(self, executor: CommandExecutor, container_name: str):
        self.executor = executor
        self.container_name = container_name

    def execute(self, args: Sequence[str], retry: bool = False) -> CommandResult:
        """
        Execute a command, optionally retrying once on failure.

        Args:
            args: Engine arguments
            retry: Whether a failed first attempt gets one more try

        Returns:
            CommandResult of the successful attempt

        Raises:
            ExecutionFailed: when the command ultimately fails, with
                ``container_logs`` set if they could be retrieved
        """
        try:
            return self.executor.run(args)
        except ExecutionFailed as first_error:
            if not retry:
                self._attach_container_logs(first_error)
                raise

            logger.info(
                f"Command failed ({first_error}), retrying once: {' '.join(args)}"
            )

        try:
            result = self.executor.run(args)
        except ExecutionFailed as second_error:
            self._attach_container_logs(second_error)
            raise

        result.retried = True
        logger.info("Command succeeded on retry")
        return result

    def _attach_container_logs(self, error: ExecutionFailed) -> None:
        """Best-effort diagnostic log retrieval; never masks the original error."""
        try:
            error.container_logs = self.executor.logs(self.container_name).output
        except ExecutionFailed as log_error:
            logger.warning(
                f"Could not retrieve logs for {self.container_name}: {log_error}"
            )
