"""Readiness polling for the managed container."""

import logging
import time
from typing import Callable, List

from ..errors import ExecutionFailed
from .executor import CommandExecutor

logger = logging.getLogger(__name__)

READY_MARKER = "1"


class ReadinessPoller:
    """Polls a sentinel file inside the container until it appears."""

    def __init__(
        self,
        executor: CommandExecutor,
        container_name: str,
        sentinel_path: str = "/tmp/ready",
        max_attempts: int = 30,
        interval: float = 2.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.executor = executor
        self.container_name = container_name
        self.sentinel_path = sentinel_path
        self.max_attempts = max_attempts
        self.interval = interval
        self._sleep = sleep

    def probe_command(self) -> List[str]:
        # Sentinel path is passed as $1 so it is never interpolated into the script
        return [
            "exec",
            self.container_name,
            "/bin/sh",
            "-c",
            'test -f "$1" && echo 1 || echo 0',
            "sh",
            self.sentinel_path,
        ]

    def is_ready(self) -> bool:
        """Run a single probe."""
        try:
            result = self.executor.run(self.probe_command())
        except ExecutionFailed as e:
            logger.debug(f"Readiness probe failed: {e}")
            return False
        return result.output == READY_MARKER

    def wait(self) -> bool:
        """
        Probe sequentially until ready or attempts are exhausted.

        Returns:
            True on the first successful probe, False after max_attempts
        """
        for attempt in range(1, self.max_attempts + 1):
            if self.is_ready():
                logger.debug(
                    f"{self.container_name} ready after {attempt} attempt(s)"
                )
                return True
            if attempt < self.max_attempts:
                self._sleep(self.interval)

        logger.info(
            f"{self.container_name} not ready after {self.max_attempts} attempts"
        )
        return False
