"""Single-attempt execution of container engine commands."""

import logging
import subprocess
from dataclasses import dataclass
from typing import List, Optional, Sequence

from rich.console import Console

from ..errors import ExecutionFailed
from .engine import EngineBinding

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """Outcome of one engine command."""

    args: List[str]
    output: str
    returncode: int = 0
    retried: bool = False

    @property
    def success(self) -> bool:
        return self.returncode == 0


class CommandExecutor:
    """Runs engine commands as argument lists, never through a shell."""

    def __init__(
        self,
        engine: EngineBinding,
        debug: bool = False,
        timeout: Optional[int] = None,
        console: Optional[Console] = None,
    ):
        self.engine = engine
        self.debug = debug
        self.timeout = timeout
        self.console = console or Console()

    def run(self, args: Sequence[str]) -> CommandResult:
        """
        Run ``<engine> <args...>`` and return its trimmed combined output.

        Args:
            args: Engine arguments, e.g. ["ps", "-a", "-q"]

        Returns:
            CommandResult for a zero exit status

        Raises:
            ExecutionFailed: on non-zero exit, spawn failure or timeout
        """
        args = list(args)
        full_command = [self.engine.path, *args]
        display = " ".join([self.engine.name, *args])

        logger.debug(f"Executing command: {display}")
        if self.debug:
            self.console.print(f"Executing command: {display}", markup=False)

        try:
            completed = subprocess.run(
                full_command,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                errors="replace",
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            partial = e.output or ""
            if isinstance(partial, bytes):
                partial = partial.decode(errors="replace")
            raise ExecutionFailed(args, output=partial.strip(), cause=e) from e
        except OSError as e:
            raise ExecutionFailed(args, cause=e) from e

        output = (completed.stdout or "").strip()

        logger.debug(f"Command output: {output}")
        if self.debug:
            self.console.print(f"Command output: {output}", markup=False)

        if completed.returncode != 0:
            raise ExecutionFailed(args, output=output, returncode=completed.returncode)

        return CommandResult(args=args, output=output, returncode=completed.returncode)

    def logs(self, container_name: str) -> CommandResult:
        """Fetch the logs of a container."""
        return self.run(["logs", container_name])
