"""Lifecycle controller for the assessment container and its workflow."""

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Iterator, List, Optional

from rich.console import Console

from ..config import ALLOWED_PACKAGES, Config
from ..errors import ReadinessTimeout, ValidationError
from ..progress import ProgressIndicator
from .executor import CommandExecutor
from .readiness import ReadinessPoller
from .retry_policy import RetryPolicy

logger = logging.getLogger(__name__)

# Inner scripts take the package id as $1 and the mods root as $2
SERVICE_CYCLE_SCRIPT = (
    'cd "$2/$1" && '
    "steampipe service stop --force && "
    'find /tmp -type f -name ".s.PGSQL.*.lock" -exec rm {} \\; && '
    "steampipe service start --dashboard"
)
REPORT_SCRIPT = (
    'cd "$2/$1" && steampipe check all --output csv > "$2/$1.csv"; exit 0'
)


class RunState(Enum):
    """States of a single run, in order."""

    IDLE = "idle"
    VALIDATING = "validating"
    STOPPING_PREVIOUS = "stopping-previous"
    STARTING = "starting"
    POLLING_READINESS = "polling-readiness"
    RUNNING_WORKFLOW = "running-workflow"
    DONE = "done"
    ABORTED = "aborted"


@dataclass
class RunResult:
    """Outcome of LifecycleController.run()."""

    state: RunState
    report_path: Optional[Path] = None
    dashboard_url: Optional[str] = None

    @property
    def completed(self) -> bool:
        return self.state == RunState.DONE


class LifecycleController:
    """
    Drives the managed container from a clean slate to an exported report.

    The container is a process-wide singleton identified by name: any
    existing instance is removed before a new one is started.
    """

    def __init__(
        self,
        config: Config,
        executor: CommandExecutor,
        retry_policy: Optional[RetryPolicy] = None,
        poller: Optional[ReadinessPoller] = None,
        progress: Optional[ProgressIndicator] = None,
        console: Optional[Console] = None,
        cwd: Optional[Path] = None,
        home: Optional[Path] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self.container = config.container
        self.executor = executor
        self.console = console or Console()
        self.retry_policy = retry_policy or RetryPolicy(executor, self.container.name)
        self.poller = poller or ReadinessPoller(
            executor,
            self.container.name,
            sentinel_path=config.readiness.sentinel_path,
            max_attempts=config.readiness.max_attempts,
            interval=config.readiness.interval,
            sleep=sleep,
        )
        self.progress = progress or ProgressIndicator(
            console=self.console,
            message=config.progress.message,
            spinner=config.progress.spinner,
            interval=config.progress.interval,
        )
        self.cwd = cwd or Path.cwd()
        self.home = home or Path.home()
        self._sleep = sleep
        self.state = RunState.IDLE

    @contextmanager
    def _working(self, message: str) -> Iterator[None]:
        """Print a phase message, then show the spinner while the phase blocks."""
        self.console.print(message)
        with self.progress:
            yield

    def _transition(self, state: RunState) -> None:
        logger.debug(f"Run state: {self.state.value} -> {state.value}")
        self.state = state

    def validate_package(self, package: str) -> None:
        """Reject packages outside the allowed set."""
        if package not in ALLOWED_PACKAGES:
            raise ValidationError(package, ALLOWED_PACKAGES)

    def stop_existing_container(self) -> bool:
        """
        Remove any container carrying the managed name.

        Returns:
            True if at least one container was removed
        """
        result = self.retry_policy.execute(
            ["ps", "-a", "-q", "--filter", f"name={self.container.name}"]
        )
        container_ids = result.output.split()

        for container_id in container_ids:
            logger.debug(f"Removing container {container_id}")
            self.retry_policy.execute(["rm", "-f", "-v", container_id])

        return bool(container_ids)

    def build_run_command(self, profile: str, role: Optional[str] = None) -> List[str]:
        credentials = self.home / self.container.credentials_dir
        args = ["run", "-d"]
        for port in self.container.ports:
            args.extend(["-p", f"{port}:{port}"])
        args.extend(
            [
                "-v",
                f"{credentials}:{self.container.credentials_mount}:ro",
                "--name",
                self.container.name,
                "--pull",
                "always",
                "--entrypoint",
                self.container.entrypoint,
                self.container.image,
                profile,
            ]
        )
        if role:
            args.append(role)
        return args

    def start_container(self, profile: str, role: Optional[str] = None) -> str:
        """Pull the image and start a fresh container; returns its id."""
        result = self.retry_policy.execute(self.build_run_command(profile, role))
        return result.output

    def wait_until_ready(self) -> bool:
        """Wait for the readiness sentinel, or sleep a fixed delay if polling is off."""
        if not self.config.workflow.wait_for_readiness:
            self._sleep(self.config.workflow.fixed_startup_delay)
            return True
        return self.poller.wait()

    def _exec_script(self, script: str, package: str) -> List[str]:
        return [
            "exec",
            self.container.name,
            "/bin/sh",
            "-c",
            script,
            "sh",
            package,
            self.container.mods_root,
        ]

    def load_package(self, package: str) -> Path:
        """
        Run an assessment package inside the running container.

        Restarts the inner service with the dashboard, generates the CSV
        report and copies it into the working directory.

        Returns:
            Path of the exported report
        """
        with self._working("Running Assessments"):
            self.retry_policy.execute(
                self._exec_script(SERVICE_CYCLE_SCRIPT, package),
                retry=self.config.workflow.retry_service_restart,
            )
            self.retry_policy.execute(self._exec_script(REPORT_SCRIPT, package))

            report_path = (self.cwd / f"{package}.csv").resolve()
            self.retry_policy.execute(
                [
                    "cp",
                    f"{self.container.name}:{self.container.mods_root}/{package}.csv",
                    str(report_path),
                ]
            )

        self.console.print(
            f"Report Exported:  {report_path}", markup=False, soft_wrap=True
        )
        self.console.print(f"Report Dashboard:  {self.config.dashboard_url}")
        return report_path

    def stop(self) -> bool:
        """Stop and remove the managed container."""
        with self.progress:
            removed = self.stop_existing_container()
        self.console.print(f"Stopping and Deleting {self.container.name}")
        return removed

    def run(self, profile: str, package: str, role: Optional[str] = None) -> RunResult:
        """
        Execute the full workflow for a package.

        Returns:
            RunResult in state DONE, or ABORTED if the container never became
            ready (the container is left running for inspection)

        Raises:
            ValidationError: unknown package, before any engine command
            ExecutionFailed: an engine command failed for good
            ReadinessTimeout: readiness exhausted and the policy makes it fatal
        """
        self._transition(RunState.VALIDATING)
        self.validate_package(package)

        self._transition(RunState.STOPPING_PREVIOUS)
        self.stop()

        self._transition(RunState.STARTING)
        with self._working("Downloading image and run"):
            self.start_container(profile, role)

        self._transition(RunState.POLLING_READINESS)
        with self.progress:
            ready = self.wait_until_ready()

        if not ready:
            self._transition(RunState.ABORTED)
            if self.config.workflow.fail_on_readiness_timeout:
                raise ReadinessTimeout(
                    self.container.name, self.config.readiness.max_attempts
                )
            self.console.print(
                "Container did not become ready in time", style="yellow"
            )
            return RunResult(state=RunState.ABORTED)

        self._transition(RunState.RUNNING_WORKFLOW)
        report_path = self.load_package(package)

        self._transition(RunState.DONE)
        return RunResult(
            state=RunState.DONE,
            report_path=report_path,
            dashboard_url=self.config.dashboard_url,
        )
