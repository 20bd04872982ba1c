"""Exception hierarchy for TeraSky Insights."""

from typing import List, Optional, Sequence


class InsightsError(Exception):
    """Base exception for all orchestrator errors."""

    pass


class ConfigurationError(InsightsError):
    """Raised when no container engine is available or config is unreadable."""

    pass


class ValidationError(InsightsError):
    """Raised when an unknown assessment package is requested."""

    def __init__(self, package: str, allowed: Sequence[str]):
        self.package = package
        self.allowed = list(allowed)
        super().__init__(
            f"Invalid option provided: {package}. "
            f"Allowed values are: {', '.join(self.allowed)}"
        )


class ExecutionFailed(InsightsError):
    """Raised when an engine command exits non-zero or cannot be spawned."""

    def __init__(
        self,
        command: Sequence[str],
        output: str = "",
        returncode: Optional[int] = None,
        cause: Optional[BaseException] = None,
    ):
        self.command: List[str] = list(command)
        self.output = output
        self.returncode = returncode
        self.cause = cause
        # Filled in by RetryPolicy once diagnostics have been gathered
        self.container_logs: Optional[str] = None

        if returncode is None:
            detail = f"could not be started: {cause}"
        else:
            detail = f"exited with status {returncode}"
        super().__init__(f"Command '{' '.join(self.command)}' {detail}")


class ReadinessTimeout(InsightsError):
    """Raised when readiness polling is exhausted and the policy treats it as fatal."""

    def __init__(self, container_name: str, attempts: int):
        self.container_name = container_name
        self.attempts = attempts
        super().__init__(
            f"Container {container_name} did not become ready after {attempts} attempts"
        )
