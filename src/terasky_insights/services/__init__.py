"""Container orchestration services."""

from .engine import EngineBinding, detect_engine
from .executor import CommandExecutor, CommandResult
from .lifecycle import LifecycleController, RunResult, RunState
from .readiness import ReadinessPoller
from .retry_policy import RetryPolicy

__all__ = [
    "EngineBinding",
    "detect_engine",
    "CommandExecutor",
    "CommandResult",
    "LifecycleController",
    "RunResult",
    "RunState",
    "ReadinessPoller",
    "RetryPolicy",
]
