"""Container engine detection."""

import logging
import shutil
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from ..errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_ENGINE_CANDIDATES = ("docker", "podman", "containerd", "runc")


@dataclass(frozen=True)
class EngineBinding:
    """The container engine resolved for this process."""

    name: str
    path: str


def detect_engine(
    candidates: Sequence[str] = DEFAULT_ENGINE_CANDIDATES,
    which: Callable[[str], Optional[str]] = shutil.which,
) -> EngineBinding:
    """Return the first engine in ``candidates`` found on PATH.

    Raises:
        ConfigurationError: if none of the candidates is installed
    """
    for name in candidates:
        path = which(name)
        if path:
            logger.debug(f"Detected container engine {name} at {path}")
            return EngineBinding(name=name, path=path)

    raise ConfigurationError(
        f"no container engine detected (looked for: {', '.join(candidates)})"
    )
