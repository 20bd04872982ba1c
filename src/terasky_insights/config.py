"""Configuration management for TeraSky Insights."""

import json
import logging
from pathlib import Path
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator
from rich.spinner import SPINNERS

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

ALLOWED_PACKAGES: Tuple[str, ...] = (
    "aws-finops",
    "aws-top-10",
    "aws-well-architected",
)


class EngineConfig(BaseModel):
    """Configuration for container engine detection."""

    candidates: List[str] = Field(
        default=["docker", "podman", "containerd", "runc"],
        description="Engine executables to look for on PATH, in priority order",
    )
    command_timeout: Optional[int] = Field(
        default=None,
        description="Timeout in seconds for a single engine command (None waits forever)",
    )

    @field_validator("candidates")
    @classmethod
    def require_candidates(cls, v: List[str]) -> List[str]:
        """Reject an empty candidate list."""
        if not v:
            raise ValueError("At least one engine candidate is required")
        return v


class ContainerConfig(BaseModel):
    """Configuration for the managed assessment container."""

    name: str = Field(default="terasky-insights", description="Container name")
    image: str = Field(
        default="ghcr.io/elad-ts/terasky-insights:latest",
        description="Image reference, pulled on every run",
    )
    entrypoint: str = Field(
        default="/usr/local/bin/entrypoint.sh",
        description="Entrypoint receiving profile and role as arguments",
    )
    ports: List[int] = Field(
        default=[9193, 9194], description="Ports published with the same host port"
    )
    dashboard_port: int = Field(default=9194, description="Dashboard service port")
    credentials_dir: str = Field(
        default=".aws",
        description="Credential directory relative to the user's home directory",
    )
    credentials_mount: str = Field(
        default="/tmp/aws", description="Read-only mount point inside the container"
    )
    mods_root: str = Field(
        default="/mods", description="Directory holding one subdirectory per package"
    )


class ReadinessConfig(BaseModel):
    """Configuration for container readiness polling."""

    sentinel_path: str = Field(
        default="/tmp/ready",
        description="File created inside the container once services are initialized",
    )
    max_attempts: int = Field(default=30, ge=1, description="Maximum probe attempts")
    interval: float = Field(
        default=2.0, ge=0, description="Delay between probes in seconds"
    )


class ProgressConfig(BaseModel):
    """Configuration for the progress spinner."""

    interval: float = Field(default=0.1, gt=0, description="Redraw interval in seconds")
    message: str = Field(default="Please wait...", description="Spinner text")
    spinner: str = Field(default="line", description="rich spinner name")

    @field_validator("spinner")
    @classmethod
    def known_spinner(cls, v: str) -> str:
        """Reject spinner names rich does not know."""
        if v not in SPINNERS:
            raise ValueError(f"Unknown spinner: {v}")
        return v


class WorkflowConfig(BaseModel):
    """Policy switches for the run workflow."""

    retry_service_restart: bool = Field(
        default=True,
        description="Retry the inner service restart once (database warm-up)",
    )
    wait_for_readiness: bool = Field(
        default=True,
        description="Poll the readiness sentinel instead of sleeping a fixed delay",
    )
    fixed_startup_delay: float = Field(
        default=30.0,
        description="Seconds to sleep after start when readiness polling is off",
    )
    fail_on_readiness_timeout: bool = Field(
        default=False,
        description="Treat readiness exhaustion as a fatal error instead of aborting",
    )


class Config(BaseModel):
    """Main configuration for TeraSky Insights."""

    engine: EngineConfig = Field(default_factory=EngineConfig)
    container: ContainerConfig = Field(default_factory=ContainerConfig)
    readiness: ReadinessConfig = Field(default_factory=ReadinessConfig)
    progress: ProgressConfig = Field(default_factory=ProgressConfig)
    workflow: WorkflowConfig = Field(default_factory=WorkflowConfig)

    @property
    def dashboard_url(self) -> str:
        return f"http://localhost:{self.container.dashboard_port}"


class ConfigManager:
    """Manages configuration loading."""

    DEFAULT_CONFIG_PATH = Path(".terasky-insights/config.json")

    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = config_path or self.DEFAULT_CONFIG_PATH

    def load(self) -> Config:
        """Load configuration from file, falling back to defaults."""
        if self.config_path.exists():
            try:
                with open(self.config_path, "r") as f:
                    data = json.load(f)
                config = Config(**data)
            except Exception as e:
                raise ConfigurationError(
                    f"Failed to load config from {self.config_path}: {e}"
                )
            logger.debug(f"Loaded configuration from {self.config_path}")
            return config

        return Config()

    @staticmethod
    def find_config_path(start_dir: Optional[Path] = None) -> Optional[Path]:
        """Find .terasky-insights/config.json by walking up the directory tree."""
        current = start_dir or Path.cwd()

        for path in [current] + list(current.parents):
            config_path = path / ".terasky-insights" / "config.json"
            if config_path.exists():
                return config_path

        return None

    @classmethod
    def create_with_backtrack(cls, start_dir: Optional[Path] = None) -> "ConfigManager":
        """Create ConfigManager by finding config through directory backtracking."""
        config_path = cls.find_config_path(start_dir)
        if config_path is None:
            start = start_dir or Path.cwd()
            config_path = start / ".terasky-insights" / "config.json"
        return cls(config_path)
