"""Configuration parsing and validation for the service scorecard generator."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .errors import AuthenticationError, ConfigurationError

DEFAULT_PROJECT_GLOB = "*.csproj"


@dataclass(frozen=True)
class Config:
    """Validated runtime settings used by the scorecard generator."""

    working_directory: Path
    output_directory: Path
    azure_pat: str
    github_token: Optional[str] = None
    project_glob: str = DEFAULT_PROJECT_GLOB
    timeout_seconds: float = 30.0
    max_workers: int = 4


def load_config(
    working_directory: str,
    output_directory: str,
    project_glob: str = DEFAULT_PROJECT_GLOB,
    max_workers: int = 4,
    timeout_seconds: float = 30.0,
) -> Config:
    """Build and validate application configuration.

    Args:
        working_directory: Root of the source tree whose services are scored.
        output_directory: Directory the rendered scorecard is written to.
        project_glob: Glob identifying a service's project file.
        max_workers: Pull requests inspected concurrently per check.
        timeout_seconds: Per-request timeout in seconds.

    Returns:
        A validated ``Config`` instance.

    Raises:
        ConfigurationError: If the working directory does not exist or a numeric
            setting is not greater than ``0``.
        AuthenticationError: If ``ADO_PAT`` is not configured.
    """
    root = Path(working_directory).resolve()
    if not root.is_dir():
        raise ConfigurationError(f"Invalid working directory: '{working_directory}' does not exist.")

    if max_workers <= 0:
        raise ConfigurationError("Invalid value for 'max_workers': expected an integer greater than 0.")

    if timeout_seconds <= 0:
        raise ConfigurationError("Invalid value for 'timeout_seconds': expected a number greater than 0.")

    azure_pat: str = os.getenv("ADO_PAT", "").strip()
    if not azure_pat:
        raise AuthenticationError(
            "Missing required Azure DevOps Personal Access Token. "
            "Set the 'ADO_PAT' environment variable before running the scorecard generator."
        )

    github_token = os.getenv("GITHUB_TOKEN", "").strip() or None

    return Config(
        working_directory=root,
        output_directory=Path(output_directory).resolve(),
        azure_pat=azure_pat,
        github_token=github_token,
        project_glob=project_glob,
        timeout_seconds=timeout_seconds,
        max_workers=max_workers,
    )
