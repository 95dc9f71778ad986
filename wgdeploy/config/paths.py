"""Resolve the WireGuard install location and the paths of one deployment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from wgdeploy.config.defaults import (
    ARTIFACT_NAME,
    CONFIG_NAME,
    CONFIG_SUBDIR,
    CONTROL_UTILITY_SUBPATH,
    DEFAULT_PROGRAM_FILES,
    DESKTOP_SUBDIR,
    ENV_PROGRAM_FILES,
    ENV_USER_PROFILE,
)
from wgdeploy.errors import EnvironmentResolutionError
from wgdeploy.logging_utils import get_logger, log_warning

LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class RunOptions:
    """Immutable result of argument parsing, threaded through every stage."""

    interactive: bool = True
    endpoint: Optional[str] = None
    config_path: Optional[Path] = None


@dataclass(frozen=True)
class DeploymentPaths:
    """Every filesystem location touched by a deployment run."""

    install_dir: Path
    config_dir: Path
    source_path: Path
    target_path: Path
    artifact_path: Path
    control_utility: Path


def _lookup(environ: Mapping[str, str], key: str) -> Optional[str]:
    value = environ.get(key)
    if value is None:
        # os.environ is case-insensitive on Windows, plain mappings are not.
        value = next((v for k, v in environ.items() if k.upper() == key), None)
    return value or None


def resolve_install_dir(environ: Mapping[str, str], interactive: bool) -> Path:
    """Return the program installation directory.

    Interactive runs treat a missing ``PROGRAMFILES`` as fatal, while task
    sequence runs fall back to ``C:\\Program Files`` and carry on.
    """

    value = _lookup(environ, ENV_PROGRAM_FILES)
    if value:
        return Path(value)

    if interactive:
        raise EnvironmentResolutionError(f"{ENV_PROGRAM_FILES} environment variable not found.")

    log_warning(f"{ENV_PROGRAM_FILES} environment variable not found.")
    log_warning(f"Using default path: {DEFAULT_PROGRAM_FILES}")
    return Path(DEFAULT_PROGRAM_FILES)


def resolve_home_dir(environ: Mapping[str, str]) -> Path:
    """Return the invoking user's profile directory."""

    value = _lookup(environ, ENV_USER_PROFILE)
    if not value:
        raise EnvironmentResolutionError(f"{ENV_USER_PROFILE} environment variable not found.")
    return Path(value)


def compute_paths(
    options: RunOptions,
    environ: Optional[Mapping[str, str]] = None,
) -> DeploymentPaths:
    """Derive source, staged and artifact paths for ``options``."""

    if environ is None:
        environ = os.environ

    install_dir = resolve_install_dir(environ, options.interactive)
    config_dir = install_dir.joinpath(*CONFIG_SUBDIR)

    if options.interactive or options.config_path is None:
        source_path = resolve_home_dir(environ) / DESKTOP_SUBDIR / CONFIG_NAME
    else:
        source_path = options.config_path

    paths = DeploymentPaths(
        install_dir=install_dir,
        config_dir=config_dir,
        source_path=source_path,
        target_path=config_dir / CONFIG_NAME,
        artifact_path=config_dir / ARTIFACT_NAME,
        control_utility=install_dir.joinpath(*CONTROL_UTILITY_SUBPATH),
    )
    LOGGER.info(
        "Resolved deployment paths",
        extra={
            "source": str(paths.source_path),
            "target": str(paths.target_path),
            "artifact": str(paths.artifact_path),
        },
    )
    return paths
