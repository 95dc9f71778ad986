"""Centralized configuration for DeployWireguard.

This package consolidates the fixed deployment policy and the resolution of
the install, profile and staging paths derived from the environment.
"""

from .defaults import (
    ARTIFACT_NAME,
    ARTIFACT_POLL_INTERVAL,
    CONFIG_NAME,
    DEFAULT_ALLOWED_IPS,
    DEFAULT_PROGRAM_FILES,
    EXIT_FAILURE,
    EXIT_HELP,
    EXIT_SUCCESS,
    HELP_FLAGS,
    REQUIRED_SECTIONS,
)
from .paths import DeploymentPaths, RunOptions, compute_paths

__all__ = [
    "ARTIFACT_NAME",
    "ARTIFACT_POLL_INTERVAL",
    "CONFIG_NAME",
    "DEFAULT_ALLOWED_IPS",
    "DEFAULT_PROGRAM_FILES",
    "EXIT_FAILURE",
    "EXIT_HELP",
    "EXIT_SUCCESS",
    "HELP_FLAGS",
    "REQUIRED_SECTIONS",
    "DeploymentPaths",
    "RunOptions",
    "compute_paths",
]
