"""Exceptions shared by the deployment stages."""

from __future__ import annotations

from wgdeploy.config.defaults import EXIT_FAILURE


class DeploymentError(RuntimeError):
    """Raised when a deployment stage fails; the run halts with ``exit_code``."""

    exit_code = EXIT_FAILURE


class UsageError(DeploymentError):
    """Raised for malformed command line arguments."""

    def __init__(self, argument: str, reason: str):
        super().__init__(f"Invalid argument: {argument}\n{reason}")
        self.argument = argument
        self.reason = reason


class HelpRequested(Exception):
    """Raised when the first argument asks for the usage text."""


class EnvironmentResolutionError(DeploymentError):
    """Raised when a required environment variable is missing."""


def describe_os_error(exc: OSError) -> str:
    """Return the OS message for ``exc`` without the errno prefix."""

    return exc.strerror or str(exc)
