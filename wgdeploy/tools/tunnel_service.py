"""Run ``wireguard.exe /installtunnelservice`` for a staged tunnel."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Callable, Sequence

from wgdeploy.config.defaults import INSTALL_TUNNEL_SUBCOMMAND
from wgdeploy.errors import DeploymentError, describe_os_error
from wgdeploy.logging_utils import get_logger

LOGGER = get_logger(__name__)

ERROR_ELEVATION_REQUIRED = 740


class ControlUtilityError(DeploymentError):
    """Raised when the WireGuard control utility is missing or cannot be started."""


class SubprocessRunner:
    """Start a program synchronously and return its exit status.

    The task sequence already runs elevated with the machine profile loaded,
    so the child inherits the caller's token and environment.
    """

    def run(self, executable: Path, args: Sequence[str]) -> int:
        command = [str(executable), *args]
        LOGGER.info("Running control utility", extra={"command": subprocess.list2cmdline(command)})
        try:
            completed = subprocess.run(command, check=False)
        except OSError as exc:
            if getattr(exc, "winerror", None) == ERROR_ELEVATION_REQUIRED:
                raise ControlUtilityError(
                    f"Error calling {executable.name}: the deployment must be run elevated "
                    "(as Administrator)."
                ) from exc
            raise ControlUtilityError(
                f"Error calling {executable.name}: {describe_os_error(exc)}"
            ) from exc
        return completed.returncode


def install_tunnel_service(
    executable: Path,
    artifact: Path,
    runner=None,
    *,
    is_file: Callable[[Path], bool] = Path.is_file,
) -> int:
    """Register ``artifact`` as a tunnel service; returns the utility's exit status."""

    if not is_file(executable):
        raise ControlUtilityError(f"Wireguard control utility not found at: {executable}")

    if runner is None:
        runner = SubprocessRunner()
    returncode = runner.run(executable, [INSTALL_TUNNEL_SUBCOMMAND, str(artifact)])
    LOGGER.info("Control utility finished", extra={"returncode": returncode})
    return returncode
