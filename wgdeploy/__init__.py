"""DeployWireguard: one step of a Windows deployment task sequence.

The tool stages a WireGuard tunnel configuration into the directory watched by
the WireGuard manager service, waits for the service to encrypt it, and then
installs the tunnel as a system service via ``wireguard.exe``.

:mod:`wgdeploy.cli` exposes the command line entry point, :mod:`wgdeploy.pipeline`
the deployment stages and :mod:`wgdeploy.tools` the registry, artifact and
control-utility collaborators those stages rely on.
"""

from __future__ import annotations

import logging

from .cli import main

logging.getLogger("wgdeploy").addHandler(logging.NullHandler())

__all__ = ["main"]
