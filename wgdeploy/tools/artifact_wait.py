"""Wait for the WireGuard manager service to encrypt a staged configuration."""

from __future__ import annotations

import time
from pathlib import Path
from typing import Callable

from wgdeploy.config.defaults import ARTIFACT_POLL_INTERVAL
from wgdeploy.logging_utils import get_logger

LOGGER = get_logger(__name__)


def _print_tick() -> None:
    print(".", end="", flush=True)


def wait_for_artifact(
    path: Path,
    *,
    exists: Callable[[Path], bool] = Path.exists,
    sleep: Callable[[float], None] = time.sleep,
    interval: float = ARTIFACT_POLL_INTERVAL,
    on_tick: Callable[[], None] = _print_tick,
) -> int:
    """Poll ``path`` every ``interval`` seconds until it exists.

    There is no timeout: the service is expected to act eventually or the
    operator kills the process. Returns the number of sleeps performed
    before the artifact showed up.
    """

    print()
    print("Waiting...", end="", flush=True)
    LOGGER.info("Waiting for artifact", extra={"artifact": str(path), "interval": interval})

    polls = 0
    while not exists(path):
        sleep(interval)
        polls += 1
        on_tick()
    print()

    LOGGER.info("Artifact present", extra={"artifact": str(path), "polls": polls})
    return polls
