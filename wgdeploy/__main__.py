"""Module entry point so the tool can be executed with ``python -m wgdeploy``."""

from __future__ import annotations

import sys

from .cli import main


def run() -> None:
    """Dispatch to :func:`wgdeploy.cli.main` and exit with its status."""

    sys.exit(main())


if __name__ == "__main__":  # pragma: no cover - module execution hook
    run()
