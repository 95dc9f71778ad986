"""Command line entry point: ``deploy-wireguard [endpoint] [configFilePath]``."""

from __future__ import annotations

import argparse
import logging
import os
import sys
import tempfile
from pathlib import Path
from typing import Callable, List, Mapping, Optional

from wgdeploy.config.defaults import (
    CONFIG_NAME,
    ENV_DEBUG,
    ENV_LOG_DIR,
    EXIT_FAILURE,
    EXIT_HELP,
    HELP_FLAGS,
)
from wgdeploy.config.paths import RunOptions, compute_paths
from wgdeploy.errors import DeploymentError, HelpRequested, UsageError
from wgdeploy.logging_utils import (
    enable_windows_ansi,
    get_logger,
    log_error,
    log_warning,
    setup_logging,
)
from wgdeploy.pipeline import run_deployment

LOGGER = get_logger(__name__)

USAGE = rf"""
This is a part of an MDT task sequence that deploys Wireguard to a Windows 10+ machine.

It performs the following actions (MSI is installed in a previous step):
    1. Grab the config file from either the default path or the one provided via interactive prompt
    2. Move the config file into the Wireguard Configurations directory
    3. Install the tunnel service from the resulting encrypted DPAPI blob

The exit code is 0 on success, 1 on failure and 2 on help request.

No input is required if the config file is in the default location being $USERPROFILE\Desktop\{CONFIG_NAME}

Positional command line arguments (optional):
    1. Endpoint in the format of hostname:port (will override the value in the base config file if specified)
    2. Path to the config file in the format of C:\path\to\config\file.conf

If both arguments are specified, the application operates in a non-interactive manner.
"""


def parse_endpoint(value: str) -> str:
    """Validate a ``hostname:port`` override and return it verbatim."""

    if ":" not in value:
        raise UsageError(value, "Endpoint has to be in the format of hostname:port.")
    _, port = value.rsplit(":", 1)
    try:
        int(port)
    except ValueError:
        raise UsageError(value, "Port number has to be an integer.") from None
    return value


def existing_config_file(value: str) -> Path:
    path = Path(value)
    if not path.is_file():
        raise UsageError(value, "Config file does not exist.")
    return path


class _ArgumentParser(argparse.ArgumentParser):
    """argparse exits with status 2 on errors, which is the help code here."""

    def error(self, message: str) -> None:  # type: ignore[override]
        raise UsageError(" ".join(self._current_argv), message)

    def parse_args(self, args=None, namespace=None):  # type: ignore[override]
        self._current_argv = list(args or [])
        return super().parse_args(args, namespace)


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="deploy-wireguard",
        description="Stage a WireGuard tunnel config and install it as a service.",
        add_help=False,
    )
    parser.add_argument(
        "endpoint",
        nargs="?",
        type=parse_endpoint,
        help="hostname:port overriding [Peer] Endpoint",
    )
    parser.add_argument(
        "config",
        nargs="?",
        type=existing_config_file,
        help="Path to the config file; enables non-interactive mode",
    )
    return parser


def parse_args(argv: List[str]) -> RunOptions:
    """Turn positional arguments into :class:`RunOptions`.

    The help flags are only recognised as the first argument and win over
    any other validation.
    """

    if argv and argv[0] in HELP_FLAGS:
        raise HelpRequested()

    args = build_parser().parse_args(argv)
    if args.config is not None:
        return RunOptions(interactive=False, endpoint=args.endpoint, config_path=args.config)
    return RunOptions(interactive=True, endpoint=args.endpoint)


def exit_run(code: int, options: RunOptions, pause: Callable[[], object] = input) -> int:
    """Single exit routine: interactive runs wait for the operator before closing."""

    if options.interactive:
        print("Press Enter to exit...", flush=True)
        try:
            pause()
        except (EOFError, KeyboardInterrupt):
            # Console closed or a second Ctrl+C; nobody is left to read the message.
            LOGGER.debug("No console to pause on")
    LOGGER.info("Exiting", extra={"exit_code": code})
    return code


def _truthy(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes")


def _configure_logging(environ: Mapping[str, str]) -> None:
    log_dir = environ.get(ENV_LOG_DIR) or str(Path(tempfile.gettempdir()) / "wgdeploy")
    level = logging.DEBUG if _truthy(environ.get(ENV_DEBUG)) else logging.INFO
    setup_logging(log_dir, level=level)


def main(
    argv: Optional[List[str]] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
    pause: Callable[[], object] = input,
    **collaborators,
) -> int:
    """Run one deployment and return the process exit code (0, 1 or 2).

    Every halt, Ctrl+C included, leaves through :func:`exit_run`.
    ``collaborators`` are forwarded to :class:`~wgdeploy.pipeline.Deployer`
    (``prompt``, ``flag_store_factory``, ``waiter``, ``runner``).
    """

    if argv is None:
        argv = sys.argv[1:]
    if environ is None:
        environ = os.environ

    enable_windows_ansi()
    _configure_logging(environ)
    LOGGER.info("Starting deployment", extra={"argv": " ".join(argv)})

    options = RunOptions()
    try:
        options = parse_args(argv)
        paths = compute_paths(options, environ)
        code = run_deployment(options, paths, **collaborators)
    except HelpRequested:
        print(USAGE)
        return exit_run(EXIT_HELP, options, pause)
    except DeploymentError as exc:
        log_error(f"❌ {exc}")
        return exit_run(exc.exit_code, options, pause)
    except KeyboardInterrupt:
        print()
        log_warning("⚠️ Interrupted.")
        return exit_run(EXIT_FAILURE, options, pause)
    return exit_run(code, options, pause)
