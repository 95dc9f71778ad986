"""Stage, encrypt and install one WireGuard tunnel.

The deployment is a strict sequence of gates. Each stage either returns and
lets the next one run, or raises :class:`~wgdeploy.errors.DeploymentError`
and the whole run halts:

1. pre-flight checks on the WireGuard configuration directory
2. ``LimitedOperatorUI`` registry flag
3. config acquisition (interactive prompt loop)
4. parse and normalize the config, write it back in place
5. move it into the directory watched by the manager service
6. wait for the service to produce the ``.dpapi`` artifact
7. ``wireguard.exe /installtunnelservice <artifact>``
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable

from wgdeploy.config.defaults import EXIT_SUCCESS
from wgdeploy.config.paths import DeploymentPaths, RunOptions
from wgdeploy.errors import DeploymentError, describe_os_error
from wgdeploy.logging_utils import get_logger, log_info, log_section, log_success
from wgdeploy.tools.artifact_wait import wait_for_artifact
from wgdeploy.tools.registry import ensure_limited_operator_ui, open_flag_store
from wgdeploy.tools.tunnel_service import install_tunnel_service
from wgdeploy.wg_conf import normalize_text

LOGGER = get_logger(__name__)


def prompt_config_path(default: Path) -> Path:
    """Ask for the configuration file; blank input keeps ``default``."""

    try:
        value = input("Config file path: ").strip()
    except EOFError as exc:
        raise DeploymentError("No console input available to locate the config file.") from exc
    # Explorer's "Copy as path" wraps the path in quotes.
    value = value.strip('"').strip()
    return Path(value) if value else default


class Deployer:
    """Runs the deployment stages for one set of :class:`RunOptions`."""

    def __init__(
        self,
        options: RunOptions,
        paths: DeploymentPaths,
        *,
        prompt: Callable[[Path], Path] = prompt_config_path,
        flag_store_factory: Callable[[], object] = open_flag_store,
        waiter: Callable[[Path], object] = wait_for_artifact,
        runner=None,
    ):
        self.options = options
        self.paths = paths
        self.source_path = paths.source_path
        self._prompt = prompt
        self._flag_store_factory = flag_store_factory
        self._waiter = waiter
        self._runner = runner

    def run(self) -> int:
        log_section("Deploying WireGuard tunnel")
        self.preflight()
        self.adjust_access_flag()
        self.acquire_config()
        self.normalize_config()
        self.stage_config()
        self.wait_for_artifact()
        return self.activate()

    def preflight(self) -> None:
        target = self.paths.target_path
        artifact = self.paths.artifact_path

        if target.exists():
            raise DeploymentError(f"Config file already exists in the target location: {target}")
        if artifact.exists():
            raise DeploymentError(f"File exists: {artifact}. Tunnel possibly already deployed.")

        try:
            target.touch(exist_ok=False)
            target.unlink()
        except OSError as exc:
            raise DeploymentError(
                f"Access to the target path denied: {describe_os_error(exc)}"
            ) from exc
        LOGGER.info("Pre-flight checks passed", extra={"config_dir": str(self.paths.config_dir)})

    def adjust_access_flag(self) -> None:
        with self._flag_store_factory() as store:
            ensure_limited_operator_ui(store)

    def acquire_config(self) -> Path:
        """Block until the config file exists; only prompts in interactive mode."""

        if self.options.interactive:
            default = self.source_path
            while not self.source_path.is_file():
                self.source_path = self._prompt(default)
        LOGGER.info("Using config file", extra={"source": str(self.source_path)})
        return self.source_path

    def normalize_config(self) -> str:
        source = self.source_path
        try:
            text = source.read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as exc:
            reason = describe_os_error(exc) if isinstance(exc, OSError) else str(exc)
            raise DeploymentError(f"Error reading config file: {reason}") from exc

        # A config without a single line break cannot hold both sections.
        if "\n" not in text:
            raise DeploymentError("Config file is empty.")

        normalized = normalize_text(text, self.options.endpoint)

        try:
            source.write_text(normalized, encoding="utf-8")
        except OSError as exc:
            raise DeploymentError(
                f"Error writing config file: {describe_os_error(exc)}"
            ) from exc
        return normalized

    def stage_config(self) -> None:
        try:
            self.source_path.rename(self.paths.target_path)
        except OSError as exc:
            raise DeploymentError(f"Error moving config file: {describe_os_error(exc)}") from exc
        log_info(f"Config staged: {self.paths.target_path}")

    def wait_for_artifact(self) -> None:
        self._waiter(self.paths.artifact_path)

    def activate(self) -> int:
        returncode = install_tunnel_service(
            self.paths.control_utility,
            self.paths.artifact_path,
            self._runner,
        )
        if returncode != 0:
            raise DeploymentError(f"Error deploying tunnel. Exit code: {returncode}")
        log_success("Tunnel successfully deployed.")
        return EXIT_SUCCESS


def run_deployment(
    options: RunOptions,
    paths: DeploymentPaths,
    runner=None,
    **collaborators,
) -> int:
    """Run every stage for ``options``; errors propagate as :class:`DeploymentError`."""

    deployer = Deployer(options, paths, runner=runner, **collaborators)
    try:
        return deployer.run()
    except DeploymentError:
        LOGGER.exception("Deployment failed", extra={"source": str(deployer.source_path)})
        raise


__all__ = ["Deployer", "prompt_config_path", "run_deployment"]
