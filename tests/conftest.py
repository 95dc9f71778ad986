"""pytest 配置和共享 fixtures。pytest configuration and shared fixtures."""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path
from typing import Generator

import pytest

from wgdeploy.config.defaults import CONFIG_NAME, CONFIG_SUBDIR, CONTROL_UTILITY_SUBPATH
from wgdeploy.config.paths import RunOptions, compute_paths
from wgdeploy.tools.registry import NullFlagStore

SAMPLE_CONFIG = """\
[Interface]
PrivateKey = aGVsbG8gd29ybGQgcHJpdmF0ZSBrZXkgYmFzZTY0IT0=
Address = 10.20.0.5/32
DNS = 192.168.1.1

[Peer]
PublicKey = c2VydmVyIHB1YmxpYyBrZXkgYmFzZTY0IGVuY29kZWQ9
AllowedIPs = 10.0.0.0/8
Endpoint = old:1
PersistentKeepalive = 25
"""


class FakeRunner:
    """记录调用的进程启动器。Process runner that records calls."""

    def __init__(self, returncode: int = 0):
        self.returncode = returncode
        self.calls: list[tuple[Path, list[str]]] = []

    def run(self, executable: Path, args) -> int:
        self.calls.append((executable, list(args)))
        return self.returncode


class FakeService:
    """模拟 WireGuard 管理服务。Stands in for the manager service producing the artifact."""

    def __init__(self):
        self.waited_for: list[Path] = []

    def __call__(self, artifact: Path) -> None:
        self.waited_for.append(artifact)
        artifact.write_bytes(b"dpapi-blob")


@pytest.fixture(autouse=True)
def _reset_wgdeploy_logging() -> Generator[None, None, None]:
    yield
    logger = logging.getLogger("wgdeploy")
    for handler in list(logger.handlers):
        if isinstance(handler, logging.FileHandler):
            handler.close()
            logger.removeHandler(handler)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """临时目录 fixture。Temporary directory fixture."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def install_dir(temp_dir: Path) -> Path:
    """带有 WireGuard 目录结构的 Program Files。Program Files with a WireGuard layout."""
    root = temp_dir / "Program Files"
    root.joinpath(*CONFIG_SUBDIR).mkdir(parents=True)
    root.joinpath(*CONTROL_UTILITY_SUBPATH).write_bytes(b"MZ")
    return root


@pytest.fixture
def home_dir(temp_dir: Path) -> Path:
    """用户目录 fixture。User profile fixture."""
    home = temp_dir / "Users" / "operator"
    (home / "Desktop").mkdir(parents=True)
    return home


@pytest.fixture
def environ(install_dir: Path, home_dir: Path, temp_dir: Path) -> dict[str, str]:
    """部署所需的环境变量。Environment variables a deployment reads."""
    return {
        "PROGRAMFILES": str(install_dir),
        "USERPROFILE": str(home_dir),
        "WGDEPLOY_LOG_DIR": str(temp_dir / "logs"),
    }


@pytest.fixture
def desktop_config(home_dir: Path) -> Path:
    """默认位置的配置文件。Config file in the default desktop location."""
    path = home_dir / "Desktop" / CONFIG_NAME
    path.write_text(SAMPLE_CONFIG, encoding="utf-8")
    return path


@pytest.fixture
def external_config(temp_dir: Path) -> Path:
    """非交互模式使用的配置文件。Config file passed on the command line."""
    folder = temp_dir / "temp"
    folder.mkdir()
    path = folder / "my.conf"
    path.write_text(SAMPLE_CONFIG, encoding="utf-8")
    return path


@pytest.fixture
def interactive_paths(environ: dict[str, str]):
    return compute_paths(RunOptions(interactive=True), environ)


@pytest.fixture
def flag_store() -> NullFlagStore:
    return NullFlagStore()


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def fake_service() -> FakeService:
    return FakeService()
