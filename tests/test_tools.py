"""注册表、产物等待与控制工具测试。Registry, artifact wait and control utility tests."""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from wgdeploy.tools.artifact_wait import wait_for_artifact
from wgdeploy.tools.registry import (
    NullFlagStore,
    RegistryError,
    WindowsRegistryStore,
    ensure_limited_operator_ui,
    open_flag_store,
)
from wgdeploy.tools.tunnel_service import (
    ControlUtilityError,
    SubprocessRunner,
    install_tunnel_service,
)


class TestLimitedOperatorFlag:
    """测试 LimitedOperatorUI 标志。LimitedOperatorUI flag tests."""

    def test_absent_flag_is_set(self, flag_store: NullFlagStore, capsys):
        assert ensure_limited_operator_ui(flag_store) == 1
        assert flag_store.values == {"LimitedOperatorUI": 1}
        assert "Creating registry key: Software\\WireGuard\\LimitedOperatorUI" in capsys.readouterr().out

    @pytest.mark.parametrize("existing", [0, 1, 7])
    def test_existing_flag_untouched(self, existing: int, capsys):
        store = NullFlagStore(values={"LimitedOperatorUI": existing})
        assert ensure_limited_operator_ui(store) == existing
        assert store.values["LimitedOperatorUI"] == existing
        out = capsys.readouterr().out
        assert "Registry key already exists" in out
        assert f"Value: {existing}" in out

    def test_write_failure_is_fatal(self):
        class ReadOnlyStore(NullFlagStore):
            def set_dword(self, name, value):
                raise PermissionError(13, "Access is denied")

        with pytest.raises(RegistryError) as excinfo:
            ensure_limited_operator_ui(ReadOnlyStore())
        assert "Access is denied" in str(excinfo.value)

    @pytest.mark.skipif(sys.platform == "win32", reason="registry is real on Windows")
    def test_null_store_off_windows(self):
        with open_flag_store() as store:
            assert isinstance(store, NullFlagStore)
            assert store.key_path == "Software\\WireGuard"


def _fake_winreg(handle: str = "hkey") -> MagicMock:
    """模拟 winreg 模块。Stand-in for the winreg module."""
    fake = MagicMock()
    fake.HKEY_LOCAL_MACHINE = "HKLM"
    fake.KEY_READ = 0x20019
    fake.KEY_SET_VALUE = 0x0002
    fake.REG_DWORD = 4
    fake.OpenKey.return_value = handle
    fake.CreateKeyEx.return_value = handle
    fake.QueryValueEx.side_effect = FileNotFoundError(2, "The system cannot find the file specified")
    return fake


class TestWindowsRegistryStore:
    """测试 HKLM 注册表存储（模拟 winreg）。HKLM registry store against a mocked winreg."""

    def test_opens_existing_key(self):
        fake = _fake_winreg()
        with patch("wgdeploy.tools.registry.winreg", fake, create=True):
            store = WindowsRegistryStore()
        assert store.created is False
        fake.OpenKey.assert_called_once_with("HKLM", "Software\\WireGuard", 0, 0x20019 | 0x0002)
        fake.CreateKeyEx.assert_not_called()

    def test_creates_missing_key(self, capsys):
        """键不存在时创建。The key is created when it does not exist yet."""
        fake = _fake_winreg()
        fake.OpenKey.side_effect = FileNotFoundError(2, "The system cannot find the file specified")
        with patch("wgdeploy.tools.registry.winreg", fake, create=True):
            store = WindowsRegistryStore()
        assert store.created is True
        fake.CreateKeyEx.assert_called_once_with("HKLM", "Software\\WireGuard", 0, 0x20019 | 0x0002)
        assert "Creating registry key: Software\\WireGuard" in capsys.readouterr().out

    def test_missing_value_reads_as_none(self):
        fake = _fake_winreg()
        with patch("wgdeploy.tools.registry.winreg", fake, create=True):
            assert WindowsRegistryStore().get("LimitedOperatorUI") is None

    def test_existing_value_is_returned(self):
        fake = _fake_winreg()
        fake.QueryValueEx.side_effect = None
        fake.QueryValueEx.return_value = (0, 4)
        with patch("wgdeploy.tools.registry.winreg", fake, create=True):
            assert WindowsRegistryStore().get("LimitedOperatorUI") == 0

    def test_flag_written_as_dword_and_key_closed(self):
        fake = _fake_winreg()
        with patch("wgdeploy.tools.registry.winreg", fake, create=True):
            with WindowsRegistryStore() as store:
                assert ensure_limited_operator_ui(store) == 1
        fake.SetValueEx.assert_called_once_with("hkey", "LimitedOperatorUI", 0, 4, 1)
        fake.CloseKey.assert_called_once_with("hkey")

    def test_open_failure_is_registry_error(self):
        fake = _fake_winreg()
        fake.OpenKey.side_effect = PermissionError(5, "Access is denied")
        fake_sys = MagicMock(platform="win32")
        with patch("wgdeploy.tools.registry.winreg", fake, create=True), patch(
            "wgdeploy.tools.registry.sys", fake_sys
        ):
            with pytest.raises(RegistryError) as excinfo:
                open_flag_store()
        assert str(excinfo.value) == "Error opening registry key Software\\WireGuard: Access is denied"

    def test_windows_uses_registry_store(self):
        fake_sys = MagicMock(platform="win32")
        with patch("wgdeploy.tools.registry.winreg", _fake_winreg(), create=True), patch(
            "wgdeploy.tools.registry.sys", fake_sys
        ):
            assert isinstance(open_flag_store(), WindowsRegistryStore)


class TestWaitForArtifact:
    """测试产物轮询，不依赖真实时间。Artifact polling without wall-clock waits."""

    def test_returns_immediately_when_present(self, temp_dir: Path):
        artifact = temp_dir / "cgof-vpn.conf.dpapi"
        artifact.write_bytes(b"x")
        sleeps: list[float] = []
        assert wait_for_artifact(artifact, sleep=sleeps.append) == 0
        assert sleeps == []

    def test_polls_until_service_creates_artifact(self, temp_dir: Path, capsys):
        artifact = temp_dir / "cgof-vpn.conf.dpapi"
        sleeps: list[float] = []

        def fake_sleep(seconds: float) -> None:
            sleeps.append(seconds)
            if len(sleeps) == 4:
                artifact.write_bytes(b"x")

        assert wait_for_artifact(artifact, sleep=fake_sleep) == 4
        assert sleeps == [0.3] * 4
        out = capsys.readouterr().out
        assert "Waiting...." in out
        assert out.count(".") >= 4 + 3

    def test_keeps_polling_while_artifact_missing(self, temp_dir: Path):
        """产物不出现时持续轮询。Polling continues for as long as the artifact is absent."""
        checks = []

        def never_exists(path: Path) -> bool:
            checks.append(path)
            if len(checks) > 1000:
                raise KeyboardInterrupt
            return False

        with pytest.raises(KeyboardInterrupt):
            wait_for_artifact(
                temp_dir / "never.dpapi",
                exists=never_exists,
                sleep=lambda _: None,
                on_tick=lambda: None,
            )
        assert len(checks) == 1001


class TestInstallTunnelService:
    """测试 wireguard.exe 调用。wireguard.exe invocation tests."""

    def test_missing_executable(self, temp_dir: Path, fake_runner):
        exe = temp_dir / "WireGuard" / "wireguard.exe"
        with pytest.raises(ControlUtilityError) as excinfo:
            install_tunnel_service(exe, temp_dir / "a.dpapi", fake_runner)
        assert str(excinfo.value) == f"Wireguard control utility not found at: {exe}"
        assert fake_runner.calls == []

    def test_invokes_install_subcommand(self, install_dir: Path, fake_runner):
        exe = install_dir / "WireGuard" / "wireguard.exe"
        artifact = install_dir / "WireGuard" / "Data" / "Configurations" / "cgof-vpn.conf.dpapi"

        assert install_tunnel_service(exe, artifact, fake_runner) == 0
        assert fake_runner.calls == [(exe, ["/installtunnelservice", str(artifact)])]

    def test_exit_status_propagated(self, install_dir: Path, fake_runner):
        fake_runner.returncode = 1223
        exe = install_dir / "WireGuard" / "wireguard.exe"
        assert install_tunnel_service(exe, Path("a.dpapi"), fake_runner) == 1223


class TestSubprocessRunner:
    """测试 SubprocessRunner。"""

    def test_returns_exit_code(self):
        completed = subprocess.CompletedProcess(args=[], returncode=3)
        with patch("wgdeploy.tools.tunnel_service.subprocess.run", return_value=completed) as run:
            code = SubprocessRunner().run(Path("C:/wg/wireguard.exe"), ["/installtunnelservice", "C:/x y.dpapi"])
        assert code == 3
        command = run.call_args.args[0]
        assert command[1:] == ["/installtunnelservice", "C:/x y.dpapi"]
        assert run.call_args.kwargs == {"check": False}

    def test_launch_failure(self):
        error = OSError(193, "%1 is not a valid Win32 application")
        with patch("wgdeploy.tools.tunnel_service.subprocess.run", side_effect=error):
            with pytest.raises(ControlUtilityError) as excinfo:
                SubprocessRunner().run(Path("wireguard.exe"), ["/installtunnelservice", "a"])
        assert str(excinfo.value) == "Error calling wireguard.exe: %1 is not a valid Win32 application"

    def test_elevation_required(self):
        """未提权时给出明确提示。A missing elevation is reported plainly."""

        class ElevationRequired(OSError):
            winerror = 740

        error = ElevationRequired(13, "The requested operation requires elevation")
        with patch("wgdeploy.tools.tunnel_service.subprocess.run", side_effect=error):
            with pytest.raises(ControlUtilityError) as excinfo:
                SubprocessRunner().run(Path("wireguard.exe"), ["/installtunnelservice", "a"])
        assert "must be run elevated" in str(excinfo.value)
        assert "requires elevation" not in str(excinfo.value)
