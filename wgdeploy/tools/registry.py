"""Access-control flag kept in the WireGuard registry key."""

from __future__ import annotations

import sys
from typing import Any, Dict, Optional

from wgdeploy.config.defaults import (
    LIMITED_OPERATOR_ENABLED,
    LIMITED_OPERATOR_VALUE,
    REGISTRY_KEY,
)
from wgdeploy.errors import DeploymentError, describe_os_error
from wgdeploy.logging_utils import get_logger, log_info, log_warning

if sys.platform == "win32":
    import winreg

LOGGER = get_logger(__name__)


class RegistryError(DeploymentError):
    """Raised when the WireGuard registry key cannot be opened or written."""


class NullFlagStore:
    """In-memory flag store used where there is no Windows registry."""

    def __init__(self, key_path: str = REGISTRY_KEY, values: Optional[Dict[str, Any]] = None):
        self.key_path = key_path
        self.values: Dict[str, Any] = dict(values or {})
        self.created = False

    def get(self, name: str) -> Any:
        return self.values.get(name)

    def set_dword(self, name: str, value: int) -> None:
        self.values[name] = int(value)

    def close(self) -> None:
        pass

    def __enter__(self) -> "NullFlagStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class WindowsRegistryStore:
    """``HKEY_LOCAL_MACHINE\\<key_path>`` opened for read/write, created if absent."""

    def __init__(self, key_path: str = REGISTRY_KEY):
        self.key_path = key_path
        self.created = False
        try:
            self._key = winreg.OpenKey(
                winreg.HKEY_LOCAL_MACHINE,
                key_path,
                0,
                winreg.KEY_READ | winreg.KEY_SET_VALUE,
            )
        except FileNotFoundError:
            log_info(f"Creating registry key: {key_path}")
            self._key = winreg.CreateKeyEx(
                winreg.HKEY_LOCAL_MACHINE,
                key_path,
                0,
                winreg.KEY_READ | winreg.KEY_SET_VALUE,
            )
            self.created = True

    def get(self, name: str) -> Any:
        try:
            value, _ = winreg.QueryValueEx(self._key, name)
        except FileNotFoundError:
            return None
        return value

    def set_dword(self, name: str, value: int) -> None:
        winreg.SetValueEx(self._key, name, 0, winreg.REG_DWORD, int(value))

    def close(self) -> None:
        winreg.CloseKey(self._key)

    def __enter__(self) -> "WindowsRegistryStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def open_flag_store(key_path: str = REGISTRY_KEY):
    """Return the registry-backed store on Windows, a no-op store elsewhere."""

    if sys.platform != "win32":
        log_warning(f"⚠️ No Windows registry on this host; skipping {key_path}.")
        return NullFlagStore(key_path)
    try:
        return WindowsRegistryStore(key_path)
    except OSError as exc:
        raise RegistryError(
            f"Error opening registry key {key_path}: {describe_os_error(exc)}"
        ) from exc


def ensure_limited_operator_ui(store) -> Any:
    """Set ``LimitedOperatorUI`` to 1 unless it already has a value.

    Returns the value the flag holds afterwards.
    """

    flag_path = f"{store.key_path}\\{LIMITED_OPERATOR_VALUE}"
    current = store.get(LIMITED_OPERATOR_VALUE)
    if current is not None:
        log_info(f"Registry key already exists: {flag_path}")
        log_info(f"Value: {current}")
        return current

    log_info(f"Creating registry key: {flag_path}")
    try:
        store.set_dword(LIMITED_OPERATOR_VALUE, LIMITED_OPERATOR_ENABLED)
    except OSError as exc:
        raise RegistryError(
            f"Error updating registry key {flag_path}: {describe_os_error(exc)}"
        ) from exc
    LOGGER.info("LimitedOperatorUI enabled", extra={"key": store.key_path})
    return LIMITED_OPERATOR_ENABLED
