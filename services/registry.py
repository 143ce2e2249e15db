"""Registry access for machine-wide settings."""
from __future__ import annotations

from typing import Protocol

try:  # Windows-only dependency, optional for test doubles
    import winreg  # type: ignore
except ImportError:  # pragma: no cover - not available on Linux runners
    winreg = None  # type: ignore


class RegistryAccessor(Protocol):
    def set_value(self, path: str, value_name: str, value: str | int) -> None:  # pragma: no cover - protocol
        ...


class WindowsRegistryAccessor:
    """Minimal registry helper backed by winreg."""

    def __init__(self) -> None:
        if winreg is None:
            raise RuntimeError("winreg not available on this platform")

    def set_value(self, path: str, value_name: str, value: str | int) -> None:
        hive, subkey = split_registry_path(path)
        value_type = winreg.REG_DWORD if isinstance(value, int) else winreg.REG_SZ
        with winreg.CreateKeyEx(hive, subkey, 0, winreg.KEY_SET_VALUE) as key:  # type: ignore[arg-type]
            winreg.SetValueEx(key, value_name, 0, value_type, value)


def split_registry_path(path: str) -> tuple[object, str]:
    """Split ``HKLM:\\Some\\Key`` into a winreg hive handle and a subkey."""
    cleaned = path.replace("/", "\\")
    marker = ":\\"
    if marker not in cleaned:
        raise ValueError(f"Invalid registry path: {path}")
    hive_name, subkey = cleaned.split(marker, 1)
    subkey = subkey.lstrip("\\")
    if winreg is None:
        raise RuntimeError("winreg not available on this platform")
    hive_map = {
        "HKLM": winreg.HKEY_LOCAL_MACHINE,
        "HKCU": winreg.HKEY_CURRENT_USER,
        "HKCR": winreg.HKEY_CLASSES_ROOT,
        "HKU": winreg.HKEY_USERS,
    }
    try:
        hive = hive_map[hive_name.upper()]
    except KeyError as exc:
        raise ValueError(f"Unsupported hive: {hive_name}") from exc
    return hive, subkey
