from __future__ import annotations

import sys

SEPARATOR = ";"

_ENVIRONMENT_KEY = r"SYSTEM\CurrentControlSet\Control\Session Manager\Environment"


def has_segment(path_value: str, directory: str) -> bool:
    return directory in path_value.split(SEPARATOR)


def ensure_path_segment(path_value: str, directory: str) -> str:
    """Return ``path_value`` with ``directory`` appended once.

    Existing segments are never reordered; empty segments produced by
    leading, trailing or doubled separators are ignored when matching.
    """
    if has_segment(path_value, directory):
        return path_value

    if path_value and not path_value.endswith(SEPARATOR):
        path_value += SEPARATOR
    return path_value + directory


class MachinePathStore:
    """Machine-wide ``Path`` variable, read-modify-write with no locking."""

    def get(self) -> str:
        import winreg

        with winreg.OpenKey(winreg.HKEY_LOCAL_MACHINE, _ENVIRONMENT_KEY) as key:
            value, _ = winreg.QueryValueEx(key, "Path")
        return value

    def set(self, value: str) -> None:
        import winreg

        with winreg.OpenKey(
            winreg.HKEY_LOCAL_MACHINE, _ENVIRONMENT_KEY, 0, winreg.KEY_SET_VALUE
        ) as key:
            winreg.SetValueEx(key, "Path", 0, winreg.REG_EXPAND_SZ, value)
        _broadcast_environment_change()


def _broadcast_environment_change() -> None:
    if sys.platform != "win32":
        return

    import ctypes

    HWND_BROADCAST = 0xFFFF
    WM_SETTINGCHANGE = 0x001A
    SMTO_ABORTIFHUNG = 0x0002
    result = ctypes.c_ulong()
    ctypes.windll.user32.SendMessageTimeoutW(
        HWND_BROADCAST,
        WM_SETTINGCHANGE,
        0,
        "Environment",
        SMTO_ABORTIFHUNG,
        5000,
        ctypes.byref(result),
    )
