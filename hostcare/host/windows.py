from __future__ import annotations

import json
import logging
import os
import sys
from pathlib import Path
from typing import Any

import psutil

from .process import Spawner, run_process
from .types import (
    Device,
    FeatureUnavailable,
    HostcareError,
    InstalledProgram,
    Volume,
    WindowsUpdate,
)

logger = logging.getLogger(__name__)

_UNINSTALL_KEY = r"SOFTWARE\Microsoft\Windows\CurrentVersion\Uninstall"
_CRASH_CONTROL_KEY = r"SYSTEM\CurrentControlSet\Control\CrashControl"
_MACHINE_ENV_KEY = r"SYSTEM\CurrentControlSet\Control\Session Manager\Environment"
_USER_ENV_KEY = "Environment"


def is_elevated() -> bool:
    if sys.platform != "win32":
        return os.geteuid() == 0

    import ctypes

    try:
        return bool(ctypes.windll.shell32.IsUserAnAdmin())
    except OSError:
        return False


def _as_list(value: Any) -> list[Any]:
    # ConvertTo-Json emits a bare object for a single result
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


class WindowsHost:
    """OS accessors used by the task executors.

    Queries go through PowerShell with JSON output, registry reads through
    ``winreg`` and volume enumeration through ``psutil``.
    """

    def __init__(self, spawn: Spawner = run_process):
        self.spawn = spawn

    def is_elevated(self) -> bool:
        return is_elevated()

    def powershell(self, script: str) -> Any:
        command = (
            "[Console]::OutputEncoding = [Text.Encoding]::UTF8; "
            f"{script} | ConvertTo-Json -Depth 4 -Compress"
        )
        proc = self.spawn(
            ["powershell.exe", "-NoProfile", "-NonInteractive", "-Command", command]
        )
        text = proc.stdout.decode("utf-8", errors="replace").strip()
        if proc.returncode != 0:
            raise HostcareError(
                f"powershell exited with code {proc.returncode}: {text[:200]}"
            )
        if not text:
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise HostcareError("powershell returned invalid JSON") from exc

    def has_powershell_module(self, name: str) -> bool:
        found = self.powershell(
            f"@(Get-Module -ListAvailable -Name '{name}').Count -gt 0"
        )
        return bool(found)

    def computer_info(self) -> dict[str, Any]:
        os_info = self.powershell(
            "Get-CimInstance -ClassName Win32_OperatingSystem | Select-Object "
            "Caption, Version, BuildNumber, OSArchitecture, CSName, "
            "InstallDate, LastBootUpTime"
        )
        system = self.powershell(
            "Get-CimInstance -ClassName Win32_ComputerSystem | Select-Object "
            "Manufacturer, Model, TotalPhysicalMemory, NumberOfLogicalProcessors"
        )
        return {**(os_info or {}), **(system or {})}

    def hypervisor_info(self) -> dict[str, Any] | None:
        info = self.powershell(
            "Get-CimInstance -ClassName Win32_ComputerSystem | Select-Object "
            "HypervisorPresent, Manufacturer, Model"
        )
        if not info or not info.get("HypervisorPresent"):
            return None
        return {"Manufacturer": info.get("Manufacturer"), "Model": info.get("Model")}

    def pnp_devices(self) -> list[Device]:
        if not self.has_powershell_module("PnpDevice"):
            raise FeatureUnavailable("PnpDevice PowerShell module is not installed")

        rows = self.powershell(
            "Get-PnpDevice | Select-Object FriendlyName, Class, Status, "
            "InstanceId, Problem"
        )
        devices = []
        for row in _as_list(rows):
            devices.append(
                Device(
                    name=row.get("FriendlyName") or "",
                    device_class=row.get("Class") or "",
                    status=row.get("Status") or "",
                    instance_id=row.get("InstanceId") or "",
                    problem=int(row.get("Problem") or 0),
                )
            )
        return devices

    def fixed_volumes(self) -> list[Volume]:
        volumes = []
        for part in psutil.disk_partitions(all=False):
            if "fixed" not in part.opts.split(","):
                continue
            try:
                usage = psutil.disk_usage(part.mountpoint)
            except OSError:
                logger.debug("no usage for %s", part.mountpoint)
                size = free = 0
            else:
                size, free = usage.total, usage.free
            volumes.append(
                Volume(
                    path=part.device.rstrip("\\"),
                    file_system=part.fstype,
                    size=size,
                    free=free,
                )
            )
        return volumes

    def crash_dump_locations(self, system_root: Path) -> tuple[Path, Path]:
        dump_file = system_root / "MEMORY.DMP"
        minidump_dir = system_root / "Minidump"
        values = _read_registry_values(
            _CRASH_CONTROL_KEY, ("DumpFile", "MinidumpDir")
        )
        if values.get("DumpFile"):
            dump_file = Path(os.path.expandvars(values["DumpFile"]))
        if values.get("MinidumpDir"):
            minidump_dir = Path(os.path.expandvars(values["MinidumpDir"]))
        return dump_file, minidump_dir

    def installed_features(self) -> list[str]:
        if self.has_powershell_module("ServerManager"):
            script = (
                "Get-WindowsFeature | Where-Object Installed | "
                "Select-Object -ExpandProperty Name"
            )
        elif self.has_powershell_module("Dism"):
            script = (
                "Get-WindowsOptionalFeature -Online | Where-Object State -eq "
                "'Enabled' | Select-Object -ExpandProperty FeatureName"
            )
        else:
            raise FeatureUnavailable("no Windows feature query is available")
        return [str(name) for name in _as_list(self.powershell(script))]

    def installed_programs(self) -> list[InstalledProgram]:
        import winreg

        views = (
            (winreg.HKEY_LOCAL_MACHINE, winreg.KEY_WOW64_64KEY),
            (winreg.HKEY_LOCAL_MACHINE, winreg.KEY_WOW64_32KEY),
            (winreg.HKEY_CURRENT_USER, 0),
        )
        programs = []
        for hive, view in views:
            try:
                root = winreg.OpenKey(hive, _UNINSTALL_KEY, 0, winreg.KEY_READ | view)
            except OSError:
                continue
            with root:
                for index in range(winreg.QueryInfoKey(root)[0]):
                    name = winreg.EnumKey(root, index)
                    with winreg.OpenKey(root, name) as entry:
                        values = _key_values(entry)
                    if values.get("SystemComponent") == 1:
                        continue
                    display = values.get("DisplayName")
                    if not display:
                        continue
                    programs.append(
                        InstalledProgram(
                            name=str(display),
                            version=str(values.get("DisplayVersion") or ""),
                            publisher=str(values.get("Publisher") or ""),
                        )
                    )
        return programs

    def environment_variables(self) -> dict[str, dict[str, str]]:
        import winreg

        return {
            "machine": _read_registry_values(_MACHINE_ENV_KEY),
            "user": _read_registry_values(
                _USER_ENV_KEY, hive=winreg.HKEY_CURRENT_USER
            ),
        }

    def pending_updates(self) -> list[WindowsUpdate]:
        return self._windows_update("Get-WindowsUpdate")

    def install_updates(self) -> list[WindowsUpdate]:
        return self._windows_update("Install-WindowsUpdate -AcceptAll -IgnoreReboot")

    def _windows_update(self, command: str) -> list[WindowsUpdate]:
        if not self.has_powershell_module("PSWindowsUpdate"):
            raise FeatureUnavailable(
                "PSWindowsUpdate PowerShell module is not installed"
            )

        rows = self.powershell(f"{command} | Select-Object Title, KB, Size")
        return [
            WindowsUpdate(
                title=row.get("Title") or "",
                kb=row.get("KB") or "",
                size=int(row.get("Size") or 0),
            )
            for row in _as_list(rows)
        ]

    def clear_internet_cache(self, system_root: Path) -> None:
        inetcpl = system_root / "System32" / "inetcpl.cpl"
        if not inetcpl.exists():
            raise FeatureUnavailable("Internet Options control panel is not installed")
        proc = self.spawn(["RunDll32.exe", "InetCpl.cpl,ClearMyTracksByProcess", "8"])
        if proc.returncode != 0:
            raise HostcareError(
                f"clearing the internet cache failed: {proc.returncode}"
            )

    def empty_recycle_bin(self) -> None:
        import ctypes

        SHERB_NOCONFIRMATION = 0x1
        SHERB_NOPROGRESSUI = 0x2
        SHERB_NOSOUND = 0x4
        S_OK = 0
        # E_UNEXPECTED is returned when the bin is already empty
        E_UNEXPECTED = -2147418113

        try:
            shell32 = ctypes.windll.shell32
        except AttributeError as exc:
            raise FeatureUnavailable("shell32 is not available") from exc

        rc = shell32.SHEmptyRecycleBinW(
            None, None, SHERB_NOCONFIRMATION | SHERB_NOPROGRESSUI | SHERB_NOSOUND
        )
        if rc not in (S_OK, E_UNEXPECTED):
            raise HostcareError(f"emptying the recycle bin failed: {rc:#x}")


def _key_values(key: Any) -> dict[str, Any]:
    import winreg

    values = {}
    for index in range(winreg.QueryInfoKey(key)[1]):
        name, data, _ = winreg.EnumValue(key, index)
        values[name] = data
    return values


def _read_registry_values(
    path: str, names: tuple[str, ...] | None = None, hive: Any = None
) -> dict[str, Any]:
    import winreg

    try:
        with winreg.OpenKey(hive or winreg.HKEY_LOCAL_MACHINE, path) as key:
            values = _key_values(key)
    except OSError:
        logger.debug("registry key %s not readable", path)
        return {}

    if names is None:
        return values
    return {name: values[name] for name in names if name in values}
