from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any

from hostcare.catalogue import Catalogue, TaskSpec
from hostcare.executor import NotApplicable
from hostcare.host import CrashDump, Device, InstalledProgram
from hostcare.tools import Operation, ToolResult

from .context import TaskContext

BAD_DEVICE_STATUSES = frozenset({"Degraded", "Error"})
NOT_PRESENT_STATUS = "Unknown"


def computer_info(ctx: TaskContext) -> dict[str, Any]:
    return ctx.host.computer_info()


def hypervisor_info(ctx: TaskContext):
    info = ctx.host.hypervisor_info()
    if info is None:
        return NotApplicable("no hypervisor detected")
    return info


def devices_with_bad_status(ctx: TaskContext) -> list[Device]:
    return [d for d in ctx.host.pnp_devices() if d.status in BAD_DEVICE_STATUSES]


def devices_not_present(ctx: TaskContext) -> list[Device]:
    return [d for d in ctx.host.pnp_devices() if d.status == NOT_PRESENT_STATUS]


def storage_volumes(ctx: TaskContext):
    return sorted(ctx.host.fixed_volumes(), key=lambda v: v.path)


def _crash_dump(path: Path) -> CrashDump:
    stat = path.stat()
    return CrashDump(str(path), stat.st_size, datetime.fromtimestamp(stat.st_mtime))


def crash_dumps(ctx: TaskContext) -> dict[str, Any]:
    dump_file, minidump_dir = ctx.host.crash_dump_locations(ctx.settings.system_root)

    kernel = _crash_dump(dump_file) if dump_file.is_file() else None
    minidumps = []
    if minidump_dir.is_dir():
        for path in sorted(minidump_dir.glob("*.dmp")):
            minidumps.append(_crash_dump(path))

    return {"kernel": kernel, "minidumps": minidumps}


def component_store_analysis(ctx: TaskContext) -> ToolResult:
    return ctx.invoker.invoke(Operation.COMPONENT_STORE_ANALYSIS).raise_for_failure()


def installed_features(ctx: TaskContext) -> list[str]:
    return sorted(ctx.host.installed_features())


def installed_programs(ctx: TaskContext) -> list[InstalledProgram]:
    # the same product often shows up in more than one registry view
    unique = set(ctx.host.installed_programs())
    return sorted(unique, key=lambda p: (p.name.casefold(), p.version, p.publisher))


def environment_variables(ctx: TaskContext) -> dict[str, dict[str, str]]:
    return ctx.host.environment_variables()


def windows_updates(ctx: TaskContext):
    return ctx.host.pending_updates()


def sysinternals_suite(ctx: TaskContext):
    version = ctx.updater.installed_version()
    if version is None:
        return NotApplicable(f"not installed in {ctx.updater.install_dir}")
    return {"install_path": str(ctx.updater.install_dir), "version": version}


INVENTORY = Catalogue(
    "inventory",
    (
        TaskSpec("computer_info", computer_info),
        TaskSpec("hypervisor_info", hypervisor_info),
        TaskSpec("devices_with_bad_status", devices_with_bad_status),
        TaskSpec("devices_not_present", devices_not_present),
        TaskSpec("storage_volumes", storage_volumes),
        TaskSpec("crash_dumps", crash_dumps, privileged=True),
        TaskSpec("component_store_analysis", component_store_analysis, privileged=True),
        TaskSpec("installed_features", installed_features),
        TaskSpec("installed_programs", installed_programs),
        TaskSpec("environment_variables", environment_variables),
        TaskSpec("windows_updates", windows_updates, privileged=True),
        TaskSpec("sysinternals_suite", sysinternals_suite),
    ),
)
