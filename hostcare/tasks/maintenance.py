from __future__ import annotations

from hostcare.catalogue import Catalogue, TaskSpec
from hostcare.host import PurgeResult, purge_directory
from hostcare.tools import Intent, Operation, ToolResult
from hostcare.updater import VersionedArtifact

from .context import TaskContext

ERROR_REPORT_DIRS = ("ReportArchive", "ReportQueue")


def windows_updates(ctx: TaskContext):
    return ctx.host.install_updates()


def component_store_cleanup(ctx: TaskContext) -> ToolResult:
    return ctx.invoker.invoke(
        Operation.COMPONENT_STORE_CLEANUP, Intent.REPAIR
    ).raise_for_failure()


def sysinternals_suite(ctx: TaskContext) -> VersionedArtifact:
    return ctx.updater.update()


def clear_internet_cache(ctx: TaskContext) -> bool:
    ctx.host.clear_internet_cache(ctx.settings.system_root)
    return True


def delete_error_reports(ctx: TaskContext) -> list[PurgeResult]:
    wer = ctx.settings.program_data / "Microsoft" / "Windows" / "WER"
    return [purge_directory(wer / name) for name in ERROR_REPORT_DIRS]


def delete_temporary_files(ctx: TaskContext) -> list[PurgeResult]:
    return [purge_directory(path) for path in ctx.settings.temp_dirs]


def empty_recycle_bin(ctx: TaskContext) -> bool:
    ctx.host.empty_recycle_bin()
    return True


MAINTENANCE = Catalogue(
    "maintenance",
    (
        TaskSpec("windows_updates", windows_updates, privileged=True),
        TaskSpec("component_store_cleanup", component_store_cleanup, privileged=True),
        TaskSpec("sysinternals_suite", sysinternals_suite),
        TaskSpec("clear_internet_cache", clear_internet_cache),
        TaskSpec("delete_error_reports", delete_error_reports),
        TaskSpec("delete_temporary_files", delete_temporary_files),
        TaskSpec("empty_recycle_bin", empty_recycle_bin),
    ),
)
