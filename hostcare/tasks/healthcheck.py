from __future__ import annotations

from hostcare.catalogue import Catalogue, TaskSpec
from hostcare.executor import Failed
from hostcare.tools import Operation, ToolResult

from .context import TaskContext


def file_system_scans(ctx: TaskContext):
    checks = ctx.invoker.check_volumes(ctx.host.fixed_volumes(), ctx.intent)
    failed = [
        check.volume.path
        for check in checks
        if check.result is not None and check.result.classification.failed
    ]
    if failed:
        return Failed("chkdsk failed on " + ", ".join(failed), checks)
    return checks


def system_file_checker(ctx: TaskContext) -> ToolResult:
    return ctx.invoker.invoke(
        Operation.SYSTEM_FILE_CHECK, ctx.intent
    ).raise_for_failure()


def component_store_scan(ctx: TaskContext) -> ToolResult:
    return ctx.invoker.invoke(
        Operation.COMPONENT_STORE_SCAN, ctx.intent
    ).raise_for_failure()


HEALTHCHECK = Catalogue(
    "healthcheck",
    (
        TaskSpec("file_system_scans", file_system_scans, privileged=True),
        TaskSpec("system_file_checker", system_file_checker, privileged=True),
        TaskSpec("component_store_scan", component_store_scan, privileged=True),
    ),
)
