from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from hostcare.config import Settings
from hostcare.host import WindowsHost
from hostcare.tools import Intent, ToolInvoker
from hostcare.updater import ArtifactUpdater, HttpDownloader, MachinePathStore


@dataclass
class TaskContext:
    """Everything a task executor may touch. Shared read-only across tasks."""

    settings: Settings
    host: Any
    invoker: ToolInvoker
    updater: ArtifactUpdater
    intent: Intent = Intent.REPAIR


def build_context(
    settings: Settings,
    *,
    host: Any = None,
    invoker: ToolInvoker | None = None,
    updater: ArtifactUpdater | None = None,
    intent: Intent = Intent.REPAIR,
) -> TaskContext:
    if host is None:
        host = WindowsHost()
    if invoker is None:
        invoker = ToolInvoker()
    if updater is None:
        artifact = settings.sysinternals
        updater = ArtifactUpdater(
            artifact.url,
            artifact.install_dir,
            settings.temp_dir,
            downloader=HttpDownloader(),
            path_store=MachinePathStore(),
            marker_name=artifact.marker_name,
        )
    return TaskContext(settings, host, invoker, updater, intent)
