from hostcare.catalogue import Catalogue
from hostcare.executor import TaskRunner

from .context import TaskContext, build_context
from .healthcheck import HEALTHCHECK
from .inventory import INVENTORY
from .maintenance import MAINTENANCE

CATALOGUES: dict[str, Catalogue] = {
    catalogue.runner: catalogue for catalogue in (INVENTORY, HEALTHCHECK, MAINTENANCE)
}


def build_runner(name: str, context: TaskContext) -> TaskRunner:
    if name not in CATALOGUES:
        raise KeyError(name)
    return TaskRunner(CATALOGUES[name], context, is_elevated=context.host.is_elevated)


__all__ = [
    "CATALOGUES",
    "INVENTORY",
    "HEALTHCHECK",
    "MAINTENANCE",
    "TaskContext",
    "build_context",
    "build_runner",
]
