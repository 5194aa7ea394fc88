from .selector import TaskSelection, enabled_names, select_tasks
from .types import Catalogue, SelectionError, TaskSpec, UnknownTaskError

__all__ = [
    "Catalogue",
    "TaskSpec",
    "TaskSelection",
    "SelectionError",
    "UnknownTaskError",
    "select_tasks",
    "enabled_names",
]
