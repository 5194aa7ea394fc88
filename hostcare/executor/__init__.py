from .runner import TaskRunner
from .types import (
    Failed,
    NotApplicable,
    Ok,
    PrivilegeRequiredError,
    Report,
    Skipped,
    TaskResult,
    Unavailable,
    result_to_dict,
)

__all__ = [
    "TaskRunner",
    "Failed",
    "NotApplicable",
    "Ok",
    "PrivilegeRequiredError",
    "Report",
    "Skipped",
    "TaskResult",
    "Unavailable",
    "result_to_dict",
]
