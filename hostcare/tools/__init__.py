from .invoker import ToolInvoker, build_command, classify
from .types import (
    Classification,
    Intent,
    Operation,
    Outcome,
    ToolInvocation,
    ToolNonZeroExit,
    ToolResult,
    VolumeCheck,
)

__all__ = [
    "ToolInvoker",
    "build_command",
    "classify",
    "Classification",
    "Intent",
    "Operation",
    "Outcome",
    "ToolInvocation",
    "ToolNonZeroExit",
    "ToolResult",
    "VolumeCheck",
]
