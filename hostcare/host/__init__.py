from .files import purge_directory
from .process import Spawner, run_process
from .types import (
    CrashDump,
    Device,
    FeatureUnavailable,
    HostcareError,
    InstalledProgram,
    NotApplicableError,
    ProcessOutput,
    PurgeResult,
    Volume,
    WindowsUpdate,
)
from .windows import WindowsHost, is_elevated

__all__ = [
    "purge_directory",
    "Spawner",
    "run_process",
    "CrashDump",
    "Device",
    "FeatureUnavailable",
    "HostcareError",
    "InstalledProgram",
    "NotApplicableError",
    "ProcessOutput",
    "PurgeResult",
    "Volume",
    "WindowsUpdate",
    "WindowsHost",
    "is_elevated",
]
