from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


class HostcareError(Exception):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)


class FeatureUnavailable(HostcareError):
    """An optional OS feature, module or companion tool is missing."""


class NotApplicableError(HostcareError):
    """The task has nothing to report on this host."""


@dataclass(frozen=True)
class ProcessOutput:
    args: tuple[str, ...]
    stdout: bytes
    returncode: int


@dataclass(frozen=True)
class Volume:
    path: str
    file_system: str
    label: str = ""
    size: int = 0
    free: int = 0


@dataclass(frozen=True)
class Device:
    name: str
    device_class: str
    status: str
    instance_id: str = ""
    problem: int = 0


@dataclass(frozen=True)
class InstalledProgram:
    name: str
    version: str = ""
    publisher: str = ""


@dataclass(frozen=True)
class CrashDump:
    path: str
    size: int
    modified: datetime


@dataclass(frozen=True)
class WindowsUpdate:
    title: str
    kb: str = ""
    size: int = 0


@dataclass
class PurgeResult:
    path: str
    removed: int = 0
    skipped: int = 0
