from __future__ import annotations

import shutil
import zipfile
from datetime import datetime
from pathlib import Path
from typing import Callable

import pytest

from hostcare.config import ArtifactSettings, Settings
from hostcare.host import (
    Device,
    FeatureUnavailable,
    InstalledProgram,
    ProcessOutput,
    Volume,
    WindowsUpdate,
)
from hostcare.tasks import TaskContext, build_context
from hostcare.tools import Intent, ToolInvoker
from hostcare.updater import ArtifactUpdater, DownloadFailed


class FakeSpawner:
    """Answers by full argument tuple first, then by executable name."""

    def __init__(self, responses=None, default=(b"", 0)):
        self.responses = dict(responses or {})
        self.default = default
        self.calls: list[tuple[str, ...]] = []

    def __call__(self, args):
        args = tuple(args)
        self.calls.append(args)
        stdout, code = self.responses.get(args, self.responses.get(args[0], self.default))
        return ProcessOutput(args, stdout, code)


class MemoryPathStore:
    def __init__(self, value: str = ""):
        self.value = value
        self.writes = 0

    def get(self) -> str:
        return self.value

    def set(self, value: str) -> None:
        self.value = value
        self.writes += 1


class FileDownloader:
    """Serves a local file as the remote archive."""

    def __init__(self, source: Path | None = None):
        self.source = source
        self.calls = 0

    def __call__(self, url: str, destination: Path) -> None:
        self.calls += 1
        if self.source is None:
            raise DownloadFailed(url, "connection refused")
        shutil.copyfile(self.source, destination)


class FakeHost:
    def __init__(
        self,
        *,
        elevated: bool = True,
        volumes=(),
        devices=(),
        programs=(),
        features: list[str] | None = None,
        updates: list[WindowsUpdate] | None = None,
        hypervisor: dict | None = None,
    ):
        self.elevated = elevated
        self.volumes = list(volumes)
        self.devices = list(devices)
        self.programs = list(programs)
        self.features = features
        self.updates = updates
        self.hypervisor = hypervisor
        self.calls: list[str] = []

    def is_elevated(self) -> bool:
        self.calls.append("is_elevated")
        return self.elevated

    def computer_info(self):
        return {"Caption": "Microsoft Windows 11 Pro", "CSName": "HOST01"}

    def hypervisor_info(self):
        return self.hypervisor

    def pnp_devices(self) -> list[Device]:
        return list(self.devices)

    def fixed_volumes(self) -> list[Volume]:
        return list(self.volumes)

    def crash_dump_locations(self, system_root: Path):
        return system_root / "MEMORY.DMP", system_root / "Minidump"

    def installed_features(self) -> list[str]:
        if self.features is None:
            raise FeatureUnavailable("no Windows feature query is available")
        return list(self.features)

    def installed_programs(self) -> list[InstalledProgram]:
        return list(self.programs)

    def environment_variables(self):
        return {"machine": {"Path": r"C:\Windows"}, "user": {"TEMP": r"C:\Temp"}}

    def pending_updates(self) -> list[WindowsUpdate]:
        if self.updates is None:
            raise FeatureUnavailable("PSWindowsUpdate PowerShell module is not installed")
        return list(self.updates)

    def install_updates(self) -> list[WindowsUpdate]:
        self.calls.append("install_updates")
        return self.pending_updates()

    def clear_internet_cache(self, system_root: Path) -> None:
        self.calls.append("clear_internet_cache")

    def empty_recycle_bin(self) -> None:
        self.calls.append("empty_recycle_bin")


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    temp = tmp_path / "Temp"
    temp.mkdir()
    system_root = tmp_path / "Windows"
    system_root.mkdir()
    program_data = tmp_path / "ProgramData"
    program_data.mkdir()
    return Settings(
        temp_dirs=[temp],
        system_root=system_root,
        program_data=program_data,
        sysinternals=ArtifactSettings(
            url="https://downloads.example.test/SysinternalsSuite.zip",
            install_dir=tmp_path / "Program Files" / "Sysinternals",
        ),
    )


@pytest.fixture
def make_archive(tmp_path: Path) -> Callable[..., Path]:
    def _make(entries: dict[str, datetime], name: str = "suite.zip") -> Path:
        path = tmp_path / name
        with zipfile.ZipFile(path, "w") as zf:
            for entry, stamp in entries.items():
                info = zipfile.ZipInfo(entry, date_time=stamp.timetuple()[:6])
                zf.writestr(info, f"contents of {entry}")
        return path

    return _make


@pytest.fixture
def host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def spawner() -> FakeSpawner:
    return FakeSpawner()


@pytest.fixture
def path_store() -> MemoryPathStore:
    return MemoryPathStore(r"C:\Windows\system32;C:\Windows")


@pytest.fixture
def downloader() -> FileDownloader:
    return FileDownloader()


@pytest.fixture
def context(settings, host, spawner, path_store, downloader) -> TaskContext:
    artifact = settings.sysinternals
    updater = ArtifactUpdater(
        artifact.url,
        artifact.install_dir,
        settings.temp_dir,
        downloader=downloader,
        path_store=path_store,
        marker_name=artifact.marker_name,
    )
    return build_context(
        settings,
        host=host,
        invoker=ToolInvoker(spawner, encoding="utf-8"),
        updater=updater,
        intent=Intent.REPAIR,
    )
