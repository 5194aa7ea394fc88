from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import ClassVar

from hostcare.host.types import HostcareError

VERSION_FORMAT = "%Y%m%d"


@dataclass(frozen=True)
class VersionedArtifact:
    install_path: str
    installed_version: date | None
    downloaded_version: date
    updated: bool
    derived_fields: ClassVar[tuple[str, ...]] = ("version",)

    @property
    def version(self) -> date:
        """The version present in ``install_path`` after the update ran."""
        if self.updated or self.installed_version is None:
            return self.downloaded_version
        return self.installed_version


class DownloadFailed(HostcareError):
    def __init__(self, url: str, reason: object):
        super().__init__(f"Download of {url} failed: {reason}")
        self.url = url


class ArtifactIOError(HostcareError):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)
