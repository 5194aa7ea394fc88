from __future__ import annotations

import logging
import os
import shutil
import tempfile
import zipfile
from datetime import date, datetime
from pathlib import Path
from typing import Callable, Protocol

from .search_path import ensure_path_segment
from .types import VERSION_FORMAT, ArtifactIOError, VersionedArtifact

logger = logging.getLogger(__name__)

Downloader = Callable[[str, Path], None]


class PathStore(Protocol):
    def get(self) -> str: ...

    def set(self, value: str) -> None: ...


def archive_version(archive: Path) -> date:
    """Newest entry timestamp in the archive, truncated to the day.

    Entries carrying an impossible DOS date (zeroed month or day) are ignored.
    """
    try:
        with zipfile.ZipFile(archive) as zf:
            infos = zf.infolist()
    except (OSError, zipfile.BadZipFile) as exc:
        raise ArtifactIOError(f"{archive}: unreadable archive: {exc}") from exc

    if not infos:
        raise ArtifactIOError(f"{archive}: archive is empty")

    stamps = []
    for info in infos:
        try:
            stamps.append(datetime(*info.date_time))
        except ValueError:
            logger.debug("%s: ignoring invalid timestamp on %s", archive, info.filename)

    if not stamps:
        raise ArtifactIOError(f"{archive}: no entry carries a valid timestamp")

    return max(stamps).date()


def read_version_marker(path: Path) -> date | None:
    if not path.is_file():
        return None

    try:
        text = path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("%s: ignoring unreadable version marker: %s", path, exc)
        return None

    try:
        return datetime.strptime(text, VERSION_FORMAT).date()
    except ValueError:
        logger.warning("%s: ignoring malformed version marker %r", path, text)
        return None


class ArtifactUpdater:
    def __init__(
        self,
        url: str,
        install_dir: Path,
        temp_dir: Path,
        *,
        downloader: Downloader,
        path_store: PathStore,
        marker_name: str = "Version.txt",
    ):
        self.url = url
        self.install_dir = Path(install_dir)
        self.temp_dir = Path(temp_dir)
        self.downloader = downloader
        self.path_store = path_store
        self.marker_name = marker_name

    @property
    def marker_path(self) -> Path:
        return self.install_dir / self.marker_name

    def installed_version(self) -> date | None:
        return read_version_marker(self.marker_path)

    def update(self) -> VersionedArtifact:
        installed = self.installed_version()

        try:
            fd, name = tempfile.mkstemp(suffix=".zip", dir=self.temp_dir)
        except OSError as exc:
            raise ArtifactIOError(
                f"{self.temp_dir}: can't create download file: {exc}"
            ) from exc
        os.close(fd)
        download = Path(name)

        try:
            self.downloader(self.url, download)
            candidate = archive_version(download)

            if installed is None or candidate > installed:
                logger.info(
                    "installing %s version %s into %s",
                    self.url,
                    candidate.strftime(VERSION_FORMAT),
                    self.install_dir,
                )
                self._install(download, candidate)
                updated = True
            else:
                if candidate < installed:
                    logger.warning(
                        "downloaded version %s is older than installed version %s",
                        candidate.strftime(VERSION_FORMAT),
                        installed.strftime(VERSION_FORMAT),
                    )
                updated = False
        finally:
            download.unlink(missing_ok=True)

        self._ensure_on_search_path()
        return VersionedArtifact(
            install_path=str(self.install_dir),
            installed_version=installed,
            downloaded_version=candidate,
            updated=updated,
        )

    def _install(self, archive: Path, version: date) -> None:
        staging = self.install_dir.with_name(self.install_dir.name + ".staging")
        backup = self.install_dir.with_name(self.install_dir.name + ".old")
        try:
            self.install_dir.parent.mkdir(parents=True, exist_ok=True)
            for leftover in (staging, backup):
                if leftover.exists():
                    shutil.rmtree(leftover)
            with zipfile.ZipFile(archive) as zf:
                zf.extractall(staging)
            (staging / self.marker_name).write_text(
                version.strftime(VERSION_FORMAT) + "\n", encoding="utf-8"
            )
        except (OSError, zipfile.BadZipFile) as exc:
            shutil.rmtree(staging, ignore_errors=True)
            raise ArtifactIOError(f"{self.install_dir}: install failed: {exc}") from exc

        # the previous install stays intact until staging is in place
        moved_aside = False
        try:
            if self.install_dir.exists():
                self.install_dir.rename(backup)
                moved_aside = True
            staging.rename(self.install_dir)
        except OSError as exc:
            if moved_aside:
                self._restore(backup)
            shutil.rmtree(staging, ignore_errors=True)
            raise ArtifactIOError(f"{self.install_dir}: install failed: {exc}") from exc

        shutil.rmtree(backup, ignore_errors=True)
        if backup.exists():
            logger.warning("%s: previous install could not be fully removed", backup)

    def _restore(self, backup: Path) -> None:
        try:
            backup.rename(self.install_dir)
        except OSError as exc:
            logger.error(
                "%s: can't restore previous install from %s: %s",
                self.install_dir,
                backup,
                exc,
            )

    def _ensure_on_search_path(self) -> None:
        directory = str(self.install_dir)
        try:
            current = self.path_store.get()
            new_value = ensure_path_segment(current, directory)
            if new_value != current:
                logger.info("adding %s to the machine search path", directory)
                self.path_store.set(new_value)
        except OSError as exc:
            raise ArtifactIOError(f"search path update failed: {exc}") from exc
