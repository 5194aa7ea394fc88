from .artifact import ArtifactUpdater, archive_version, read_version_marker
from .download import HttpDownloader
from .search_path import MachinePathStore, ensure_path_segment, has_segment
from .types import ArtifactIOError, DownloadFailed, VersionedArtifact

__all__ = [
    "ArtifactUpdater",
    "archive_version",
    "read_version_marker",
    "HttpDownloader",
    "MachinePathStore",
    "ensure_path_segment",
    "has_segment",
    "ArtifactIOError",
    "DownloadFailed",
    "VersionedArtifact",
]
