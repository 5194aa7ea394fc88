from __future__ import annotations

import logging
import shutil
from pathlib import Path

from .types import PurgeResult

logger = logging.getLogger(__name__)


def purge_directory(path: Path) -> PurgeResult:
    """Delete everything inside ``path``, keeping the directory itself.

    Entries that can't be removed (usually because they are in use) are
    counted as skipped.
    """
    result = PurgeResult(str(path))
    if not path.is_dir():
        return result

    for entry in path.iterdir():
        try:
            if entry.is_dir() and not entry.is_symlink():
                shutil.rmtree(entry)
            else:
                entry.unlink()
        except OSError as exc:
            logger.debug("can't remove %s: %s", entry, exc)
            result.skipped += 1
        else:
            result.removed += 1

    return result
