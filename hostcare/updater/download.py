from __future__ import annotations

import logging
from pathlib import Path

import requests

from .types import DownloadFailed

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


class HttpDownloader:
    def __init__(self, session: requests.Session | None = None, timeout: float = 60.0):
        self.session = session or requests.Session()
        self.timeout = timeout

    def __call__(self, url: str, destination: Path) -> None:
        logger.info("downloading %s", url)
        try:
            with self.session.get(url, stream=True, timeout=self.timeout) as response:
                response.raise_for_status()
                with destination.open("wb") as fh:
                    for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                        fh.write(chunk)
        except requests.RequestException as exc:
            raise DownloadFailed(url, exc) from exc
        except OSError as exc:
            raise DownloadFailed(url, exc) from exc
