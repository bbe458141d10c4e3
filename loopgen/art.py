import threading
from typing import Callable, Optional

import requests

from .config import DEFAULT_ART_URL, DEFAULT_REQUEST_TIMEOUT
from .loopgenlog import LOG


class AlbumArtLoader:
    """Fetches one decorative image; any failure just means no art."""

    def __init__(
        self,
        url: str = DEFAULT_ART_URL,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()
        self.image: Optional[bytes] = None
        self.content_type: Optional[str] = None

    def load(self) -> Optional[bytes]:
        try:
            resp = self.session.get(
                self.url, timeout=self.timeout, allow_redirects=True
            )
            resp.raise_for_status()
        except requests.RequestException as e:
            LOG.warning("Album art unavailable: %s", e)
            return None

        content_type = resp.headers.get("Content-Type", "")
        if not content_type.startswith("image/") or not resp.content:
            LOG.warning("Album art response is not an image (%s)", content_type or "?")
            return None

        self.image = resp.content
        self.content_type = content_type
        LOG.info("Loaded album art (%d bytes, %s)", len(self.image), content_type)
        return self.image

    def load_in_background(
        self, callback: Optional[Callable[[Optional[bytes]], None]] = None
    ) -> threading.Thread:
        def _run():
            image = self.load()
            if callback is not None:
                callback(image)

        thread = threading.Thread(target=_run, name="album-art", daemon=True)
        thread.start()
        return thread

    def save(self, path: str) -> Optional[str]:
        if self.image is None:
            return None
        with open(path, "wb") as f:
            f.write(self.image)
        LOG.info("Saved album art to %s", path)
        return path
