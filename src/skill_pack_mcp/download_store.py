"""In-memory record of download URLs per session."""

import threading


class DownloadStore:
    """Maps a session ID to the download URL of its skill pack.

    Instances are independent and thread-safe.
    """

    def __init__(self):
        self._urls: dict[str, str] = {}
        self._lock = threading.Lock()

    def set_download_url(self, session_id: str, url: str) -> None:
        with self._lock:
            self._urls[session_id] = url

    def get_download_url(self, session_id: str) -> str | None:
        with self._lock:
            return self._urls.get(session_id)

    def clear(self) -> None:
        with self._lock:
            self._urls.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._urls)
