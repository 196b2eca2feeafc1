import threading
import time
from typing import Callable, Optional

from fastapi import Request

# In-memory dedupe window. Process-local: not shared between uvicorn
# workers and lost on restart.

DEFAULT_WINDOW_SECONDS = 60.0


class Deduplicator:
    """Remembers (event_name, event_id) fingerprints for a sliding window.

    ``should_store`` is check-and-register: the first call for a
    fingerprint returns True and records it, later calls inside the window
    return False. Every call also sweeps out expired entries, so the map
    only holds fingerprints seen in the last ``window_seconds``.
    """

    def __init__(
        self,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.window_seconds = window_seconds
        self._clock = clock
        self._seen: dict[tuple[Optional[str], Optional[str]], float] = {}
        self._lock = threading.Lock()

    @staticmethod
    def fingerprint(
        event_name: Optional[str], event_id: Optional[str]
    ) -> tuple[Optional[str], Optional[str]]:
        # a tuple, so ids containing ":" cannot collide across names
        return (event_name, event_id)

    def should_store(self, event_name: Optional[str], event_id: Optional[str]) -> bool:
        key = self.fingerprint(event_name, event_id)
        with self._lock:
            now = self._clock()
            expired = [k for k, ts in self._seen.items() if now - ts > self.window_seconds]
            for k in expired:
                del self._seen[k]

            if key in self._seen:
                return False
            self._seen[key] = now
            return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._seen)

    def clear(self) -> None:
        with self._lock:
            self._seen.clear()


def get_deduplicator(request: Request) -> Deduplicator:
    return request.app.state.deduplicator
