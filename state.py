from __future__ import annotations

import threading
import time
from typing import Any, Dict, Iterable, List, Optional

from scraper import DrawRecord


class CrawlConflictError(RuntimeError):
    pass


class CrawlState:
    """Run flag, progress log and published records of the archive crawl.

    The orchestrator writes, HTTP handlers read. Every access goes through
    one lock held only for the field update itself.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._is_running = False
        self._lotto_type: Optional[str] = None
        self._progress: List[str] = []
        self._results: List[DrawRecord] = []
        self._started_at: Optional[float] = None
        self._finished_at: Optional[float] = None

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._is_running

    def begin(self, lotto_type: str, message: str) -> None:
        with self._lock:
            if self._is_running:
                raise CrawlConflictError("A scraper is already running.")
            self._is_running = True
            self._lotto_type = lotto_type
            self._progress = [message]
            self._results = []
            self._started_at = time.time()
            self._finished_at = None

    def append_progress(self, message: str) -> None:
        with self._lock:
            self._progress.append(message)

    def finish(self, records: Iterable[DrawRecord], message: str) -> None:
        published = list(records)
        with self._lock:
            self._results = published
            self._progress.append(message)
            self._is_running = False
            self._finished_at = time.time()

    def results(self) -> List[DrawRecord]:
        with self._lock:
            return list(self._results)

    def progress(self) -> List[str]:
        with self._lock:
            return list(self._progress)

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            is_running = self._is_running
            lotto_type = self._lotto_type
            progress = list(self._progress)
            results = list(self._results)
        return {
            "is_running": is_running,
            "lotto_type": lotto_type,
            "progress": progress,
            "results": [record.to_dict() for record in results],
        }

    def runtime_info(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "is_running": self._is_running,
                "lotto_type": self._lotto_type,
                "progress_entries": len(self._progress),
                "result_count": len(self._results),
                "started_at": self._started_at,
                "finished_at": self._finished_at,
            }
