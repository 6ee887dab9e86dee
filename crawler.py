from __future__ import annotations

import logging
import threading
import time
from typing import Callable, List, Optional, Set

from scraper import ARCHIVE_START_URL, DrawRecord, PageFetchError, ThaiLottoScraper
from state import CrawlConflictError, CrawlState


logger = logging.getLogger(__name__)

SUPPORTED_LOTTO_TYPES = ("thai",)
DEFAULT_PAGE_DELAY_SECONDS = 0.5

START_MESSAGE = "Starting scraper for Thai Lottery..."


class UnsupportedLottoTypeError(RuntimeError):
    pass


class CrawlOrchestrator:
    """Walks the draw archive page by page and publishes what it found.

    ``start`` is the single-flight entry point used by the web layer: it
    claims the run under the state lock and hands the traversal to a
    daemon thread. ``run`` does the traversal on the calling thread.
    """

    def __init__(
        self,
        state: CrawlState,
        scraper: Optional[ThaiLottoScraper] = None,
        *,
        start_url: str = ARCHIVE_START_URL,
        page_delay: float = DEFAULT_PAGE_DELAY_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.state = state
        self.scraper = scraper or ThaiLottoScraper()
        self.start_url = start_url
        self.page_delay = max(0.0, float(page_delay))
        self._sleep = sleep
        self._thread: Optional[threading.Thread] = None

    def start(self, lotto_type: str) -> threading.Thread:
        lotto_type = lotto_type or ""
        # conflict is reported before the category check
        if self.state.is_running:
            raise CrawlConflictError("A scraper is already running.")
        if lotto_type not in SUPPORTED_LOTTO_TYPES:
            raise UnsupportedLottoTypeError("Invalid lottery type.")
        self.state.begin(lotto_type, START_MESSAGE)
        logger.info("Crawl started for %s", lotto_type)

        thread = threading.Thread(target=self._runner, name="lotto-crawl", daemon=True)
        self._thread = thread
        thread.start()
        return thread

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def _runner(self) -> None:
        collected: List[DrawRecord] = []
        try:
            self.run(collected)
        except Exception as exc:
            logger.exception("Crawl worker failed")
            self.state.append_progress(f"Error: crawl stopped unexpectedly: {exc}")
        finally:
            self.state.finish(collected, f"Thai Lottery scraping complete. {len(collected)} records collected.")
            logger.info("Crawl finished with %d records", len(collected))

    def run(self, collected: Optional[List[DrawRecord]] = None) -> List[DrawRecord]:
        if collected is None:
            collected = []
        current_url: Optional[str] = self.start_url
        visited: Set[str] = set()
        page_number = 0

        while current_url:
            page_number += 1
            visited.add(current_url)
            self.state.append_progress(f"Scraping page {page_number}: {current_url}")
            try:
                page = self.scraper.scrape_page(current_url)
            except PageFetchError as exc:
                self.state.append_progress(f"Error scraping page {page_number} ({current_url}): {exc}")
                current_url = None
            else:
                collected.extend(page.records)
                next_url = page.next_page
                if next_url and next_url in visited:
                    logger.warning("Pagination points back to %s, stopping", next_url)
                    next_url = None
                current_url = next_url
            if self.page_delay:
                self._sleep(self.page_delay)

        return collected
