from __future__ import annotations

import threading
import unittest

from crawler import CrawlOrchestrator, UnsupportedLottoTypeError
from scraper import DrawRecord, PageFetchError, PageResult
from state import CrawlConflictError, CrawlState


START = "https://example.test/archive/"


def _url(n: int) -> str:
    return START if n == 1 else f"{START}page/{n}/"


class FakeScraper:
    def __init__(self, pages: dict) -> None:
        self.pages = pages
        self.calls: list[str] = []

    def scrape_page(self, url: str) -> PageResult:
        self.calls.append(url)
        outcome = self.pages[url]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class BlockingScraper:
    def __init__(self) -> None:
        self.entered = threading.Event()
        self.release = threading.Event()

    def scrape_page(self, url: str) -> PageResult:
        self.entered.set()
        self.release.wait(5)
        return PageResult(url=url, records=[DrawRecord("2024-01-01", "123456", "56")])


def _records(prefix: str, count: int) -> list[DrawRecord]:
    return [DrawRecord(f"{prefix}-{i}", f"{i:06d}", f"{i:02d}") for i in range(count)]


class CrawlOrchestratorTest(unittest.TestCase):
    def setUp(self) -> None:
        self.state = CrawlState()
        self.sleeps: list[float] = []

    def _orchestrator(self, scraper) -> CrawlOrchestrator:
        return CrawlOrchestrator(self.state, scraper, start_url=START, page_delay=0.5, sleep=self.sleeps.append)

    def test_result_count_is_sum_of_page_contributions(self) -> None:
        scraper = FakeScraper({
            _url(1): PageResult(_url(1), _records("a", 3), _url(2)),
            _url(2): PageResult(_url(2), [], _url(3)),
            _url(3): PageResult(_url(3), _records("c", 2), None),
        })
        orchestrator = self._orchestrator(scraper)
        orchestrator.start("thai")
        orchestrator.join(5)

        self.assertFalse(self.state.is_running)
        self.assertEqual(len(self.state.results()), 5)
        self.assertEqual(scraper.calls, [_url(1), _url(2), _url(3)])
        self.assertEqual(self.sleeps, [0.5, 0.5, 0.5])

    def test_failure_publishes_records_from_earlier_pages(self) -> None:
        scraper = FakeScraper({
            _url(1): PageResult(_url(1), _records("a", 2), _url(2)),
            _url(2): PageResult(_url(2), _records("b", 1), _url(3)),
            _url(3): PageFetchError("Request failed with status: 404 Not Found"),
            _url(4): PageResult(_url(4), _records("d", 9), None),
        })
        orchestrator = self._orchestrator(scraper)
        orchestrator.start("thai")
        orchestrator.join(5)

        self.assertEqual([r.draw_date for r in self.state.results()], ["a-0", "a-1", "b-0"])
        self.assertNotIn(_url(4), scraper.calls)
        progress = self.state.progress()
        self.assertEqual(progress[-2], f"Error scraping page 3 ({_url(3)}): Request failed with status: 404 Not Found")
        self.assertTrue(progress[-1].startswith("Thai Lottery scraping complete."))

    def test_first_page_failure_leaves_results_empty(self) -> None:
        orchestrator = self._orchestrator(FakeScraper({START: PageFetchError("timed out")}))
        orchestrator.start("thai")
        orchestrator.join(5)
        self.assertEqual(self.state.results(), [])
        self.assertFalse(self.state.is_running)

    def test_progress_log_for_clean_two_page_run(self) -> None:
        scraper = FakeScraper({
            _url(1): PageResult(_url(1), _records("a", 1), _url(2)),
            _url(2): PageResult(_url(2), _records("b", 1), None),
        })
        orchestrator = self._orchestrator(scraper)
        orchestrator.start("thai")
        orchestrator.join(5)
        self.assertEqual(
            self.state.progress(),
            [
                "Starting scraper for Thai Lottery...",
                f"Scraping page 1: {_url(1)}",
                f"Scraping page 2: {_url(2)}",
                "Thai Lottery scraping complete. 2 records collected.",
            ],
        )

    def test_self_referencing_pagination_stops(self) -> None:
        scraper = FakeScraper({
            _url(1): PageResult(_url(1), _records("a", 1), _url(2)),
            _url(2): PageResult(_url(2), _records("b", 1), _url(1)),
        })
        orchestrator = self._orchestrator(scraper)
        orchestrator.start("thai")
        orchestrator.join(5)
        self.assertEqual(scraper.calls, [_url(1), _url(2)])
        self.assertEqual(len(self.state.results()), 2)

    def test_unexpected_error_still_finishes_run(self) -> None:
        scraper = FakeScraper({
            _url(1): PageResult(_url(1), _records("a", 1), _url(2)),
            _url(2): ValueError("parser exploded"),
        })
        orchestrator = self._orchestrator(scraper)
        with self.assertLogs("crawler", level="ERROR"):
            orchestrator.start("thai")
            orchestrator.join(5)
        self.assertFalse(self.state.is_running)
        self.assertEqual(len(self.state.results()), 1)
        self.assertTrue(any("parser exploded" in line for line in self.state.progress()))

    def test_second_start_while_running_is_rejected(self) -> None:
        scraper = BlockingScraper()
        orchestrator = self._orchestrator(scraper)
        orchestrator.start("thai")
        try:
            self.assertTrue(scraper.entered.wait(5))
            before = self.state.snapshot()
            with self.assertRaises(CrawlConflictError):
                orchestrator.start("thai")
            with self.assertRaises(CrawlConflictError):
                orchestrator.start("euro")
            self.assertEqual(self.state.snapshot(), before)
        finally:
            scraper.release.set()
            orchestrator.join(5)
        self.assertEqual(len(self.state.results()), 1)

    def test_results_stay_empty_until_run_completes(self) -> None:
        scraper = BlockingScraper()
        orchestrator = self._orchestrator(scraper)
        orchestrator.start("thai")
        try:
            self.assertTrue(scraper.entered.wait(5))
            snapshot = self.state.snapshot()
            self.assertTrue(snapshot["is_running"])
            self.assertEqual(snapshot["results"], [])
            self.assertEqual(snapshot["lotto_type"], "thai")
        finally:
            scraper.release.set()
            orchestrator.join(5)

    def test_unsupported_type_is_rejected_without_state_change(self) -> None:
        orchestrator = self._orchestrator(FakeScraper({}))
        with self.assertRaises(UnsupportedLottoTypeError):
            orchestrator.start("euromillions")
        with self.assertRaises(UnsupportedLottoTypeError):
            orchestrator.start(" thai ")
        self.assertEqual(
            self.state.snapshot(),
            {"is_running": False, "lotto_type": None, "progress": [], "results": []},
        )


class CrawlStateTest(unittest.TestCase):
    def test_begin_resets_previous_run(self) -> None:
        state = CrawlState()
        state.begin("thai", "start one")
        state.append_progress("page 1")
        state.finish(_records("a", 2), "done")
        state.begin("thai", "start two")
        snapshot = state.snapshot()
        self.assertEqual(snapshot["progress"], ["start two"])
        self.assertEqual(snapshot["results"], [])
        self.assertTrue(snapshot["is_running"])

    def test_snapshot_is_a_copy(self) -> None:
        state = CrawlState()
        state.begin("thai", "start")
        snapshot = state.snapshot()
        snapshot["progress"].append("tampered")
        self.assertEqual(state.progress(), ["start"])

    def test_runtime_info_counts(self) -> None:
        state = CrawlState()
        state.begin("thai", "start")
        state.finish(_records("a", 3), "done")
        info = state.runtime_info()
        self.assertEqual(info["result_count"], 3)
        self.assertEqual(info["progress_entries"], 2)
        self.assertIsNotNone(info["finished_at"])


if __name__ == "__main__":
    unittest.main(verbosity=2)
