from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
from urllib.parse import urljoin, urlparse

import requests
from bs4 import BeautifulSoup


logger = logging.getLogger(__name__)

ARCHIVE_START_URL = "https://news.sanook.com/lotto/archive/"
USER_AGENT = "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120 Safari/537.36"

ENTRY_SELECTOR = "article.archive--lotto"
DATE_SELECTOR = "time.archive--lotto__date"
RESULT_LINE_SELECTOR = "ul.archive--lotto__result-list li"
LABEL_SELECTOR = "em.archive--lotto__result-txt"
NUMBER_SELECTOR = "strong.archive--lotto__result-number"
NEXT_PAGE_SELECTOR = "a.pagination__item--next"

FIRST_PRIZE_LABEL = "รางวัลที่ 1"
LAST_TWO_DIGITS_LABEL = "เลขท้าย 2 ตัว"
UNKNOWN_DATE = "Unknown"


class PageFetchError(RuntimeError):
    pass


@dataclass(frozen=True)
class DrawRecord:
    draw_date: str
    first_prize: str
    last_2_digits: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "Draw Date": self.draw_date,
            "First Prize": self.first_prize,
            "Last 2 Digits": self.last_2_digits,
        }


@dataclass
class PageResult:
    url: str
    records: List[DrawRecord] = field(default_factory=list)
    next_page: Optional[str] = None


class ThaiLottoScraper:
    """Fetches archive pages and turns each one into draw records.

    A page is a list of ``article`` entries; every entry carries a date
    and a list of labelled result lines. Only the first prize and the
    last two digits are kept.
    """

    def __init__(self, timeout: float = 30) -> None:
        self.session = requests.Session()
        self.session.headers.update({
            "User-Agent": USER_AGENT,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        })
        self.timeout = timeout

    def scrape_page(self, url: str) -> PageResult:
        html = self.fetch_page(url)
        records, next_page = self.parse_page(html, base_url=url)
        return PageResult(url=url, records=records, next_page=next_page)

    def fetch_page(self, url: str) -> str:
        logger.info("Fetching archive page %s", url)
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.warning("Fetching %s failed: %s", url, exc)
            raise PageFetchError(str(exc)) from exc
        if not response.ok:
            logger.warning("Fetching %s returned HTTP %s", url, response.status_code)
            raise PageFetchError(f"Request failed with status: {response.status_code} {response.reason or ''}".rstrip())
        if response.encoding is None or response.encoding.lower() == "iso-8859-1":
            return self._decode_text(response.content)
        return response.text

    def parse_page(self, html: str, base_url: str = ARCHIVE_START_URL) -> Tuple[List[DrawRecord], Optional[str]]:
        soup = BeautifulSoup(html, "html.parser")
        records: List[DrawRecord] = []
        for entry in soup.select(ENTRY_SELECTOR):
            record = self._parse_entry(entry)
            if record is not None:
                records.append(record)
        return records, self._next_page(soup, base_url)

    def _parse_entry(self, entry) -> Optional[DrawRecord]:
        draw_date = UNKNOWN_DATE
        date_tag = entry.select_one(DATE_SELECTOR)
        if date_tag is not None:
            draw_date = str(date_tag.get("datetime") or "").strip() or UNKNOWN_DATE

        first_prize: Optional[str] = None
        last_2_digits: Optional[str] = None
        for line in entry.select(RESULT_LINE_SELECTOR):
            label_tag = line.select_one(LABEL_SELECTOR)
            number_tag = line.select_one(NUMBER_SELECTOR)
            if label_tag is None or number_tag is None:
                continue
            label = label_tag.get_text()
            value = number_tag.get_text().strip()
            # first match per label wins
            if FIRST_PRIZE_LABEL in label:
                if first_prize is None:
                    first_prize = value
            elif LAST_TWO_DIGITS_LABEL in label:
                if last_2_digits is None:
                    last_2_digits = value

        if first_prize is None or last_2_digits is None:
            return None
        return DrawRecord(draw_date=draw_date, first_prize=first_prize, last_2_digits=last_2_digits)

    def _next_page(self, soup: BeautifulSoup, base_url: str) -> Optional[str]:
        link = soup.select_one(NEXT_PAGE_SELECTOR)
        if link is None:
            return None
        return self._resolve_url(base_url, str(link.get("href") or ""))

    def _resolve_url(self, base_url: str, value: str) -> Optional[str]:
        candidate = value.strip()
        if not candidate or candidate.startswith("#") or candidate.lower().startswith("javascript:"):
            return None
        resolved = urljoin(base_url, candidate)
        if urlparse(resolved).scheme not in ("http", "https"):
            return None
        return resolved

    def _decode_text(self, body: bytes) -> str:
        for encoding in ("utf-8", "tis-620"):
            try:
                return body.decode(encoding)
            except UnicodeDecodeError:
                continue
        return body.decode("utf-8", errors="ignore")
