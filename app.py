from __future__ import annotations

import logging
import os
import time
from pathlib import Path
from typing import Optional

from flask import Flask, jsonify, render_template, request

from analysis import AnalysisError, analyze_numbers
from crawler import CrawlOrchestrator, UnsupportedLottoTypeError
from scraper import ThaiLottoScraper
from state import CrawlConflictError, CrawlState


logger = logging.getLogger(__name__)


def _parse_bool(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def _parse_int(value: Optional[str], default: int, min_value: int, max_value: int) -> int:
    raw = (value or "").strip()
    try:
        num = int(raw)
    except ValueError:
        num = default
    return max(min_value, min(num, max_value))


def _parse_float(value: Optional[str], default: float, min_value: float, max_value: float) -> float:
    raw = (value or "").strip()
    try:
        num = float(raw)
    except ValueError:
        num = default
    return max(min_value, min(num, max_value))


BASE_DIR = Path(__file__).resolve().parent
TEMPLATE_PATH = BASE_DIR / "templates" / "index.html"
HOST = os.environ.get("HOST", "0.0.0.0")
PORT = _parse_int(os.environ.get("PORT"), default=8080, min_value=1, max_value=65535)
PAGE_DELAY_SECONDS = _parse_float(os.environ.get("SCRAPE_PAGE_DELAY_SECONDS"), default=0.5, min_value=0.0, max_value=60.0)
SCRAPE_TIMEOUT_SECONDS = _parse_float(os.environ.get("SCRAPE_TIMEOUT_SECONDS"), default=30.0, min_value=1.0, max_value=600.0)
LOG_LEVEL = (os.environ.get("LOG_LEVEL") or "INFO").strip().upper()

app = Flask(__name__)
crawl_state = CrawlState()
orchestrator = CrawlOrchestrator(
    crawl_state,
    ThaiLottoScraper(timeout=SCRAPE_TIMEOUT_SECONDS),
    page_delay=PAGE_DELAY_SECONDS,
)


def _json_body() -> dict:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


@app.get("/")
def index():
    return render_template("index.html")


@app.post("/start-scrape")
def start_scrape():
    lotto_type = _json_body().get("lotto_type")
    if not isinstance(lotto_type, str):
        lotto_type = ""
    try:
        orchestrator.start(lotto_type)
    except CrawlConflictError as exc:
        return jsonify({"ok": False, "error": str(exc)}), 409
    except UnsupportedLottoTypeError as exc:
        return jsonify({"ok": False, "error": str(exc)}), 400
    return jsonify({"ok": True, "message": "Scraping process started!"}), 202


@app.get("/status")
def status():
    return jsonify(crawl_state.snapshot())


@app.post("/analyze")
def analyze():
    numbers = _json_body().get("numbers")
    if not isinstance(numbers, list) or not all(isinstance(item, str) for item in numbers):
        return jsonify({"ok": False, "error": "numbers must be a list of strings"}), 400
    try:
        report = analyze_numbers(numbers)
    except AnalysisError as exc:
        return jsonify({"ok": False, "error": str(exc)}), 400
    return jsonify(report.to_dict())


@app.get("/diagnostics")
def diagnostics():
    runtime = crawl_state.runtime_info()
    started_at = runtime.get("started_at")
    if started_at and runtime.get("is_running"):
        runtime["elapsed_seconds"] = max(0, int(time.time() - float(started_at)))
    payload = {
        "ok": True,
        "config": {
            "host": HOST,
            "port": PORT,
            "start_url": orchestrator.start_url,
            "page_delay_seconds": orchestrator.page_delay,
            "scrape_timeout_seconds": SCRAPE_TIMEOUT_SECONDS,
            "template_found": TEMPLATE_PATH.exists(),
        },
        "runtime": runtime,
    }
    return jsonify(payload)


if __name__ == "__main__":
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if not TEMPLATE_PATH.exists():
        logger.error("templates/index.html not found at %s", TEMPLATE_PATH)
    debug = _parse_bool(os.environ.get("FLASK_DEBUG"), default=False)
    logger.info("Server starting at http://%s:%s", HOST, PORT)
    app.run(host=HOST, port=PORT, debug=debug, use_reloader=False, threaded=True)
