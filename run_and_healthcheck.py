from __future__ import annotations

import argparse
import json
import os
import subprocess
import sys
import time
import urllib.error
import urllib.request
from pathlib import Path


APP_DIR = Path(__file__).resolve().parent


def load_env_file(path: Path) -> None:
    if not path.exists():
        return
    for raw in path.read_text(encoding="utf-8").splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key and key not in os.environ:
            os.environ[key] = value


def is_healthy(url: str, timeout: float = 2.0) -> bool:
    """True when ``url`` answers with a crawl status payload."""
    request = urllib.request.Request(url=url, method="GET")
    try:
        with urllib.request.urlopen(request, timeout=timeout) as resp:
            if int(resp.status) != 200:
                return False
            payload = json.loads(resp.read().decode("utf-8") or "{}")
    except (urllib.error.URLError, OSError, ValueError):
        return False
    return isinstance(payload, dict) and "is_running" in payload


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Start the lotto archive server in background and wait for /status.")
    parser.add_argument("--host", default=os.environ.get("HOST", "127.0.0.1"), help="Host to bind/check")
    parser.add_argument("--port", type=int, default=int(os.environ.get("PORT", "8080")), help="Port to bind/check")
    parser.add_argument("--timeout", type=float, default=25.0, help="Seconds to wait for health")
    parser.add_argument("--check-only", action="store_true", help="Only check current health, do not spawn")
    return parser


def main(argv: list[str] | None = None) -> int:
    load_env_file(APP_DIR / ".env")
    args = build_parser().parse_args(argv)

    base_url = f"http://{args.host}:{args.port}"
    health_url = f"{base_url}/status"

    if is_healthy(health_url):
        print(f"Already healthy: {base_url}/")
        return 0

    if args.check_only:
        print(f"Not healthy: {health_url}")
        return 1

    runtime_dir = APP_DIR / "runtime"
    runtime_dir.mkdir(parents=True, exist_ok=True)
    log_file = runtime_dir / "server.log"
    pid_file = runtime_dir / "server.pid"

    env = os.environ.copy()
    env["HOST"] = args.host
    env["PORT"] = str(args.port)
    env["FLASK_DEBUG"] = "0"

    with log_file.open("ab") as log_stream:
        proc = subprocess.Popen(
            [sys.executable, "app.py"],
            stdout=log_stream,
            stderr=subprocess.STDOUT,
            stdin=subprocess.DEVNULL,
            env=env,
            cwd=str(APP_DIR),
            close_fds=True,
        )

    deadline = time.time() + max(1.0, args.timeout)
    while time.time() < deadline:
        if proc.poll() is not None:
            print(f"Server exited with code {proc.returncode} before answering {health_url}")
            print(f"See log: {log_file}")
            return 1
        if is_healthy(health_url):
            pid_file.write_text(str(proc.pid), encoding="utf-8")
            print(f"Server started. URL: {base_url}/")
            print(f"PID: {proc.pid}")
            print(f"Log: {log_file}")
            return 0
        time.sleep(0.4)

    proc.terminate()
    print(f"Health check timed out after {args.timeout}s: {health_url}")
    print(f"See log: {log_file}")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
