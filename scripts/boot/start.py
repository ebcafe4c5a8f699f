#!/usr/bin/env python3
import subprocess
import sys
from pathlib import Path

from kiosk.config import load_settings
from scripts.boot.utils import (
    API_PID_FILE,
    LOG_DIR,
    REPO_ROOT,
    logger,
    wait_http_ok,
)


def background_popen(cmd: list[str], stdout_path: Path, stderr_path: Path) -> subprocess.Popen[bytes]:
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    with (
        stdout_path.open("ab", buffering=0) as stdout_f,
        stderr_path.open("ab", buffering=0) as stderr_f,
    ):
        return subprocess.Popen(  # noqa: S603
            cmd,
            cwd=str(REPO_ROOT),
            stdout=stdout_f,
            stderr=stderr_f,
            start_new_session=True,
        )


def start_api(host: str, port: int) -> None:
    proc = background_popen(
        [
            sys.executable,
            "-m",
            "uvicorn",
            "kiosk.api.main:app",
            "--port",
            str(port),
            "--host",
            host,
        ],
        stdout_path=LOG_DIR / "api.log",
        stderr_path=LOG_DIR / "api.err.log",
    )
    API_PID_FILE.write_text(str(proc.pid), encoding="ascii")
    if wait_http_ok(f"http://{host}:{port}/status"):
        logger.info(f"Kiosk API: http://{host}:{port} が起動 (PID {proc.pid})")
    else:
        logger.warning("FastAPI が応答しません ./log/ 以下を見て")


def main() -> int:
    logger.info("================ Check-In Kiosk Starting up... ===============")
    settings = load_settings()
    start_api(settings.host, settings.port)

    logger.info(f"Monitoring: http://{settings.host}:{settings.port}/monitoring")
    logger.info("Logs: ./log/api.log, ./log/kiosk.log")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
