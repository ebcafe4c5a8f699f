import logging
import time
from pathlib import Path
from typing import cast

import requests

REPO_ROOT = Path(__file__).resolve().parent.parent.parent
LOG_DIR = REPO_ROOT / "log"
API_PID_FILE = REPO_ROOT / "kiosk_api.pid"

HTTP_OK_MIN = 200
HTTP_OK_MAX = 400

logging.basicConfig(level=logging.INFO, format="%(message)s")
logger = logging.getLogger("kiosk.boot")


def http_ok(url: str, timeout: float = 2.5) -> bool:
    if not url.lower().startswith(("http://", "https://")):
        return False
    try:
        resp = requests.get(url, timeout=timeout)
    except requests.RequestException:
        return False
    else:
        status = cast("int", getattr(resp, "status_code", 0))
        return HTTP_OK_MIN <= status < HTTP_OK_MAX


def wait_http_ok(url: str, attempts: int = 30) -> bool:
    """1秒おきに url が応答するまで待つ."""
    for _ in range(attempts):
        if http_ok(url, timeout=1.0):
            return True
        time.sleep(1.0)
    return False
