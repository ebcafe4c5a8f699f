"""環境変数からキオスクの設定を読み込む."""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

REPO_ROOT = Path(__file__).resolve().parent.parent

IDLE_TIMEOUT_SEC = 180.0
AUTO_RETURN_SEC = 30.0
SLIDE_INTERVAL_SEC = 1.5


@dataclass(frozen=True)
class Settings:
    """キオスクサービスの設定値."""

    idle_timeout_sec: float = IDLE_TIMEOUT_SEC
    auto_return_sec: float = AUTO_RETURN_SEC
    slide_interval_sec: float = SLIDE_INTERVAL_SEC
    drive_access_token: str | None = None
    drive_parent_folder_id: str | None = None
    host: str = "127.0.0.1"
    port: int = 5577


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        msg = f"{name} must be a number (got {raw!r})"
        raise RuntimeError(msg) from exc
    if value <= 0:
        msg = f"{name} must be positive (got {raw!r})"
        raise RuntimeError(msg)
    return value


def load_local_env() -> None:
    """リポジトリ直下の .env.local があれば読み込む."""
    load_dotenv(dotenv_path=REPO_ROOT / ".env.local", override=False)


def load_settings() -> Settings:
    """設定を環境変数から構築する.

    環境変数（すべて任意）:
    - KIOSK_IDLE_TIMEOUT_SEC: 無操作でホームに戻るまでの秒数（既定 180）
    - KIOSK_AUTO_RETURN_SEC: 完了画面から自動で戻るまでの秒数（既定 30）
    - KIOSK_SLIDE_INTERVAL_SEC: ホーム画面スライドの切替間隔（既定 1.5）
    - DRIVE_ACCESS_TOKEN: Google Drive のアクセストークン（未設定ならアップロード無効）
    - DRIVE_PARENT_FOLDER_ID: 日付フォルダを作成する親フォルダID
    - KIOSK_HOST / KIOSK_PORT: APIサーバーの待ち受け先
    """
    load_local_env()
    return Settings(
        idle_timeout_sec=_float_env("KIOSK_IDLE_TIMEOUT_SEC", IDLE_TIMEOUT_SEC),
        auto_return_sec=_float_env("KIOSK_AUTO_RETURN_SEC", AUTO_RETURN_SEC),
        slide_interval_sec=_float_env("KIOSK_SLIDE_INTERVAL_SEC", SLIDE_INTERVAL_SEC),
        drive_access_token=os.getenv("DRIVE_ACCESS_TOKEN") or None,
        drive_parent_folder_id=os.getenv("DRIVE_PARENT_FOLDER_ID") or None,
        host=os.getenv("KIOSK_HOST", "127.0.0.1"),
        port=int(os.getenv("KIOSK_PORT", "5577")),
    )
