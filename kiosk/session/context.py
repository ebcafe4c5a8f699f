from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field

from kiosk.api.services.drive import BackgroundUploader, create_drive_uploader
from kiosk.config import Settings
from kiosk.logger import logger
from kiosk.session.idle import IdleSessionMonitor
from kiosk.session.navigator import Navigator
from kiosk.session.scheduler import Scheduler
from kiosk.session.store import FormStore
from kiosk.ui.screens import ScreenController


@dataclass
class KioskContext:
    """プロセスに1つずつ存在するキオスクの構成要素をまとめたもの."""

    settings: Settings
    scheduler: Scheduler
    store: FormStore
    navigator: Navigator
    monitor: IdleSessionMonitor
    screens: ScreenController
    uploads: BackgroundUploader
    logs: deque[str] = field(default_factory=lambda: deque(maxlen=100))

    def log_message(self, message: str) -> None:
        """ロガーに出力し、モニタリング用のログキューにも追加する."""
        logger.info(message)
        self.logs.append(message)

    def shutdown(self) -> None:
        self.monitor.suspend()
        self.uploads.shutdown()


def build_context(
    settings: Settings,
    scheduler: Scheduler,
    uploads: BackgroundUploader | None = None,
) -> KioskContext:
    """設定とスケジューラからキオスクの構成要素を組み立てる.

    Args:
        settings: キオスク設定
        scheduler: 全タイマーが使うスケジューラ
        uploads: アップロード担当（None なら設定から作成）

    Returns:
        KioskContext: ルート画面を表示済みのコンテキスト

    """
    if uploads is None:
        if settings.drive_access_token:
            uploads = BackgroundUploader(
                create_drive_uploader(
                    settings.drive_access_token, settings.drive_parent_folder_id
                )
            )
        else:
            logger.warning("DRIVE_ACCESS_TOKEN not set; Drive upload disabled")
            uploads = BackgroundUploader(None)

    store = FormStore()
    navigator = Navigator()
    monitor = IdleSessionMonitor(scheduler, store, settings.idle_timeout_sec)
    screens = ScreenController(
        navigator,
        monitor,
        store,
        scheduler,
        uploads,
        auto_return_sec=settings.auto_return_sec,
        slide_interval_sec=settings.slide_interval_sec,
    )
    monitor.attach_navigator(navigator)
    screens.start()
    return KioskContext(
        settings=settings,
        scheduler=scheduler,
        store=store,
        navigator=navigator,
        monitor=monitor,
        screens=screens,
        uploads=uploads,
    )
