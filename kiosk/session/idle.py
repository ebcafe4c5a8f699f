"""Idle detection for the kiosk: return home and purge form data after inactivity."""

from __future__ import annotations

import weakref
from enum import Enum
from functools import partial
from typing import TYPE_CHECKING

from kiosk.config import IDLE_TIMEOUT_SEC
from kiosk.logger import logger
from kiosk.model.models import ActivitySignal

if TYPE_CHECKING:
    from kiosk.session.navigator import Navigator
    from kiosk.session.scheduler import Scheduler, TimerHandle
    from kiosk.session.store import FormStore


class IdleState(Enum):
    """アイドル監視の状態."""

    ARMED = "armed"
    DISARMED = "disarmed"


class IdleSessionMonitor:
    """無操作タイムアウトでホームに戻し、入力中の個人データを消去する.

    保留中のタイマーは常に高々1つ。操作シグナルを受けるたびに古いタイマーを
    取り消してから新しいタイマーを張り直す。タイマーごとに世代番号を持たせ、
    取り消し済みの世代が発火しても何もしない。
    """

    def __init__(
        self,
        scheduler: Scheduler,
        store: FormStore,
        timeout_duration: float = IDLE_TIMEOUT_SEC,
    ) -> None:
        """初期化する

        Args:
            scheduler: タイマーを張るスケジューラ（UIスレッド上で発火する）
            store: タイムアウト時に消去するフォームデータ
            timeout_duration: 無操作とみなすまでの秒数

        """
        self.scheduler = scheduler
        self.store = store
        self.timeout_duration = timeout_duration
        self._pending: TimerHandle | None = None
        self._generation = 0
        self._navigator_ref: weakref.ReferenceType[Navigator] | None = None
        self.last_activity: ActivitySignal | None = None
        self.deadline: float | None = None
        self.timeouts_fired = 0

    # ------------------------------------------------------------------
    # State
    @property
    def state(self) -> IdleState:
        return IdleState.ARMED if self._pending is not None else IdleState.DISARMED

    @property
    def is_armed(self) -> bool:
        return self._pending is not None

    def seconds_remaining(self) -> float | None:
        """タイムアウトまでの残り秒数（未起動なら None）."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - self.scheduler.time())

    # ------------------------------------------------------------------
    # Operations
    def attach_navigator(self, navigator: Navigator) -> None:
        """ルート画面構築後にナビゲータを弱参照で結び付ける."""
        self._navigator_ref = weakref.ref(navigator)
        logger.info("Idle monitor attached to navigator")

    def record_activity(self, signal: ActivitySignal | None = None) -> None:
        """操作を記録し、タイムアウトを timeout_duration 後に張り直す."""
        self._cancel_pending()
        self._generation += 1
        self._pending = self.scheduler.call_later(
            self.timeout_duration,
            partial(self._on_timeout, self._generation),
        )
        self.deadline = self.scheduler.time() + self.timeout_duration
        if signal is not None:
            self.last_activity = signal

    def suspend(self) -> None:
        """タイマーを止める（張り直さない）."""
        self._cancel_pending()
        logger.info("Idle timer suspended")

    def resume(self) -> None:
        """停止後に新しい待ち時間で再開する."""
        self.record_activity()
        logger.info("Idle timer resumed")

    def purge(self) -> None:
        """全フォームを消去してルート画面に戻す."""
        self.store.clear_all()
        navigator = self._navigator_ref() if self._navigator_ref else None
        if navigator is None:
            logger.warning("Idle reset without navigator; form data cleared only")
            return
        navigator.reset_to_root()

    # ------------------------------------------------------------------
    # Internal
    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
        self.deadline = None

    def _on_timeout(self, generation: int) -> None:
        """スケジューラから呼ばれるタイムアウト処理."""
        if generation != self._generation or self._pending is None:
            return
        self._pending = None
        self.deadline = None
        self.timeouts_fired += 1
        logger.info(
            "Idle timeout after %.0fs: returning to home and clearing data",
            self.timeout_duration,
        )
        self.purge()
