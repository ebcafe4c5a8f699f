from __future__ import annotations

from collections.abc import Callable
from functools import partial
from typing import TYPE_CHECKING

from kiosk.config import AUTO_RETURN_SEC
from kiosk.logger import logger

if TYPE_CHECKING:
    from kiosk.session.scheduler import Scheduler, TimerHandle


class AutoReturnTimer:
    """完了画面ごとに持つ一回きりの自動復帰タイマー.

    アイドル監視とは独立しており、一般の操作シグナルではリセットされない。
    画面表示で開始し、他の理由で画面が消えたら取り消す。
    """

    def __init__(
        self,
        name: str,
        scheduler: Scheduler,
        action: Callable[[], None],
        duration: float = AUTO_RETURN_SEC,
    ) -> None:
        self.name = name
        self.scheduler = scheduler
        self.action = action
        self.duration = duration
        self._pending: TimerHandle | None = None
        self._generation = 0
        self.fired_count = 0

    @property
    def is_pending(self) -> bool:
        return self._pending is not None

    def start(self) -> None:
        """タイマーを開始する（既存のものがあれば置き換える）."""
        self.cancel()
        self._generation += 1
        self._pending = self.scheduler.call_later(
            self.duration, partial(self._fire, self._generation)
        )
        logger.info("Auto-return timer started for %s (%.0fs)", self.name, self.duration)

    def cancel(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
            logger.info("Auto-return timer cancelled for %s", self.name)

    def _fire(self, generation: int) -> None:
        if generation != self._generation or self._pending is None:
            return
        self._pending = None
        self.fired_count += 1
        logger.info("Auto-return timer expired for %s", self.name)
        self.action()
