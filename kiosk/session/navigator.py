from __future__ import annotations

from collections.abc import Callable

from kiosk.logger import logger
from kiosk.model.models import Page

PageListener = Callable[[Page, Page], None]

ROOT_PAGE = Page.HOME_ROTATION


class Navigator:
    """画面スタックを管理するナビゲーションコントローラ.

    ルート（ホームのスライド画面）はスタックに含めず常に最下層にある扱い。
    表示中の画面が変わったときだけ購読者に (変更前, 変更後) を通知する。
    """

    def __init__(self, root: Page = ROOT_PAGE) -> None:
        self.root = root
        self._path: list[Page] = []
        self._listeners: list[PageListener] = []

    @property
    def current(self) -> Page:
        """表示中の画面."""
        return self._path[-1] if self._path else self.root

    @property
    def stack(self) -> list[Page]:
        """ルートを含む画面スタックのコピー."""
        return [self.root, *self._path]

    def subscribe(self, listener: PageListener) -> None:
        self._listeners.append(listener)

    def push_screen(self, page: Page) -> None:
        """画面を積む."""
        previous = self.current
        self._path.append(page)
        logger.info("Navigation push: %s -> %s", previous.value, page.value)
        self._notify(previous)

    def pop_screen(self, page: Page | None = None) -> None:
        """最上位の画面を外す。page 指定時はその画面をスタックから全て取り除く."""
        previous = self.current
        if page is not None:
            self._path = [p for p in self._path if p != page]
        elif self._path:
            self._path.pop()
        logger.info("Navigation pop: %s -> %s", previous.value, self.current.value)
        self._notify(previous)

    def reset_to_root(self) -> None:
        """ルート画面まで戻る."""
        previous = self.current
        self._path.clear()
        logger.info("Navigation reset to root from %s", previous.value)
        self._notify(previous)

    def _notify(self, previous: Page) -> None:
        current = self.current
        if previous is current:
            return
        for listener in list(self._listeners):
            listener(previous, current)
