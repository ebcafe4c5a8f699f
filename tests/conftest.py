import base64
import heapq
import itertools
from io import BytesIO
from unittest.mock import Mock

import pytest
from PIL import Image

from kiosk.config import Settings
from kiosk.session.context import build_context
from kiosk.session.navigator import Navigator
from kiosk.session.store import FormStore


class ManualHandle:
    """ManualScheduler が返すタイマーハンドル."""

    def __init__(self, when, callback):
        self.when = when
        self.callback = callback
        self._cancelled = False

    def cancel(self):
        self._cancelled = True

    def cancelled(self):
        return self._cancelled


class ManualScheduler:
    """テスト用の手動時計スケジューラ（advance で時間を進める）"""

    def __init__(self):
        self.now = 0.0
        self._queue = []
        self._seq = itertools.count()

    def time(self):
        return self.now

    def call_later(self, delay, callback):
        handle = ManualHandle(self.now + delay, callback)
        heapq.heappush(self._queue, (handle.when, next(self._seq), handle))
        return handle

    def pending(self):
        """取り消されていない保留中タイマーの数"""
        return sum(1 for _, _, h in self._queue if not h.cancelled())

    def advance(self, seconds):
        """時間を進め、期限が来たコールバックを順に実行する"""
        target = self.now + seconds
        while self._queue and self._queue[0][0] <= target:
            when, _, handle = heapq.heappop(self._queue)
            self.now = when
            if not handle.cancelled():
                handle.callback()
        self.now = target


@pytest.fixture
def scheduler():
    """テスト用の手動スケジューラ"""
    return ManualScheduler()


@pytest.fixture
def store():
    """テスト用のフォームストア"""
    return FormStore()


@pytest.fixture
def mock_navigator():
    """resetToRoot の呼び出しを記録するナビゲータのモック"""
    return Mock(spec=Navigator)


@pytest.fixture
def mock_uploads():
    """バックグラウンドアップロードのモック"""
    uploads = Mock()
    uploads.enabled = False
    return uploads


@pytest.fixture
def context(scheduler, mock_uploads):
    """手動スケジューラで組み立てたキオスクコンテキスト"""
    return build_context(Settings(), scheduler, uploads=mock_uploads)


def make_png(color=(0, 0, 0), size=(40, 20)):
    """テスト用の PNG バイト列"""
    buffer = BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def png_bytes():
    return make_png()


@pytest.fixture
def png_b64(png_bytes):
    return base64.b64encode(png_bytes).decode()
