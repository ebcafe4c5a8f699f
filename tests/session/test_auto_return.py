from unittest.mock import Mock

import pytest

from kiosk.session.auto_return import AutoReturnTimer


class TestAutoReturnTimer:
    """完了画面の自動復帰タイマーのテスト"""

    @pytest.fixture
    def action(self):
        return Mock()

    @pytest.fixture
    def timer(self, scheduler, action):
        return AutoReturnTimer("appointment_confirmation", scheduler, action, 30.0)

    def test_fires_once_after_duration(self, timer, scheduler, action):
        """30秒後に1回だけ発火し、自身をクリアする"""
        timer.start()
        assert timer.is_pending

        scheduler.advance(29.9)
        action.assert_not_called()

        scheduler.advance(0.1)
        action.assert_called_once_with()
        assert timer.is_pending is False
        assert timer.fired_count == 1

        scheduler.advance(300)
        action.assert_called_once_with()

    def test_cancel_prevents_firing(self, timer, scheduler, action):
        """画面が消えたら取り消される"""
        timer.start()
        scheduler.advance(10)
        timer.cancel()
        scheduler.advance(100)

        action.assert_not_called()
        assert timer.fired_count == 0

    def test_restart_replaces_pending(self, timer, scheduler, action):
        """再表示で開始し直すと古いタイマーは無効"""
        timer.start()
        scheduler.advance(20)
        timer.start()

        assert scheduler.pending() == 1
        scheduler.advance(15)
        action.assert_not_called()

        scheduler.advance(15)
        action.assert_called_once_with()

    def test_cancel_without_start(self, timer, scheduler):
        timer.cancel()
        assert timer.is_pending is False
        assert scheduler.pending() == 0
