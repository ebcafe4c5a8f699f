import asyncio

import pytest

from kiosk.model.models import Page
from kiosk.session.idle import IdleSessionMonitor, IdleState
from kiosk.session.navigator import Navigator
from kiosk.session.scheduler import AsyncioScheduler
from kiosk.session.store import FormStore


class TestAsyncioScheduler:
    """イベントループ上のスケジューラのテスト"""

    @pytest.mark.asyncio
    async def test_call_later_runs_callback(self):
        scheduler = AsyncioScheduler()
        fired = asyncio.Event()

        scheduler.call_later(0.01, fired.set)

        await asyncio.wait_for(fired.wait(), timeout=1.0)

    @pytest.mark.asyncio
    async def test_cancelled_handle_does_not_run(self):
        scheduler = AsyncioScheduler()
        calls = []

        handle = scheduler.call_later(0.01, lambda: calls.append(1))
        handle.cancel()
        await asyncio.sleep(0.05)

        assert calls == []
        assert handle.cancelled()

    @pytest.mark.asyncio
    async def test_idle_monitor_on_real_loop(self):
        """実際のループ上でタイムアウトしてルートに戻る"""
        store = FormStore()
        navigator = Navigator()
        monitor = IdleSessionMonitor(AsyncioScheduler(), store, timeout_duration=0.05)
        monitor.attach_navigator(navigator)

        store.interpreter.language = "Spanish"
        navigator.push_screen(Page.MENU)
        monitor.record_activity()
        await asyncio.sleep(0.15)

        assert monitor.state is IdleState.DISARMED
        assert monitor.timeouts_fired == 1
        assert store.interpreter.is_empty
        assert navigator.current is Page.HOME_ROTATION
