from unittest.mock import Mock

import pytest

from kiosk.model.models import Page
from kiosk.session.navigator import Navigator


class TestNavigator:
    """ナビゲーションコントローラのテスト"""

    @pytest.fixture
    def navigator(self):
        return Navigator()

    @pytest.fixture
    def listener(self, navigator):
        listener = Mock()
        navigator.subscribe(listener)
        return listener

    def test_starts_at_root(self, navigator):
        assert navigator.current is Page.HOME_ROTATION
        assert navigator.stack == [Page.HOME_ROTATION]

    def test_push_and_pop(self, navigator, listener):
        """push/pop で表示画面が変わり購読者に通知される"""
        navigator.push_screen(Page.MENU)
        navigator.push_screen(Page.APPOINTMENT_TEXT_ENTRY)
        assert navigator.current is Page.APPOINTMENT_TEXT_ENTRY

        navigator.pop_screen()
        assert navigator.current is Page.MENU

        assert listener.call_args_list[0].args == (Page.HOME_ROTATION, Page.MENU)
        assert listener.call_args_list[-1].args == (Page.APPOINTMENT_TEXT_ENTRY, Page.MENU)

    def test_pop_specific_page_removes_all(self, navigator):
        navigator.push_screen(Page.MENU)
        navigator.push_screen(Page.APPOINTMENT_CAMERA)
        navigator.push_screen(Page.APPOINTMENT_PHOTO_VERIFICATION)

        navigator.pop_screen(Page.APPOINTMENT_CAMERA)

        assert navigator.stack == [
            Page.HOME_ROTATION,
            Page.MENU,
            Page.APPOINTMENT_PHOTO_VERIFICATION,
        ]

    def test_pop_at_root_does_nothing(self, navigator, listener):
        navigator.pop_screen()
        assert navigator.current is Page.HOME_ROTATION
        listener.assert_not_called()

    def test_reset_to_root(self, navigator, listener):
        """ルートまで戻ると1回だけ通知される"""
        navigator.push_screen(Page.MENU)
        navigator.push_screen(Page.INTERPRETER_FORM_SIGNATURE)
        listener.reset_mock()

        navigator.reset_to_root()

        assert navigator.stack == [Page.HOME_ROTATION]
        listener.assert_called_once_with(Page.INTERPRETER_FORM_SIGNATURE, Page.HOME_ROTATION)

    def test_reset_at_root_is_silent(self, navigator, listener):
        navigator.reset_to_root()
        listener.assert_not_called()
