"""Screen lifecycle handling for the kiosk front-end.

The touch front-end only renders; every screen change and every visitor
interaction is reported here.  This module turns those reports into idle
monitor signals, enforces the order of the two check-in flows, and runs the
confirmation screens (document submission and the auto-return timer).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from kiosk.api.services.document import render_appointment_pdf, render_interpreter_pdf
from kiosk.config import AUTO_RETURN_SEC, SLIDE_INTERVAL_SEC
from kiosk.logger import logger
from kiosk.model.models import ActivityKind, ActivitySignal, Flow, Page
from kiosk.session.auto_return import AutoReturnTimer

if TYPE_CHECKING:
    from kiosk.api.services.drive import BackgroundUploader
    from kiosk.session.idle import IdleSessionMonitor
    from kiosk.session.navigator import Navigator
    from kiosk.session.scheduler import Scheduler
    from kiosk.session.store import FormStore


class FlowError(Exception):
    """Base class for check-in flow rule violations."""


class NavigationError(FlowError):
    """The requested screen cannot be reached from the current one."""


class FormIncompleteError(FlowError):
    """The current screen's required input is missing."""


@dataclass(frozen=True)
class Slide:
    title: str
    button_text: str = "Check-In Here"


HOME_SLIDES: tuple[Slide, ...] = (
    Slide("Interpreter"),
    Slide("Evaluation\nAppointment"),
    Slide("Evaluation\nAppointment"),
    Slide("Interpreter"),
)

TRANSITIONS: dict[Page, tuple[Page, ...]] = {
    Page.HOME_ROTATION: (Page.MENU,),
    Page.MENU: (Page.APPOINTMENT_TEXT_ENTRY, Page.INTERPRETER_FORM_SIGNATURE),
    Page.APPOINTMENT_TEXT_ENTRY: (Page.APPOINTMENT_SIGNATURE,),
    Page.APPOINTMENT_SIGNATURE: (Page.APPOINTMENT_PHOTO_INSTRUCTION,),
    Page.APPOINTMENT_PHOTO_INSTRUCTION: (Page.APPOINTMENT_CAMERA,),
    Page.APPOINTMENT_CAMERA: (Page.APPOINTMENT_PHOTO_VERIFICATION,),
    Page.APPOINTMENT_PHOTO_VERIFICATION: (Page.APPOINTMENT_CONFIRMATION,),
    Page.INTERPRETER_FORM_SIGNATURE: (Page.INTERPRETER_CONFIRMATION,),
}

CONFIRMATION_FLOWS: dict[Page, Flow] = {
    Page.APPOINTMENT_CONFIRMATION: Flow.APPOINTMENT,
    Page.INTERPRETER_CONFIRMATION: Flow.INTERPRETER,
}


class HomeCarousel:
    """Rotating slides shown on the home screen."""

    def __init__(
        self,
        scheduler: Scheduler,
        slides: tuple[Slide, ...] = HOME_SLIDES,
        interval: float = SLIDE_INTERVAL_SEC,
    ) -> None:
        self.scheduler = scheduler
        self.slides = slides
        self.interval = interval
        self._shown_at: float | None = None

    def start(self) -> None:
        self._shown_at = self.scheduler.time()

    def stop(self) -> None:
        self._shown_at = None

    def current_index(self) -> int:
        if self._shown_at is None:
            return 0
        elapsed = self.scheduler.time() - self._shown_at
        return int(elapsed // self.interval) % len(self.slides)

    def current(self) -> Slide:
        return self.slides[self.current_index()]


class ScreenController:
    """Dispatches screen lifecycle events and visitor actions."""

    def __init__(
        self,
        navigator: Navigator,
        monitor: IdleSessionMonitor,
        store: FormStore,
        scheduler: Scheduler,
        uploads: BackgroundUploader,
        auto_return_sec: float = AUTO_RETURN_SEC,
        slide_interval_sec: float = SLIDE_INTERVAL_SEC,
    ) -> None:
        self.navigator = navigator
        self.monitor = monitor
        self.store = store
        self.uploads = uploads
        self.carousel = HomeCarousel(scheduler, interval=slide_interval_sec)
        self.auto_return = {
            page: AutoReturnTimer(page.value, scheduler, monitor.purge, auto_return_sec)
            for page in CONFIRMATION_FLOWS
        }
        navigator.subscribe(self._on_page_change)

    # ------------------------------------------------------------------
    # Lifecycle
    def start(self) -> None:
        """Show the root screen once the UI root exists."""
        self.appear(self.navigator.current)

    def _on_page_change(self, previous: Page, current: Page) -> None:
        self.disappear(previous)
        self.appear(current)

    def appear(self, page: Page) -> None:
        # The idle timer stays armed on every screen, the camera included.
        self.monitor.record_activity(ActivitySignal(ActivityKind.SCREEN_APPEARED))
        if page is Page.HOME_ROTATION:
            self.carousel.start()
        flow = CONFIRMATION_FLOWS.get(page)
        if flow is not None:
            self._submit(flow)
            self.auto_return[page].start()

    def disappear(self, page: Page) -> None:
        if page is Page.HOME_ROTATION:
            self.carousel.stop()
        timer = self.auto_return.get(page)
        if timer is not None:
            timer.cancel()

    def enter_background(self) -> None:
        logger.info("App entered background")
        self.monitor.suspend()

    def enter_foreground(self) -> None:
        logger.info("App returned to foreground")
        self.monitor.record_activity(ActivitySignal(ActivityKind.FOREGROUND))

    # ------------------------------------------------------------------
    # Visitor actions
    def interact(self, kind: ActivityKind = ActivityKind.TOUCH) -> None:
        self.monitor.record_activity(ActivitySignal(kind))

    def advance(self, page: Page) -> None:
        """Button tap that moves the visitor to ``page``."""
        self.interact(ActivityKind.BUTTON_TAP)
        current = self.navigator.current
        if page not in TRANSITIONS.get(current, ()):
            msg = f"cannot go from {current.value} to {page.value}"
            raise NavigationError(msg)
        self._check_ready(current)
        self.navigator.push_screen(page)

    def back(self) -> None:
        self.interact(ActivityKind.BUTTON_TAP)
        page = self.navigator.current
        if page.is_confirmation:
            # Confirmation screens leave only through Finish or auto-return.
            msg = f"cannot go back from {page.value}"
            raise NavigationError(msg)
        self.navigator.pop_screen()

    def retake_photo(self) -> None:
        """Discard the captured photo and return to the camera."""
        self.interact(ActivityKind.BUTTON_TAP)
        if self.navigator.current is not Page.APPOINTMENT_PHOTO_VERIFICATION:
            msg = "retake is only available on the photo verification screen"
            raise NavigationError(msg)
        self.store.appointment.captured_photo = None
        self.navigator.pop_screen(Page.APPOINTMENT_PHOTO_VERIFICATION)

    def finish(self) -> None:
        """Handle the "Finish Check-In" button on a confirmation screen."""
        self.interact(ActivityKind.BUTTON_TAP)
        page = self.navigator.current
        if not page.is_confirmation:
            msg = f"{page.value} is not a confirmation screen"
            raise NavigationError(msg)
        self.auto_return[page].cancel()
        self.monitor.purge()

    # ------------------------------------------------------------------
    # Internal
    def _check_ready(self, page: Page) -> None:
        appointment = self.store.appointment
        if page is Page.APPOINTMENT_TEXT_ENTRY and not appointment.names_complete:
            msg = "caregiver and child names are required"
            raise FormIncompleteError(msg)
        if page is Page.APPOINTMENT_SIGNATURE and appointment.signature_image is None:
            msg = "signature is required"
            raise FormIncompleteError(msg)
        if page is Page.APPOINTMENT_CAMERA and appointment.captured_photo is None:
            msg = "ID photo has not been captured"
            raise FormIncompleteError(msg)
        if page is Page.INTERPRETER_FORM_SIGNATURE and not self.store.interpreter.is_complete:
            msg = "all interpreter fields and a signature are required"
            raise FormIncompleteError(msg)

    def _submit(self, flow: Flow) -> None:
        """Render the finished form and hand it to the background uploader."""
        if flow is Flow.APPOINTMENT:
            snapshot = self.store.appointment.snapshot()
            self.uploads.submit_appointment(snapshot, render_appointment_pdf(snapshot))
        else:
            interpreter = self.store.interpreter.snapshot()
            self.uploads.submit_interpreter(interpreter, render_interpreter_pdf(interpreter))
        logger.info("Check-in submitted for %s flow", flow.value)
