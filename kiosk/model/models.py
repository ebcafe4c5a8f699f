__all__ = [
    "ActivityKind",
    "ActivitySignal",
    "AppointmentForm",
    "AppointmentSnapshot",
    "Flow",
    "InterpreterForm",
    "InterpreterSnapshot",
    "Page",
    "full_name",
]


import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class ActivityKind(Enum):
    """ユーザー操作とみなすシグナルの種類."""

    KEYBOARD = "keyboard"
    TOUCH = "touch"
    SCREEN_APPEARED = "screen_appeared"
    BUTTON_TAP = "button_tap"
    FOREGROUND = "foreground"


@dataclass(frozen=True)
class ActivitySignal:
    """操作シグナル（タイムスタンプ以外のペイロードは持たない）."""

    kind: ActivityKind
    timestamp: float = field(default_factory=time.time)


class Flow(Enum):
    """来訪者が進む受付フロー."""

    APPOINTMENT = "appointment"
    INTERPRETER = "interpreter"


class Page(Enum):
    """ナビゲーションスタックに積まれる画面."""

    HOME_ROTATION = "home_rotation"
    MENU = "menu"
    APPOINTMENT_TEXT_ENTRY = "appointment_text_entry"
    APPOINTMENT_SIGNATURE = "appointment_signature"
    APPOINTMENT_PHOTO_INSTRUCTION = "appointment_photo_instruction"
    APPOINTMENT_CAMERA = "appointment_camera"
    APPOINTMENT_PHOTO_VERIFICATION = "appointment_photo_verification"
    APPOINTMENT_CONFIRMATION = "appointment_confirmation"
    INTERPRETER_FORM_SIGNATURE = "interpreter_form_signature"
    INTERPRETER_CONFIRMATION = "interpreter_confirmation"

    @property
    def is_confirmation(self) -> bool:
        return self in (Page.APPOINTMENT_CONFIRMATION, Page.INTERPRETER_CONFIRMATION)


def full_name(first: str, last: str) -> str:
    """姓名を結合して前後の空白を除く."""
    return f"{first} {last}".strip()


@dataclass(frozen=True)
class AppointmentSnapshot:
    """アップロード用に固定した予約フローの入力内容."""

    caregiver_first_name: str
    caregiver_last_name: str
    child_first_name: str
    child_last_name: str
    signature_image: bytes | None
    captured_photo: bytes | None
    check_in_date: datetime

    @property
    def caregiver_full_name(self) -> str:
        return full_name(self.caregiver_first_name, self.caregiver_last_name)

    @property
    def child_full_name(self) -> str:
        return full_name(self.child_first_name, self.child_last_name)


@dataclass(frozen=True)
class InterpreterSnapshot:
    """アップロード用に固定した通訳者フローの入力内容."""

    child_first_name: str
    child_last_name: str
    interpreter_first_name: str
    interpreter_last_name: str
    interpreting_agency: str
    language: str
    signature_image: bytes | None
    check_in_date: datetime

    @property
    def child_full_name(self) -> str:
        return full_name(self.child_first_name, self.child_last_name)

    @property
    def interpreter_full_name(self) -> str:
        return full_name(self.interpreter_first_name, self.interpreter_last_name)


@dataclass
class AppointmentForm:
    """予約チェックインフローの入力中データ."""

    caregiver_first_name: str = ""
    caregiver_last_name: str = ""
    child_first_name: str = ""
    child_last_name: str = ""
    signature_image: bytes | None = None
    captured_photo: bytes | None = None
    check_in_date: datetime = field(default_factory=datetime.now)

    @property
    def caregiver_full_name(self) -> str:
        return full_name(self.caregiver_first_name, self.caregiver_last_name)

    @property
    def child_full_name(self) -> str:
        return full_name(self.child_first_name, self.child_last_name)

    @property
    def names_complete(self) -> bool:
        """4つの氏名欄がすべて空白以外で埋まっているか."""
        return all(
            name.strip()
            for name in (
                self.caregiver_first_name,
                self.caregiver_last_name,
                self.child_first_name,
                self.child_last_name,
            )
        )

    @property
    def is_empty(self) -> bool:
        return not (
            self.caregiver_first_name
            or self.caregiver_last_name
            or self.child_first_name
            or self.child_last_name
            or self.signature_image
            or self.captured_photo
        )

    def clear(self) -> None:
        """全項目を初期状態に戻す."""
        self.caregiver_first_name = ""
        self.caregiver_last_name = ""
        self.child_first_name = ""
        self.child_last_name = ""
        self.signature_image = None
        self.captured_photo = None
        self.check_in_date = datetime.now()

    def snapshot(self) -> AppointmentSnapshot:
        return AppointmentSnapshot(
            caregiver_first_name=self.caregiver_first_name,
            caregiver_last_name=self.caregiver_last_name,
            child_first_name=self.child_first_name,
            child_last_name=self.child_last_name,
            signature_image=self.signature_image,
            captured_photo=self.captured_photo,
            check_in_date=self.check_in_date,
        )


@dataclass
class InterpreterForm:
    """通訳者チェックインフローの入力中データ."""

    child_first_name: str = ""
    child_last_name: str = ""
    interpreter_first_name: str = ""
    interpreter_last_name: str = ""
    interpreting_agency: str = ""
    language: str = ""
    signature_image: bytes | None = None
    check_in_date: datetime = field(default_factory=datetime.now)

    @property
    def child_full_name(self) -> str:
        return full_name(self.child_first_name, self.child_last_name)

    @property
    def interpreter_full_name(self) -> str:
        return full_name(self.interpreter_first_name, self.interpreter_last_name)

    @property
    def is_complete(self) -> bool:
        """全項目が入力済みで署名もあるか."""
        return bool(
            self.child_first_name
            and self.child_last_name
            and self.interpreter_first_name
            and self.interpreter_last_name
            and self.interpreting_agency
            and self.language
            and self.signature_image is not None
        )

    @property
    def is_empty(self) -> bool:
        return not (
            self.child_first_name
            or self.child_last_name
            or self.interpreter_first_name
            or self.interpreter_last_name
            or self.interpreting_agency
            or self.language
            or self.signature_image
        )

    def clear(self) -> None:
        """全項目を初期状態に戻す."""
        self.child_first_name = ""
        self.child_last_name = ""
        self.interpreter_first_name = ""
        self.interpreter_last_name = ""
        self.interpreting_agency = ""
        self.language = ""
        self.signature_image = None
        self.check_in_date = datetime.now()

    def snapshot(self) -> InterpreterSnapshot:
        return InterpreterSnapshot(
            child_first_name=self.child_first_name,
            child_last_name=self.child_last_name,
            interpreter_first_name=self.interpreter_first_name,
            interpreter_last_name=self.interpreter_last_name,
            interpreting_agency=self.interpreting_agency,
            language=self.language,
            signature_image=self.signature_image,
            check_in_date=self.check_in_date,
        )
