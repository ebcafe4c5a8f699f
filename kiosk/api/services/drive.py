import json
import os
import time
import uuid
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import date, datetime
from enum import Enum
from typing import Any

import requests

from kiosk.logger import logger
from kiosk.model.models import AppointmentSnapshot, InterpreterSnapshot

HTTP_OK = 200
HTTP_UNAUTHORIZED = 401
HTTP_FORBIDDEN = 403
FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"
PDF_MIME_TYPE = "application/pdf"
MAX_DUPLICATE_SUFFIX = 100


class DriveErrorKind(Enum):
    """Driveアップロードの失敗種別."""

    AUTHENTICATION_FAILED = "authentication_failed"
    FOLDER_CREATION_FAILED = "folder_creation_failed"
    UPLOAD_FAILED = "upload_failed"
    NETWORK_ERROR = "network_error"
    QUOTA_EXCEEDED = "quota_exceeded"


SUGGESTIONS = {
    DriveErrorKind.AUTHENTICATION_FAILED: "Drive access token may need to be renewed",
    DriveErrorKind.QUOTA_EXCEEDED: "Google Drive storage is full",
    DriveErrorKind.NETWORK_ERROR: "Check internet connection",
}


class DriveError(Exception):
    """Drive API 呼び出しの失敗."""

    def __init__(self, kind: DriveErrorKind, detail: str = "") -> None:
        super().__init__(f"{kind.value}: {detail}" if detail else kind.value)
        self.kind = kind
        self.detail = detail


def format_drive_date(day: date) -> str:
    """フォルダ名・ファイル名に使う MM/dd/yyyy 形式."""
    return day.strftime("%m/%d/%Y")


def daily_folder_name(day: date) -> str:
    return f"Check-In {format_drive_date(day)}"


def appointment_file_name(snapshot: AppointmentSnapshot) -> str:
    return (
        f"{snapshot.child_first_name} {snapshot.child_last_name} "
        f"{format_drive_date(snapshot.check_in_date)}.pdf"
    )


def interpreter_file_name(snapshot: InterpreterSnapshot) -> str:
    return (
        f"{snapshot.interpreter_first_name} {snapshot.interpreter_last_name} "
        f"- Interpreter {format_drive_date(snapshot.check_in_date)}.pdf"
    )


def _escape_query(value: str) -> str:
    # Drive の q パラメータではシングルクォートとバックスラッシュをエスケープ
    return value.replace("\\", "\\\\").replace("'", "\\'")


class DriveUploader:
    """Google Drive v3 REST API の薄いクライアント（日付フォルダへPDFを保存）."""

    def __init__(
        self,
        access_token: str,
        parent_folder_id: str | None = None,
        base_url: str = "https://www.googleapis.com",
        timeout: float = 20.0,
    ) -> None:
        """初期化

        Args:
            access_token: drive.file スコープを持つ OAuth アクセストークン
            parent_folder_id: 日付フォルダを作る親フォルダ（None ならマイドライブ直下）
            base_url: API のベースURL
            timeout: APIタイムアウト(秒)

        """
        self.access_token = access_token
        self.parent_folder_id = parent_folder_id
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.files_url = f"{self.base_url}/drive/v3/files"
        self.upload_url = f"{self.base_url}/upload/drive/v3/files"
        # 日付文字列 -> フォルダID
        self._folder_cache: dict[str, str] = {}

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.access_token}"}

    def is_available(self) -> bool:
        """トークンで Drive にアクセスできるかチェック."""
        try:
            response = requests.get(
                f"{self.base_url}/drive/v3/about",
                params={"fields": "user"},
                headers=self.headers,
                timeout=5,
            )
        except requests.RequestException:
            return False
        else:
            status_code: int = response.status_code
            return status_code == HTTP_OK

    # ------------------------------------------------------------------
    # HTTP helpers
    def _check(self, response: requests.Response, failure: DriveErrorKind) -> dict:
        status_code: int = response.status_code
        if status_code == HTTP_OK:
            try:
                return response.json()
            except ValueError as exc:
                raise DriveError(failure, "invalid JSON response") from exc
        if status_code == HTTP_UNAUTHORIZED:
            raise DriveError(DriveErrorKind.AUTHENTICATION_FAILED, response.text[:200])
        if status_code == HTTP_FORBIDDEN and "quota" in response.text.lower():
            raise DriveError(DriveErrorKind.QUOTA_EXCEEDED, response.text[:200])
        raise DriveError(failure, f"HTTP {status_code}")

    def _list(self, query: str, failure: DriveErrorKind) -> list[dict]:
        try:
            response = requests.get(
                self.files_url,
                params={"q": query, "spaces": "drive", "fields": "files(id,name)"},
                headers=self.headers,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise DriveError(DriveErrorKind.NETWORK_ERROR, str(exc)) from exc
        files: list[dict] = self._check(response, failure).get("files", [])
        return files

    # ------------------------------------------------------------------
    # Folder management
    def daily_folder_id(self, day: date) -> str:
        """その日のフォルダIDを返す（キャッシュ→検索→作成の順）."""
        key = format_drive_date(day)
        name = daily_folder_name(day)

        cached = self._folder_cache.get(key)
        if cached:
            logger.info("Using cached folder %s: %s", name, cached)
            return cached

        existing = self._find_folder(name)
        if existing:
            self._folder_cache[key] = existing
            logger.info("Found existing folder %s: %s", name, existing)
            return existing

        created = self._create_folder(name)
        self._folder_cache[key] = created
        logger.info("Created new folder %s: %s", name, created)
        return created

    def _find_folder(self, name: str) -> str | None:
        query = (
            f"name = '{_escape_query(name)}' and mimeType = '{FOLDER_MIME_TYPE}' "
            "and trashed = false"
        )
        if self.parent_folder_id:
            query += f" and '{self.parent_folder_id}' in parents"
        files = self._list(query, DriveErrorKind.FOLDER_CREATION_FAILED)
        return str(files[0]["id"]) if files else None

    def _create_folder(self, name: str) -> str:
        metadata: dict[str, object] = {"name": name, "mimeType": FOLDER_MIME_TYPE}
        if self.parent_folder_id:
            metadata["parents"] = [self.parent_folder_id]
        try:
            response = requests.post(
                self.files_url,
                json=metadata,
                params={"fields": "id"},
                headers=self.headers,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise DriveError(DriveErrorKind.NETWORK_ERROR, str(exc)) from exc
        folder_id = self._check(response, DriveErrorKind.FOLDER_CREATION_FAILED).get("id")
        if not folder_id:
            raise DriveError(DriveErrorKind.FOLDER_CREATION_FAILED, "no id returned")
        return str(folder_id)

    # ------------------------------------------------------------------
    # Upload
    def file_exists(self, name: str, folder_id: str) -> bool:
        query = (
            f"name = '{_escape_query(name)}' and '{folder_id}' in parents "
            "and trashed = false"
        )
        return bool(self._list(query, DriveErrorKind.UPLOAD_FAILED))

    def unique_file_name(self, base_name: str, folder_id: str) -> str:
        """同名ファイルがあれば "name (1).pdf" のように連番を付ける."""
        stem, suffix = os.path.splitext(base_name)
        name = base_name
        counter = 1
        while self.file_exists(name, folder_id):
            name = f"{stem} ({counter}){suffix}"
            counter += 1
            if counter > MAX_DUPLICATE_SUFFIX:
                logger.warning("Too many duplicate files, using timestamp suffix")
                name = f"{stem} {int(time.time())}{suffix}"
                break
        if name != base_name:
            logger.info("Renamed to avoid duplicate: %s", name)
        return name

    def upload_pdf(self, data: bytes, file_name: str, day: date) -> str:
        """PDF を日付フォルダにアップロードしてファイルIDを返す."""
        folder_id = self.daily_folder_id(day)
        final_name = self.unique_file_name(file_name, folder_id)
        metadata = {
            "name": final_name,
            "parents": [folder_id],
            "mimeType": PDF_MIME_TYPE,
            "description": f"Check-In PDF generated by the check-in kiosk on {datetime.now()}",
        }
        body, content_type = _multipart_related(metadata, data, PDF_MIME_TYPE)
        try:
            response = requests.post(
                self.upload_url,
                params={"uploadType": "multipart", "fields": "id,name"},
                data=body,
                headers={**self.headers, "Content-Type": content_type},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise DriveError(DriveErrorKind.NETWORK_ERROR, str(exc)) from exc
        file_id = self._check(response, DriveErrorKind.UPLOAD_FAILED).get("id")
        if not file_id:
            raise DriveError(DriveErrorKind.UPLOAD_FAILED, "no file object returned")
        logger.info("PDF uploaded: %s (id=%s, %d bytes)", final_name, file_id, len(data))
        return str(file_id)

    def upload_appointment_pdf(self, snapshot: AppointmentSnapshot, data: bytes) -> str:
        return self.upload_pdf(
            data, appointment_file_name(snapshot), snapshot.check_in_date.date()
        )

    def upload_interpreter_pdf(self, snapshot: InterpreterSnapshot, data: bytes) -> str:
        return self.upload_pdf(
            data, interpreter_file_name(snapshot), snapshot.check_in_date.date()
        )


def _multipart_related(
    metadata: dict[str, object], data: bytes, mime_type: str
) -> tuple[bytes, str]:
    """メタデータとファイル本体を multipart/related の本文にまとめる."""
    boundary = f"kiosk-{uuid.uuid4().hex}"
    parts = [
        f"--{boundary}\r\n".encode(),
        b"Content-Type: application/json; charset=UTF-8\r\n\r\n",
        json.dumps(metadata).encode("utf-8"),
        f"\r\n--{boundary}\r\n".encode(),
        f"Content-Type: {mime_type}\r\n\r\n".encode(),
        data,
        f"\r\n--{boundary}--\r\n".encode(),
    ]
    return b"".join(parts), f"multipart/related; boundary={boundary}"


class BackgroundUploader:
    """アップロードを単一ワーカースレッドで非同期に実行する.

    失敗はログに残すだけで再試行しない。
    """

    def __init__(self, uploader: DriveUploader | None) -> None:
        self.uploader = uploader
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="drive-upload")

    @property
    def enabled(self) -> bool:
        return self.uploader is not None

    def submit_appointment(self, snapshot: AppointmentSnapshot, data: bytes) -> Future | None:
        if self.uploader is None:
            logger.warning("Drive upload disabled; appointment PDF not uploaded")
            return None
        return self._executor.submit(self._run, self.uploader.upload_appointment_pdf, snapshot, data)

    def submit_interpreter(self, snapshot: InterpreterSnapshot, data: bytes) -> Future | None:
        if self.uploader is None:
            logger.warning("Drive upload disabled; interpreter PDF not uploaded")
            return None
        return self._executor.submit(self._run, self.uploader.upload_interpreter_pdf, snapshot, data)

    def check_access(self) -> Future | None:
        """トークンで Drive にアクセスできるかをバックグラウンドで確認する."""
        if self.uploader is None:
            return None
        return self._executor.submit(self._check_access, self.uploader)

    @staticmethod
    def _check_access(uploader: DriveUploader) -> bool:
        available = uploader.is_available()
        if available:
            logger.info("Google Drive access confirmed")
        else:
            logger.warning(
                "Google Drive is not reachable with the configured token (%s)",
                SUGGESTIONS[DriveErrorKind.AUTHENTICATION_FAILED],
            )
        return available

    def _run(
        self,
        operation: Callable[[Any, bytes], str],
        snapshot: AppointmentSnapshot | InterpreterSnapshot,
        data: bytes,
    ) -> str | None:
        logger.info("Starting background Google Drive upload...")
        try:
            file_id = operation(snapshot, data)
        except DriveError as exc:
            self.handle_upload_error(exc)
            return None
        logger.info("Background Google Drive upload completed successfully")
        return file_id

    @staticmethod
    def handle_upload_error(error: DriveError) -> None:
        """失敗種別ごとに対処のヒントをログに出す."""
        suggestion = SUGGESTIONS.get(error.kind, "Retry upload or check Google Drive permissions")
        logger.error("Background Google Drive upload failed: %s (%s)", error, suggestion)

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False)


def create_drive_uploader(
    access_token: str | None = None,
    parent_folder_id: str | None = None,
) -> DriveUploader:
    """Drive アップローダのファクトリ関数.

    環境変数で設定:
    - DRIVE_ACCESS_TOKEN: drive.file スコープを持つアクセストークン（必須）
    - DRIVE_PARENT_FOLDER_ID: 日付フォルダを作る親フォルダ（任意）
    """
    resolved_token = access_token or os.getenv("DRIVE_ACCESS_TOKEN")
    if not resolved_token:
        msg = "DRIVE_ACCESS_TOKEN must be set (e.g., in .env.local)."
        raise RuntimeError(msg)
    return DriveUploader(
        access_token=resolved_token,
        parent_folder_id=parent_folder_id or os.getenv("DRIVE_PARENT_FOLDER_ID"),
    )
