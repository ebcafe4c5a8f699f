"""FastAPI app driving the check-in kiosk screens and simple monitoring UI."""

import asyncio
import base64
import binascii
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, field_validator

from kiosk.api.services.document import load_image
from kiosk.config import load_settings
from kiosk.model.models import ActivityKind, Page
from kiosk.session.context import KioskContext, build_context
from kiosk.session.scheduler import AsyncioScheduler
from kiosk.ui.screens import FlowError

# FastAPIアプリケーションのインスタンスを作成
app = FastAPI(
    title="Check-In Kiosk",
    description="Front-desk check-in kiosk session service",
)

HTTP_CONFLICT = 409
HTTP_UNPROCESSABLE = 422
HTTP_UNAVAILABLE = 503


# --- 画像デコード ---


def decode_image(value: str) -> bytes:
    """base64（data URL 形式も可）の画像をバイト列に戻し、画像として読めるか確認する."""
    payload = value.split(",", 1)[1] if value.startswith("data:") else value
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        msg = "image must be base64 encoded"
        raise ValueError(msg) from exc
    if not data:
        msg = "image must not be empty"
        raise ValueError(msg)
    load_image(data)
    return data


# --- Pydanticモデル定義 ---


class ActivityRequest(BaseModel):
    """操作シグナルのリクエストモデル."""

    kind: ActivityKind = ActivityKind.TOUCH


class NavigationRequest(BaseModel):
    """画面遷移リクエストのモデル."""

    page: Page


class AppointmentUpdate(BaseModel):
    """予約フローの入力欄の部分更新."""

    caregiver_first_name: str | None = None
    caregiver_last_name: str | None = None
    child_first_name: str | None = None
    child_last_name: str | None = None


class InterpreterUpdate(BaseModel):
    """通訳者フローの入力欄の部分更新."""

    child_first_name: str | None = None
    child_last_name: str | None = None
    interpreter_first_name: str | None = None
    interpreter_last_name: str | None = None
    interpreting_agency: str | None = None
    language: str | None = None


class ImageUpload(BaseModel):
    """署名・ID写真のアップロード."""

    image: bytes

    @field_validator("image", mode="before")
    @classmethod
    def image_must_be_decodable(cls, v: object) -> bytes:
        """base64 文字列を画像のバイト列にデコードする"""
        if not isinstance(v, str):
            msg = "image must be a base64 string"
            raise ValueError(msg)  # noqa: TRY004
        return decode_image(v)


# --- アプリケーションのライフサイクルイベント ---


# Deprecated on_event usage is temporarily retained for simplicity.
@app.on_event("startup")  # pyright: ignore[reportDeprecated]
async def startup_event() -> None:
    """起動時にキオスクの構成要素を組み立ててホーム画面を表示する."""
    settings = load_settings()
    scheduler = AsyncioScheduler(asyncio.get_running_loop())
    context = build_context(settings, scheduler)
    app.state.context = context
    context.uploads.check_access()
    context.log_message(
        f"Kiosk ready. Idle timeout: {settings.idle_timeout_sec:.0f}s, "
        f"Drive upload: {'enabled' if context.uploads.enabled else 'disabled'}"
    )


@app.on_event("shutdown")  # pyright: ignore[reportDeprecated]
async def shutdown_event() -> None:
    context: KioskContext | None = getattr(app.state, "context", None)
    if context is not None:
        context.shutdown()


def _context() -> KioskContext:
    context: KioskContext | None = getattr(app.state, "context", None)
    if context is None:
        raise HTTPException(status_code=HTTP_UNAVAILABLE, detail="Kiosk not initialized")
    return context


def _flow_conflict(exc: FlowError) -> HTTPException:
    return HTTPException(status_code=HTTP_CONFLICT, detail=str(exc))


def _status(context: KioskContext) -> dict[str, Any]:
    monitor = context.monitor
    appointment = context.store.appointment
    remaining = monitor.seconds_remaining()
    return {
        "page": context.navigator.current.value,
        "stack": [page.value for page in context.navigator.stack],
        "idle": {
            "state": monitor.state.value,
            "timeout_sec": monitor.timeout_duration,
            "seconds_remaining": round(remaining, 1) if remaining is not None else None,
            "timeouts_fired": monitor.timeouts_fired,
        },
        "auto_return": {
            page.value: timer.is_pending for page, timer in context.screens.auto_return.items()
        },
        "appointment": {
            "names_complete": appointment.names_complete,
            "has_signature": appointment.signature_image is not None,
            "has_photo": appointment.captured_photo is not None,
        },
        "interpreter": {"is_complete": context.store.interpreter.is_complete},
        "uploads_enabled": context.uploads.enabled,
    }


# --- APIエンドポイント定義 ---


@app.get("/status")
async def get_current_status() -> dict[str, Any]:
    """現在のキオスク状態を取得する."""
    return _status(_context())


@app.post("/activity")
async def record_activity(req: ActivityRequest) -> dict[str, Any]:
    """タッチ・キー入力などの操作を記録する."""
    context = _context()
    context.screens.interact(req.kind)
    return {"ok": True, "idle": context.monitor.state.value}


@app.post("/session/suspend")
async def suspend_session() -> dict[str, Any]:
    """アイドルタイマーを一時停止する."""
    context = _context()
    context.monitor.suspend()
    context.log_message("Idle timer suspended by client")
    return {"ok": True, "idle": context.monitor.state.value}


@app.post("/session/resume")
async def resume_session() -> dict[str, Any]:
    """アイドルタイマーを再開する."""
    context = _context()
    context.monitor.resume()
    context.log_message("Idle timer resumed by client")
    return {"ok": True, "idle": context.monitor.state.value}


@app.post("/app/background")
async def app_background() -> dict[str, Any]:
    context = _context()
    context.screens.enter_background()
    return {"ok": True, "idle": context.monitor.state.value}


@app.post("/app/foreground")
async def app_foreground() -> dict[str, Any]:
    context = _context()
    context.screens.enter_foreground()
    return {"ok": True, "idle": context.monitor.state.value}


@app.post("/navigation/advance")
async def advance(req: NavigationRequest) -> dict[str, Any]:
    """次の画面に進む（ボタンタップ）."""
    context = _context()
    try:
        context.screens.advance(req.page)
    except FlowError as exc:
        context.log_message(f"Navigation refused: {exc}")
        raise _flow_conflict(exc) from exc
    return {"ok": True, "page": context.navigator.current.value}


@app.post("/navigation/back")
async def back() -> dict[str, Any]:
    """1つ前の画面に戻る."""
    context = _context()
    try:
        context.screens.back()
    except FlowError as exc:
        context.log_message(f"Navigation refused: {exc}")
        raise _flow_conflict(exc) from exc
    return {"ok": True, "page": context.navigator.current.value}


@app.get("/screens/home")
async def get_home_slide() -> dict[str, Any]:
    """ホーム画面で表示中のスライド."""
    carousel = _context().screens.carousel
    slide = carousel.current()
    return {
        "index": carousel.current_index(),
        "title": slide.title,
        "button_text": slide.button_text,
        "interval_sec": carousel.interval,
    }


@app.put("/forms/appointment")
async def update_appointment(req: AppointmentUpdate) -> dict[str, Any]:
    """予約フローの入力欄を更新する（キー入力として扱う）."""
    context = _context()
    form = context.store.appointment
    for name, value in req.model_dump(exclude_none=True).items():
        setattr(form, name, value)
    context.screens.interact(ActivityKind.KEYBOARD)
    return {"ok": True, "names_complete": form.names_complete}


@app.put("/forms/interpreter")
async def update_interpreter(req: InterpreterUpdate) -> dict[str, Any]:
    """通訳者フローの入力欄を更新する（キー入力として扱う）."""
    context = _context()
    form = context.store.interpreter
    for name, value in req.model_dump(exclude_none=True).items():
        setattr(form, name, value)
    context.screens.interact(ActivityKind.KEYBOARD)
    return {"ok": True, "is_complete": form.is_complete}


@app.post("/forms/appointment/signature")
async def upload_appointment_signature(req: ImageUpload) -> dict[str, Any]:
    context = _context()
    context.store.appointment.signature_image = req.image
    context.screens.interact(ActivityKind.TOUCH)
    return {"ok": True}


@app.post("/forms/appointment/photo")
async def upload_appointment_photo(req: ImageUpload) -> dict[str, Any]:
    """カメラで撮影したID写真を保存する."""
    context = _context()
    context.store.appointment.captured_photo = req.image
    context.screens.interact(ActivityKind.BUTTON_TAP)
    return {"ok": True}


@app.post("/forms/appointment/photo/retake")
async def retake_appointment_photo() -> dict[str, Any]:
    """写真を破棄してカメラ画面に戻る."""
    context = _context()
    try:
        context.screens.retake_photo()
    except FlowError as exc:
        raise _flow_conflict(exc) from exc
    return {"ok": True, "page": context.navigator.current.value}


@app.post("/forms/interpreter/signature")
async def upload_interpreter_signature(req: ImageUpload) -> dict[str, Any]:
    context = _context()
    context.store.interpreter.signature_image = req.image
    context.screens.interact(ActivityKind.TOUCH)
    return {"ok": True, "is_complete": context.store.interpreter.is_complete}


@app.post("/confirmation/finish")
async def finish_check_in() -> dict[str, Any]:
    """完了画面の「Finish Check-In」."""
    context = _context()
    try:
        context.screens.finish()
    except FlowError as exc:
        raise _flow_conflict(exc) from exc
    context.log_message("Check-in finished by visitor")
    return {"ok": True, "page": context.navigator.current.value}


# --- モニタリング用エンドポイント ---


@app.get("/api/monitoring_data")
async def get_monitoring_data() -> dict[str, Any]:
    """モニタリングUIに最新データを提供する."""
    context = _context()
    return {"status": _status(context), "logs": list(context.logs)}


@app.get("/monitoring", response_class=HTMLResponse)
async def get_monitoring_page() -> HTMLResponse:
    """モニタリング用のWebページを返す."""
    html_content = """
    <!DOCTYPE html>
    <html lang="en">
    <head>
        <meta charset="UTF-8">
        <title>Check-In Kiosk Monitor</title>
        <style>
            body { font-family: sans-serif; padding: 20px; background-color: #f4f4f4; color: #333; }
            pre { background: #eee; padding: 10px; border-radius: 5px; white-space: pre-wrap; }
            #logs { height: 300px; overflow-y: scroll; border: 1px solid #ddd; padding: 10px; background: #fff; }
        </style>
    </head>
    <body>
        <h1>Check-In Kiosk Monitor</h1>
        <h2>Status</h2>
        <pre id="status">No data yet.</pre>
        <h2>Logs</h2>
        <div id="logs"></div>
        <script>
            async function fetchData() {
                try {
                    const response = await fetch('/api/monitoring_data');
                    const data = await response.json();
                    document.getElementById('status').textContent = JSON.stringify(data.status, null, 2);
                    const logsDiv = document.getElementById('logs');
                    logsDiv.innerHTML = data.logs.map(log => `<div>${log}</div>`).join('');
                    logsDiv.scrollTop = logsDiv.scrollHeight;
                } catch (error) {
                    console.error('Error fetching monitoring data:', error);
                }
            }
            setInterval(fetchData, 3000);
            window.onload = fetchData;
        </script>
    </body>
    </html>
    """  # noqa: E501
    return HTMLResponse(content=html_content)
