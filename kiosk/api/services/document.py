"""Render completed check-ins as single-page PDF documents."""

from __future__ import annotations

from datetime import datetime
from io import BytesIO

from PIL import Image, UnidentifiedImageError
from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from kiosk.logger import logger
from kiosk.model.models import AppointmentSnapshot, InterpreterSnapshot

PAGE_WIDTH, PAGE_HEIGHT = letter  # 612 x 792
MARGIN_X = 50
FONT = "Helvetica"
FONT_BOLD = "Helvetica-Bold"
HIGHLIGHT = colors.red

EVALUATION_DISCLAIMER = (
    "I understand that today's evaluation is not a general health exam. "
    "Our specialists cannot discuss, give opinions, or recommend treatments "
    "based on today's results. The specialist you see today does not decide "
    "your disability status. That decision is made by the agency that "
    "referred you. For questions about this evaluation, please contact the "
    "analyst handling your case. Your analyst's contact information is "
    "located on the letter you received informing you of this appointment."
)


def format_date(value: datetime) -> str:
    """MM/dd/yyyy 形式."""
    return value.strftime("%m/%d/%Y")


def format_time(value: datetime) -> str:
    """hh:mm AM 形式."""
    return value.strftime("%I:%M %p")


def load_image(data: bytes) -> Image.Image:
    """画像バイト列を Pillow で読み込む.

    Raises:
        ValueError: 画像として解釈できない場合

    """
    try:
        image = Image.open(BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError) as exc:
        msg = "image data is not a readable image"
        raise ValueError(msg) from exc
    return image


def _top(y: float, height: float = 0) -> float:
    # 上端基準の座標を reportlab の下端基準に変換
    return PAGE_HEIGHT - y - height


def _draw_labeled(
    pdf: canvas.Canvas, label: str, value: str, y: float, size: int = 14
) -> None:
    """ラベルは黒、値は赤で1行描画する."""
    baseline = _top(y, size)
    pdf.setFont(FONT, size)
    pdf.setFillColor(colors.black)
    pdf.drawString(MARGIN_X, baseline, label)
    pdf.setFillColor(HIGHLIGHT)
    pdf.drawString(MARGIN_X + stringWidth(label, FONT, size), baseline, value)


def _draw_image(
    pdf: canvas.Canvas, data: bytes | None, x: float, y: float, width: float, height: float
) -> None:
    if not data:
        return
    reader = ImageReader(load_image(data))
    pdf.drawImage(
        reader,
        x,
        _top(y, height),
        width=width,
        height=height,
        preserveAspectRatio=True,
        mask="auto",
    )


def _new_canvas(buffer: BytesIO, title: str) -> canvas.Canvas:
    pdf = canvas.Canvas(buffer, pagesize=letter)
    pdf.setTitle(title)
    pdf.setAuthor("Check-In Kiosk")
    return pdf


def render_appointment_pdf(snapshot: AppointmentSnapshot) -> bytes:
    """予約チェックインの PDF を生成する."""
    buffer = BytesIO()
    pdf = _new_canvas(buffer, "Check-In Photo Verification")

    pdf.setFont(FONT_BOLD, 24)
    pdf.setFillColor(colors.blue)
    pdf.drawString(MARGIN_X, _top(30, 24), "Check-In Photo Verification")

    _draw_labeled(pdf, "Caregiver Name: ", snapshot.caregiver_full_name, 70)
    _draw_labeled(pdf, "Claimant Name: ", snapshot.child_full_name, 90)

    pdf.setFont(FONT, 12)
    pdf.setFillColor(colors.black)
    y = 120.0
    for line in simpleSplit(EVALUATION_DISCLAIMER, FONT, 12, PAGE_WIDTH - 2 * MARGIN_X):
        pdf.drawString(MARGIN_X, _top(y, 12), line)
        y += 15

    pdf.setFont(FONT, 14)
    pdf.setFillColor(HIGHLIGHT)
    pdf.drawString(MARGIN_X, _top(340, 14), "Signature")
    _draw_image(pdf, snapshot.signature_image, MARGIN_X, 360, 200, 80)

    pdf.setFillColor(HIGHLIGHT)
    pdf.drawString(MARGIN_X, _top(460, 14), f"Date: {format_date(snapshot.check_in_date)}")
    pdf.drawString(MARGIN_X, _top(480, 14), f"Time: {format_time(snapshot.check_in_date)}")

    _draw_image(pdf, snapshot.captured_photo, MARGIN_X, 520, 200, 150)

    pdf.showPage()
    pdf.save()
    data = buffer.getvalue()
    logger.info("Appointment PDF rendered (%d bytes)", len(data))
    return data


def render_interpreter_pdf(snapshot: InterpreterSnapshot) -> bytes:
    """通訳者チェックインの PDF を生成する."""
    buffer = BytesIO()
    pdf = _new_canvas(buffer, "Interpreter Check-In")

    _draw_labeled(pdf, "Claimant Name: ", snapshot.child_full_name, 50)
    _draw_labeled(pdf, "Interpreter Name: ", snapshot.interpreter_full_name, 70)
    _draw_labeled(pdf, "Interpreting Agency: ", snapshot.interpreting_agency, 90)
    _draw_labeled(pdf, "Language: ", snapshot.language, 110)
    _draw_labeled(pdf, "Date: ", format_date(snapshot.check_in_date), 130)
    _draw_labeled(pdf, "Time: ", format_time(snapshot.check_in_date), 150)

    pdf.setFont(FONT, 14)
    pdf.setFillColor(HIGHLIGHT)
    pdf.drawString(MARGIN_X, _top(180, 14), "Signature")
    _draw_image(pdf, snapshot.signature_image, MARGIN_X, 200, 300, 100)

    pdf.showPage()
    pdf.save()
    data = buffer.getvalue()
    logger.info("Interpreter PDF rendered (%d bytes)", len(data))
    return data
