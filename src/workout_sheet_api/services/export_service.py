"""Export service: renders a workout sheet as XLSX, PDF, PNG or plain text.

Every renderer groups exercises by category ("TREINO A", "TREINO B", ...) and
keeps the order in which exercises were entered inside each group.
"""
import base64
import binascii
import io
import logging
from datetime import datetime
from typing import List, Optional, Tuple
from xml.sax.saxutils import escape

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from PIL import Image, ImageDraw, ImageFont
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas
from reportlab.platypus import PageBreak, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from workout_sheet_api.models import BrandingConfig, Exercise, WorkoutSheet
from workout_sheet_api.utils import slugify

logger = logging.getLogger(__name__)

NAVY = (25, 47, 89)
NAVY_HEX = "192F59"
LIGHT_ROW = (241, 245, 249)
VIDEO_LABEL = "Ver Vídeo"
EMPTY_SHEET_MESSAGE = "Nenhum exercício para exportar"

XLSX_HEADERS = ["#", "Exercício", "Link do Vídeo", "Série", "Repetição", "Pausa", "Observação"]
XLSX_COLUMN_WIDTHS = [5, 40, 50, 10, 15, 15, 30]

PDF_HEADERS = ["Exercício", "Vídeo", "S", "Rep.", "Pausa", "Obs."]
PDF_COLUMN_WIDTHS = [62 * mm, 22 * mm, 10 * mm, 20 * mm, 20 * mm, 46 * mm]
PDF_STRIPE_HEIGHT = 18 * mm

PNG_WIDTH = 1200
PNG_MARGIN = 40
PNG_ROW_HEIGHT = 34
# (header, x offset, max chars)
PNG_COLUMNS = [
    ("Exercício", 0, 48),
    ("S", 560, 4),
    ("Rep.", 630, 10),
    ("Pausa", 760, 10),
    ("Obs.", 880, 24),
]


class ExportError(RuntimeError):
    """Raised when a sheet cannot be exported."""


def _require_exercises(sheet: WorkoutSheet) -> None:
    if not sheet.exercises:
        raise ExportError(EMPTY_SHEET_MESSAGE)


def _format_date(value: Optional[datetime] = None) -> str:
    return (value or datetime.now()).strftime("%d/%m/%Y")


def _decode_logo(logo: Optional[str]) -> Optional[bytes]:
    """Decode a data URL / bare base64 logo; None when missing or not an image."""
    if not logo:
        return None
    payload = logo.split(",", 1)[1] if logo.startswith("data:") and "," in logo else logo
    try:
        data = base64.b64decode(payload, validate=True)
        Image.open(io.BytesIO(data)).verify()
    except (binascii.Error, ValueError, OSError, SyntaxError) as e:
        logger.warning(f"Ignoring unreadable logo: {e}")
        return None
    return data


# ---------------------------------------------------------------------------
# File names
# ---------------------------------------------------------------------------


def xlsx_filename(sheet: WorkoutSheet) -> str:
    """treino-<gender>-<level>-<sub_level>[-<complement>]-<freq>x-semana.xlsx"""
    parts = ["treino", sheet.gender, sheet.level, str(sheet.sub_level)]
    complement = slugify(sheet.level_complement)
    if complement:
        parts.append(complement)
    parts.append(f"{sheet.weekly_frequency}x-semana")
    return "-".join(parts) + ".xlsx"


def pdf_filename(sheet: WorkoutSheet, today: Optional[datetime] = None) -> str:
    student = slugify(sheet.student_name or "")
    if student:
        return f"ficha-treino-{student}-{(today or datetime.now()).strftime('%Y%m%d')}.pdf"
    return f"ficha-treino-{sheet.weekly_frequency}x-semana.pdf"


def png_filename(sheet: WorkoutSheet, today: Optional[datetime] = None) -> str:
    return f"ficha-treino-{(today or datetime.now()).strftime('%Y%m%d')}.png"


# ---------------------------------------------------------------------------
# PDF helpers
# ---------------------------------------------------------------------------


def _numbered_canvas(studio_name: str):
    """Canvas class that stamps "Gerado por <studio> - Página i de n" on save."""

    class NumberedCanvas(canvas.Canvas):
        def __init__(self, *args, **kwargs):
            super().__init__(*args, **kwargs)
            self._saved_page_states = []

        def showPage(self):
            self._saved_page_states.append(dict(self.__dict__))
            self._startPage()

        def save(self):
            total = len(self._saved_page_states)
            for state in self._saved_page_states:
                self.__dict__.update(state)
                self._draw_footer(total)
                super().showPage()
            super().save()

        def _draw_footer(self, total: int):
            width, _ = self._pagesize
            self.setFont("Helvetica", 8)
            self.setFillColor(colors.grey)
            self.drawCentredString(
                width / 2,
                10 * mm,
                f"Gerado por {studio_name} - Página {self._pageNumber} de {total}",
            )

    return NumberedCanvas


def _pdf_styles():
    base = getSampleStyleSheet()
    return {
        "title": ParagraphStyle(
            "SheetTitle", parent=base["Title"], fontSize=20, textColor=colors.Color(*[c / 255 for c in NAVY]),
            alignment=TA_CENTER, spaceAfter=4,
        ),
        "info": ParagraphStyle("SheetInfo", parent=base["Normal"], fontSize=10, spaceAfter=2),
        "category": ParagraphStyle(
            "SheetCategory", parent=base["Heading2"], fontSize=14, spaceBefore=8, spaceAfter=6,
            textColor=colors.Color(*[c / 255 for c in NAVY]),
        ),
        "cell": ParagraphStyle("SheetCell", parent=base["Normal"], fontSize=9, leading=11),
        "link": ParagraphStyle("SheetLink", parent=base["Normal"], fontSize=9, leading=11, textColor=colors.blue),
    }


def _pdf_table(exercises: List[Exercise], styles) -> Table:
    navy = colors.Color(*[c / 255 for c in NAVY])
    light = colors.Color(*[c / 255 for c in LIGHT_ROW])

    data: List[list] = [PDF_HEADERS]
    for exercise in exercises:
        if exercise.video_link:
            href = escape(exercise.video_link, {'"': "&quot;"})
            video_cell = Paragraph(f'<link href="{href}"><u>{VIDEO_LABEL}</u></link>', styles["link"])
        else:
            video_cell = "-"
        data.append([
            Paragraph(escape(exercise.name), styles["cell"]),
            video_cell,
            str(exercise.series),
            Paragraph(escape(exercise.repetitions), styles["cell"]),
            Paragraph(escape(exercise.rest or "-"), styles["cell"]),
            Paragraph(escape(exercise.notes), styles["cell"]),
        ])

    table = Table(data, colWidths=PDF_COLUMN_WIDTHS, repeatRows=1)
    table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), navy),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 9),
        ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, light]),
        ('ALIGN', (1, 0), (4, -1), 'CENTER'),
        ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.lightgrey),
        ('BOTTOMPADDING', (0, 0), (-1, 0), 6),
    ]))
    return table


# ---------------------------------------------------------------------------
# PNG helpers
# ---------------------------------------------------------------------------


def _font(size: int):
    return ImageFont.load_default(size=size)


def _clip(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[: limit - 3] + "..."


def _png_height(grouped) -> int:
    height = 140 + 60  # navy header + title block
    for exercises in grouped.values():
        height += 50 + PNG_ROW_HEIGHT * (len(exercises) + 1) + 20
    return height + PNG_MARGIN


class ExportService:
    """Renders WorkoutSheet instances into downloadable documents."""

    def render_xlsx(self, sheet: WorkoutSheet) -> bytes:
        """One worksheet per category with hyperlinked video cells."""
        _require_exercises(sheet)

        wb = Workbook()
        wb.remove(wb.active)
        header_font = Font(bold=True, color="FFFFFF")
        header_fill = PatternFill("solid", fgColor=NAVY_HEX)

        for category, exercises in sheet.exercises_by_category().items():
            ws = wb.create_sheet(title=f"Treino {category}")
            ws.append(XLSX_HEADERS)
            for cell in ws[1]:
                cell.font = header_font
                cell.fill = header_fill
                cell.alignment = Alignment(horizontal="center")

            for position, exercise in enumerate(exercises, 1):
                ws.append([
                    position,
                    exercise.name,
                    exercise.video_link,
                    exercise.series,
                    exercise.repetitions,
                    exercise.rest,
                    exercise.notes,
                ])
                if exercise.video_link:
                    link_cell = ws.cell(row=ws.max_row, column=3)
                    link_cell.hyperlink = exercise.video_link
                    link_cell.style = "Hyperlink"

            for idx, width in enumerate(XLSX_COLUMN_WIDTHS, 1):
                ws.column_dimensions[get_column_letter(idx)].width = width

        buffer = io.BytesIO()
        wb.save(buffer)
        logger.info(f"Rendered XLSX with {len(wb.sheetnames)} sheets")
        return buffer.getvalue()

    def render_pdf(self, sheet: WorkoutSheet, branding: Optional[BrandingConfig] = None) -> bytes:
        """A4 document, one page group per category."""
        _require_exercises(sheet)
        branding = branding or BrandingConfig()
        styles = _pdf_styles()
        logo = _decode_logo(branding.logo)

        def _draw_stripe(pdf_canvas, doc) -> None:
            width, height = doc.pagesize
            pdf_canvas.saveState()
            pdf_canvas.setFillColorRGB(*[c / 255 for c in NAVY])
            pdf_canvas.rect(0, height - PDF_STRIPE_HEIGHT, width, PDF_STRIPE_HEIGHT, stroke=0, fill=1)
            text_x = 15 * mm
            if logo:
                pdf_canvas.drawImage(
                    ImageReader(io.BytesIO(logo)),
                    10 * mm,
                    height - PDF_STRIPE_HEIGHT + 3 * mm,
                    width=12 * mm,
                    height=12 * mm,
                    preserveAspectRatio=True,
                    mask="auto",
                )
                text_x = 26 * mm
            pdf_canvas.setFillColor(colors.white)
            pdf_canvas.setFont("Helvetica-Bold", 14)
            pdf_canvas.drawString(text_x, height - PDF_STRIPE_HEIGHT + 7 * mm, branding.studio_name)
            pdf_canvas.restoreState()

        story = []
        grouped = sheet.exercises_by_category()
        for idx, (category, exercises) in enumerate(grouped.items()):
            if idx:
                story.append(PageBreak())
            story.append(Paragraph(escape(sheet.header_text), styles["title"]))
            if sheet.student_name:
                story.append(Paragraph(f"<b>Aluno:</b> {escape(sheet.student_name)}", styles["info"]))
            story.append(Paragraph(f"<b>Data:</b> {_format_date()}", styles["info"]))
            if sheet.objective:
                story.append(Paragraph(f"<b>Objetivo:</b> {escape(sheet.objective)}", styles["info"]))
            story.append(Paragraph(f"TREINO {category}", styles["category"]))
            story.append(_pdf_table(exercises, styles))
            story.append(Spacer(1, 8 * mm))

        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            leftMargin=12 * mm,
            rightMargin=12 * mm,
            topMargin=PDF_STRIPE_HEIGHT + 8 * mm,
            bottomMargin=18 * mm,
            title=sheet.title,
            author=branding.studio_name,
        )
        doc.build(
            story,
            onFirstPage=_draw_stripe,
            onLaterPages=_draw_stripe,
            canvasmaker=_numbered_canvas(branding.studio_name),
        )
        logger.info(f"Rendered PDF for {len(grouped)} categories")
        return buffer.getvalue()

    def render_png(self, sheet: WorkoutSheet, branding: Optional[BrandingConfig] = None) -> bytes:
        """Single image with one section per category."""
        _require_exercises(sheet)
        branding = branding or BrandingConfig()
        grouped = sheet.exercises_by_category()

        img = Image.new("RGB", (PNG_WIDTH, _png_height(grouped)), color=(255, 255, 255))
        draw = ImageDraw.Draw(img)

        # Header band
        draw.rectangle((0, 0, PNG_WIDTH, 110), fill=NAVY)
        text_x = PNG_MARGIN
        logo = _decode_logo(branding.logo)
        if logo:
            logo_img = Image.open(io.BytesIO(logo)).convert("RGBA")
            logo_img.thumbnail((80, 80))
            img.paste(logo_img, (PNG_MARGIN, 15), logo_img)
            text_x += 100
        draw.text((text_x, 38), branding.studio_name, fill=(255, 255, 255), font=_font(32))

        y = 130
        title_font = _font(30)
        title_x = (PNG_WIDTH - draw.textlength(sheet.header_text, font=title_font)) / 2
        draw.text((title_x, y), sheet.header_text, fill=NAVY, font=title_font)
        y += 45
        info = f"Aluno: {sheet.student_name}  |  " if sheet.student_name else ""
        draw.text((PNG_MARGIN, y), f"{info}Data: {_format_date()}", fill=(60, 60, 60), font=_font(18))
        y += 35

        for category, exercises in grouped.items():
            y = self._draw_png_section(draw, y, category, exercises)

        buffer = io.BytesIO()
        img.save(buffer, format="PNG")
        return buffer.getvalue()

    def _draw_png_section(self, draw: ImageDraw.ImageDraw, y: int, category: str, exercises: List[Exercise]) -> int:
        draw.text((PNG_MARGIN, y + 10), f"TREINO {category}", fill=NAVY, font=_font(24))
        y += 50

        right = PNG_WIDTH - PNG_MARGIN
        draw.rectangle((PNG_MARGIN, y, right, y + PNG_ROW_HEIGHT), fill=NAVY)
        for header, offset, _ in PNG_COLUMNS:
            draw.text((PNG_MARGIN + 10 + offset, y + 8), header, fill=(255, 255, 255), font=_font(16))
        y += PNG_ROW_HEIGHT

        for idx, exercise in enumerate(exercises):
            if idx % 2:
                draw.rectangle((PNG_MARGIN, y, right, y + PNG_ROW_HEIGHT), fill=LIGHT_ROW)
            values = _png_row(idx + 1, exercise)
            for (_, offset, limit), value in zip(PNG_COLUMNS, values):
                draw.text((PNG_MARGIN + 10 + offset, y + 8), _clip(value, limit), fill=(30, 30, 30), font=_font(16))
            y += PNG_ROW_HEIGHT

        return y + 20

    def render_text(self, sheet: WorkoutSheet, branding: Optional[BrandingConfig] = None) -> str:
        """Plain-text sheet for messaging apps."""
        _require_exercises(sheet)

        lines = [sheet.header_text]
        if branding and branding.studio_name:
            lines.append(branding.studio_name)
        if sheet.student_name:
            lines.append(f"Aluno: {sheet.student_name}")
        lines.append(f"Data: {_format_date()}")

        for category, exercises in sheet.exercises_by_category().items():
            lines.append("")
            lines.append(f"TREINO {category}")
            for position, exercise in enumerate(exercises, 1):
                detail = f"{position}. {exercise.name} - {exercise.series}x{exercise.repetitions}"
                if exercise.rest:
                    detail += f" - Pausa: {exercise.rest}"
                lines.append(detail)
                if exercise.notes:
                    lines.append(f"   Obs: {exercise.notes}")
                if exercise.video_link:
                    lines.append(f"   Vídeo: {exercise.video_link}")

        return "\n".join(lines) + "\n"


def _png_row(position: int, exercise: Exercise) -> Tuple[str, str, str, str, str]:
    return (
        f"{position}. {exercise.name}",
        str(exercise.series),
        exercise.repetitions,
        exercise.rest or "-",
        exercise.notes,
    )
