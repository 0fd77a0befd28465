"""Rendering of receipt and summary documents to PDF files."""

import asyncio
from pathlib import Path
from typing import Protocol

import structlog
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.pdfgen import canvas

from talahum_dues.config import get_settings
from talahum_dues.documents import Document, PeriodSummaryDocument, ReceiptDocument

logger = structlog.get_logger(__name__)

DOCUMENT_FONT_NAME = "TalahumDocumentFont"

PRIMARY = colors.HexColor("#10B981")
TEXT = colors.HexColor("#374151")
MUTED = colors.HexColor("#6B7280")
BORDER = colors.HexColor("#D1D5DB")
STRIPE = colors.HexColor("#F9FAFB")
HEADER_FILL = colors.HexColor("#ECFDF5")

MARGIN = 15 * mm
ROW_HEIGHT = 8 * mm
# Relative widths of the summary table columns, rightmost first
SUMMARY_COLUMN_WEIGHTS = (3.0, 2.2, 1.6, 1.6, 1.8, 1.6)


class RenderError(Exception):
    """A document could not be drawn or written."""

    def __init__(self, message: str, filename: str | None = None):
        super().__init__(message)
        self.filename = filename


class DocumentRenderer(Protocol):
    """Turns a document model into a file and returns its path."""

    async def render(self, document: Document) -> Path: ...


def _fit(text: str, font: str, size: float, width: float) -> str:
    """Trim text with an ellipsis until it fits the given width."""
    if pdfmetrics.stringWidth(text, font, size) <= width:
        return text
    while text and pdfmetrics.stringWidth(text + "…", font, size) > width:
        text = text[:-1]
    return text + "…"


class PdfDocumentRenderer:
    """Draws documents with reportlab into the export directory.

    Text is laid out right-to-left. Helvetica has no Arabic glyphs, so set
    ``PDF_FONT_PATH`` (or ``font_path``) to a TTF font that covers them.
    """

    def __init__(
        self,
        output_dir: Path | str | None = None,
        font_path: Path | str | None = None,
    ):
        settings = get_settings()
        self.output_dir = Path(output_dir) if output_dir is not None else settings.export_dir
        self._font_path = font_path if font_path is not None else settings.pdf_font_path
        self._font_registered = False

    def _fonts(self) -> tuple[str, str]:
        """Regular and bold font names, registering the custom font once."""
        if self._font_path is None:
            return "Helvetica", "Helvetica-Bold"
        if not self._font_registered:
            pdfmetrics.registerFont(TTFont(DOCUMENT_FONT_NAME, str(self._font_path)))
            self._font_registered = True
        return DOCUMENT_FONT_NAME, DOCUMENT_FONT_NAME

    async def render(self, document: Document) -> Path:
        """Render without blocking the event loop."""
        return await asyncio.to_thread(self.render_sync, document)

    def render_sync(self, document: Document) -> Path:
        """Render a document and return the written file path.

        Raises:
            RenderError: If drawing or writing the file fails.
        """
        path = self.output_dir / document.filename
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            pdf = canvas.Canvas(str(path), pagesize=A4)
            pdf.setTitle(path.stem)
            if isinstance(document, ReceiptDocument):
                self._draw_receipt(pdf, document)
            else:
                self._draw_summary(pdf, document)
            pdf.save()
        except Exception as e:
            logger.error("document_render_failed", filename=document.filename, error=str(e))
            raise RenderError(
                f"Could not render {document.filename}: {e}", filename=document.filename
            ) from e

        logger.info("document_rendered", path=str(path))
        return path

    # === Receipt ===

    def _draw_receipt(self, pdf: canvas.Canvas, document: ReceiptDocument) -> None:
        regular, bold = self._fonts()
        width, height = A4
        right = width - MARGIN
        y = height - 30 * mm

        pdf.setFillColor(PRIMARY)
        pdf.setFont(bold, 22)
        pdf.drawCentredString(width / 2, y, document.organization)
        y -= 10 * mm

        pdf.setFillColor(TEXT)
        pdf.setFont(regular, 14)
        for line in document.header_lines:
            pdf.drawCentredString(width / 2, y, line)
            y -= 7 * mm

        y -= 3 * mm
        pdf.setStrokeColor(PRIMARY)
        pdf.setLineWidth(1.5)
        pdf.line(MARGIN, y, right, y)
        y -= 9 * mm
        pdf.setFillColor(PRIMARY)
        pdf.setFont(bold, 18)
        pdf.drawCentredString(width / 2, y, document.title)
        y -= 5 * mm
        pdf.line(MARGIN, y, right, y)
        y -= 14 * mm

        value_right = right - 45 * mm
        for item in document.fields:
            pdf.setFillColor(MUTED)
            pdf.setFont(regular, 12)
            pdf.drawRightString(right, y, item.label)
            pdf.setFillColor(TEXT)
            pdf.setFont(bold, 14)
            pdf.drawRightString(value_right, y, _fit(item.value, bold, 14, value_right - MARGIN))
            y -= 11 * mm

        self._draw_signatures(pdf, document.signatures, regular, y - 25 * mm)
        pdf.showPage()

    def _draw_signatures(
        self, pdf: canvas.Canvas, signatures: tuple[str, ...], font: str, y: float
    ) -> None:
        if not signatures:
            return
        width, _ = A4
        slot = (width - 2 * MARGIN) / len(signatures)
        pdf.setStrokeColor(MUTED)
        pdf.setLineWidth(1)
        pdf.setFillColor(TEXT)
        pdf.setFont(font, 13)
        for index, label in enumerate(signatures):
            slot_right = width - MARGIN - index * slot
            pdf.line(slot_right - slot + 10 * mm, y, slot_right - 10 * mm, y)
            pdf.drawCentredString(slot_right - slot / 2, y - 7 * mm, label)

    # === Period summary ===

    def _draw_summary(self, pdf: canvas.Canvas, document: PeriodSummaryDocument) -> None:
        regular, bold = self._fonts()
        width, height = A4
        right = width - MARGIN
        usable = width - 2 * MARGIN
        total_weight = sum(SUMMARY_COLUMN_WEIGHTS)
        widths = [usable * w / total_weight for w in SUMMARY_COLUMN_WEIGHTS]
        column_rights = [right - sum(widths[:i]) for i in range(len(widths))]

        y = height - 25 * mm
        pdf.setFillColor(PRIMARY)
        pdf.setFont(bold, 20)
        pdf.drawCentredString(width / 2, y, document.title)
        y -= 8 * mm
        pdf.setFillColor(MUTED)
        pdf.setFont(regular, 13)
        pdf.drawCentredString(width / 2, y, document.subtitle)
        y -= 14 * mm

        stat_width = usable / max(len(document.stats), 1)
        for index, stat in enumerate(document.stats):
            center = right - index * stat_width - stat_width / 2
            pdf.setFillColor(PRIMARY)
            pdf.setFont(bold, 16)
            pdf.drawCentredString(center, y, stat.value)
            pdf.setFillColor(MUTED)
            pdf.setFont(regular, 10)
            pdf.drawCentredString(center, y - 6 * mm, stat.label)
        y -= 18 * mm

        y = self._draw_table_header(pdf, document.columns, column_rights, widths, bold, y)
        if not document.rows:
            pdf.setFillColor(MUTED)
            pdf.setFont(regular, 12)
            pdf.drawCentredString(width / 2, y - ROW_HEIGHT, document.empty_message)
            y -= 2 * ROW_HEIGHT

        for index, row in enumerate(document.rows):
            if y - ROW_HEIGHT < MARGIN + 20 * mm:
                pdf.showPage()
                y = self._draw_table_header(
                    pdf, document.columns, column_rights, widths, bold, height - MARGIN
                )
            if index % 2:
                pdf.setFillColor(STRIPE)
                pdf.rect(MARGIN, y - ROW_HEIGHT, usable, ROW_HEIGHT, stroke=0, fill=1)
            pdf.setFillColor(TEXT)
            pdf.setFont(regular, 10)
            for cell, cell_right, cell_width in zip(row, column_rights, widths):
                pdf.drawRightString(
                    cell_right - 2 * mm,
                    y - ROW_HEIGHT + 2.5 * mm,
                    _fit(cell, regular, 10, cell_width - 4 * mm),
                )
            pdf.setStrokeColor(BORDER)
            pdf.setLineWidth(0.5)
            pdf.line(MARGIN, y - ROW_HEIGHT, right, y - ROW_HEIGHT)
            y -= ROW_HEIGHT

        pdf.setFillColor(MUTED)
        pdf.setFont(regular, 9)
        footer_y = MARGIN + 6 * mm
        for line in document.footer_lines:
            pdf.drawCentredString(width / 2, footer_y, line)
            footer_y -= 5 * mm
        pdf.showPage()

    def _draw_table_header(
        self,
        pdf: canvas.Canvas,
        columns: tuple[str, ...],
        column_rights: list[float],
        widths: list[float],
        font: str,
        y: float,
    ) -> float:
        width, _ = A4
        pdf.setFillColor(HEADER_FILL)
        pdf.rect(MARGIN, y - ROW_HEIGHT, width - 2 * MARGIN, ROW_HEIGHT, stroke=0, fill=1)
        pdf.setFillColor(TEXT)
        pdf.setFont(font, 10)
        for title, cell_right, cell_width in zip(columns, column_rights, widths):
            pdf.drawRightString(
                cell_right - 2 * mm,
                y - ROW_HEIGHT + 2.5 * mm,
                _fit(title, font, 10, cell_width - 4 * mm),
            )
        return y - ROW_HEIGHT
