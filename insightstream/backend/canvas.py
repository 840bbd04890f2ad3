"""
Abstract page canvas (origin top-left, y grows downward) and its PDF replay.

Chart and report code only ever records draw operations onto a PageCanvas;
PdfRenderer turns finished pages into a PDF with reportlab.
"""

import io
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple, Union

from reportlab.lib.colors import HexColor
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas as pdf_canvas

logger = logging.getLogger(__name__)

Point = Tuple[float, float]


@dataclass(frozen=True)
class RectOp:
    x: float
    y: float
    width: float
    height: float
    radius: float = 0.0
    fill: Optional[str] = None
    stroke: Optional[str] = None


@dataclass(frozen=True)
class PolygonOp:
    points: Tuple[Point, ...]
    fill: str


@dataclass(frozen=True)
class CircleOp:
    cx: float
    cy: float
    radius: float
    fill: str


@dataclass(frozen=True)
class LineOp:
    x1: float
    y1: float
    x2: float
    y2: float
    color: str
    width: float = 1.0


@dataclass(frozen=True)
class TextOp:
    x: float
    y: float
    text: str
    size: float
    color: str
    font: str = "Helvetica"
    align: str = "left"


DrawOp = Union[RectOp, PolygonOp, CircleOp, LineOp, TextOp]


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    @property
    def bottom(self) -> float:
        return self.y + self.height


class PageCanvas:
    """Records draw operations for one page."""

    def __init__(self, width: float, height: float):
        self.width = width
        self.height = height
        self.ops: List[DrawOp] = []

    def rounded_rect(self, x, y, width, height, radius=0.0, fill=None, stroke=None):
        self.ops.append(RectOp(x, y, width, height, radius, fill, stroke))

    def triangle(self, a: Point, b: Point, c: Point, fill: str):
        self.ops.append(PolygonOp((a, b, c), fill))

    def circle(self, cx, cy, radius, fill: str):
        self.ops.append(CircleOp(cx, cy, radius, fill))

    def line(self, x1, y1, x2, y2, color: str, width: float = 1.0):
        self.ops.append(LineOp(x1, y1, x2, y2, color, width))

    def text(self, x, y, text: str, size: float, color: str, font: str = "Helvetica", align: str = "left"):
        self.ops.append(TextOp(x, y, printable(text), size, color, font, align))


@dataclass(frozen=True)
class ReportPage:
    index: int
    ops: Tuple[DrawOp, ...]


@dataclass(frozen=True)
class ReportDocument:
    pages: Tuple[ReportPage, ...]
    page_width: float
    page_height: float
    generated_at: datetime = field(default_factory=datetime.now)

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def filename(self) -> str:
        return f"data-insights-report-{self.generated_at.strftime('%Y%m%d-%H%M%S')}.pdf"


def printable(text: str) -> str:
    """Drop characters the standard PDF fonts cannot encode (emoji and the like)."""
    return text.encode("cp1252", "ignore").decode("cp1252")


def text_width(text: str, font: str = "Helvetica", size: float = 10.0) -> float:
    return stringWidth(printable(text), font, size)


class PdfRenderer:
    """Replays recorded pages onto a reportlab canvas."""

    def render(self, document: ReportDocument) -> bytes:
        buffer = io.BytesIO()
        pdf = pdf_canvas.Canvas(buffer, pagesize=(document.page_width, document.page_height))
        pdf.setTitle("Data Insights Report")

        for page in document.pages:
            for op in page.ops:
                self._draw(pdf, op, document.page_height)
            pdf.showPage()

        pdf.save()
        logger.debug(f"Rendered {document.page_count} pages")
        return buffer.getvalue()

    def _draw(self, pdf, op: DrawOp, page_height: float) -> None:
        if isinstance(op, RectOp):
            if op.fill:
                pdf.setFillColor(HexColor(op.fill))
            if op.stroke:
                pdf.setStrokeColor(HexColor(op.stroke))
            pdf.roundRect(
                op.x, page_height - op.y - op.height, op.width, op.height, op.radius,
                stroke=1 if op.stroke else 0, fill=1 if op.fill else 0,
            )
        elif isinstance(op, PolygonOp):
            pdf.setFillColor(HexColor(op.fill))
            path = pdf.beginPath()
            first, *rest = op.points
            path.moveTo(first[0], page_height - first[1])
            for x, y in rest:
                path.lineTo(x, page_height - y)
            path.close()
            pdf.drawPath(path, stroke=0, fill=1)
        elif isinstance(op, CircleOp):
            pdf.setFillColor(HexColor(op.fill))
            pdf.circle(op.cx, page_height - op.cy, op.radius, stroke=0, fill=1)
        elif isinstance(op, LineOp):
            pdf.setStrokeColor(HexColor(op.color))
            pdf.setLineWidth(op.width)
            pdf.line(op.x1, page_height - op.y1, op.x2, page_height - op.y2)
        elif isinstance(op, TextOp):
            pdf.setFillColor(HexColor(op.color))
            pdf.setFont(op.font, op.size)
            if op.align == "center":
                pdf.drawCentredString(op.x, page_height - op.y, op.text)
            else:
                pdf.drawString(op.x, page_height - op.y, op.text)
        else:
            raise TypeError(f"Unsupported draw operation: {type(op).__name__}")
