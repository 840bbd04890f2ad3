"""
Paginated report layout: summary, charts and assistant text across pages.

A PageCursor value is passed into and returned from every layout step; a
ReportCompositor instance belongs to exactly one export.
"""

import logging
import re
from dataclasses import dataclass, replace
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from insightstream.backend.canvas import (
    PageCanvas,
    PdfRenderer,
    Rect,
    ReportDocument,
    ReportPage,
    TextOp,
    text_width,
)
from insightstream.backend.charts import draw_bar_chart, draw_line_chart, draw_pie_chart
from insightstream.backend.summarizer import (
    format_number,
    headline_metrics,
    histogram,
    numeric_columns,
)
from insightstream.config import CONFIG, BrandingConfig, ReportConfig
from insightstream.core.errors import RenderFailure
from insightstream.core.models import Dataset, DatasetSummary, NumericCell

logger = logging.getLogger(__name__)

_MARKDOWN_MARKERS = re.compile(r"(\*\*|__|`+|^#+\s*|^>\s*)")
_FENCE = re.compile(r"```[\s\S]*?```")


@dataclass(frozen=True)
class PageCursor:
    page_index: int
    y: float


def wrap_text(text: str, max_width: float, font: str, size: float) -> List[str]:
    """Greedy whitespace wrap; a token wider than the line gets a line of its own."""
    lines: List[str] = []
    current = ""
    for token in text.split():
        candidate = f"{current} {token}" if current else token
        if current and text_width(candidate, font, size) > max_width:
            lines.append(current)
            current = token
        else:
            current = candidate
    if current:
        lines.append(current)
    return lines


def clean_markdown(line: str) -> str:
    line = line.strip()
    if line.startswith(("- ", "* ")):
        line = "- " + line[2:]
    return _MARKDOWN_MARKERS.sub("", line).strip()


class ReportCompositor:
    """Lays content out top to bottom, breaking pages when a block does not fit."""

    def __init__(self, report: Optional[ReportConfig] = None, branding: Optional[BrandingConfig] = None):
        self.report = report or CONFIG.report
        self.branding = branding or CONFIG.branding
        self._pages: List[ReportPage] = []
        self._canvas = self._new_canvas()

    def _new_canvas(self) -> PageCanvas:
        return PageCanvas(self.report.page_width, self.report.page_height)

    @property
    def canvas(self) -> PageCanvas:
        return self._canvas

    def start(self) -> PageCursor:
        return PageCursor(page_index=0, y=self.report.margin)

    def _finalize_page(self, cursor: PageCursor) -> None:
        self._pages.append(ReportPage(index=cursor.page_index, ops=tuple(self._canvas.ops)))
        self._canvas = self._new_canvas()

    def ensure_room(self, cursor: PageCursor, height: float) -> PageCursor:
        """Start a new page when the block would cross the printable bottom."""
        at_top = cursor.y <= self.report.margin
        if cursor.y + height > self.report.printable_bottom and not at_top:
            self._finalize_page(cursor)
            return PageCursor(page_index=cursor.page_index + 1, y=self.report.margin)
        return cursor

    def place(self, cursor: PageCursor, height: float, draw: Callable[[PageCanvas, float], None]) -> PageCursor:
        """Reserve ``height`` points, draw the block at the resulting top, advance."""
        cursor = self.ensure_room(cursor, height)
        draw(self._canvas, cursor.y)
        return replace(cursor, y=cursor.y + height)

    def is_heading(self, line: str) -> bool:
        lowered = line.lower()
        return len(line) <= 60 and any(keyword in lowered for keyword in self.report.heading_keywords)

    def draw_heading(self, cursor: PageCursor, title: str) -> PageCursor:
        size = self.report.heading_font_size

        def draw(canvas: PageCanvas, top: float) -> None:
            canvas.text(self.report.margin, top + size, title, size, self.branding.primary_color,
                        font=self.branding.bold_font_name)

        return self.place(cursor, size + 10, draw)

    def draw_text_block(self, cursor: PageCursor, text: str) -> PageCursor:
        """Wrap and draw text line by line; every line is checked against the page break."""
        report = self.report
        for raw_line in text.split("\n"):
            line = clean_markdown(raw_line)
            if not line:
                cursor = replace(cursor, y=cursor.y + report.line_height / 2)
                continue

            heading = self.is_heading(line)
            font = self.branding.bold_font_name if heading else self.branding.font_name
            size = report.heading_font_size if heading else report.body_font_size
            color = self.branding.accent_color if heading else self.branding.text_color
            line_height = report.line_height + (6 if heading else 0)

            for wrapped in wrap_text(line, report.content_width, font, size):
                def draw(canvas: PageCanvas, top: float, wrapped=wrapped) -> None:
                    canvas.text(report.margin, top + size, wrapped, size, color, font=font)

                cursor = self.place(cursor, line_height, draw)
        return cursor

    def draw_metric_cards(self, cursor: PageCursor, metrics: List[Tuple[str, str]]) -> PageCursor:
        report, branding = self.report, self.branding
        gap = 10.0
        card_width = (report.content_width - gap * (len(metrics) - 1)) / max(len(metrics), 1)
        card_height = 54.0

        def draw(canvas: PageCanvas, top: float) -> None:
            for i, (title, value) in enumerate(metrics):
                x = report.margin + i * (card_width + gap)
                canvas.rounded_rect(x, top, card_width, card_height, radius=6,
                                    fill=branding.panel_color, stroke="#e5e7eb")
                canvas.text(x + 10, top + 18, title, 8, branding.muted_color)
                canvas.text(x + 10, top + 40, value, 14, branding.text_color, font=branding.bold_font_name)

        return self.place(cursor, card_height + 16, draw)

    def draw_numeric_table(self, cursor: PageCursor, summary: DatasetSummary) -> PageCursor:
        if not summary.numeric:
            return cursor
        cursor = self.draw_heading(cursor, "Key Metrics")
        report, branding = self.report, self.branding
        columns = ("Column", "Min", "Max", "Mean", "Sum")
        col_width = report.content_width / len(columns)

        def row_drawer(cells, bold=False):
            def draw(canvas: PageCanvas, top: float) -> None:
                font = branding.bold_font_name if bold else branding.font_name
                for i, cell in enumerate(cells):
                    canvas.text(report.margin + i * col_width, top + 11, cell, 9, branding.text_color, font=font)
                canvas.line(report.margin, top + 15, report.margin + report.content_width, top + 15,
                            color="#e5e7eb", width=0.5)
            return draw

        cursor = self.place(cursor, 18, row_drawer(columns, bold=True))
        for stats in summary.numeric.values():
            cells = (
                stats.column,
                format_number(stats.min),
                format_number(stats.max),
                format_number(round(stats.mean, 2)),
                format_number(stats.sum),
            )
            cursor = self.place(cursor, 18, row_drawer(cells))
        return replace(cursor, y=cursor.y + 10)

    def draw_chart(self, cursor: PageCursor, title: str, draw_body: Callable[[PageCanvas, Rect], None],
                   height: Optional[float] = None) -> PageCursor:
        """Chart title plus chart body kept together on one page."""
        report = self.report
        height = height or report.chart_height
        title_height = report.heading_font_size + 10

        def draw(canvas: PageCanvas, top: float) -> None:
            canvas.text(report.margin, top + report.heading_font_size, title, report.heading_font_size,
                        self.branding.primary_color, font=self.branding.bold_font_name)
            draw_body(canvas, Rect(report.margin, top + title_height, report.content_width, height))

        return self.place(cursor, title_height + height + 16, draw)

    def finish(self, cursor: PageCursor) -> List[ReportPage]:
        """Finalize the current page and stamp footers on all pages."""
        self._finalize_page(cursor)
        pages, self._pages = self._pages, []
        return stamp_footers(pages, self.report, self.branding)


def stamp_footers(pages: List[ReportPage], report: ReportConfig, branding: BrandingConfig) -> List[ReportPage]:
    """Separate last pass: total page count is only known once layout is done."""
    total = len(pages)
    footer_y = report.page_height - report.margin / 2
    stamped = []
    for number, page in enumerate(pages, start=1):
        footer = (
            TextOp(report.margin, footer_y, branding.footer_text, 8, branding.muted_color, branding.font_name),
            TextOp(report.page_width / 2, footer_y, f"Page {number} of {total}", 8,
                   branding.muted_color, branding.font_name, align="center"),
        )
        stamped.append(replace(page, ops=page.ops + footer))
    return stamped


def _first_numeric_series(dataset: Dataset, column: str, limit: int) -> List[float]:
    values = [cell.value for cell in dataset.column_values(column) if isinstance(cell, NumericCell)]
    return values[:limit]


def build_report(
    dataset: Dataset,
    summary: DatasetSummary,
    assistant_text: str = "",
    generated_at: Optional[datetime] = None,
    report: Optional[ReportConfig] = None,
    branding: Optional[BrandingConfig] = None,
) -> ReportDocument:
    """Compose the full multi-page report document."""
    generated_at = generated_at or datetime.now()
    compositor = ReportCompositor(report=report, branding=branding)
    report, branding = compositor.report, compositor.branding
    cursor = compositor.start()

    def title_block(canvas: PageCanvas, top: float) -> None:
        canvas.text(report.margin, top + 22, f"{branding.company_name} Report", 22,
                    branding.primary_color, font=branding.bold_font_name)
        canvas.text(report.margin, top + 40, f"Generated {generated_at.strftime('%Y-%m-%d %H:%M')}",
                    9, branding.muted_color)

    cursor = compositor.place(cursor, 56, title_block)

    cursor = compositor.draw_heading(cursor, "Data Overview")
    cursor = compositor.draw_metric_cards(cursor, headline_metrics(dataset))
    cursor = compositor.draw_numeric_table(cursor, summary)

    numeric_cols = [col for col in numeric_columns(dataset) if col in summary.numeric]
    if numeric_cols:
        column = numeric_cols[0]
        buckets = histogram(dataset, column, report.histogram_buckets)
        cursor = compositor.draw_chart(
            cursor,
            f"Distribution of {column}",
            lambda canvas, rect: draw_bar_chart(
                canvas, [(b.range_label, b.count) for b in buckets], rect, branding=branding
            ),
        )

    categorical = [c for c in summary.categorical.values() if c.column not in summary.numeric and c.top]
    if categorical:
        category = categorical[0]
        radius = 70.0
        legend_height = 16 + 13 * len(category.top)
        cursor = compositor.draw_chart(
            cursor,
            f"Top {category.column} values",
            lambda canvas, rect: draw_pie_chart(
                canvas, list(category.top), (rect.x + rect.width / 2, rect.y + radius), radius,
                branding=branding,
            ),
            height=2 * radius + legend_height,
        )

    if numeric_cols:
        column = numeric_cols[0]
        series = _first_numeric_series(dataset, column, report.line_chart_max_points)
        if len(series) >= 2:
            cursor = compositor.draw_chart(
                cursor,
                f"{column} by row",
                lambda canvas, rect: draw_line_chart(canvas, series, rect, branding=branding),
            )

    analysis = _FENCE.sub("", assistant_text or "").strip()
    if analysis:
        cursor = compositor.draw_heading(cursor, "Assistant Analysis")
        cursor = compositor.draw_text_block(cursor, analysis)

    pages = compositor.finish(cursor)
    logger.info(f"Composed report with {len(pages)} pages")
    return ReportDocument(
        pages=tuple(pages),
        page_width=report.page_width,
        page_height=report.page_height,
        generated_at=generated_at,
    )


def export_report(document: ReportDocument, output_dir: str, renderer: Optional[PdfRenderer] = None) -> Path:
    """Render to PDF and write it; nothing is written if rendering fails."""
    renderer = renderer or PdfRenderer()
    try:
        data = renderer.render(document)
    except Exception as e:
        raise RenderFailure(f"PDF rendering failed: {str(e)}") from e

    output_path = Path(output_dir) / document.filename
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(data)
    logger.info(f"Report written to {output_path}")
    return output_path
