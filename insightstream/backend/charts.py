"""
Bar, pie and line charts drawn with vector primitives onto a PageCanvas.
"""

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from insightstream.backend.canvas import PageCanvas, Point, Rect
from insightstream.backend.summarizer import format_number
from insightstream.config import CONFIG, BrandingConfig

PIE_SEGMENTS = 24
BAR_GAP = 8.0
BAR_TOP_MARGIN = 22.0
BAR_BOTTOM_MARGIN = 20.0
PANEL_PADDING = 12.0
LABEL_CHARS = 10


def palette_color(index: int, branding: Optional[BrandingConfig] = None) -> str:
    palette = (branding or CONFIG.branding).chart_palette
    return palette[index % len(palette)]


def truncate_label(label: str, max_chars: int = LABEL_CHARS) -> str:
    label = str(label)
    if len(label) <= max_chars:
        return label
    return label[: max_chars - 1] + "."


def draw_bar_chart(
    canvas: PageCanvas,
    pairs: Sequence[Tuple[str, float]],
    rect: Rect,
    branding: Optional[BrandingConfig] = None,
) -> None:
    """Equal-width bars scaled so the tallest reaches the top margin."""
    branding = branding or CONFIG.branding
    canvas.rounded_rect(rect.x, rect.y, rect.width, rect.height, radius=6, fill=branding.panel_color)
    if not pairs:
        canvas.text(rect.x + rect.width / 2, rect.y + rect.height / 2, "No data to display",
                    9, branding.muted_color, align="center")
        return

    count = len(pairs)
    inner_width = rect.width - 2 * PANEL_PADDING
    bar_width = max((inner_width - BAR_GAP * (count - 1)) / count, 1.0)
    plot_height = rect.height - BAR_TOP_MARGIN - BAR_BOTTOM_MARGIN
    baseline = rect.bottom - BAR_BOTTOM_MARGIN

    peak = max(max(value, 0) for _, value in pairs) or 1

    for i, (label, value) in enumerate(pairs):
        height = max(value, 0) / peak * plot_height
        x = rect.x + PANEL_PADDING + i * (bar_width + BAR_GAP)
        top = baseline - height
        canvas.rounded_rect(x, top, bar_width, height, radius=2, fill=palette_color(i, branding))
        canvas.text(x + bar_width / 2, top - 4, format_number(float(value)), 7,
                    branding.text_color, align="center")
        canvas.text(x + bar_width / 2, baseline + 12, truncate_label(label), 7,
                    branding.muted_color, align="center")


@dataclass(frozen=True)
class PieSlice:
    label: str
    value: float
    start_angle: float
    sweep: float
    percent: float
    color: str


def _percentages(values: Sequence[float], total: float) -> List[float]:
    """Largest-remainder rounding to one decimal so the shares add up to 100.0."""
    if total <= 0:
        return [0.0 for _ in values]
    raw = [value / total * 1000 for value in values]
    tenths = [math.floor(r) for r in raw]
    shortfall = 1000 - sum(tenths)
    by_remainder = sorted(range(len(raw)), key=lambda i: raw[i] - tenths[i], reverse=True)
    for i in by_remainder[:shortfall]:
        tenths[i] += 1
    return [t / 10 for t in tenths]


def pie_slices(pairs: Sequence[Tuple[str, float]], branding: Optional[BrandingConfig] = None) -> List[PieSlice]:
    """Slices starting at 12 o'clock, proceeding clockwise."""
    values = [max(float(value), 0.0) for _, value in pairs]
    total = sum(values)
    denominator = total or 1
    percents = _percentages(values, total)

    slices = []
    angle = -90.0
    for i, ((label, _), value) in enumerate(zip(pairs, values)):
        sweep = value / denominator * 360
        slices.append(PieSlice(str(label), value, angle, sweep, percents[i], palette_color(i, branding)))
        angle += sweep
    return slices


def _on_circle(center: Point, radius: float, degrees: float) -> Point:
    radians = math.radians(degrees)
    return (center[0] + radius * math.cos(radians), center[1] + radius * math.sin(radians))


def draw_pie_chart(
    canvas: PageCanvas,
    pairs: Sequence[Tuple[str, float]],
    center: Point,
    radius: float,
    branding: Optional[BrandingConfig] = None,
) -> List[PieSlice]:
    """Triangle-fan pie with a legend below it. Returns the slices drawn."""
    branding = branding or CONFIG.branding
    slices = pie_slices(pairs, branding)

    for pie_slice in slices:
        if pie_slice.sweep <= 0:
            continue
        step = pie_slice.sweep / PIE_SEGMENTS
        for k in range(PIE_SEGMENTS):
            start = pie_slice.start_angle + k * step
            canvas.triangle(
                center,
                _on_circle(center, radius, start),
                _on_circle(center, radius, start + step),
                fill=pie_slice.color,
            )

    legend_x = center[0] - radius
    legend_y = center[1] + radius + 16
    for i, pie_slice in enumerate(slices):
        y = legend_y + i * 13
        canvas.rounded_rect(legend_x, y - 7, 8, 8, radius=1, fill=pie_slice.color)
        canvas.text(legend_x + 12, y, f"{truncate_label(pie_slice.label, 24)}  {pie_slice.percent:.1f}%",
                    8, branding.text_color)

    return slices


def draw_line_chart(
    canvas: PageCanvas,
    values: Sequence[float],
    rect: Rect,
    gridlines: int = 4,
    branding: Optional[BrandingConfig] = None,
) -> None:
    """Connected points scaled between the series min and max."""
    if len(values) < 2:
        return

    branding = branding or CONFIG.branding
    canvas.rounded_rect(rect.x, rect.y, rect.width, rect.height, radius=6, fill=branding.panel_color)

    inner = Rect(
        rect.x + PANEL_PADDING,
        rect.y + PANEL_PADDING,
        rect.width - 2 * PANEL_PADDING,
        rect.height - 2 * PANEL_PADDING,
    )

    for i in range(gridlines + 1):
        y = inner.y + inner.height * i / gridlines
        canvas.line(inner.x, y, inner.x + inner.width, y, color="#d1d5db", width=0.5)

    low, high = min(values), max(values)
    span = high - low
    step = inner.width / ((len(values) - 1) or 1)

    points = []
    for i, value in enumerate(values):
        x = inner.x + i * step
        if span == 0:
            y = inner.y + inner.height / 2
        else:
            y = inner.bottom - (value - low) / span * inner.height
        points.append((x, y))

    for (x1, y1), (x2, y2) in zip(points, points[1:]):
        canvas.line(x1, y1, x2, y2, color=branding.primary_color, width=1.5)
    for x, y in points:
        canvas.circle(x, y, 2.5, fill=branding.primary_color)
