"""PDF rendering of a composition with reportlab.

Layout coordinates are millimetres from the top-left corner; reportlab
draws in points from the bottom-left. `_Pen` is the only place that flips.
"""

import io
import logging
import os
import re
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from lineups.coordinates import Surface
from lineups.export import fonts
from lineups.export.layout import (
    MARKER_LABEL_SIZE,
    MARKER_NAME_SIZE,
    PITCH_GREEN,
    WHITE,
    BLACK,
    DocumentLayout,
    PageLayout,
    PageSpec,
    PitchMarkings,
    PlayerMarker,
    TextItem,
    build_layout,
)
from lineups.services.errors import ExportError

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_RE = re.compile(r"[^a-zA-Z0-9\-_]+")


def safe_filename(name: Optional[str]) -> str:
    """`My 4-3-3 (home)` -> `My_4-3-3_home_.pdf`."""
    stem = _UNSAFE_FILENAME_RE.sub("_", name or "") or "composition"
    return f"{stem}.pdf"


def _rgb(color) -> tuple[float, float, float]:
    r, g, b = color
    return (r / 255.0, g / 255.0, b / 255.0)


class _Pen:
    """Thin wrapper over a reportlab canvas taking top-left millimetre coordinates."""

    def __init__(self, c: canvas.Canvas, page: PageSpec):
        self.c = c
        self.page_height = page.height

    def _y(self, y_mm: float) -> float:
        return (self.page_height - y_mm) * mm

    def rect(self, s: Surface, fill: bool = False):
        self.c.rect(
            s.origin_x * mm,
            self._y(s.origin_y + s.height),
            s.width * mm,
            s.height * mm,
            stroke=1,
            fill=1 if fill else 0,
        )

    def line(self, x1, y1, x2, y2):
        self.c.line(x1 * mm, self._y(y1), x2 * mm, self._y(y2))

    def circle(self, cx, cy, r, fill: bool = False, stroke: bool = True):
        self.c.circle(cx * mm, self._y(cy), r * mm, stroke=1 if stroke else 0, fill=1 if fill else 0)

    def text(self, item: TextItem):
        self.c.setFont(fonts.bold() if item.bold else fonts.regular(), item.size)
        self.c.setFillColorRGB(*_rgb(item.color))
        x, y = item.x * mm, self._y(item.y)
        if item.align == "center":
            self.c.drawCentredString(x, y, item.text)
        elif item.align == "right":
            self.c.drawRightString(x, y, item.text)
        else:
            self.c.drawString(x, y, item.text)


def _draw_pitch(pen: _Pen, markings: PitchMarkings):
    c = pen.c
    c.setLineWidth(0.5 * mm)
    c.setFillColorRGB(*_rgb(PITCH_GREEN))
    c.setStrokeColorRGB(*_rgb(WHITE))
    pen.rect(markings.border, fill=True)
    pen.line(*markings.halfway_line)
    pen.circle(*markings.center_circle)
    c.setFillColorRGB(*_rgb(WHITE))
    pen.circle(*markings.center_spot, fill=True, stroke=False)
    for box in markings.penalty_boxes + markings.goal_areas:
        pen.rect(box)


def _draw_marker(pen: _Pen, marker: PlayerMarker):
    c = pen.c
    c.setLineWidth(0.5 * mm)
    c.setStrokeColorRGB(*_rgb(WHITE))
    c.setFillColorRGB(*_rgb(marker.fill))
    pen.circle(marker.cx, marker.cy, marker.radius, fill=True)
    if marker.label:
        pen.text(TextItem(marker.label, marker.cx, marker.label_y, MARKER_LABEL_SIZE, WHITE, align="center", bold=True))
    if marker.player_name:
        pen.text(TextItem(marker.player_name, marker.cx, marker.name_y, MARKER_NAME_SIZE, BLACK, align="center"))


def _draw_page(pen: _Pen, page: PageLayout):
    if page.pitch is not None:
        _draw_pitch(pen, page.pitch)
    for marker in page.markers:
        _draw_marker(pen, marker)
    for item in page.texts:
        pen.text(item)


def render_pdf(layout: DocumentLayout) -> bytes:
    """Draw every page of `layout` and return the PDF bytes."""
    buffer = io.BytesIO()
    c = canvas.Canvas(buffer, pagesize=(layout.page.width * mm, layout.page.height * mm))
    c.setTitle(layout.title)
    c.setSubject(f"Exported {layout.generated_at}")
    pen = _Pen(c, layout.page)
    for page in layout.pages:
        _draw_page(pen, page)
        c.showPage()
    c.save()
    return buffer.getvalue()


def export_composition_pdf(
    composition: Any,
    page: Optional[PageSpec] = None,
    generated_at: Optional[datetime] = None,
) -> bytes:
    """Lay out and render `composition`. Any failure surfaces as ExportError."""
    try:
        return render_pdf(build_layout(composition, page=page, generated_at=generated_at))
    except ExportError:
        raise
    except Exception as exc:
        logger.error(f"PDF export failed: {exc}", exc_info=True)
        raise ExportError("Export failed") from exc


def save_pdf(composition: Any, path: str, page: Optional[PageSpec] = None) -> Path:
    """Export to `path`. The file only appears once the document is complete."""
    target = Path(path)
    data = export_composition_pdf(composition, page=page)
    fd, tmp_name = tempfile.mkstemp(suffix=".pdf.part", dir=str(target.parent or Path(".")))
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
        os.replace(tmp_name, target)
    except OSError as exc:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        logger.error(f"Could not write PDF to {target}: {exc}", exc_info=True)
        raise ExportError("Export failed") from exc
    logger.info(f"Exported composition PDF to {target}")
    return target
