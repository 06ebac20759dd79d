"""Page layout for the composition PDF.

Everything here is plain geometry in millimetres with a top-left origin, so
it can be inspected without a PDF. `pdf.render_pdf` turns a DocumentLayout
into drawing calls.

Template:
  page 1      title, formation / timestamp line, optional description, pitch
              diagram with one marker per player
  page 2..n   "Players" roster, one wrapped row per player
  every page  footer with name, formation, timestamp and page number
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from reportlab.lib.utils import simpleSplit
from reportlab.lib.units import mm

from lineups.config import settings
from lineups.coordinates import Surface, fit_pitch, to_surface
from lineups.export import fonts
from lineups.export.colors import RGB, fallback_from_settings, parse_hex_color

logger = logging.getLogger(__name__)

PT_TO_MM = 25.4 / 72.0

TITLE_SIZE = 18
SUBTITLE_SIZE = 11
DESCRIPTION_SIZE = 11
ROSTER_TITLE_SIZE = 14
ROSTER_SIZE = 10
MARKER_LABEL_SIZE = 8
MARKER_NAME_SIZE = 7
FOOTER_SIZE = 8

DESCRIPTION_LEADING = 5.0
ROSTER_LEADING = 5.0
FOOTER_SPACE = 10.0
MAX_DESCRIPTION_LINES = 12

TITLE_COLOR: RGB = (17, 24, 39)
SUBTITLE_COLOR: RGB = (75, 85, 99)
BODY_COLOR: RGB = (31, 41, 55)
WHITE: RGB = (255, 255, 255)
BLACK: RGB = (0, 0, 0)
PITCH_GREEN: RGB = (34, 197, 94)

# Pitch marking proportions, relative to the pitch rectangle.
CENTER_CIRCLE_RATIO = 0.07   # of min(width, height)
CENTER_SPOT_RATIO = 0.008
PENALTY_BOX_DEPTH = 0.16     # of width
PENALTY_BOX_SPAN = 0.5       # of height
GOAL_AREA_DEPTH = 0.06
GOAL_AREA_SPAN = 0.3

MARKER_RADIUS_RATIO = 0.02
MARKER_MIN_RADIUS = 3.5
NAME_OFFSET = 3.5


@dataclass(frozen=True)
class PageSpec:
    width: float
    height: float
    margin: float = 12.0

    @property
    def content_width(self) -> float:
        return self.width - 2 * self.margin


PAGE_SIZES = {
    "A4": (210.0, 297.0),
    "LETTER": (215.9, 279.4),
}


def page_from_settings() -> PageSpec:
    width, height = PAGE_SIZES.get(settings.EXPORT_PAGE_SIZE.upper(), PAGE_SIZES["A4"])
    return PageSpec(width=width, height=height, margin=settings.EXPORT_MARGIN_MM)


@dataclass
class TextItem:
    text: str
    x: float
    y: float  # baseline
    size: float
    color: RGB = BLACK
    align: str = "left"  # left | center | right
    bold: bool = False


@dataclass
class PitchMarkings:
    border: Surface
    halfway_line: tuple[float, float, float, float]
    center_circle: tuple[float, float, float]
    center_spot: tuple[float, float, float]
    penalty_boxes: list[Surface]
    goal_areas: list[Surface]


@dataclass
class PlayerMarker:
    player_name: str
    label: str
    cx: float
    cy: float
    radius: float
    fill: RGB
    label_y: float
    name_y: float


@dataclass
class PageLayout:
    number: int
    texts: list[TextItem] = field(default_factory=list)
    pitch: Optional[PitchMarkings] = None
    markers: list[PlayerMarker] = field(default_factory=list)
    roster_rows: list[str] = field(default_factory=list)


@dataclass
class DocumentLayout:
    page: PageSpec
    title: str
    generated_at: str
    pages: list[PageLayout]

    @property
    def pitch_page(self) -> PageLayout:
        return self.pages[0]

    @property
    def roster_pages(self) -> list[PageLayout]:
        return self.pages[1:]


def _get(obj: Any, name: str, camel: Optional[str] = None, default: Any = None) -> Any:
    """Read a field from an ORM row, a schema object or a camelCase dict."""
    if isinstance(obj, dict):
        if name in obj:
            return obj[name]
        return obj.get(camel, default) if camel else default
    return getattr(obj, name, default)


def wrap_text(text: str, width_mm: float, size: float, font: Optional[str] = None) -> list[str]:
    """Split `text` into lines no wider than `width_mm` at `size` points."""
    if not text:
        return []
    font = font or fonts.regular()
    lines: list[str] = []
    for paragraph in text.splitlines() or [text]:
        lines.extend(simpleSplit(paragraph, font, size, width_mm * mm) or [""])
    return lines


def marker_label(player_name: str, number: Optional[int]) -> str:
    if number is not None:
        return str(number)
    return (player_name or "")[:1].upper()


def roster_row(player_name: str, number: Optional[int], position: Optional[str]) -> str:
    number_part = f"#{number} " if number is not None else ""
    position_part = f" – {position}" if position else ""
    return f"{number_part}{player_name}{position_part}"


def pitch_markings(pitch: Surface) -> PitchMarkings:
    x, y, w, h = pitch.origin_x, pitch.origin_y, pitch.width, pitch.height
    cx, cy = pitch.center
    box_w, box_h = w * PENALTY_BOX_DEPTH, h * PENALTY_BOX_SPAN
    goal_w, goal_h = w * GOAL_AREA_DEPTH, h * GOAL_AREA_SPAN
    return PitchMarkings(
        border=pitch,
        halfway_line=(cx, y, cx, y + h),
        center_circle=(cx, cy, min(w, h) * CENTER_CIRCLE_RATIO),
        center_spot=(cx, cy, max(0.4, min(w, h) * CENTER_SPOT_RATIO)),
        penalty_boxes=[
            Surface(width=box_w, height=box_h, origin_x=x, origin_y=y + (h - box_h) / 2),
            Surface(width=box_w, height=box_h, origin_x=x + w - box_w, origin_y=y + (h - box_h) / 2),
        ],
        goal_areas=[
            Surface(width=goal_w, height=goal_h, origin_x=x, origin_y=y + (h - goal_h) / 2),
            Surface(width=goal_w, height=goal_h, origin_x=x + w - goal_w, origin_y=y + (h - goal_h) / 2),
        ],
    )


def player_markers(players: list, pitch: Surface, fallback: RGB) -> list[PlayerMarker]:
    radius = max(MARKER_MIN_RADIUS, min(pitch.width, pitch.height) * MARKER_RADIUS_RATIO)
    markers = []
    for player in players:
        name = _get(player, "player_name", "playerName") or ""
        number = _get(player, "number")
        point = to_surface(pitch, _get(player, "x"), _get(player, "y"))
        if point is None:
            logger.warning(f"Skipping marker for {name!r}: coordinates cannot be projected")
            continue
        px, py = point
        markers.append(PlayerMarker(
            player_name=name,
            label=marker_label(name, number),
            cx=px,
            cy=py,
            radius=radius,
            fill=parse_hex_color(_get(player, "color"), fallback),
            label_y=py + MARKER_LABEL_SIZE * PT_TO_MM * 0.35,
            name_y=py + radius + NAME_OFFSET,
        ))
    return markers


def _footer(page: PageSpec, number: int, name: str, formation: str, generated_at: str) -> list[TextItem]:
    y = page.height - page.margin / 2
    parts = [p for p in (name, formation and f"Formation: {formation}", f"Exported: {generated_at}") if p]
    return [
        TextItem("  •  ".join(parts), page.margin, y, FOOTER_SIZE, SUBTITLE_COLOR),
        TextItem(f"Page {number}", page.width - page.margin, y, FOOTER_SIZE, SUBTITLE_COLOR, align="right"),
    ]


def build_layout(
    composition: Any,
    page: Optional[PageSpec] = None,
    generated_at: Optional[datetime] = None,
    fallback_color: Optional[RGB] = None,
) -> DocumentLayout:
    """Lay out the two-part export document for `composition`."""
    page = page or page_from_settings()
    fallback = fallback_color or fallback_from_settings(settings.EXPORT_FALLBACK_COLOR)
    stamp = (generated_at or datetime.now(timezone.utc)).strftime("%Y-%m-%d %H:%M")

    name = _get(composition, "name") or "Lineup"
    formation = _get(composition, "formation") or ""
    description = _get(composition, "description") or ""
    players = list(_get(composition, "players") or [])
    m = page.margin

    # ── Page 1: header + pitch ──────────────────────────────────────────────
    first = PageLayout(number=1)
    first.texts.append(TextItem(name, m, m + 6, TITLE_SIZE, TITLE_COLOR, bold=True))
    subtitle = []
    if formation:
        subtitle.append(f"Formation: {formation}")
    subtitle.append(f"Exported: {stamp}")
    first.texts.append(TextItem("  •  ".join(subtitle), m, m + 14, SUBTITLE_SIZE, SUBTITLE_COLOR))

    cursor_y = m + 22
    if description:
        lines = wrap_text(description, page.content_width, DESCRIPTION_SIZE)
        if len(lines) > MAX_DESCRIPTION_LINES:
            lines = lines[:MAX_DESCRIPTION_LINES]
            lines[-1] = lines[-1].rstrip() + " …"
        for i, line in enumerate(lines):
            first.texts.append(TextItem(line, m, cursor_y + i * DESCRIPTION_LEADING, DESCRIPTION_SIZE, BODY_COLOR))
        cursor_y += len(lines) * DESCRIPTION_LEADING + 4

    pitch = fit_pitch(m, cursor_y, page.content_width, page.height - cursor_y - m - FOOTER_SPACE)
    if pitch is None:
        logger.warning(f"No room for the pitch on page 1 of {name!r}; diagram skipped")
    else:
        first.pitch = pitch_markings(pitch)
        first.markers = player_markers(players, pitch, fallback)

    pages = [first]

    # ── Page 2..n: roster ───────────────────────────────────────────────────
    current = PageLayout(number=2)
    current.texts.append(TextItem("Players", m, m + 6, ROSTER_TITLE_SIZE, TITLE_COLOR, bold=True))
    pages.append(current)
    list_y = m + 14
    bottom = page.height - m - FOOTER_SPACE

    for player in players:
        row = roster_row(
            _get(player, "player_name", "playerName") or "",
            _get(player, "number"),
            _get(player, "position"),
        )
        for i, line in enumerate(wrap_text(row, page.content_width, ROSTER_SIZE) or [""]):
            if list_y > bottom:
                current = PageLayout(number=len(pages) + 1)
                pages.append(current)
                list_y = m + 6
            if i == 0:
                current.roster_rows.append(row)
            current.texts.append(TextItem(line, m, list_y, ROSTER_SIZE, BODY_COLOR))
            list_y += ROSTER_LEADING

    for p in pages:
        p.texts.extend(_footer(page, p.number, name, formation, stamp))

    return DocumentLayout(page=page, title=name, generated_at=stamp, pages=pages)
