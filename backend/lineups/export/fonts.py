"""Font selection for the PDF export.

The built-in Helvetica only covers Latin-1, so names in Cyrillic, Greek or
CJK come out as boxes. When EXPORT_FONT_PATH points at a TrueType font (or a
common system Unicode font is installed) it is embedded and used instead.
"""

import logging
import os
from functools import lru_cache
from typing import Optional

from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFError, TTFont

from lineups.config import settings

logger = logging.getLogger(__name__)

BUILTIN_REGULAR = "Helvetica"
BUILTIN_BOLD = "Helvetica-Bold"

UNICODE_REGULAR = "LineupsSans"
UNICODE_BOLD = "LineupsSans-Bold"

SYSTEM_CANDIDATES = (
    ("/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf", "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf"),
    ("/usr/share/fonts/dejavu/DejaVuSans.ttf", "/usr/share/fonts/dejavu/DejaVuSans-Bold.ttf"),
    ("/Library/Fonts/Arial Unicode.ttf", None),
)


def _register(name: str, path: str) -> bool:
    try:
        pdfmetrics.registerFont(TTFont(name, path))
    except (TTFError, OSError) as exc:
        logger.warning(f"Could not load export font {path}: {exc}")
        return False
    return True


def _candidates() -> list[tuple[str, Optional[str]]]:
    configured = []
    if settings.EXPORT_FONT_PATH:
        configured.append((settings.EXPORT_FONT_PATH, settings.EXPORT_BOLD_FONT_PATH or None))
    return configured + list(SYSTEM_CANDIDATES)


@lru_cache(maxsize=1)
def font_names() -> tuple[str, str]:
    """(regular, bold) font names to draw with, registering a TTF on first use."""
    for regular_path, bold_path in _candidates():
        if not os.path.isfile(regular_path) or not _register(UNICODE_REGULAR, regular_path):
            continue
        bold = UNICODE_REGULAR
        if bold_path and os.path.isfile(bold_path) and _register(UNICODE_BOLD, bold_path):
            bold = UNICODE_BOLD
        logger.info(f"Export font: {regular_path}")
        return UNICODE_REGULAR, bold
    logger.info("No Unicode TTF found; exporting with built-in Helvetica")
    return BUILTIN_REGULAR, BUILTIN_BOLD


def regular() -> str:
    return font_names()[0]


def bold() -> str:
    return font_names()[1]
