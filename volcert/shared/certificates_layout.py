from __future__ import annotations

from reportlab.pdfbase.pdfmetrics import stringWidth

from .surfaces import font_for

# A4 landscape, millimetres, origin top-left
PAGE_WIDTH_MM = 297.0
PAGE_HEIGHT_MM = 210.0
CENTER_X_MM = PAGE_WIDTH_MM / 2.0

OUTER_BORDER = (10.0, 10.0, 277.0, 190.0)
INNER_BORDER = (15.0, 15.0, 267.0, 180.0)

CORNER_CENTERS: tuple[tuple[float, float], ...] = (
    (25.0, 25.0),
    (272.0, 25.0),
    (25.0, 185.0),
    (272.0, 185.0),
)
CORNER_RADIUS_MM = 8.0
CORNER_GLYPHS = ("leaf", "star", "flower", "leaf")

CORNER_DOTS: tuple[tuple[float, float], ...] = (
    (15, 15), (35, 15), (15, 35), (35, 35),
    (262, 15), (282, 15), (262, 35), (282, 35),
    (15, 175), (35, 175), (15, 195), (35, 195),
    (262, 175), (282, 175), (262, 195), (282, 195),
)

TITLE_HALF_WIDTH_MM = 95.0
TITLE_MAX_WIDTH_MM = 200.0
BODY_OFFSET_MM = 22.0
NAME_BAR_WIDTH_MM = 160.0
DETAIL_LEFT_X_MM = 60.0
DETAIL_RIGHT_X_MM = 180.0
DETAIL_COLUMN_WIDTH_MM = 110.0

SIGNATURE_Y_MM = 163.0
SIGNATURE_LEFT = (60.0, 120.0)
SIGNATURE_RIGHT = (177.0, 237.0)

FOOTER_BAR = (36.0, 177.0, 225.0, 18.0)
FOOTER_TEXT_X_MM = 42.0
FOOTER_CREDIT_X_MM = 228.0
QR_BOX = (234.0, 176.0, 20.0)
QR_CELL_MM = 3.0

TEXT_GRAY = (51, 51, 51)
WHITE = (255, 255, 255)

FONT_REGULAR = "Helvetica"
FONT_BOLD = "Helvetica-Bold"
FONT_ITALIC = "Helvetica-Oblique"

_POINT_PER_MM = 72.0 / 25.4


def text_width_mm(text: str, font_name: str, size: float) -> float:
    return stringWidth(text, font_for(text, font_name), size) / _POINT_PER_MM


def fit_text(
    text: str, font_name: str, max_pt: float, min_pt: float, max_width_mm: float
) -> float:
    """Largest size between ``min_pt`` and ``max_pt`` that fits the width."""
    pt = max_pt
    while pt > min_pt and text_width_mm(text, font_name, pt) > max_width_mm:
        pt -= 1
    return pt
