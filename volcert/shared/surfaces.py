"""Drawing surfaces the certificate compositor paints onto.

Both surfaces take millimetre coordinates measured from the top-left corner
of the page and translate them to device units: PDF points (origin
bottom-left) for :class:`PdfSurface`, pixels for :class:`ImageSurface`.
A surface is single use; ``finish()`` returns the encoded page.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from io import BytesIO
from typing import Sequence, Union

from PIL import Image, ImageColor, ImageDraw, ImageFont
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFError, TTFont
from reportlab.pdfgen import canvas

logger = logging.getLogger("volcert.certificates")

Color = Union[str, tuple[int, int, int]]

_POINT_PER_MM = 72.0 / 25.4

_FONT_PATHS = {
    "Helvetica": "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "Helvetica-Bold": "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
    "Helvetica-Oblique": "/usr/share/fonts/truetype/dejavu/DejaVuSans-Oblique.ttf",
    "Helvetica-BoldOblique": (
        "/usr/share/fonts/truetype/dejavu/DejaVuSans-BoldOblique.ttf"
    ),
}
_DEFAULT_FONT_PATH = "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"

# Base-14 fonts only cover WinAnsi; names in Ge'ez or other scripts need a TTF.
UNICODE_FONT = "VolcertUnicode"
_UNICODE_FONT_CANDIDATES = (
    "/usr/share/fonts/truetype/noto/NotoSansEthiopic-Regular.ttf",
    "/usr/share/fonts/truetype/noto/NotoSerifEthiopic-Regular.ttf",
    "/usr/share/fonts/truetype/abyssinica/AbyssinicaSIL-Regular.ttf",
    "/usr/share/fonts/truetype/ttf-abyssinica/AbyssinicaSIL-R.ttf",
)


@lru_cache(maxsize=None)
def unicode_font_path() -> str | None:
    """Register the first usable Unicode TTF with reportlab and return its path.

    ``CERT_UNICODE_FONT`` is tried before the packaged Ethiopic fonts.
    """
    configured = os.getenv("CERT_UNICODE_FONT", "").strip()
    candidates = ((configured,) if configured else ()) + _UNICODE_FONT_CANDIDATES
    for path in candidates:
        if not os.path.exists(path):
            continue
        try:
            pdfmetrics.registerFont(TTFont(UNICODE_FONT, path))
        except TTFError:
            logger.warning("[cert-font] unusable font path=%s", path, exc_info=True)
            continue
        _FONT_PATHS[UNICODE_FONT] = path
        logger.info("[cert-font] registered %s path=%s", UNICODE_FONT, path)
        return path
    return None


def needs_unicode_font(text: str) -> bool:
    try:
        text.encode("cp1252")
    except UnicodeEncodeError:
        return True
    return False


def font_for(text: str, font: str) -> str:
    """Swap a base-14 font for the Unicode TTF when ``text`` needs it."""
    if needs_unicode_font(text) and unicode_font_path():
        return UNICODE_FONT
    return font


def can_render(text: str) -> bool:
    """False when some character has no glyph in any available font."""
    if not needs_unicode_font(text):
        return True
    if unicode_font_path() is None:
        return False
    glyphs = pdfmetrics.getFont(UNICODE_FONT).face.charToGlyph
    return all(ord(ch) in glyphs for ch in text if needs_unicode_font(ch))


def to_rgb(color: Color) -> tuple[int, int, int]:
    if isinstance(color, str):
        return ImageColor.getrgb(color)[:3]
    r, g, b = color[:3]
    return int(r), int(g), int(b)


class PdfSurface:
    def __init__(
        self,
        width_mm: float,
        height_mm: float,
        *,
        title: str | None = None,
        subject: str | None = None,
        author: str | None = None,
    ) -> None:
        self.width_mm = width_mm
        self.height_mm = height_mm
        self._buffer = BytesIO()
        # no creation date or random document id in the output
        self._canvas = canvas.Canvas(
            self._buffer,
            pagesize=(width_mm * _POINT_PER_MM, height_mm * _POINT_PER_MM),
            invariant=1,
        )
        if title:
            self._canvas.setTitle(title)
        if subject:
            self._canvas.setSubject(subject)
        if author:
            self._canvas.setAuthor(author)

    def _x(self, x: float) -> float:
        return x * _POINT_PER_MM

    def _y(self, y: float) -> float:
        return (self.height_mm - y) * _POINT_PER_MM

    def _apply_fill(self, color: Color | None, alpha: float) -> None:
        if color is None:
            return
        r, g, b = to_rgb(color)
        self._canvas.setFillColorRGB(r / 255.0, g / 255.0, b / 255.0)
        self._canvas.setFillAlpha(alpha)

    def _apply_stroke(self, color: Color | None, line_width: float) -> None:
        if color is None:
            return
        r, g, b = to_rgb(color)
        self._canvas.setStrokeColorRGB(r / 255.0, g / 255.0, b / 255.0)
        self._canvas.setLineWidth(line_width * _POINT_PER_MM)

    def rect(
        self,
        x: float,
        y: float,
        w: float,
        h: float,
        *,
        fill: Color | None = None,
        stroke: Color | None = None,
        line_width: float = 0.5,
        alpha: float = 1.0,
    ) -> None:
        c = self._canvas
        c.saveState()
        self._apply_fill(fill, alpha)
        self._apply_stroke(stroke, line_width)
        c.rect(
            self._x(x),
            self._y(y + h),
            w * _POINT_PER_MM,
            h * _POINT_PER_MM,
            stroke=int(stroke is not None),
            fill=int(fill is not None),
        )
        c.restoreState()

    def rounded_rect(
        self,
        x: float,
        y: float,
        w: float,
        h: float,
        radius: float,
        *,
        fill: Color | None = None,
        stroke: Color | None = None,
        line_width: float = 0.5,
        alpha: float = 1.0,
    ) -> None:
        c = self._canvas
        c.saveState()
        self._apply_fill(fill, alpha)
        self._apply_stroke(stroke, line_width)
        c.roundRect(
            self._x(x),
            self._y(y + h),
            w * _POINT_PER_MM,
            h * _POINT_PER_MM,
            radius * _POINT_PER_MM,
            stroke=int(stroke is not None),
            fill=int(fill is not None),
        )
        c.restoreState()

    def circle(
        self,
        cx: float,
        cy: float,
        r: float,
        *,
        fill: Color | None = None,
        stroke: Color | None = None,
        line_width: float = 0.5,
        alpha: float = 1.0,
    ) -> None:
        c = self._canvas
        c.saveState()
        self._apply_fill(fill, alpha)
        self._apply_stroke(stroke, line_width)
        c.circle(
            self._x(cx),
            self._y(cy),
            r * _POINT_PER_MM,
            stroke=int(stroke is not None),
            fill=int(fill is not None),
        )
        c.restoreState()

    def line(
        self,
        x1: float,
        y1: float,
        x2: float,
        y2: float,
        *,
        color: Color,
        width: float = 0.5,
    ) -> None:
        c = self._canvas
        c.saveState()
        self._apply_stroke(color, width)
        c.line(self._x(x1), self._y(y1), self._x(x2), self._y(y2))
        c.restoreState()

    def polygon(
        self, points: Sequence[tuple[float, float]], *, fill: Color, alpha: float = 1.0
    ) -> None:
        if len(points) < 3:
            return
        c = self._canvas
        c.saveState()
        self._apply_fill(fill, alpha)
        path = c.beginPath()
        first_x, first_y = points[0]
        path.moveTo(self._x(first_x), self._y(first_y))
        for px, py in points[1:]:
            path.lineTo(self._x(px), self._y(py))
        path.close()
        c.drawPath(path, stroke=0, fill=1)
        c.restoreState()

    def text(
        self,
        x: float,
        y: float,
        value: str,
        *,
        font: str = "Helvetica",
        size: float = 12,
        color: Color = (51, 51, 51),
        align: str = "left",
    ) -> None:
        c = self._canvas
        c.saveState()
        self._apply_fill(color, 1.0)
        c.setFont(font_for(value, font), size)
        if align == "center":
            c.drawCentredString(self._x(x), self._y(y), value)
        elif align == "right":
            c.drawRightString(self._x(x), self._y(y), value)
        else:
            c.drawString(self._x(x), self._y(y), value)
        c.restoreState()

    def finish(self) -> bytes:
        self._canvas.showPage()
        self._canvas.save()
        return self._buffer.getvalue()


class ImageSurface:
    """Raster rendering of the same draw calls, used for PNG previews."""

    def __init__(
        self, width_mm: float, height_mm: float, *, scale: float = 4.0
    ) -> None:
        self.width_mm = width_mm
        self.height_mm = height_mm
        self.scale = scale
        self.warnings: list[str] = []
        self._fonts: dict[tuple[str, int], ImageFont.ImageFont] = {}
        self._image = Image.new(
            "RGB",
            (int(round(width_mm * scale)), int(round(height_mm * scale))),
            "white",
        )
        self._draw = ImageDraw.Draw(self._image, "RGBA")

    def _px(self, value: float) -> float:
        return value * self.scale

    def _rgba(self, color: Color | None, alpha: float = 1.0):
        if color is None:
            return None
        r, g, b = to_rgb(color)
        return (r, g, b, int(round(max(0.0, min(alpha, 1.0)) * 255)))

    def _width(self, line_width: float) -> int:
        return max(1, int(round(line_width * self.scale)))

    def _load_font(self, name: str, size_px: int):
        key = (name, size_px)
        cached = self._fonts.get(key)
        if cached is not None:
            return cached
        path = _FONT_PATHS.get(name, _DEFAULT_FONT_PATH)
        try:
            font = ImageFont.truetype(path, max(size_px, 1))
        except OSError:
            try:
                font = ImageFont.truetype(_DEFAULT_FONT_PATH, max(size_px, 1))
            except OSError:
                font = ImageFont.load_default(size=max(size_px, 1))
                message = "[preview-font-fallback] using default font"
                if message not in self.warnings:
                    self.warnings.append(message)
        self._fonts[key] = font
        return font

    def rect(
        self, x, y, w, h, *, fill=None, stroke=None, line_width=0.5, alpha=1.0
    ) -> None:
        self._draw.rectangle(
            [self._px(x), self._px(y), self._px(x + w), self._px(y + h)],
            fill=self._rgba(fill, alpha),
            outline=self._rgba(stroke),
            width=self._width(line_width) if stroke is not None else 0,
        )

    def rounded_rect(
        self, x, y, w, h, radius, *, fill=None, stroke=None, line_width=0.5, alpha=1.0
    ) -> None:
        self._draw.rounded_rectangle(
            [self._px(x), self._px(y), self._px(x + w), self._px(y + h)],
            radius=self._px(radius),
            fill=self._rgba(fill, alpha),
            outline=self._rgba(stroke),
            width=self._width(line_width) if stroke is not None else 0,
        )

    def circle(
        self, cx, cy, r, *, fill=None, stroke=None, line_width=0.5, alpha=1.0
    ) -> None:
        self._draw.ellipse(
            [self._px(cx - r), self._px(cy - r), self._px(cx + r), self._px(cy + r)],
            fill=self._rgba(fill, alpha),
            outline=self._rgba(stroke),
            width=self._width(line_width) if stroke is not None else 0,
        )

    def line(self, x1, y1, x2, y2, *, color, width=0.5) -> None:
        self._draw.line(
            [self._px(x1), self._px(y1), self._px(x2), self._px(y2)],
            fill=self._rgba(color),
            width=self._width(width),
        )

    def polygon(self, points, *, fill, alpha=1.0) -> None:
        if len(points) < 3:
            return
        self._draw.polygon(
            [(self._px(px), self._px(py)) for px, py in points],
            fill=self._rgba(fill, alpha),
        )

    def text(
        self,
        x,
        y,
        value,
        *,
        font="Helvetica",
        size=12,
        color=(51, 51, 51),
        align="left",
    ) -> None:
        size_px = int(round(size / _POINT_PER_MM * self.scale))
        pil_font = self._load_font(font_for(value, font), size_px)
        bbox = self._draw.textbbox((0, 0), value, font=pil_font)
        text_width = bbox[2] - bbox[0]
        anchor_x = self._px(x)
        if align == "center":
            left = anchor_x - text_width / 2.0
        elif align == "right":
            left = anchor_x - text_width
        else:
            left = anchor_x
        # place the bottom of the ink box on the baseline
        top = self._px(y) - bbox[3]
        self._draw.text(
            (int(round(left - bbox[0])), int(round(top))),
            value,
            font=pil_font,
            fill=self._rgba(color),
        )

    def finish(self) -> bytes:
        buffer = BytesIO()
        self._image.save(buffer, format="PNG")
        return buffer.getvalue()
