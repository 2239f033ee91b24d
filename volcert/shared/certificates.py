from __future__ import annotations

import base64
import logging
from dataclasses import asdict, dataclass
from typing import Callable, NamedTuple

from ..constants import (
    DEFAULT_BADGE_TYPE,
    DEFAULT_EVENT_NAME,
    LEADERSHIP_TEXT,
    ORGANIZATION_MONOGRAM,
    ORGANIZATION_NAME,
    ORGANIZATION_TAGLINE,
    ORGANIZER_TITLE,
    POWERED_BY,
    PRESENTED_TO_TEXT,
    RECOGNITION_TEXT,
    REPRESENTATIVE_NAME,
    REPRESENTATIVE_TITLE,
    VERIFY_BASE_URL,
)
from . import ornaments
from .certificate_templates import DEFAULT_PATTERN, CertificateTemplate, is_registered
from .certificates_layout import (
    BODY_OFFSET_MM,
    CENTER_X_MM,
    CORNER_CENTERS,
    CORNER_DOTS,
    CORNER_GLYPHS,
    CORNER_RADIUS_MM,
    DETAIL_COLUMN_WIDTH_MM,
    DETAIL_LEFT_X_MM,
    DETAIL_RIGHT_X_MM,
    FONT_BOLD,
    FONT_ITALIC,
    FONT_REGULAR,
    FOOTER_BAR,
    FOOTER_CREDIT_X_MM,
    FOOTER_TEXT_X_MM,
    INNER_BORDER,
    NAME_BAR_WIDTH_MM,
    OUTER_BORDER,
    PAGE_HEIGHT_MM,
    PAGE_WIDTH_MM,
    QR_BOX,
    QR_CELL_MM,
    SIGNATURE_LEFT,
    SIGNATURE_RIGHT,
    SIGNATURE_Y_MM,
    TEXT_GRAY,
    TITLE_HALF_WIDTH_MM,
    TITLE_MAX_WIDTH_MM,
    WHITE,
    fit_text,
)
from .surfaces import ImageSurface, PdfSurface
from .time import format_hours

logger = logging.getLogger("volcert.certificates")


class CertificateError(RuntimeError):
    """Base class for certificate generation failures."""


class CertificateConfigError(CertificateError, ValueError):
    """Raised when a batch or single request is configured inconsistently."""


class CertificateDataError(CertificateError, ValueError):
    """Raised when a recipient record cannot be turned into certificate data."""


class CertificateRenderError(CertificateError):
    """Raised when the drawing surface fails while producing a document."""


@dataclass(frozen=True)
class Branding:
    organization_name: str = ORGANIZATION_NAME
    tagline: str = ORGANIZATION_TAGLINE
    monogram: str = ORGANIZATION_MONOGRAM
    representative_name: str = REPRESENTATIVE_NAME
    representative_title: str = REPRESENTATIVE_TITLE
    organizer_title: str = ORGANIZER_TITLE
    powered_by: str = POWERED_BY
    verify_base_url: str = VERIFY_BASE_URL

    @property
    def verify_url(self) -> str:
        return f"{self.verify_base_url.rstrip('/')}/verify"


DEFAULT_BRANDING = Branding()


@dataclass
class CertificateData:
    volunteer_name: str
    event_name: str
    event_date: str
    hours_contributed: float
    location: str
    organizer_name: str
    certificate_id: str
    issue_date: str
    badge_type: str | None = None
    total_hours: float | None = None
    rank: int | None = None

    def to_dict(self) -> dict:
        return asdict(self)


class _DrawContext(NamedTuple):
    template: CertificateTemplate
    data: CertificateData
    branding: Branding


def achievement_text(template_type: str, data: CertificateData) -> str:
    event_name = data.event_name or DEFAULT_EVENT_NAME
    if template_type == "achievement":
        return f'for achieving the "{data.badge_type or DEFAULT_BADGE_TYPE}" badge'
    if template_type == "leadership":
        return LEADERSHIP_TEXT
    if template_type == "milestone":
        hours = data.total_hours
        if hours is None:
            hours = data.hours_contributed
        return f"for reaching {format_hours(hours)} hours of community service"
    return f'for outstanding participation in "{event_name}"'


def _glyph(surface, name: str, cx: float, cy: float, size: float, color) -> None:
    if name == "star":
        surface.polygon(ornaments.star(cx, cy, size / 2.0), fill=color)
    elif name == "heart":
        surface.polygon(ornaments.heart(cx, cy, size), fill=color)
    elif name == "diamond":
        surface.polygon(ornaments.diamond(cx, cy, size / 2.0), fill=color)
    elif name == "flower":
        for px, py in ornaments.flower_petals(cx, cy, size):
            surface.circle(px, py, size * 0.25, fill=color)
        surface.circle(cx, cy, size * 0.2, fill=color)
    else:
        surface.polygon(ornaments.leaf(cx, cy, size, -35.0), fill=color)


# -- decorative edge patterns -------------------------------------------------


def _pattern_standard(surface, ctx: _DrawContext) -> None:
    color = ctx.template.secondary_color
    for i in range(8):
        x = 25 + i * 35
        surface.line(x, 20, x + 15, 20, color=color, width=0.3)
        surface.line(x + 7.5, 20, x + 7.5, 25, color=color, width=0.3)
        surface.line(x, 190, x + 15, 190, color=color, width=0.3)
        surface.line(x + 7.5, 190, x + 7.5, 185, color=color, width=0.3)
    for i in range(6):
        y = 35 + i * 25
        surface.line(20, y, 20, y + 15, color=color, width=0.3)
        surface.line(20, y + 7.5, 25, y + 7.5, color=color, width=0.3)
        surface.line(277, y, 277, y + 15, color=color, width=0.3)
        surface.line(277, y + 7.5, 272, y + 7.5, color=color, width=0.3)


def _pattern_premium_gold(surface, ctx: _DrawContext) -> None:
    color = ctx.template.secondary_color
    for i in range(10):
        x = 20 + i * 28
        for y in (18, 192):
            surface.circle(x, y, 2, fill=color)
            _glyph(surface, "star", x, y, 2.6, ctx.template.background_color)
    for i in range(8):
        y = 30 + i * 20
        surface.circle(18, y, 2, fill=color)
        surface.circle(279, y, 2, fill=color)


def _pattern_nature(surface, ctx: _DrawContext) -> None:
    color = ctx.template.secondary_color
    for i in range(12):
        x = 20 + i * 23
        surface.polygon(ornaments.leaf(x, 19, 5, -30), fill=color)
        surface.polygon(ornaments.leaf(x + 11, 21, 5, 30), fill=color)
        surface.polygon(ornaments.leaf(x, 191, 5, 30), fill=color)
        surface.polygon(ornaments.leaf(x + 11, 189, 5, -30), fill=color)
    for i in range(6):
        y = 35 + i * 25
        _glyph(surface, "flower", 19, y, 3.5, color)
        surface.polygon(ornaments.leaf(278, y, 5, 90), fill=color)


def _pattern_classic(surface, ctx: _DrawContext) -> None:
    color = ctx.template.secondary_color
    for i in range(8):
        x = 25 + i * 35
        surface.line(x, 20, x + 10, 20, color=color, width=0.5)
        surface.line(x + 5, 20, x + 5, 25, color=color, width=0.5)
        surface.circle(x + 5, 27, 1.2, fill=color)
        surface.line(x, 190, x + 10, 190, color=color, width=0.5)
        surface.line(x + 5, 190, x + 5, 185, color=color, width=0.5)
        surface.circle(x + 5, 183, 1.2, fill=color)


def _pattern_vibrant(surface, ctx: _DrawContext) -> None:
    color = ctx.template.secondary_color
    for i in range(10):
        x = 20 + i * 28
        _glyph(surface, "heart", x, 20, 3.5, color)
        _glyph(surface, "star", x + 14, 22, 3.5, color)
        _glyph(surface, "star", x, 190, 3.5, color)
        _glyph(surface, "heart", x + 14, 192, 3.5, color)
    for i in range(6):
        y = 35 + i * 25
        _glyph(surface, "heart", 19, y, 3.5, color)
        _glyph(surface, "star", 278, y, 3.5, color)


PATTERN_ROUTINES: dict[str, Callable[..., None]] = {
    "standard": _pattern_standard,
    "premium-gold": _pattern_premium_gold,
    "nature": _pattern_nature,
    "classic": _pattern_classic,
    "vibrant": _pattern_vibrant,
}


def resolve_pattern(template: CertificateTemplate) -> Callable[..., None]:
    """Pattern routine for a template; unknown templates get the default."""
    if not is_registered(template):
        return PATTERN_ROUTINES[DEFAULT_PATTERN]
    return PATTERN_ROUTINES.get(template.pattern, PATTERN_ROUTINES[DEFAULT_PATTERN])


# -- signature line styles ----------------------------------------------------


def _signature_standard(
    surface, ctx: _DrawContext, x1: float, x2: float, y: float
) -> None:
    color = ctx.template.primary_color
    surface.line(x1, y, x2, y, color=color, width=0.8)
    surface.circle(x1, y, 1.2, fill=color)
    surface.circle(x2, y, 1.2, fill=color)


def _signature_modern(
    surface, ctx: _DrawContext, x1: float, x2: float, y: float
) -> None:
    color = ctx.template.primary_color
    surface.line(x1, y, x2, y, color=color, width=1.2)
    _glyph(surface, "diamond", x1, y, 3.0, ctx.template.secondary_color)
    _glyph(surface, "diamond", x2, y, 3.0, ctx.template.secondary_color)


def _signature_elegant(
    surface, ctx: _DrawContext, x1: float, x2: float, y: float
) -> None:
    color = ctx.template.primary_color
    surface.line(x1, y - 0.6, x2, y - 0.6, color=color, width=0.4)
    surface.line(x1, y + 0.6, x2, y + 0.6, color=color, width=0.4)
    _glyph(surface, "star", x1 - 2, y, 3.0, ctx.template.secondary_color)
    _glyph(surface, "star", x2 + 2, y, 3.0, ctx.template.secondary_color)


SIGNATURE_ROUTINES: dict[str, Callable[..., None]] = {
    "standard": _signature_standard,
    "modern": _signature_modern,
    "elegant": _signature_elegant,
}


def resolve_signature(template: CertificateTemplate) -> Callable[..., None]:
    return SIGNATURE_ROUTINES.get(template.layout_variant, _signature_standard)


# -- page regions -------------------------------------------------------------


def _draw_background(surface, ctx: _DrawContext) -> None:
    template = ctx.template
    surface.rect(0, 0, PAGE_WIDTH_MM, PAGE_HEIGHT_MM, fill=template.background_color)
    surface.rect(0, 0, PAGE_WIDTH_MM, PAGE_HEIGHT_MM, fill=WHITE, alpha=0.1)
    surface.rect(*OUTER_BORDER, stroke=template.primary_color, line_width=3)
    surface.rect(*INNER_BORDER, stroke=template.secondary_color, line_width=0.5)

    resolve_pattern(template)(surface, ctx)

    for (cx, cy), glyph in zip(CORNER_CENTERS, CORNER_GLYPHS):
        surface.circle(cx, cy, CORNER_RADIUS_MM, fill=template.primary_color)
        surface.circle(cx, cy, CORNER_RADIUS_MM - 2, fill=WHITE, alpha=0.3)
        surface.circle(cx, cy, CORNER_RADIUS_MM - 3.5, fill=template.primary_color)
        _glyph(surface, glyph, cx, cy, 5, WHITE)
    for dx, dy in CORNER_DOTS:
        surface.circle(dx, dy, 1, fill=template.secondary_color)


def _draw_logo(surface, ctx: _DrawContext) -> None:
    template = ctx.template
    accent = template.secondary_color
    x, y = template.logo_position
    surface.circle(x, y, 14, fill=template.primary_color)
    surface.circle(x, y, 11, fill=WHITE, alpha=0.2)
    surface.circle(x, y, 8, fill=template.primary_color)
    _glyph(surface, "leaf", x, y, 10, WHITE)
    for dx, dy in ((-18, -10), (18, -10), (-18, 10), (18, 10)):
        surface.circle(x + dx, y + dy, 1.5, fill=accent)

    surface.line(x - 40, y + 15, x + 40, y + 15, color=accent, width=0.5)
    surface.text(
        x,
        y + 20.5,
        ctx.branding.organization_name,
        font=FONT_BOLD,
        size=16,
        color=template.primary_color,
        align="center",
    )
    surface.text(
        x,
        y + 25.5,
        ctx.branding.tagline,
        font=FONT_REGULAR,
        size=10,
        color=template.primary_color,
        align="center",
    )
    surface.line(x - 40, y + 28, x + 40, y + 28, color=accent, width=0.5)


def _draw_title(surface, ctx: _DrawContext) -> None:
    template = ctx.template
    accent = template.secondary_color
    x, y = template.title_position
    title = f"CERTIFICATE OF {template.type.upper()}"
    size = fit_text(title, FONT_BOLD, 28, 16, TITLE_MAX_WIDTH_MM)
    surface.text(
        x,
        y + 3,
        title,
        font=FONT_BOLD,
        size=size,
        color=template.primary_color,
        align="center",
    )

    left, right = x - TITLE_HALF_WIDTH_MM, x + TITLE_HALF_WIDTH_MM
    for rule_y in (y - 9, y + 9):
        surface.line(left, rule_y, right, rule_y, color=accent, width=0.7)
        surface.circle(left, rule_y, 1.5, fill=accent)
        surface.circle(right, rule_y, 1.5, fill=accent)
        _glyph(surface, "star", left - 5, rule_y, 3.5, accent)
        _glyph(surface, "star", right + 5, rule_y, 3.5, accent)


def _detail_rows(data: CertificateData, start_y: float):
    return (
        (
            DETAIL_LEFT_X_MM,
            start_y + 32,
            f"Event: {data.event_name or DEFAULT_EVENT_NAME}",
        ),
        (
            DETAIL_LEFT_X_MM,
            start_y + 37.5,
            f"Date: {data.event_date or data.issue_date}",
        ),
        (
            DETAIL_RIGHT_X_MM,
            start_y + 32,
            f"Location: {data.location or ''}".rstrip(),
        ),
        (
            DETAIL_RIGHT_X_MM,
            start_y + 37.5,
            f"Hours: {format_hours(data.hours_contributed)}",
        ),
    )


def _draw_body(surface, ctx: _DrawContext) -> None:
    template, data = ctx.template, ctx.data
    accent = template.secondary_color
    cx = CENTER_X_MM
    start_y = template.title_position[1] + BODY_OFFSET_MM

    surface.rounded_rect(30, start_y - 8, 237, 61, 5, fill=WHITE, alpha=0.3)

    surface.text(
        cx,
        start_y,
        PRESENTED_TO_TEXT,
        font=FONT_REGULAR,
        size=13,
        color=TEXT_GRAY,
        align="center",
    )
    for x1, x2 in ((cx - 85, cx - 55), (cx + 55, cx + 85)):
        surface.line(x1, start_y - 1.5, x2, start_y - 1.5, color=accent, width=0.5)

    name = (data.volunteer_name or "").upper()
    surface.rounded_rect(
        cx - NAME_BAR_WIDTH_MM / 2.0,
        start_y + 3,
        NAME_BAR_WIDTH_MM,
        12,
        3,
        fill=template.primary_color,
        alpha=0.15,
    )
    name_size = fit_text(name, FONT_BOLD, 22, 12, NAME_BAR_WIDTH_MM - 10)
    surface.text(
        cx,
        start_y + 11.5,
        name,
        font=FONT_BOLD,
        size=name_size,
        color=template.primary_color,
        align="center",
    )

    sentence = achievement_text(template.type, data)
    surface.text(
        cx,
        start_y + 22,
        sentence,
        font=FONT_REGULAR,
        size=fit_text(sentence, FONT_REGULAR, 13, 8, 225),
        color=TEXT_GRAY,
        align="center",
    )
    surface.line(cx - 30, start_y + 26, cx + 30, start_y + 26, color=accent, width=1)

    for x, y, line in _detail_rows(data, start_y):
        if x == DETAIL_LEFT_X_MM:
            limit = DETAIL_COLUMN_WIDTH_MM
        else:
            limit = PAGE_WIDTH_MM - 35 - x
        size = fit_text(line, FONT_REGULAR, 10, 7, limit)
        surface.text(x, y, line, font=FONT_REGULAR, size=size, color=TEXT_GRAY)

    surface.text(
        cx,
        start_y + 46,
        RECOGNITION_TEXT,
        font=FONT_ITALIC,
        size=11,
        color=accent,
        align="center",
    )
    for dot_x in (cx - 40, cx + 40):
        surface.circle(dot_x, start_y + 50, 1.2, fill=template.primary_color)


def _draw_signatures(surface, ctx: _DrawContext) -> None:
    template, branding = ctx.template, ctx.branding
    y = SIGNATURE_Y_MM
    cx = CENTER_X_MM

    surface.rounded_rect(40, y - 15, 217, 27, 3, fill=WHITE, alpha=0.2)

    draw_lines = resolve_signature(template)
    organizer = ctx.data.organizer_name or branding.representative_name
    signers = (
        (SIGNATURE_LEFT, organizer, branding.organizer_title),
        (SIGNATURE_RIGHT, branding.representative_name, branding.representative_title),
    )
    for (x1, x2), name, title in signers:
        draw_lines(surface, ctx, x1, x2, y)
        mid = (x1 + x2) / 2.0
        size = fit_text(name, FONT_BOLD, 11, 7, x2 - x1 + 10)
        for dy, line, font, line_size in (
            (5.5, name, FONT_BOLD, size),
            (9.5, title, FONT_REGULAR, 9),
        ):
            surface.text(
                mid,
                y + dy,
                line,
                font=font,
                size=line_size,
                color=TEXT_GRAY,
                align="center",
            )

    seal_y = y - 3
    surface.circle(cx, seal_y, 10, fill=template.primary_color)
    surface.circle(cx, seal_y, 8, fill=WHITE)
    surface.circle(cx, seal_y, 5.5, fill=template.primary_color)
    surface.text(
        cx,
        seal_y + 1.5,
        branding.monogram[:2],
        font=FONT_BOLD,
        size=10,
        color=WHITE,
        align="center",
    )
    for star_x in (cx - 22, cx + 22):
        _glyph(surface, "star", star_x, y + 3, 3, template.secondary_color)


def _draw_footer(surface, ctx: _DrawContext) -> None:
    template, data, branding = ctx.template, ctx.data, ctx.branding
    bar_x, bar_y, bar_w, bar_h = FOOTER_BAR
    surface.rect(bar_x, bar_y, bar_w, bar_h, fill=template.primary_color)

    lines = (
        (5.5, f"Certificate ID: {data.certificate_id}", FONT_BOLD, 9),
        (10, f"Issued on: {data.issue_date}", FONT_REGULAR, 8),
        (14.5, f"Verify at: {branding.verify_url}", FONT_REGULAR, 8),
    )
    for offset, line, font, size in lines:
        surface.text(
            FOOTER_TEXT_X_MM, bar_y + offset, line, font=font, size=size, color=WHITE
        )
    surface.text(
        FOOTER_CREDIT_X_MM,
        bar_y + 10,
        branding.powered_by,
        font=FONT_ITALIC,
        size=8,
        color=WHITE,
        align="right",
    )

    qr_x, qr_y, qr_size = QR_BOX
    surface.rect(
        qr_x,
        qr_y,
        qr_size,
        qr_size,
        fill=WHITE,
        stroke=template.primary_color,
        line_width=0.8,
    )
    inset = (qr_size - QR_CELL_MM * len(ornaments.QR_PLACEHOLDER)) / 2.0
    for cell in ornaments.qr_cells(qr_x + inset, qr_y + inset, QR_CELL_MM):
        surface.rect(*cell, fill=template.primary_color)
    for corner_x in (qr_x, qr_x + qr_size):
        for corner_y in (qr_y, qr_y + qr_size):
            surface.circle(corner_x, corner_y, 1.2, fill=template.secondary_color)


DRAW_SEQUENCE: tuple[Callable[..., None], ...] = (
    _draw_background,
    _draw_logo,
    _draw_title,
    _draw_body,
    _draw_signatures,
    _draw_footer,
)


class CertificateDocument:
    """One certificate, redrawn from scratch every time it is encoded."""

    def __init__(
        self,
        template: CertificateTemplate,
        data: CertificateData,
        branding: Branding = DEFAULT_BRANDING,
    ) -> None:
        self.template = template
        self.data = data
        self.branding = branding

    def _render(self, surface) -> bytes:
        ctx = _DrawContext(self.template, self.data, self.branding)
        try:
            for step in DRAW_SEQUENCE:
                step(surface, ctx)
            return surface.finish()
        except CertificateError:
            raise
        except Exception as exc:
            raise CertificateRenderError(
                f"Failed to draw certificate {self.data.certificate_id}: {exc}"
            ) from exc

    def to_bytes(self) -> bytes:
        surface = PdfSurface(
            PAGE_WIDTH_MM,
            PAGE_HEIGHT_MM,
            title=f"Certificate of {self.template.type.title()}",
            subject=self.data.certificate_id,
            author=self.branding.representative_name,
        )
        return self._render(surface)

    def to_data_url(self) -> str:
        encoded = base64.b64encode(self.to_bytes()).decode("ascii")
        return f"data:application/pdf;base64,{encoded}"

    def to_png(self, scale: float = 4.0) -> tuple[bytes, list[str]]:
        surface = ImageSurface(PAGE_WIDTH_MM, PAGE_HEIGHT_MM, scale=scale)
        return self._render(surface), list(surface.warnings)


def compose(
    template: CertificateTemplate,
    data: CertificateData,
    *,
    branding: Branding | None = None,
) -> CertificateDocument:
    if not is_registered(template):
        logger.info(
            "[cert-template] unregistered template id=%s; using default pattern",
            template.id,
        )
    return CertificateDocument(template, data, branding or DEFAULT_BRANDING)
