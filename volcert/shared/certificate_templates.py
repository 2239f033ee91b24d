from __future__ import annotations

from dataclasses import asdict, dataclass

DEFAULT_PATTERN = "standard"


@dataclass(frozen=True)
class CertificateTemplate:
    id: str
    name: str
    type: str
    background_color: str
    primary_color: str
    secondary_color: str
    logo_position: tuple[float, float]
    title_position: tuple[float, float]
    layout_variant: str = "standard"
    pattern: str = DEFAULT_PATTERN

    def to_dict(self) -> dict:
        payload = asdict(self)
        for key in ("logo_position", "title_position"):
            x, y = getattr(self, key)
            payload[key] = {"x": x, "y": y}
        return payload


# Positions are millimetres from the top-left corner of an A4 landscape page.
_LOGO = (148.5, 30.0)
_TITLE = (148.5, 72.0)

_TEMPLATES: tuple[CertificateTemplate, ...] = (
    CertificateTemplate(
        id="standard-participation",
        name="Standard Participation",
        type="participation",
        background_color="#f0fdf4",
        primary_color="#16a34a",
        secondary_color="#15803d",
        logo_position=_LOGO,
        title_position=_TITLE,
        layout_variant="standard",
    ),
    CertificateTemplate(
        id="achievement-badge",
        name="Achievement Badge",
        type="achievement",
        background_color="#fef3c7",
        primary_color="#d97706",
        secondary_color="#92400e",
        logo_position=_LOGO,
        title_position=_TITLE,
        layout_variant="modern",
    ),
    CertificateTemplate(
        id="leadership-recognition",
        name="Leadership Recognition",
        type="leadership",
        background_color="#ede9fe",
        primary_color="#7c3aed",
        secondary_color="#5b21b6",
        logo_position=_LOGO,
        title_position=_TITLE,
        layout_variant="elegant",
    ),
    CertificateTemplate(
        id="milestone-celebration",
        name="Milestone Celebration",
        type="milestone",
        background_color="#ecfdf5",
        primary_color="#059669",
        secondary_color="#047857",
        logo_position=_LOGO,
        title_position=_TITLE,
        layout_variant="modern",
    ),
    CertificateTemplate(
        id="premium-gold",
        name="Premium Gold",
        type="achievement",
        background_color="#fefce8",
        primary_color="#ca8a04",
        secondary_color="#a16207",
        logo_position=_LOGO,
        title_position=_TITLE,
        layout_variant="elegant",
        pattern="premium-gold",
    ),
    CertificateTemplate(
        id="nature-inspired",
        name="Nature Inspired",
        type="participation",
        background_color="#f0f9ff",
        primary_color="#0ea5e9",
        secondary_color="#0284c7",
        logo_position=_LOGO,
        title_position=_TITLE,
        layout_variant="modern",
        pattern="nature",
    ),
    CertificateTemplate(
        id="classic-elegant",
        name="Classic Elegant",
        type="leadership",
        background_color="#fafafa",
        primary_color="#374151",
        secondary_color="#1f2937",
        logo_position=_LOGO,
        title_position=_TITLE,
        layout_variant="elegant",
        pattern="classic",
    ),
    CertificateTemplate(
        id="vibrant-community",
        name="Vibrant Community",
        type="milestone",
        background_color="#fdf2f8",
        primary_color="#ec4899",
        secondary_color="#be185d",
        logo_position=_LOGO,
        title_position=_TITLE,
        layout_variant="modern",
        pattern="vibrant",
    ),
)

_BY_ID = {template.id: template for template in _TEMPLATES}


def list_templates() -> tuple[CertificateTemplate, ...]:
    return _TEMPLATES


def get_template(template_id: str | None) -> CertificateTemplate:
    """Look up a template, falling back to the first catalog entry."""
    key = (template_id or "").strip()
    return _BY_ID.get(key, _TEMPLATES[0])


def is_registered(template: CertificateTemplate) -> bool:
    return _BY_ID.get(template.id) == template
