import base64
from dataclasses import replace
from io import BytesIO

import pytest
from PIL import Image
from PyPDF2 import PdfReader

from volcert.shared import certificates, surfaces
from volcert.shared.certificate_templates import get_template, list_templates
from volcert.shared.certificates import (
    Branding,
    CertificateData,
    CertificateRenderError,
    achievement_text,
    compose,
    resolve_pattern,
    resolve_signature,
)


def _data(**overrides):
    values = dict(
        volunteer_name="Abebe Kebede",
        event_name="Bole Road Cleanup",
        event_date="January 15, 2024",
        hours_contributed=3,
        location="Addis Ababa, Ethiopia",
        organizer_name="Plogging Ethiopia Team",
        certificate_id="PE-TEST-000001",
        issue_date="February 1, 2024",
        badge_type="Environmental Champion",
        total_hours=120,
        rank=1,
    )
    values.update(overrides)
    return CertificateData(**values)


def _text(pdf: bytes) -> str:
    reader = PdfReader(BytesIO(pdf))
    assert len(reader.pages) == 1
    return reader.pages[0].extract_text()


@pytest.mark.parametrize("template", list_templates(), ids=lambda t: t.id)
def test_every_template_renders_a_single_a4_landscape_page(template):
    pdf = compose(template, _data()).to_bytes()
    assert pdf.startswith(b"%PDF")
    page = PdfReader(BytesIO(pdf)).pages[0]
    width, height = float(page.mediabox.width), float(page.mediabox.height)
    assert width == pytest.approx(841.89, abs=0.5)
    assert height == pytest.approx(595.28, abs=0.5)


def test_document_contains_recipient_and_footer_text():
    text = _text(compose(get_template("standard-participation"), _data()).to_bytes())
    assert "ABEBE KEBEDE" in text
    assert "CERTIFICATE OF PARTICIPATION" in text
    assert "PE-TEST-000001" in text
    assert "Bole Road Cleanup" in text
    assert "https://plogging-user-wyci.vercel.app/verify" in text


def test_branding_overrides_verify_url():
    branding = Branding(verify_base_url="https://example.org/")
    pdf = compose(get_template(None), _data(), branding=branding).to_bytes()
    assert "https://example.org/verify" in _text(pdf)


def test_identical_input_gives_identical_bytes():
    template = get_template("premium-gold")
    first = compose(template, _data()).to_bytes()
    document = compose(template, _data())
    assert document.to_bytes() == first
    assert document.to_bytes() == first


def test_data_url_wraps_pdf():
    document = compose(get_template(None), _data())
    url = document.to_data_url()
    assert url.startswith("data:application/pdf;base64,")
    assert base64.b64decode(url.split(",", 1)[1]) == document.to_bytes()


def test_unregistered_template_uses_default_pattern(caplog):
    custom = replace(
        get_template("vibrant-community"),
        id="custom-pink",
        layout_variant="unknown",
    )
    assert resolve_pattern(custom) is certificates.PATTERN_ROUTINES["standard"]
    assert resolve_signature(custom) is certificates.SIGNATURE_ROUTINES["standard"]
    caplog.set_level("INFO", logger="volcert.certificates")
    pdf = compose(custom, _data()).to_bytes()
    assert pdf.startswith(b"%PDF")
    assert "[cert-template]" in caplog.text


def test_registered_pattern_dispatch():
    template = get_template("nature-inspired")
    assert resolve_pattern(template) is certificates.PATTERN_ROUTINES["nature"]


def test_long_names_still_render():
    long_name = "Wolde-Giorgis " * 8
    pdf = compose(get_template(None), _data(volunteer_name=long_name)).to_bytes()
    assert "WOLDE-GIORGIS" in _text(pdf)


def test_achievement_text_follows_template_type():
    data = _data()
    assert "Bole Road Cleanup" in achievement_text("participation", data)
    assert "Environmental Champion" in achievement_text("achievement", data)
    assert "leadership" in achievement_text("leadership", data)
    assert "120 hours" in achievement_text("milestone", data)
    assert "3 hours" in achievement_text("milestone", _data(total_hours=None))


def test_surface_failure_becomes_render_error(monkeypatch):
    class BrokenSurface(surfaces.PdfSurface):
        def polygon(self, *args, **kwargs):
            raise OSError("disk full")

    monkeypatch.setattr(certificates, "PdfSurface", BrokenSurface)
    with pytest.raises(CertificateRenderError) as excinfo:
        compose(get_template(None), _data()).to_bytes()
    assert "PE-TEST-000001" in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, OSError)


def test_png_preview_has_page_proportions():
    png, warnings = compose(get_template("classic-elegant"), _data()).to_png(scale=2)
    assert png.startswith(b"\x89PNG\r\n\x1a\n")
    image = Image.open(BytesIO(png))
    assert image.size == (594, 420)
    assert isinstance(warnings, list)


def test_png_preview_reports_font_fallback(monkeypatch):
    monkeypatch.setattr(surfaces, "_FONT_PATHS", {})
    monkeypatch.setattr(surfaces, "_DEFAULT_FONT_PATH", "/nonexistent/font.ttf")
    png, warnings = compose(get_template(None), _data()).to_png(scale=1)
    assert png.startswith(b"\x89PNG")
    assert warnings == ["[preview-font-fallback] using default font"]
