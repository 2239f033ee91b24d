from dataclasses import replace

from volcert.shared.certificate_templates import (
    get_template,
    is_registered,
    list_templates,
)
from volcert.shared.certificates import PATTERN_ROUTINES, SIGNATURE_ROUTINES


def test_catalog_has_eight_unique_templates():
    templates = list_templates()
    assert len(templates) == 8
    assert len({t.id for t in templates}) == 8
    assert templates[0].id == "standard-participation"


def test_catalog_covers_every_certificate_type():
    types = {t.type for t in list_templates()}
    assert types == {"participation", "achievement", "leadership", "milestone"}


def test_every_template_resolves_drawing_routines():
    for template in list_templates():
        assert template.pattern in PATTERN_ROUTINES
        assert template.layout_variant in SIGNATURE_ROUTINES


def test_get_template_falls_back_to_first_entry():
    assert get_template("nature-inspired").id == "nature-inspired"
    assert get_template("does-not-exist").id == "standard-participation"
    assert get_template(None).id == "standard-participation"
    assert get_template("  premium-gold ").id == "premium-gold"


def test_is_registered_compares_whole_template():
    template = get_template("premium-gold")
    assert is_registered(template)
    assert not is_registered(replace(template, primary_color="#000000"))
    assert not is_registered(replace(template, id="custom"))


def test_to_dict_exposes_positions_as_xy():
    payload = get_template("classic-elegant").to_dict()
    assert payload["logo_position"] == {"x": 148.5, "y": 30.0}
    assert payload["title_position"] == {"x": 148.5, "y": 72.0}
    assert payload["layout_variant"] == "elegant"
    assert payload["pattern"] == "classic"
