from io import BytesIO

import pytest
from PyPDF2 import PdfReader

from volcert.services import certificates_preview

VOLUNTEERS = [
    {
        "id": 1,
        "first_name": "Abebe",
        "last_name": "Kebede",
        "total_hours_contributed": 120,
    },
    {
        "id": 2,
        "first_name": "Sara",
        "last_name": "Tesfaye",
        "total_hours_contributed": 60,
    },
    {"id": 3, "first_name": 42, "last_name": None, "total_hours_contributed": 1},
]
EVENT = {
    "id": 10,
    "event_name": "Cleanup Drive",
    "event_date": "2024-01-15",
    "estimated_duration_hours": 3,
}


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.data == b"OK"


@pytest.mark.smoke
def test_templates_listing(client):
    resp = client.get("/certificates/templates")
    assert resp.status_code == 200
    templates = resp.get_json()["templates"]
    assert len(templates) == 8
    assert templates[0]["id"] == "standard-participation"
    assert templates[0]["logo_position"] == {"x": 148.5, "y": 30.0}


def test_preview_sample(client):
    resp = client.post("/certificates/preview", json={"template_id": "premium-gold"})
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["image"].startswith("data:image/png;base64,")
    assert data["document"].startswith("data:application/pdf;base64,")
    assert data["certificate_id"].startswith("PE-")
    assert data["template_id"] == "premium-gold"


def test_preview_rejects_non_object_payload(client):
    resp = client.post("/certificates/preview", data="[1, 2]")
    assert resp.status_code == 400
    assert "error" in resp.get_json()


def test_generate_single_certificate(client):
    resp = client.post(
        "/certificates/generate",
        json={
            "template_id": "standard-participation",
            "certificate_type": "event",
            "volunteer": VOLUNTEERS[0],
            "event": EVENT,
        },
    )
    assert resp.status_code == 200
    assert resp.mimetype == "application/pdf"
    disposition = resp.headers["Content-Disposition"]
    assert "certificate-Abebe-Kebede.pdf" in disposition
    assert resp.headers["X-Certificate-Id"].startswith("PE-")
    text = PdfReader(BytesIO(resp.data)).pages[0].extract_text()
    assert "ABEBE KEBEDE" in text
    assert "Cleanup Drive" in text
    assert "January 15, 2024" in text


def test_generate_unknown_template_falls_back(client):
    resp = client.post(
        "/certificates/generate",
        json={"template_id": "nope", "volunteer": VOLUNTEERS[1]},
    )
    assert resp.status_code == 200
    assert resp.data.startswith(b"%PDF")


def test_generate_milestone_requires_hours(client):
    resp = client.post(
        "/certificates/generate",
        json={"certificate_type": "milestone", "volunteer": VOLUNTEERS[0]},
    )
    assert resp.status_code == 400
    assert "milestone" in resp.get_json()["error"].lower()


def test_generate_rejects_malformed_name(client):
    resp = client.post("/certificates/generate", json={"volunteer": VOLUNTEERS[2]})
    assert resp.status_code == 400


def test_generate_requires_volunteer(client):
    resp = client.post("/certificates/generate", json={})
    assert resp.status_code == 400


def test_batch_reports_each_job(client):
    resp = client.post(
        "/certificates/batch",
        json={
            "template_id": "nature-inspired",
            "volunteers": VOLUNTEERS,
            "events": [EVENT],
            "config": {"certificate_type": "participation", "event_id": 10},
        },
    )
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["progress"] == 100
    assert data["summary"]["completed"] == 2
    assert data["summary"]["error"] == 1
    jobs = data["jobs"]
    assert [job["status"] for job in jobs] == ["completed", "completed", "error"]
    assert jobs[0]["download"].startswith("data:application/pdf;base64,")
    assert jobs[0]["filename"] == "certificate-Abebe-Kebede.pdf"
    assert "download" not in jobs[2]
    assert jobs[2]["error"].startswith("Generation failed:")
    assert jobs[0]["certificate_id"] != jobs[1]["certificate_id"]
    assert data["stagger_ms"] == 0


def test_batch_honours_selection(client):
    resp = client.post(
        "/certificates/batch",
        json={
            "volunteers": VOLUNTEERS,
            "selected_ids": [2],
            "config": {"certificate_type": "achievement"},
        },
    )
    jobs = resp.get_json()["jobs"]
    assert [job["volunteer_id"] for job in jobs] == [2]


def test_batch_empty_selection_is_rejected(client):
    resp = client.post(
        "/certificates/batch",
        json={"volunteers": VOLUNTEERS, "selected_ids": [99]},
    )
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "Select at least one volunteer."


def test_batch_bundle(client):
    resp = client.post(
        "/certificates/batch/bundle",
        json={"volunteers": VOLUNTEERS, "config": {"certificate_type": "leadership"}},
    )
    assert resp.status_code == 200
    assert len(PdfReader(BytesIO(resp.data)).pages) == 2
    assert resp.headers["X-Certificates-Completed"] == "2"
    assert resp.headers["X-Certificates-Failed"] == "1"


def test_repeated_preview_is_served_from_cache(client, monkeypatch):
    certificates_preview._preview_cache.clear()
    calls = []
    real_compose = certificates_preview.compose

    def counting(*args, **kwargs):
        calls.append(1)
        return real_compose(*args, **kwargs)

    monkeypatch.setattr(certificates_preview, "compose", counting)
    payload = {"template_id": "nature-inspired"}
    first = client.post("/certificates/preview", json=payload).get_json()
    second = client.post("/certificates/preview", json=payload).get_json()
    certificates_preview._preview_cache.clear()
    assert len(calls) == 1
    assert second["certificate_id"] == first["certificate_id"]
    assert second["image"] == first["image"]


def test_generate_prints_event_location(client):
    event = dict(EVENT, location_name="Bole")
    resp = client.post(
        "/certificates/generate",
        json={"volunteer": VOLUNTEERS[0], "event": event},
    )
    assert resp.status_code == 200
    text = PdfReader(BytesIO(resp.data)).pages[0].extract_text()
    assert "Location: Bole" in text

    resp = client.post("/certificates/generate", json={"volunteer": VOLUNTEERS[0]})
    text = PdfReader(BytesIO(resp.data)).pages[0].extract_text()
    assert "Location: Addis Ababa, Ethiopia" in text
