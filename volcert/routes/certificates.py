from __future__ import annotations

from io import BytesIO
from typing import Any

from flask import Blueprint, current_app, jsonify, request, send_file

from ..models import Event, Volunteer
from ..services.certificate_batch import (
    BatchConfig,
    build_certificate_data,
    prepare,
)
from ..services.certificate_export import bundle_batch, pdf_data_url
from ..services.certificates_preview import generate_preview, sample_certificate_data
from ..shared.certificate_templates import (
    CertificateTemplate,
    get_template,
    list_templates,
)
from ..shared.certificates import CertificateError, compose

bp = Blueprint("certificates", __name__, url_prefix="/certificates")


def _payload() -> dict | None:
    try:
        payload = request.get_json(force=True)
    except Exception:
        return None
    return payload if isinstance(payload, dict) else None


def _template(payload: dict) -> CertificateTemplate:
    return get_template(
        payload.get("template_id") or current_app.config.get("CERT_DEFAULT_TEMPLATE")
    )


def _config(raw: dict) -> BatchConfig:
    values = dict(raw)
    values.setdefault("organizer_name", current_app.config.get("CERT_ORGANIZER_NAME"))
    return BatchConfig.from_dict(
        values, default_location=current_app.config.get("CERT_LOCATION")
    )


def _records(raw: Any, factory) -> list:
    if not isinstance(raw, list):
        return []
    return [factory(item) for item in raw if isinstance(item, dict)]


def _single_certificate(payload: dict):
    raw_volunteer = payload.get("volunteer")
    if not isinstance(raw_volunteer, dict):
        raise ValueError("A volunteer record is required.")
    events = _records([payload.get("event")], Event.from_dict)
    config = _config(payload)
    if events and config.event_id is None:
        config.event_id = events[0].event_id
    batch = prepare([Volunteer.from_dict(raw_volunteer)], config, events=events)
    job = batch.jobs[0]
    return job, build_certificate_data(job, batch.config)


def _error(message: str, status: int):
    return jsonify({"error": message}), status


@bp.get("/templates")
def templates():
    return jsonify({"templates": [t.to_dict() for t in list_templates()]})


@bp.post("/preview")
def preview():
    payload = _payload()
    if payload is None:
        return _error("Invalid request payload.", 400)
    template = _template(payload)
    try:
        if isinstance(payload.get("volunteer"), dict):
            _, data = _single_certificate(payload)
        else:
            data = sample_certificate_data(template)
        result = generate_preview(
            template, data, branding=current_app.config["CERT_BRANDING"]
        )
    except ValueError as exc:
        return _error(str(exc), 400)
    except Exception:
        current_app.logger.exception("Certificate preview failed")
        return _error("Failed to generate preview.", 500)
    return jsonify(
        {
            "image": f"data:image/png;base64,{result.image_base64}",
            "document": f"data:application/pdf;base64,{result.document_base64}",
            "certificate_id": result.certificate_id,
            "template_id": template.id,
            "warnings": list(result.warnings),
        }
    )


@bp.post("/generate")
def generate():
    payload = _payload()
    if payload is None:
        return _error("Invalid request payload.", 400)
    template = _template(payload)
    try:
        job, data = _single_certificate(payload)
        pdf = compose(
            template, data, branding=current_app.config["CERT_BRANDING"]
        ).to_bytes()
    except ValueError as exc:
        return _error(str(exc), 400)
    except CertificateError:
        current_app.logger.exception("Certificate generation failed")
        return _error("Failed to generate certificate.", 500)
    current_app.logger.info(
        "[CERT] volunteer=%s certificate_id=%s template=%s",
        job.recipient.volunteer_id,
        data.certificate_id,
        template.id,
    )
    response = send_file(
        BytesIO(pdf),
        mimetype="application/pdf",
        as_attachment=True,
        download_name=job.filename,
    )
    response.headers["X-Certificate-Id"] = data.certificate_id
    return response


def _run_batch(payload: dict):
    volunteers = _records(payload.get("volunteers"), Volunteer.from_dict)
    events = _records(payload.get("events"), Event.from_dict)
    selected_ids = payload.get("selected_ids")
    if isinstance(selected_ids, list):
        by_id = {str(v.volunteer_id): v for v in volunteers}
        selection = [by_id[str(v)] for v in selected_ids if str(v) in by_id]
    else:
        selection = volunteers
    raw_config = payload.get("config")
    config = _config(raw_config if isinstance(raw_config, dict) else payload)
    batch = prepare(selection, config, events=events, roster=volunteers)
    template = _template(payload)
    batch.run_all(template, branding=current_app.config["CERT_BRANDING"])
    return batch, template


@bp.post("/batch")
def batch():
    payload = _payload()
    if payload is None:
        return _error("Invalid request payload.", 400)
    try:
        run, template = _run_batch(payload)
    except ValueError as exc:
        return _error(str(exc), 400)
    jobs = []
    for job in run.jobs:
        entry = job.to_dict()
        if job.result:
            entry["download"] = pdf_data_url(job.result.pdf)
        jobs.append(entry)
    return jsonify(
        {
            "template_id": template.id,
            "jobs": jobs,
            "summary": run.summary(),
            "progress": run.percent,
            "stagger_ms": int(
                current_app.config.get("CERT_EXPORT_STAGGER_SECONDS", 0) * 1000
            ),
        }
    )


@bp.post("/batch/bundle")
def batch_bundle():
    payload = _payload()
    if payload is None:
        return _error("Invalid request payload.", 400)
    try:
        run, _ = _run_batch(payload)
    except ValueError as exc:
        return _error(str(exc), 400)
    if not run.completed_jobs():
        return _error("No certificates were generated.", 422)
    response = send_file(
        BytesIO(bundle_batch(run)),
        mimetype="application/pdf",
        as_attachment=True,
        download_name="certificates.pdf",
    )
    summary = run.summary()
    response.headers["X-Certificates-Completed"] = str(summary["completed"])
    response.headers["X-Certificates-Failed"] = str(summary["error"])
    return response
