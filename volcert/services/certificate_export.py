from __future__ import annotations

import base64
import logging
import os
import re
import tempfile
import time
from io import BytesIO
from typing import TYPE_CHECKING, Callable, Iterable

from PyPDF2 import PdfReader, PdfWriter

from ..constants import EXPORT_STAGGER_SECONDS

if TYPE_CHECKING:
    from ..models import Volunteer
    from .certificate_batch import CertificateBatch

logger = logging.getLogger("volcert.certificates")


def _slug(value: str | None) -> str:
    slug = re.sub(r"[^A-Za-z0-9 -]+", "", value if isinstance(value, str) else "")
    return re.sub(r"[\s-]+", "-", slug.strip()).strip("-")


def certificate_filename(volunteer: "Volunteer", extension: str = "pdf") -> str:
    """``certificate-<first>-<last>.pdf`` with filesystem-safe parts."""
    parts = [_slug(volunteer.first_name), _slug(volunteer.last_name)]
    stem = "-".join(part for part in parts if part) or str(volunteer.volunteer_id)
    return f"certificate-{stem}.{extension}"


def _write_pdf(path: str, pdf: bytes) -> None:
    """Stage the document beside its target, then swap it in readable."""
    fd, tmp_path = tempfile.mkstemp(dir=os.path.dirname(path), suffix=".part")
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(pdf)
        os.chmod(tmp_path, 0o644)
        os.replace(tmp_path, path)
    finally:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)


def pdf_data_url(pdf: bytes) -> str:
    return "data:application/pdf;base64," + base64.b64encode(pdf).decode("ascii")


def export_batch(
    batch: "CertificateBatch",
    out_dir: str,
    *,
    stagger_seconds: float = EXPORT_STAGGER_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
) -> list[str]:
    """Write every completed document to ``out_dir``, pausing between files."""
    os.makedirs(out_dir, exist_ok=True)
    written: list[str] = []
    used: set[str] = set()
    for index, job in enumerate(batch.completed_jobs()):
        if index and stagger_seconds > 0:
            sleep(stagger_seconds)
        filename = job.result.filename
        if filename in used:
            stem, ext = os.path.splitext(filename)
            filename = f"{stem}-{job.result.data.certificate_id.lower()}{ext}"
        used.add(filename)
        path = os.path.join(out_dir, filename)
        _write_pdf(path, job.result.pdf)
        written.append(path)
    logger.info("[CERT-EXPORT] dir=%s files=%s", out_dir, len(written))
    return written


def bundle_documents(documents: Iterable[bytes]) -> bytes:
    """Merge single-page certificates into one PDF, in the given order."""
    writer = PdfWriter()
    for pdf in documents:
        for page in PdfReader(BytesIO(pdf)).pages:
            writer.add_page(page)
    out = BytesIO()
    writer.write(out)
    return out.getvalue()


def bundle_batch(batch: "CertificateBatch") -> bytes:
    return bundle_documents(job.result.pdf for job in batch.completed_jobs())
