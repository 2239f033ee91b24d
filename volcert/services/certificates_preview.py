import base64
import hashlib
import json
import time
from dataclasses import asdict, dataclass
from datetime import date

from ..constants import DEFAULT_LOCATION, DEFAULT_ORGANIZER_NAME
from ..shared.certificate_ids import generate_certificate_id
from ..shared.certificate_templates import CertificateTemplate
from ..shared.certificates import Branding, CertificateData, compose
from ..shared.time import format_date

_CACHE_TTL_SECONDS = 45
_PREVIEW_SCALE = 4.0


@dataclass(frozen=True)
class PreviewResult:
    image_base64: str
    document_base64: str
    certificate_id: str
    warnings: tuple[str, ...]


_preview_cache: dict[str, tuple[float, PreviewResult]] = {}

# Stamped fresh on every request; a cached preview keeps the values it drew.
_UNSTABLE_FIELDS = ("certificate_id", "issue_date")


def _build_cache_key(
    template: CertificateTemplate,
    data: CertificateData,
    branding: Branding,
    scale: float,
) -> str:
    stable = {
        key: value
        for key, value in data.to_dict().items()
        if key not in _UNSTABLE_FIELDS
    }
    fingerprint = json.dumps(
        {
            "template": template.to_dict(),
            "data": stable,
            "branding": asdict(branding),
            "scale": scale,
        },
        sort_keys=True,
        separators=(",", ":"),
        default=str,
    )
    return hashlib.sha256(fingerprint.encode()).hexdigest()


def sample_certificate_data(template: CertificateTemplate) -> CertificateData:
    today = format_date(date.today())
    return CertificateData(
        volunteer_name="Sample Volunteer Name",
        event_name="Sample Cleanup Drive",
        event_date=today,
        hours_contributed=4,
        location=DEFAULT_LOCATION,
        organizer_name=DEFAULT_ORGANIZER_NAME,
        certificate_id=generate_certificate_id(),
        issue_date=today,
        badge_type="Environmental Champion",
        total_hours=50,
        rank=1,
    )


def generate_preview(
    template: CertificateTemplate,
    data: CertificateData,
    *,
    branding: Branding,
    scale: float = _PREVIEW_SCALE,
) -> PreviewResult:
    cache_key = _build_cache_key(template, data, branding, scale)
    cached = _preview_cache.get(cache_key)
    now = time.time()
    if cached and now - cached[0] < _CACHE_TTL_SECONDS:
        return cached[1]

    document = compose(template, data, branding=branding)
    png, warnings = document.to_png(scale=scale)
    result = PreviewResult(
        image_base64=base64.b64encode(png).decode("ascii"),
        document_base64=base64.b64encode(document.to_bytes()).decode("ascii"),
        certificate_id=data.certificate_id,
        warnings=tuple(warnings),
    )
    for key, (stamp, _) in list(_preview_cache.items()):
        if now - stamp >= _CACHE_TTL_SECONDS:
            _preview_cache.pop(key, None)
    _preview_cache[cache_key] = (now, result)
    return result
