from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Iterable, Iterator, Mapping, Sequence

from ..constants import (
    BADGE_LEVELS,
    BADGE_TYPE_BY_CERTIFICATE,
    CERTIFICATE_TYPE_ALIASES,
    CERTIFICATE_TYPES,
    DEFAULT_EVENT_NAME,
    DEFAULT_LOCATION,
    DEFAULT_ORGANIZER_NAME,
)
from ..models import Event, Volunteer
from ..shared.certificate_ids import generate_certificate_id
from ..shared.certificate_templates import CertificateTemplate
from ..shared.certificates import (
    Branding,
    CertificateConfigError,
    CertificateData,
    CertificateDataError,
    CertificateError,
    compose,
)
from ..shared.surfaces import can_render
from ..shared.time import format_date, format_event_date
from .certificate_export import certificate_filename

logger = logging.getLogger("volcert.certificates")

PENDING = "pending"
PROCESSING = "processing"
COMPLETED = "completed"
ERROR = "error"

JOB_STATUSES = (PENDING, PROCESSING, COMPLETED, ERROR)

_TRANSITIONS = {
    PENDING: {PROCESSING},
    PROCESSING: {COMPLETED, ERROR},
    COMPLETED: set(),
    ERROR: set(),
}


class InvalidJobTransition(CertificateError):
    """Raised when a job is moved outside pending → processing → done."""


def normalize_certificate_type(value: str | None) -> str:
    raw = (value or "").strip().lower()
    raw = CERTIFICATE_TYPE_ALIASES.get(raw, raw)
    if raw not in CERTIFICATE_TYPES:
        raise CertificateConfigError(f"Unsupported certificate type: {value!r}")
    return raw


def _parse_milestone_hours(value: Any) -> int | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise CertificateConfigError("Milestone hours must be a positive whole number.")
    try:
        hours = int(str(value).strip())
    except ValueError as exc:
        raise CertificateConfigError(
            "Milestone hours must be a positive whole number."
        ) from exc
    if hours <= 0:
        raise CertificateConfigError("Milestone hours must be a positive whole number.")
    return hours


@dataclass
class BatchConfig:
    certificate_type: str = "participation"
    event_id: int | str | None = None
    milestone_hours: int | str | None = None
    organizer_name: str = DEFAULT_ORGANIZER_NAME
    location: str | None = None
    default_location: str = DEFAULT_LOCATION

    @classmethod
    def from_dict(
        cls,
        payload: Mapping[str, Any] | None,
        *,
        default_location: str | None = None,
    ) -> "BatchConfig":
        payload = payload or {}
        event_id = payload.get("event_id")
        return cls(
            certificate_type=payload.get("certificate_type") or "participation",
            event_id=None if event_id in (None, "") else event_id,
            milestone_hours=payload.get("milestone_hours"),
            organizer_name=str(payload.get("organizer_name") or "").strip()
            or DEFAULT_ORGANIZER_NAME,
            location=str(payload.get("location") or "").strip() or None,
            default_location=default_location or DEFAULT_LOCATION,
        )

    def validated(self) -> "BatchConfig":
        """Return a normalized copy or raise :class:`CertificateConfigError`."""
        certificate_type = normalize_certificate_type(self.certificate_type)
        milestone_hours = None
        if certificate_type == "milestone":
            milestone_hours = _parse_milestone_hours(self.milestone_hours)
            if milestone_hours is None:
                raise CertificateConfigError(
                    "Milestone certificates require a milestone hours value."
                )
        return BatchConfig(
            certificate_type=certificate_type,
            event_id=self.event_id,
            milestone_hours=milestone_hours,
            organizer_name=self.organizer_name or DEFAULT_ORGANIZER_NAME,
            location=self.location or None,
            default_location=self.default_location or DEFAULT_LOCATION,
        )


@dataclass(frozen=True)
class CertificateResult:
    pdf: bytes
    data: CertificateData
    filename: str


@dataclass
class CertificateJob:
    recipient: Volunteer
    certificate_type: str
    event: Event | None = None
    milestone_hours: int | None = None
    rank: int | None = None
    status: str = PENDING
    result: CertificateResult | None = None
    error: str | None = None

    @property
    def filename(self) -> str:
        return certificate_filename(self.recipient)

    def to_dict(self) -> dict:
        data = self.result.data if self.result else None
        return {
            "volunteer_id": self.recipient.volunteer_id,
            "name": self.recipient.full_name,
            "certificate_type": self.certificate_type,
            "event_id": self.event.event_id if self.event else None,
            "status": self.status,
            "error": self.error,
            "certificate_id": data.certificate_id if data else None,
            "filename": self.result.filename if self.result else None,
        }


@dataclass(frozen=True)
class BatchProgress:
    index: int
    processed: int
    total: int
    completed: int
    errors: int

    @property
    def percent(self) -> int:
        # floor, so 100 is only reported once every job has finished
        if not self.total:
            return 100
        return self.processed * 100 // self.total


def badge_type_for(certificate_type: str, total_hours: float) -> str:
    if certificate_type == "achievement":
        for threshold, label in BADGE_LEVELS:
            if total_hours >= threshold:
                return label
    default = BADGE_TYPE_BY_CERTIFICATE["participation"]
    return BADGE_TYPE_BY_CERTIFICATE.get(certificate_type, default)


def rank_volunteers(roster: Iterable[Volunteer]) -> dict[Any, int]:
    """Competition ranking by total hours; equal hours share the better rank."""
    ordered = sorted(roster, key=lambda v: v.total_hours_contributed or 0, reverse=True)
    ranks: dict[Any, int] = {}
    first_rank_for_hours: dict[float, int] = {}
    for position, volunteer in enumerate(ordered, start=1):
        hours = volunteer.total_hours_contributed or 0
        rank = first_rank_for_hours.setdefault(hours, position)
        ranks.setdefault(volunteer.volunteer_id, rank)
    return ranks


def _find_event(events: Iterable[Event], event_id: Any) -> Event | None:
    if event_id in (None, ""):
        return None
    wanted = str(event_id)
    return next((e for e in events if str(e.event_id) == wanted), None)


def _clean_name_part(value: Any) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise CertificateDataError(f"Malformed volunteer name component: {value!r}")
    return value.strip()


def build_certificate_data(
    job: CertificateJob,
    config: BatchConfig,
    *,
    today: date | None = None,
) -> CertificateData:
    """Data for one job, stamped with a fresh id and issue date."""
    volunteer = job.recipient
    first = _clean_name_part(volunteer.first_name)
    last = _clean_name_part(volunteer.last_name)
    name = " ".join(part for part in (first, last) if part)
    if not name:
        raise CertificateDataError(
            f"Volunteer {volunteer.volunteer_id!r} has no name to print"
        )
    if not can_render(name):
        raise CertificateDataError(
            f"Volunteer {volunteer.volunteer_id!r} name uses characters no"
            " installed certificate font can print"
        )

    issued = format_date(today or date.today())
    event = job.event
    total_hours = volunteer.total_hours_contributed or 0
    if event and event.estimated_duration_hours:
        hours = event.estimated_duration_hours
    elif job.milestone_hours:
        hours = job.milestone_hours
    else:
        hours = total_hours

    event_name = DEFAULT_EVENT_NAME
    event_date = issued
    if event and event.event_name:
        event_name = event.event_name
    if event and event.event_date:
        event_date = format_event_date(event.event_date)
    location = config.location
    if not location and event and event.location_name:
        location = event.location_name
    location = location or config.default_location

    return CertificateData(
        volunteer_name=name,
        event_name=event_name,
        event_date=event_date,
        hours_contributed=hours,
        location=location,
        organizer_name=config.organizer_name,
        certificate_id=generate_certificate_id(),
        issue_date=issued,
        badge_type=badge_type_for(job.certificate_type, total_hours),
        total_hours=total_hours,
        rank=job.rank,
    )


Listener = Callable[[int, CertificateJob], None]


class CertificateBatch:
    """Owns the job list of one run and drives it job by job."""

    def __init__(self, jobs: Sequence[CertificateJob], config: BatchConfig) -> None:
        self._jobs = list(jobs)
        self.config = config
        self._listeners: list[Listener] = []
        self._processed = 0
        self._started = False

    @property
    def jobs(self) -> tuple[CertificateJob, ...]:
        return tuple(self._jobs)

    def __len__(self) -> int:
        return len(self._jobs)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, index: int) -> None:
        job = self._jobs[index]
        for listener in list(self._listeners):
            try:
                listener(index, job)
            except Exception:
                logger.exception(
                    "[CERT-BATCH] listener failed index=%s status=%s",
                    index,
                    job.status,
                )

    def _transition(
        self,
        index: int,
        status: str,
        *,
        result: CertificateResult | None = None,
        error: str | None = None,
    ) -> None:
        job = self._jobs[index]
        if status not in _TRANSITIONS.get(job.status, set()):
            raise InvalidJobTransition(
                f"Job {index} cannot move from {job.status} to {status}"
            )
        job.status = status
        job.result = result
        job.error = error
        self._notify(index)

    def progress(self, index: int = -1) -> BatchProgress:
        counts = self.summary()
        return BatchProgress(
            index=index,
            processed=self._processed,
            total=len(self._jobs),
            completed=counts[COMPLETED],
            errors=counts[ERROR],
        )

    @property
    def percent(self) -> int:
        return self.progress().percent

    def run(
        self,
        template: CertificateTemplate,
        *,
        branding: Branding | None = None,
        today: date | None = None,
    ) -> Iterator[BatchProgress]:
        """Generate every job in order, yielding progress after each one."""
        if self._started:
            raise CertificateError("Batch already ran; prepare a new batch to retry.")
        self._started = True
        logger.info(
            "[CERT-BATCH] start jobs=%s template=%s type=%s",
            len(self._jobs),
            template.id,
            self.config.certificate_type,
        )
        for index, job in enumerate(self._jobs):
            self._transition(index, PROCESSING)
            try:
                data = build_certificate_data(job, self.config, today=today)
                pdf = compose(template, data, branding=branding).to_bytes()
            except Exception as exc:
                logger.exception(
                    "[CERT-FAIL] volunteer=%s index=%s",
                    job.recipient.volunteer_id,
                    index,
                )
                self._transition(index, ERROR, error=f"Generation failed: {exc}")
            else:
                self._transition(
                    index,
                    COMPLETED,
                    result=CertificateResult(pdf=pdf, data=data, filename=job.filename),
                )
                logger.info(
                    "[CERT] volunteer=%s certificate_id=%s",
                    job.recipient.volunteer_id,
                    data.certificate_id,
                )
            self._processed += 1
            yield self.progress(index)
        counts = self.summary()
        logger.info(
            "[CERT-BATCH] done completed=%s errors=%s",
            counts[COMPLETED],
            counts[ERROR],
        )

    def run_all(
        self,
        template: CertificateTemplate,
        *,
        branding: Branding | None = None,
        today: date | None = None,
    ) -> BatchProgress:
        last = self.progress()
        for last in self.run(template, branding=branding, today=today):
            pass
        return last

    def summary(self) -> dict[str, int]:
        counts = {status: 0 for status in JOB_STATUSES}
        for job in self._jobs:
            counts[job.status] += 1
        return counts

    def completed_jobs(self) -> list[CertificateJob]:
        return [job for job in self._jobs if job.status == COMPLETED and job.result]

    def failed_jobs(self) -> list[CertificateJob]:
        return [job for job in self._jobs if job.status == ERROR]


def prepare(
    selection: Iterable[Volunteer],
    config: BatchConfig,
    *,
    events: Iterable[Event] = (),
    roster: Iterable[Volunteer] | None = None,
) -> CertificateBatch:
    """Validate the configuration and create one pending job per volunteer."""
    checked = config.validated()

    selected: list[Volunteer] = []
    seen: set[Any] = set()
    for volunteer in selection:
        if volunteer.volunteer_id in seen:
            continue
        seen.add(volunteer.volunteer_id)
        selected.append(volunteer)
    if not selected:
        raise CertificateConfigError("Select at least one volunteer.")

    event = None
    if checked.certificate_type == "participation":
        event = _find_event(list(events), checked.event_id)

    ranks = rank_volunteers(roster if roster is not None else selected)
    jobs = [
        CertificateJob(
            recipient=volunteer,
            certificate_type=checked.certificate_type,
            event=event,
            milestone_hours=checked.milestone_hours,
            rank=ranks.get(volunteer.volunteer_id),
        )
        for volunteer in selected
    ]
    return CertificateBatch(jobs, checked)
