"""Read-only volunteer and event records as returned by the portal API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping


def _coerce_hours(value: Any) -> float | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        hours = float(value)
    except (TypeError, ValueError):
        return None
    return hours if hours >= 0 else None


@dataclass(frozen=True)
class Volunteer:
    volunteer_id: int | str
    first_name: str
    last_name: str
    email: str = ""
    total_hours_contributed: float = 0.0

    @property
    def full_name(self) -> str:
        parts = [str(p).strip() for p in (self.first_name, self.last_name) if p]
        return " ".join(p for p in parts if p)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Volunteer":
        return cls(
            volunteer_id=payload.get("volunteer_id", payload.get("id")),
            first_name=payload.get("first_name"),
            last_name=payload.get("last_name"),
            email=payload.get("email") or "",
            total_hours_contributed=(
                _coerce_hours(payload.get("total_hours_contributed")) or 0.0
            ),
        )


@dataclass(frozen=True)
class Event:
    event_id: int | str
    event_name: str
    event_date: str = ""
    location_name: str = ""
    estimated_duration_hours: float | None = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Event":
        return cls(
            event_id=payload.get("event_id", payload.get("id")),
            event_name=(payload.get("event_name") or "").strip(),
            event_date=str(payload.get("event_date") or ""),
            location_name=payload.get("location_name") or "",
            estimated_duration_hours=_coerce_hours(
                payload.get("estimated_duration_hours")
            ),
        )
