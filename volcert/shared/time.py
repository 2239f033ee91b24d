from datetime import date, datetime


def format_date(value: date | datetime | None) -> str:
    """Render ``January 5, 2024``; no timezone conversion is applied."""
    if not value:
        return ""
    return f"{value.strftime('%B')} {value.day}, {value.year}"


def format_event_date(value: str | date | None) -> str:
    """Format ISO event dates; other strings are shown as given."""
    if not value:
        return ""
    if isinstance(value, (date, datetime)):
        return format_date(value)
    text = str(value).strip()
    try:
        parsed = date.fromisoformat(text[:10])
    except ValueError:
        return text
    return format_date(parsed)


def format_hours(value: float | int | None) -> str:
    if value is None:
        return "0"
    total = float(value)
    if abs(total - round(total)) < 0.01:
        return str(int(round(total)))
    return f"{total:.1f}".rstrip("0").rstrip(".")
