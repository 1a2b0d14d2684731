from datetime import date, datetime, time, timezone


def utc_now_naive() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def utc_today() -> date:
    """Server date used for the past-date admission rule."""
    return datetime.now(timezone.utc).date()


def format_time(value: time) -> str:
    return value.strftime("%H:%M")
