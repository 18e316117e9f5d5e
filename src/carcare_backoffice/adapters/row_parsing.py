"""Helpers for converting Supabase rows to domain values."""

from datetime import date, datetime
from uuid import UUID


def parse_datetime(value: object) -> datetime | None:
    """Parse an ISO timestamp column."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        return datetime.fromisoformat(value)
    return None


def parse_date(value: object) -> date | None:
    """Parse an ISO date column."""
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        return date.fromisoformat(value[:10])
    return None


def parse_uuid(value: object) -> UUID | None:
    """Parse an optional uuid column."""
    if isinstance(value, UUID):
        return value
    if isinstance(value, str) and value:
        return UUID(value)
    return None


def parse_float(value: object, default: float | None = 0.0) -> float | None:
    """Parse a numeric column that PostgREST may return as a string."""
    if value is None or value == "":
        return default
    return float(value)


def to_json_value(value: object) -> object:
    """Convert a domain value into something PostgREST accepts."""
    if isinstance(value, datetime | date):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    return value
