"""Target year selection."""

from datetime import date
from typing import Optional

WATCHED_DATE_COLUMNS = ("Watched Date", "Date")


def parse_date(value: Optional[str]) -> Optional[date]:
    """Parse a YYYY-MM-DD cell. Returns None for anything else."""
    if not value:
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def watched_date_of(record: dict[str, str]) -> Optional[date]:
    """Watched date of a diary record, falling back to the logged date."""
    for column in WATCHED_DATE_COLUMNS:
        value = record.get(column)
        if value:
            return parse_date(value)
    return None


def select_year(diary: list[dict[str, str]], explicit_year: Optional[int] = None) -> Optional[int]:
    """
    Pick the year to analyse.

    An explicit year is returned unchanged, whether or not the diary has
    entries for it. Otherwise the year of the most recent parseable watched
    date is used; None when no entry has one.
    """
    if explicit_year is not None:
        return explicit_year

    dates = [d for d in (watched_date_of(r) for r in diary) if d is not None]
    if not dates:
        return None
    return max(dates).year


def available_years(diary: list[dict[str, str]]) -> list[int]:
    """Distinct years with at least one parseable watched date, newest first."""
    years = {d.year for d in (watched_date_of(r) for r in diary) if d is not None}
    return sorted(years, reverse=True)
