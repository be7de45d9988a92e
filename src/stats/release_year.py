"""Release year recovery for rows with renamed or reordered columns."""

import re
from typing import Callable, Optional

FOUR_DIGITS = re.compile(r"(?<![0-9])([0-9]{4})(?![0-9])")
POSITIONAL_YEAR_INDEX = 2  # Date, Name, Year, ...


def _from_named_field(record: dict[str, str]) -> Optional[str]:
    return record.get("Year") or None


def _from_case_insensitive_key(record: dict[str, str]) -> Optional[str]:
    for key, value in record.items():
        if key.strip().lower() == "year" and value:
            return value
    return None


def _from_third_column(record: dict[str, str]) -> Optional[str]:
    values = list(record.values())
    if len(values) > POSITIONAL_YEAR_INDEX:
        return values[POSITIONAL_YEAR_INDEX] or None
    return None


# Tried in order; the first strategy returning a value wins.
YEAR_RECOVERY_STRATEGIES: tuple[Callable[[dict[str, str]], Optional[str]], ...] = (
    _from_named_field,
    _from_case_insensitive_key,
    _from_third_column,
)


def extract_year(value: Optional[str]) -> str:
    """First run of exactly four digits in value, or an empty string."""
    if not value:
        return ""
    match = FOUR_DIGITS.search(str(value))
    return match.group(1) if match else ""


def recover_release_year(record: dict[str, str]) -> str:
    """
    Recover a release year such as "1999" from a diary or ratings record.

    Handles values like "1999 (re-release)". Returns "" if nothing usable
    is found.
    """
    for strategy in YEAR_RECOVERY_STRATEGIES:
        raw = strategy(record)
        if raw:
            return extract_year(raw)
    return ""
