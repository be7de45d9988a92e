"""Lenient CSV parsing for Letterboxd exports."""

import logging

logger = logging.getLogger(__name__)

BOM = "\ufeff"


def split_line(line: str) -> list[str]:
    """
    Split one CSV line into cleaned cell values.

    A double quote toggles quoted mode and commas only separate cells outside
    quotes. Each value is trimmed, loses one layer of wrapping quotes and is
    trimmed again.
    """
    values = []
    in_quotes = False
    current = []

    for char in line:
        if char == '"':
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            values.append("".join(current))
            current = []
        else:
            current.append(char)
    values.append("".join(current))

    return [_clean(value) for value in values]


def _clean(value: str) -> str:
    value = value.strip()
    if value.startswith('"'):
        value = value[1:]
    if value.endswith('"'):
        value = value[:-1]
    return value.strip()


def parse_csv(text: str) -> list[dict[str, str]]:
    """
    Parse CSV text into a list of records keyed by header name.

    Rows with a different number of cells than the header are dropped.
    Never raises; unusable input yields an empty list.
    """
    if text.startswith(BOM):
        text = text[len(BOM):]

    normalized = text.replace("\r\n", "\n").replace("\r", "\n")
    lines = normalized.strip().split("\n")
    if len(lines) < 2:
        return []

    headers = split_line(lines[0])
    records = []
    dropped = 0

    for line in lines[1:]:
        if not line.strip():
            continue

        values = split_line(line)
        if len(values) != len(headers):
            dropped += 1
            continue

        records.append(dict(zip(headers, values)))

    if dropped:
        logger.debug(f"Dropped {dropped} malformed CSV rows")

    return records
