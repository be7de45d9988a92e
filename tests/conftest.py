"""Shared fixtures for the test suite."""

import os
import tempfile
from datetime import date
from pathlib import Path

import pytest

# Keep the web app's database out of the working tree
os.environ.setdefault("DATABASE_PATH", str(Path(tempfile.mkdtemp()) / "wrapped.db"))

DIARY_HEADERS = ["Date", "Name", "Year", "Letterboxd URI", "Rating", "Rewatch", "Tags", "Watched Date"]
RATINGS_HEADERS = ["Date", "Name", "Year", "Letterboxd URI", "Rating"]

TODAY = date(2024, 12, 31)


def diary_row(watched, name, year="2000", rating="", rewatch="", uri=None):
    """A diary record as the CSV parser would produce it."""
    slug = name.lower().replace(" ", "-")
    return {
        "Date": watched,
        "Name": name,
        "Year": year,
        "Letterboxd URI": uri or f"https://boxd.it/{slug}",
        "Rating": rating,
        "Rewatch": rewatch,
        "Tags": "",
        "Watched Date": watched,
    }


def rating_row(rated, name, rating, year="2000"):
    slug = name.lower().replace(" ", "-")
    return {
        "Date": rated,
        "Name": name,
        "Year": year,
        "Letterboxd URI": f"https://boxd.it/{slug}",
        "Rating": rating,
    }


def to_csv(headers, rows):
    """Render records as Letterboxd-style CSV text."""
    lines = [",".join(headers)]
    for row in rows:
        cells = []
        for header in headers:
            value = row.get(header, "")
            cells.append(f'"{value}"' if "," in value else value)
        lines.append(",".join(cells))
    return "\n".join(lines) + "\n"


@pytest.fixture
def sample_diary():
    return [
        diary_row("2023-12-30", "Past Lives", "2023", "4.5"),
        diary_row("2024-01-01", "Heat", "1995", "5"),
        diary_row("2024-01-02", "Alien", "1979", "4"),
        diary_row("2024-01-02", "Aliens", "1986", "3.5"),
        diary_row("2024-01-03", "Heat", "1995", "5", rewatch="Yes"),
        diary_row("2024-02-14", "Perfect Days", "2023", ""),
        diary_row("2024-03-09", "Dune: Part Two", "2024", "4"),
        diary_row("2024-07-20", "Nosferatu", "1922", "3"),
    ]


@pytest.fixture
def sample_diary_csv(sample_diary):
    return to_csv(DIARY_HEADERS, sample_diary)
