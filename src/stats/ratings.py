"""Ratings analysis: averages, distribution and top-rated selection."""

import math
from typing import Optional

from src.models import DistributionEntry, RatingRecord, SimpleMovie
from src.stats.release_year import recover_release_year
from src.stats.year import parse_date, watched_date_of

MAX_RATING = 5.0
TOP_RATED_LIMIT = 5


def parse_rating(value: Optional[str]) -> Optional[float]:
    """Parse a star rating. Non-numeric values give None, never 0."""
    if not value:
        return None
    try:
        rating = float(value)
    except ValueError:
        return None
    if not math.isfinite(rating):
        return None
    return rating


def ratings_from_log(ratings: list[dict[str, str]]) -> list[RatingRecord]:
    return [
        RatingRecord(
            date=r.get("Date", ""),
            name=r.get("Name", ""),
            year=recover_release_year(r),
            uri=r.get("Letterboxd URI", ""),
            rating=r.get("Rating", ""),
        )
        for r in ratings
    ]


def ratings_from_diary(diary: list[dict[str, str]]) -> list[RatingRecord]:
    """Build an equivalent ratings log from diary rows that carry a rating."""
    records = []
    for row in diary:
        if not row.get("Rating"):
            continue
        watched = watched_date_of(row)
        records.append(
            RatingRecord(
                date=watched.isoformat() if watched else "",
                name=row.get("Name", ""),
                year=recover_release_year(row),
                uri=row.get("Letterboxd URI", ""),
                rating=row["Rating"],
            )
        )
    return records


def filter_ratings(records: list[RatingRecord], year: int, strict: bool = False) -> list[RatingRecord]:
    """Ratings made in the target year (and released that year, if strict)."""
    kept = []
    for record in records:
        rated_on = parse_date(record.date)
        if rated_on is None or rated_on.year != year:
            continue
        if strict and record.year != str(year):
            continue
        kept.append(record)
    return kept


def average_rating(records: list[RatingRecord]) -> float:
    values = [v for v in (parse_rating(r.rating) for r in records) if v is not None]
    if not values:
        return 0
    return round(sum(values) / len(values), 2)


def rating_distribution(records: list[RatingRecord]) -> list[DistributionEntry]:
    """Buckets keyed by the rating as written, ordered by numeric value."""
    buckets: dict[str, list[SimpleMovie]] = {}
    values: dict[str, float] = {}

    for record in records:
        value = parse_rating(record.rating)
        if value is None:
            continue
        buckets.setdefault(record.rating, []).append(
            SimpleMovie(title=record.name, year=record.year, rating=record.rating)
        )
        values[record.rating] = value

    return [
        DistributionEntry.from_movies(label, buckets[label])
        for label in sorted(buckets, key=lambda label: values[label])
    ]


def top_rated(records: list[RatingRecord], limit: int = TOP_RATED_LIMIT) -> list[RatingRecord]:
    """
    Select the films to feature as the year's favourites.

    When more than ``limit`` films got the maximum rating, all of them are
    returned sorted by title. Otherwise the ``limit`` highest rated films,
    keeping log order among equal ratings.
    """
    rated = [(r, parse_rating(r.rating)) for r in records]
    rated = [(r, v) for r, v in rated if v is not None]

    perfect = [r for r, v in rated if v == MAX_RATING]
    if len(perfect) > limit:
        return sorted(perfect, key=lambda r: r.name.casefold())

    ranked = sorted(rated, key=lambda item: item[1], reverse=True)
    return [r for r, _ in ranked[:limit]]
