"""Year-in-review statistics from a Letterboxd diary."""

import logging
import math
from datetime import date, timedelta
from typing import Optional

from src.models import (
    BusiestDay,
    DailyEntryDetail,
    DistributionEntry,
    SimpleMovie,
    Stats,
)
from src.stats.ratings import (
    average_rating,
    filter_ratings,
    rating_distribution,
    ratings_from_diary,
    ratings_from_log,
    top_rated,
)
from src.stats.release_year import recover_release_year
from src.stats.year import watched_date_of

logger = logging.getLogger(__name__)

# Rough average feature length. There is no runtime in the export, so total
# hours are an estimate.
MINUTES_PER_FILM = 105

MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
WEEKDAYS = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]

EARLIEST_RELEASE_YEAR = 1881


def _weekday_name(day: date) -> str:
    # date.weekday() is Monday=0; the week here starts on Sunday
    return WEEKDAYS[(day.weekday() + 1) % 7]


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _decade_label(release_year: str, today: date) -> Optional[str]:
    if not release_year:
        return None
    year = int(release_year)
    if year < EARLIEST_RELEASE_YEAR or year > today.year + 2:
        return None
    return f"{year // 10 * 10}s"


def longest_streak(days: list[date]) -> int:
    """Longest run of calendar-consecutive days among distinct watch days."""
    longest = 0
    current = 0
    previous: Optional[date] = None

    for day in sorted(set(days)):
        if previous is not None and day - previous == timedelta(days=1):
            current += 1
        else:
            current = 1
        longest = max(longest, current)
        previous = day

    return longest


def busiest_day(date_counts: dict[str, int]) -> BusiestDay:
    """Date with the most entries. Ties go to the earliest date."""
    if not date_counts:
        return BusiestDay(date="", count=0)
    best = min(date_counts, key=lambda d: (-date_counts[d], d))
    return BusiestDay(date=best, count=date_counts[best])


def _top_label(entries: list[DistributionEntry]) -> str:
    """Label with the highest count; ties go to the first in display order."""
    if not entries:
        return "None"
    return max(entries, key=lambda e: e.count).label


def compute_stats(
    diary: list[dict[str, str]],
    ratings: list[dict[str, str]],
    year: int,
    strict: bool = False,
    minutes_per_film: int = MINUTES_PER_FILM,
    today: Optional[date] = None,
) -> Optional[Stats]:
    """
    Aggregate a diary into the statistics for ``year``.

    Args:
        diary: Diary records (one per viewing, rewatches included)
        ratings: Ratings records; when empty, ratings come from the diary
        year: Year to analyse
        strict: Only count films released in ``year``
        minutes_per_film: Runtime assumed for every film
        today: Reference date for the release year sanity check

    Returns:
        A Stats snapshot, or None when no entry remains after filtering.
    """
    today = today or date.today()

    # Keep only entries in the target year with a parseable date
    entries = []
    for row in diary:
        watched = watched_date_of(row)
        if watched is None or watched.year != year:
            continue
        release_year = recover_release_year(row)
        if strict and release_year != str(year):
            continue
        entries.append((watched, release_year, row))

    if not entries:
        logger.info(f"No diary entries for {year}{' (strict)' if strict else ''}")
        return None

    month_movies: dict[str, list[SimpleMovie]] = {m: [] for m in MONTHS}
    weekday_movies: dict[str, list[SimpleMovie]] = {d: [] for d in WEEKDAYS}
    date_movies: dict[str, list[SimpleMovie]] = {}
    decade_movies: dict[str, list[SimpleMovie]] = {}
    daily_entries: dict[str, list[DailyEntryDetail]] = {}
    all_films: list[SimpleMovie] = []
    rewatched: list[SimpleMovie] = []

    for watched, release_year, row in entries:
        title = row.get("Name", "")
        rating = row.get("Rating", "")
        movie = SimpleMovie(title=title, year=release_year, rating=rating or None)
        date_key = watched.isoformat()

        all_films.append(movie)
        month_movies[MONTHS[watched.month - 1]].append(movie)
        weekday_movies[_weekday_name(watched)].append(movie)
        date_movies.setdefault(date_key, []).append(movie)
        daily_entries.setdefault(date_key, []).append(
            DailyEntryDetail(
                name=title,
                year=release_year,
                rating=rating,
                uri=row.get("Letterboxd URI", ""),
            )
        )

        decade = _decade_label(release_year, today)
        if decade:
            decade_movies.setdefault(decade, []).append(movie)

        if row.get("Rewatch") == "Yes":
            rewatched.append(movie)

    monthly = [DistributionEntry.from_movies(m, month_movies[m]) for m in MONTHS]
    weekdays = [DistributionEntry.from_movies(d, weekday_movies[d]) for d in WEEKDAYS]
    decades = [
        DistributionEntry.from_movies(label, decade_movies[label])
        for label in sorted(decade_movies, key=lambda label: int(label[:-1]))
    ]
    daily_activity = [DistributionEntry.from_movies(d, date_movies[d]) for d in sorted(date_movies)]
    date_counts = {d: len(movies) for d, movies in date_movies.items()}

    # Sort by watched date only; same-day entries keep diary order
    chronological = sorted(entries, key=lambda entry: entry[0])
    _, first_year, first_row = chronological[0]
    _, last_year, last_row = chronological[-1]

    if ratings:
        rating_records = ratings_from_log(ratings)
    else:
        rating_records = ratings_from_diary(diary)
    year_ratings = filter_ratings(rating_records, year, strict)

    total = len(entries)
    rewatch_count = len(rewatched)

    stats = Stats(
        year=year,
        total_watched=total,
        total_runtime_hours=_round_half_up(total * minutes_per_film / 60),
        top_month=_top_label(monthly),
        top_day_of_week=_top_label(weekdays),
        average_rating=average_rating(year_ratings),
        rating_distribution=rating_distribution(year_ratings),
        monthly_distribution=monthly,
        day_of_week_distribution=weekdays,
        decade_distribution=decades,
        daily_activity=daily_activity,
        daily_entries=daily_entries,
        longest_streak=longest_streak([e[0] for e in entries]),
        busiest_day=busiest_day(date_counts),
        first_film=SimpleMovie(
            title=first_row.get("Name", ""), year=first_year, rating=first_row.get("Rating") or None
        ),
        last_film=SimpleMovie(
            title=last_row.get("Name", ""), year=last_year, rating=last_row.get("Rating") or None
        ),
        rewatch_count=rewatch_count,
        rewatched_films=rewatched,
        unique_films_count=total - rewatch_count,
        movies_per_week_avg=round(total / 52, 1),
        top_rated_films=top_rated(year_ratings),
        all_films=all_films,
    )

    logger.info(
        f"Computed {year} stats: {total} films, {len(year_ratings)} ratings, "
        f"longest streak {stats.longest_streak} days"
    )
    return stats
