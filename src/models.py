"""Data models for Letterboxd Wrapped."""

from dataclasses import asdict, dataclass, field
from typing import Optional


@dataclass(frozen=True)
class SimpleMovie:
    """Lightweight reference to a film used inside every bucket."""

    title: str
    year: str
    rating: Optional[str] = None


@dataclass(frozen=True)
class DailyEntryDetail:
    """One diary entry shown when a calendar day is opened."""

    name: str
    year: str
    rating: str
    uri: str


@dataclass(frozen=True)
class DistributionEntry:
    """A single bucket of a distribution (month, weekday, decade, ...)."""

    label: str
    count: int
    movies: list[SimpleMovie] = field(default_factory=list)

    @classmethod
    def from_movies(cls, label: str, movies: list[SimpleMovie]) -> "DistributionEntry":
        return cls(label=label, count=len(movies), movies=list(movies))


@dataclass(frozen=True)
class BusiestDay:
    date: str
    count: int


@dataclass(frozen=True)
class RatingRecord:
    """A row of the ratings log."""

    date: str
    name: str
    year: str
    uri: str
    rating: str


@dataclass(frozen=True)
class Stats:
    """Statistics snapshot for a single year of viewing."""

    year: int
    total_watched: int
    total_runtime_hours: int  # Estimate, see MINUTES_PER_FILM
    top_month: str
    top_day_of_week: str
    average_rating: float
    rating_distribution: list[DistributionEntry]
    monthly_distribution: list[DistributionEntry]
    day_of_week_distribution: list[DistributionEntry]
    decade_distribution: list[DistributionEntry]
    daily_activity: list[DistributionEntry]
    daily_entries: dict[str, list[DailyEntryDetail]]
    longest_streak: int
    busiest_day: BusiestDay
    first_film: SimpleMovie
    last_film: SimpleMovie
    rewatch_count: int
    rewatched_films: list[SimpleMovie]
    unique_films_count: int
    movies_per_week_avg: float
    top_rated_films: list[RatingRecord]
    all_films: list[SimpleMovie]

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "Stats":
        """Rebuild a snapshot stored with to_dict()."""

        def movies(items: list[dict]) -> list[SimpleMovie]:
            return [SimpleMovie(**m) for m in items]

        def distribution(items: list[dict]) -> list[DistributionEntry]:
            return [
                DistributionEntry(label=e["label"], count=e["count"], movies=movies(e["movies"]))
                for e in items
            ]

        return cls(
            **{
                **data,
                "rating_distribution": distribution(data["rating_distribution"]),
                "monthly_distribution": distribution(data["monthly_distribution"]),
                "day_of_week_distribution": distribution(data["day_of_week_distribution"]),
                "decade_distribution": distribution(data["decade_distribution"]),
                "daily_activity": distribution(data["daily_activity"]),
                "daily_entries": {
                    day: [DailyEntryDetail(**d) for d in details]
                    for day, details in data["daily_entries"].items()
                },
                "busiest_day": BusiestDay(**data["busiest_day"]),
                "first_film": SimpleMovie(**data["first_film"]),
                "last_film": SimpleMovie(**data["last_film"]),
                "rewatched_films": movies(data["rewatched_films"]),
                "top_rated_films": [RatingRecord(**r) for r in data["top_rated_films"]],
                "all_films": movies(data["all_films"]),
            }
        )


@dataclass(frozen=True)
class Person:
    name: str
    image: Optional[str] = None


@dataclass(frozen=True)
class MovieMetadata:
    """Metadata returned by a lookup for a single film."""

    genres: list[str] = field(default_factory=list)
    cast: list[Person] = field(default_factory=list)  # Billing order
    directors: list[Person] = field(default_factory=list)


@dataclass(frozen=True)
class EnrichedItem:
    """A leaderboard row: an actor, director or genre."""

    name: str
    count: int
    image: Optional[str] = None
    movies: list[SimpleMovie] = field(default_factory=list)


@dataclass(frozen=True)
class EnrichmentSnapshot:
    """Leaderboards as they stood after one enrichment batch."""

    top_actors: list[EnrichedItem]
    top_directors: list[EnrichedItem]
    top_genres: list[EnrichedItem]
    processed_count: int
    total_count: int
    finished: bool = False

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)


@dataclass(frozen=True)
class Persona:
    title: str
    description: str
