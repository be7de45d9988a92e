"""Background enrichment of a year's films into actor, director and genre leaderboards."""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Iterator, Optional

from src.models import EnrichedItem, EnrichmentSnapshot, MovieMetadata, SimpleMovie

logger = logging.getLogger(__name__)

MetadataLookup = Callable[[str, str], Optional[MovieMetadata]]

BATCH_SIZE = 5
BATCH_DELAY = 1.0  # seconds between batches, keeps us under TMDB rate limits
CAST_PER_FILM = 3
TOP_ACTORS = 5
TOP_DIRECTORS = 5
TOP_GENRES = 8


@dataclass
class _Tally:
    count: int = 0
    image: Optional[str] = None
    movies: list[SimpleMovie] = field(default_factory=list)


class Leaderboard:
    """Running counts for one kind of item (actors, directors or genres)."""

    def __init__(self) -> None:
        self._tallies: dict[str, _Tally] = {}

    def add(self, name: str, movie: SimpleMovie, image: Optional[str] = None) -> None:
        tally = self._tallies.setdefault(name, _Tally())
        tally.count += 1
        tally.movies.append(movie)
        if tally.image is None and image:
            tally.image = image

    def top(self, limit: int) -> list[EnrichedItem]:
        """Highest counts first; equal counts keep first-seen order."""
        ranked = sorted(self._tallies.items(), key=lambda item: item[1].count, reverse=True)
        return [
            EnrichedItem(name=name, count=t.count, image=t.image, movies=list(t.movies))
            for name, t in ranked[:limit]
        ]

    def __len__(self) -> int:
        return len(self._tallies)


class EnrichmentRun:
    """
    One enrichment pass over a film list.

    The run owns its leaderboards; start a new run for every Stats
    snapshot. Films are looked up in batches: lookups inside a batch run
    concurrently, batches run one after another with ``batch_delay``
    seconds in between. A snapshot is produced after every batch.
    """

    def __init__(
        self,
        films: list[SimpleMovie],
        lookup: MetadataLookup,
        batch_size: int = BATCH_SIZE,
        batch_delay: float = BATCH_DELAY,
        max_workers: Optional[int] = None,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")

        self.films = list(films)
        self.lookup = lookup
        self.batch_size = batch_size
        self.batch_delay = batch_delay
        self.max_workers = max_workers or batch_size

        self.actors = Leaderboard()
        self.directors = Leaderboard()
        self.genres = Leaderboard()
        self.processed = 0

    @property
    def total(self) -> int:
        return len(self.films)

    def batches(self) -> Iterator[list[SimpleMovie]]:
        for start in range(0, len(self.films), self.batch_size):
            yield self.films[start:start + self.batch_size]

    def snapshot(self, finished: bool = False) -> EnrichmentSnapshot:
        return EnrichmentSnapshot(
            top_actors=self.actors.top(TOP_ACTORS),
            top_directors=self.directors.top(TOP_DIRECTORS),
            top_genres=self.genres.top(TOP_GENRES),
            processed_count=self.processed,
            total_count=self.total,
            finished=finished,
        )

    def _safe_lookup(self, movie: SimpleMovie) -> Optional[MovieMetadata]:
        try:
            return self.lookup(movie.title, movie.year)
        except Exception as e:
            logger.warning(f"Metadata lookup failed for '{movie.title}' ({movie.year}): {e}")
            return None

    def _fold(self, movie: SimpleMovie, metadata: Optional[MovieMetadata]) -> None:
        self.processed += 1
        if metadata is None:
            return

        for person in metadata.cast[:CAST_PER_FILM]:
            self.actors.add(person.name, movie, person.image)
        for person in metadata.directors:
            self.directors.add(person.name, movie, person.image)
        for genre in metadata.genres:
            self.genres.add(genre, movie)

    def stream(self, should_cancel: Optional[Callable[[], bool]] = None) -> Iterator[EnrichmentSnapshot]:
        """
        Yield a fresh snapshot after each batch.

        ``should_cancel`` is checked before every batch and before each pause
        between batches. Lookups already in flight finish, but no further
        batch starts once it returns True.
        """
        batches = list(self.batches())
        logger.info(f"Enriching {self.total} films in {len(batches)} batches")

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            for index, batch in enumerate(batches):
                if should_cancel and should_cancel():
                    logger.info(f"Enrichment cancelled after {self.processed}/{self.total} films")
                    return

                results = list(executor.map(self._safe_lookup, batch))
                for movie, metadata in zip(batch, results):
                    self._fold(movie, metadata)

                is_last = index == len(batches) - 1
                yield self.snapshot(finished=is_last)
                if is_last:
                    break

                if should_cancel and should_cancel():
                    logger.info(f"Enrichment cancelled after {self.processed}/{self.total} films")
                    return
                if self.batch_delay > 0:
                    time.sleep(self.batch_delay)

        logger.info(
            f"Enrichment complete: {len(self.actors)} actors, "
            f"{len(self.directors)} directors, {len(self.genres)} genres"
        )

    def run(
        self,
        on_update: Callable[[EnrichmentSnapshot], None],
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> EnrichmentSnapshot:
        """Callback form of stream(). Returns the last snapshot produced."""
        last = self.snapshot(finished=not self.films)
        for snapshot in self.stream(should_cancel):
            on_update(snapshot)
            last = snapshot
        return last
