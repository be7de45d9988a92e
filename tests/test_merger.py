"""
Test suite for src/enrichment/merger.py
"""

import threading

import pytest

from src.enrichment import merger
from src.enrichment.merger import EnrichmentRun
from src.models import MovieMetadata, Person, SimpleMovie

HEAT = SimpleMovie("Heat", "1995", "5")
COLLATERAL = SimpleMovie("Collateral", "2004", "4")
THIEF = SimpleMovie("Thief", "1981", "4")
INSIDER = SimpleMovie("The Insider", "1999", "3.5")
ALIEN = SimpleMovie("Alien", "1979", "4")
MISSING = SimpleMovie("Not On TMDB", "2020")
BROKEN = SimpleMovie("Broken", "2010")

METADATA = {
    "Heat": MovieMetadata(
        genres=["Crime", "Drama"],
        cast=[Person("Al Pacino", "/pacino.jpg"), Person("Robert De Niro"), Person("Val Kilmer")],
        directors=[Person("Michael Mann", "/mann.jpg")],
    ),
    "Collateral": MovieMetadata(
        genres=["Crime", "Thriller"],
        cast=[Person("Tom Cruise"), Person("Jamie Foxx")],
        directors=[Person("Michael Mann")],
    ),
    "Thief": MovieMetadata(
        genres=["Crime"],
        cast=[Person("James Caan")],
        directors=[Person("Michael Mann")],
    ),
    "The Insider": MovieMetadata(
        genres=["Drama"],
        cast=[Person("Al Pacino"), Person("Russell Crowe")],
        directors=[Person("Michael Mann")],
    ),
    "Alien": MovieMetadata(
        genres=["Horror", "Science Fiction"],
        cast=[Person("Sigourney Weaver", "/weaver.jpg")],
        directors=[Person("Ridley Scott")],
    ),
}


class FakeLookup:
    """Records calls and serves canned metadata."""

    def __init__(self):
        self.calls = []
        self._lock = threading.Lock()

    def __call__(self, title, year):
        with self._lock:
            self.calls.append(title)
        if title == "Broken":
            raise RuntimeError("connection reset")
        return METADATA.get(title)


@pytest.fixture
def lookup():
    return FakeLookup()


def counts(items):
    return {item.name: item.count for item in items}


class TestFolding:

    def test_final_leaderboards(self, lookup):
        films = [HEAT, COLLATERAL, THIEF, INSIDER, ALIEN]
        final = EnrichmentRun(films, lookup, batch_size=2, batch_delay=0).run(lambda s: None)

        assert final.finished
        assert final.processed_count == final.total_count == 5
        assert final.top_directors[0].name == "Michael Mann"
        assert final.top_directors[0].count == 4
        assert final.top_directors[0].image == "/mann.jpg"
        assert [m.title for m in final.top_directors[0].movies] == [
            "Heat", "Collateral", "Thief", "The Insider",
        ]
        assert counts(final.top_genres)["Crime"] == 3
        assert counts(final.top_actors)["Al Pacino"] == 2
        assert final.top_actors[0].name == "Al Pacino"

    def test_cast_is_capped_per_film(self, lookup):
        many = MovieMetadata(cast=[Person(f"Actor {i}") for i in range(6)])
        run = EnrichmentRun([HEAT], lambda t, y: many, batch_delay=0)
        final = run.run(lambda s: None)
        assert [a.name for a in final.top_actors] == ["Actor 0", "Actor 1", "Actor 2"]

    def test_top_n_limits(self):
        wide = MovieMetadata(
            genres=[f"Genre {i}" for i in range(12)],
            directors=[Person(f"Director {i}") for i in range(7)],
        )
        final = EnrichmentRun([HEAT], lambda t, y: wide, batch_delay=0).run(lambda s: None)
        assert len(final.top_genres) == merger.TOP_GENRES == 8
        assert len(final.top_directors) == merger.TOP_DIRECTORS == 5

    def test_equal_counts_keep_first_seen_order(self, lookup):
        final = EnrichmentRun([ALIEN, THIEF], lookup, batch_delay=0).run(lambda s: None)
        assert [d.name for d in final.top_directors] == ["Ridley Scott", "Michael Mann"]

    def test_failed_and_missing_lookups_do_not_stop_the_run(self, lookup):
        films = [BROKEN, HEAT, MISSING, ALIEN]
        final = EnrichmentRun(films, lookup, batch_size=2, batch_delay=0).run(lambda s: None)

        assert final.finished
        assert final.processed_count == 4
        assert set(lookup.calls) == {"Broken", "Heat", "Not On TMDB", "Alien"}
        assert counts(final.top_directors) == {"Michael Mann": 1, "Ridley Scott": 1}

    def test_empty_film_list(self, lookup):
        updates = []
        final = EnrichmentRun([], lookup).run(updates.append)
        assert updates == []
        assert final.finished
        assert final.total_count == 0
        assert lookup.calls == []

    def test_invalid_batch_size(self, lookup):
        with pytest.raises(ValueError):
            EnrichmentRun([HEAT], lookup, batch_size=0)


class TestStreaming:

    def test_monotonic_growth(self, lookup):
        films = [HEAT, ALIEN, COLLATERAL, THIEF, INSIDER]
        snapshots = list(EnrichmentRun(films, lookup, batch_size=2, batch_delay=0).stream())

        assert [s.processed_count for s in snapshots] == [2, 4, 5]
        assert [s.finished for s in snapshots] == [False, False, True]

        for previous, current in zip(snapshots, snapshots[1:]):
            for attr in ("top_actors", "top_directors", "top_genres"):
                before = counts(getattr(previous, attr))
                after = counts(getattr(current, attr))
                for name, count in before.items():
                    assert after.get(name, 0) >= count

    def test_snapshots_are_independent(self, lookup):
        snapshots = list(EnrichmentRun([HEAT, COLLATERAL], lookup, batch_size=1, batch_delay=0).stream())
        first_mann = next(d for d in snapshots[0].top_directors if d.name == "Michael Mann")
        assert first_mann.count == 1
        assert len(first_mann.movies) == 1

    def test_cancellation_after_first_batch(self, lookup):
        films = [HEAT, ALIEN, COLLATERAL, THIEF, INSIDER]
        cancelled = threading.Event()
        updates = []

        def on_update(snapshot):
            updates.append(snapshot)
            cancelled.set()

        run = EnrichmentRun(films, lookup, batch_size=2, batch_delay=0)
        final = run.run(on_update, should_cancel=cancelled.is_set)

        assert len(updates) == 1
        assert sorted(lookup.calls) == ["Alien", "Heat"]
        assert final is updates[0]
        assert final.processed_count == 2
        assert not final.finished

    def test_cancelled_before_start(self, lookup):
        snapshots = list(EnrichmentRun([HEAT], lookup).stream(should_cancel=lambda: True))
        assert snapshots == []
        assert lookup.calls == []

    def test_delay_between_batches_only(self, lookup, monkeypatch):
        sleeps = []
        monkeypatch.setattr(merger.time, "sleep", sleeps.append)

        films = [HEAT, ALIEN, COLLATERAL, THIEF, INSIDER]
        list(EnrichmentRun(films, lookup, batch_size=2, batch_delay=1.5).stream())
        assert sleeps == [1.5, 1.5]

    def test_lookups_in_a_batch_run_concurrently(self):
        barrier = threading.Barrier(3, timeout=5)

        def waiting_lookup(title, year):
            barrier.wait()
            return MovieMetadata(genres=["Drama"])

        films = [HEAT, ALIEN, THIEF]
        final = EnrichmentRun(films, waiting_lookup, batch_size=3, batch_delay=0).run(lambda s: None)
        assert counts(final.top_genres) == {"Drama": 3}

    def test_runs_do_not_share_state(self, lookup):
        first = EnrichmentRun([HEAT], lookup, batch_delay=0).run(lambda s: None)
        second = EnrichmentRun([ALIEN], lookup, batch_delay=0).run(lambda s: None)
        assert counts(first.top_directors) == {"Michael Mann": 1}
        assert counts(second.top_directors) == {"Ridley Scott": 1}

    def test_cancel_skips_pending_pause(self, lookup, monkeypatch):
        sleeps = []
        monkeypatch.setattr(merger.time, "sleep", sleeps.append)
        cancelled = threading.Event()

        def on_update(snapshot):
            cancelled.set()

        films = [HEAT, ALIEN, COLLATERAL, THIEF]
        final = EnrichmentRun(films, lookup, batch_size=2, batch_delay=3.0).run(
            on_update, should_cancel=cancelled.is_set
        )

        assert sleeps == []
        assert final.processed_count == 2
        assert not final.finished
