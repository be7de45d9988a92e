"""TMDB API client for cast, crew, genre and poster lookups."""

import logging
import threading
import time
from typing import Optional

import requests

from src.models import MovieMetadata, Person

logger = logging.getLogger(__name__)


class TMDBClient:
    """Client for The Movie Database API."""

    BASE_URL = "https://api.themoviedb.org/3"
    POSTER_BASE_URL = "https://image.tmdb.org/t/p/w500"
    PROFILE_BASE_URL = "https://image.tmdb.org/t/p/w185"
    RATE_LIMIT_DELAY = 0.25  # 4 requests per second max
    CAST_LIMIT = 5

    def __init__(self, api_key: str, session: Optional[requests.Session] = None):
        self.api_key = api_key
        self.session = session or requests.Session()
        self._last_request_time = 0.0
        self._lock = threading.Lock()

    def _rate_limit(self) -> None:
        """Ensure we don't exceed rate limits, across worker threads too."""
        with self._lock:
            elapsed = time.time() - self._last_request_time
            if elapsed < self.RATE_LIMIT_DELAY:
                time.sleep(self.RATE_LIMIT_DELAY - elapsed)
            self._last_request_time = time.time()

    def _get(self, endpoint: str, params: Optional[dict] = None) -> Optional[dict]:
        """Make a GET request to TMDB API."""
        self._rate_limit()

        url = f"{self.BASE_URL}{endpoint}"
        request_params = {"api_key": self.api_key}
        if params:
            request_params.update(params)

        try:
            response = self.session.get(url, params=request_params, timeout=10)
            response.raise_for_status()
            return response.json()
        except requests.RequestException as e:
            logger.error(f"TMDB API error for {endpoint}: {e}")
            return None
        except ValueError as e:
            logger.error(f"TMDB returned invalid JSON for {endpoint}: {e}")
            return None

    def get_movie_details(self, tmdb_id: int) -> Optional[dict]:
        """Get movie details including credits."""
        return self._get(f"/movie/{tmdb_id}", {"append_to_response": "credits"})

    def search_movie(self, title: str, year: Optional[int] = None) -> list[dict]:
        """Search for a movie by title and optionally year."""
        params = {"query": title}
        if year:
            params["year"] = str(year)

        data = self._get("/search/movie", params)
        if data:
            return data.get("results", [])
        return []

    def find_movie(self, title: str, year: str = "") -> Optional[dict]:
        """Search result that best matches a diary title and release year."""
        if not title:
            return None

        year_int = int(year) if year.isdigit() else None
        results = self.search_movie(title, year_int)
        return self._find_best_match(results, title, year_int)

    def lookup_metadata(self, title: str, year: str = "") -> Optional[MovieMetadata]:
        """
        Look up genres, top-billed cast and directors for a film.

        Returns None when the film can't be found or TMDB is unavailable.
        """
        match = self.find_movie(title, year)
        if not match or not match.get("id"):
            logger.debug(f"Could not find '{title}' ({year}) on TMDB")
            return None

        details = self.get_movie_details(match["id"])
        if not details:
            return None

        credits = details.get("credits") or {}
        cast = sorted(credits.get("cast") or [], key=lambda p: p.get("order", 0))

        return MovieMetadata(
            genres=[g["name"] for g in details.get("genres") or [] if g.get("name")],
            cast=[self._person(p) for p in cast[: self.CAST_LIMIT] if p.get("name")],
            directors=[
                self._person(p)
                for p in credits.get("crew") or []
                if p.get("job") == "Director" and p.get("name")
            ],
        )

    def get_poster_url(self, title: str, year: str = "") -> Optional[str]:
        """Poster image URL of the first search hit, if it has one."""
        year_int = int(year) if year.isdigit() else None
        results = self.search_movie(title, year_int)
        if results and results[0].get("poster_path"):
            return f"{self.POSTER_BASE_URL}{results[0]['poster_path']}"
        return None

    def _person(self, credit: dict) -> Person:
        image = None
        if credit.get("profile_path"):
            image = f"{self.PROFILE_BASE_URL}{credit['profile_path']}"
        return Person(name=credit["name"], image=image)

    def _find_best_match(
        self, results: list[dict], title: str, year: Optional[int]
    ) -> Optional[dict]:
        """Find the best matching result from search results."""
        if not results:
            return None

        title_lower = title.lower()

        def same_title(result: dict) -> bool:
            return title_lower in (
                (result.get("title") or "").lower(),
                (result.get("original_title") or "").lower(),
            )

        # Exact title match with year
        if year:
            for result in results:
                if same_title(result) and self._release_year(result) == year:
                    return result

        # Exact title match without year constraint
        for result in results:
            if same_title(result):
                return result

        # If no exact match, return the first result if year matches
        if year:
            for result in results:
                if self._release_year(result) == year:
                    return result

        # Return first result as fallback
        return results[0]

    @staticmethod
    def _release_year(result: dict) -> Optional[int]:
        try:
            return int(result["release_date"][:4])
        except (KeyError, ValueError, TypeError):
            return None
