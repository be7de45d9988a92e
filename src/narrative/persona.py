"""Cinema persona text from the Gemini API."""

import json
import logging
from typing import Optional

import requests

from src.models import Persona, Stats

logger = logging.getLogger(__name__)

FALLBACK_PERSONA = Persona(
    title="The Dedicated Cinephile",
    description=(
        "You watched a ton of movies this year. Your stats show a consistent love "
        "for the medium, exploring various genres and eras. Without an AI connection, "
        "we can't roast you specifically, but know that you have excellent taste!"
    ),
)

DEFAULT_TITLE = "The Mystery Viewer"
DEFAULT_DESCRIPTION = (
    "An error occurred generating your description, but your stats speak for themselves."
)


def build_prompt(stats: Stats) -> str:
    """Prompt summarising the year for the text model."""
    return f"""Based on the following movie watching statistics for the year {stats.year}, generate a creative "Cinema Persona" title and a short, witty, slightly roasting but ultimately celebratory description (max 60 words).

Stats:
- Total Watched: {stats.total_watched}
- Top Month: {stats.top_month}
- Average Rating: {stats.average_rating}
- Rewatches: {stats.rewatch_count}
- Longest Streak: {stats.longest_streak} days
- Busiest Day: {stats.busiest_day.count} movies on one day
- First Film: {stats.first_film.title}
- Last Film: {stats.last_film.title}
- Favorite Day to Watch: {stats.top_day_of_week}

Format the output as JSON with keys "title" and "description".
"""


class PersonaClient:
    """Client for the Gemini generateContent endpoint."""

    BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash",
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.session = session or requests.Session()

    def _generate_text(self, prompt: str) -> str:
        url = f"{self.BASE_URL}/models/{self.model}:generateContent"
        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {"responseMimeType": "application/json"},
        }
        response = self.session.post(
            url,
            params={"key": self.api_key},
            json=payload,
            timeout=30,
        )
        response.raise_for_status()
        data = response.json()
        return data["candidates"][0]["content"]["parts"][0]["text"]

    def generate(self, stats: Stats) -> Persona:
        """
        Generate a persona for the year.

        Falls back to FALLBACK_PERSONA when no API key is configured, the
        request fails or the model returns something that isn't JSON.
        """
        if not self.api_key:
            logger.warning("Gemini API key not found, using fallback persona")
            return FALLBACK_PERSONA

        try:
            text = self._generate_text(build_prompt(stats))
            result = json.loads(text)
            if not isinstance(result, dict):
                raise ValueError(f"Expected a JSON object, got {type(result).__name__}")
        except requests.RequestException as e:
            logger.error(f"Gemini API error: {e}")
            return FALLBACK_PERSONA
        except (KeyError, IndexError, TypeError, ValueError) as e:
            logger.error(f"Gemini returned an unusable response: {e}")
            return FALLBACK_PERSONA

        return Persona(
            title=result.get("title") or DEFAULT_TITLE,
            description=result.get("description") or DEFAULT_DESCRIPTION,
        )
