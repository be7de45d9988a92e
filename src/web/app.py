"""FastAPI web application."""

import logging
from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import Optional

from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel

from src.config import Config
from src.enrichment.tmdb import TMDBClient
from src.models import Stats
from src.narrative.persona import PersonaClient
from src.sources.base import InvalidExportError, validate_diary, validate_ratings
from src.sources.csv_parser import parse_csv
from src.stats.aggregator import compute_stats
from src.stats.year import available_years, select_year
from src.web.database import Database
from src.web.enrichment_service import EnrichmentService

logger = logging.getLogger(__name__)

# Initialize database
db = Database(Config.DATABASE_PATH)
tmdb_client: Optional[TMDBClient] = None
persona_client = PersonaClient(Config.GEMINI_API_KEY, Config.GEMINI_MODEL)
enrichment_service: Optional[EnrichmentService] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle."""
    global tmdb_client, enrichment_service

    # Startup
    logger.info("Starting web application...")
    if Config.enrichment_enabled():
        tmdb_client = TMDBClient(Config.TMDB_API_KEY)
        enrichment_service = EnrichmentService(db, tmdb_client.lookup_metadata)
    else:
        logger.warning("TMDB_API_KEY not set, enrichment and posters are disabled")

    yield

    # Shutdown
    if enrichment_service:
        enrichment_service.stop()


app = FastAPI(
    title="Letterboxd Wrapped",
    description="Your year in film from a Letterboxd export",
    lifespan=lifespan,
)


# Pydantic models for API
class WrappedRequest(BaseModel):
    diary_csv: str
    ratings_csv: str = ""
    year: Optional[int] = None
    strict: bool = False


class YearsRequest(BaseModel):
    diary_csv: str


def _parse_upload(diary_csv: str, ratings_csv: str = "") -> tuple[list, list]:
    """Parse and validate uploaded CSV text, raising 400 on invalid exports."""
    try:
        diary = parse_csv(diary_csv)
        validate_diary(diary)
        ratings = parse_csv(ratings_csv) if ratings_csv else []
        validate_ratings(ratings)
    except InvalidExportError as e:
        raise HTTPException(
            status_code=400,
            detail=f"{e}. Ensure it is a valid Letterboxd export.",
        )
    return diary, ratings


def _get_report_or_404(report_id: int):
    report = db.get_report(report_id)
    if not report:
        raise HTTPException(status_code=404, detail="Report not found")
    return report


# ============== API Endpoints ==============

@app.post("/api/years")
async def get_years(request: YearsRequest):
    """List the years a diary covers."""
    diary, _ = _parse_upload(request.diary_csv)
    return {"years": available_years(diary)}


@app.post("/api/wrapped")
async def create_wrapped(request: WrappedRequest):
    """Compute stats for an uploaded export and start background enrichment."""
    diary, ratings = _parse_upload(request.diary_csv, request.ratings_csv)

    year = select_year(diary, request.year)
    stats = None
    if year is not None:
        stats = compute_stats(
            diary,
            ratings,
            year,
            strict=request.strict,
            minutes_per_film=Config.MINUTES_PER_FILM,
        )
    if stats is None:
        raise HTTPException(
            status_code=422,
            detail="Could not process stats. Not enough diary entries for the selected year.",
        )

    report = db.create_report(stats.to_dict(), strict=request.strict)

    if enrichment_service:
        enrichment_service.start(report.id, stats.all_films)
    else:
        db.update_enrichment(report.id, status="disabled")

    return {"report_id": report.id, "stats": report.stats}


@app.get("/api/wrapped/{report_id}")
async def get_wrapped(report_id: int):
    """Get a stored report with its latest enrichment snapshot."""
    report = _get_report_or_404(report_id)
    return report.to_dict()


@app.delete("/api/wrapped/{report_id}")
async def delete_wrapped(report_id: int):
    """Delete a report, cancelling its enrichment first."""
    _get_report_or_404(report_id)
    if enrichment_service:
        enrichment_service.cancel(report_id)
    # A batch still in flight finds no report and its write is skipped
    db.delete_report(report_id)
    return {"status": "deleted"}


@app.get("/api/wrapped/{report_id}/enrichment")
async def get_enrichment(report_id: int):
    """Get enrichment progress for a report."""
    report = _get_report_or_404(report_id)
    return {
        "status": report.enrichment_status,
        "snapshot": report.enrichment,
        "error_message": report.error_message,
        "is_running": enrichment_service.is_running(report_id) if enrichment_service else False,
    }


@app.delete("/api/wrapped/{report_id}/enrichment")
async def cancel_enrichment(report_id: int):
    """Stop enrichment after the batch in flight."""
    _get_report_or_404(report_id)
    if enrichment_service and enrichment_service.cancel(report_id):
        return {"status": "cancelling"}
    return {"status": "not_running"}


@app.get("/api/wrapped/{report_id}/persona")
def get_persona(report_id: int):
    """Generate a cinema persona for a report (falls back to a fixed text)."""
    report = _get_report_or_404(report_id)
    persona = persona_client.generate(Stats.from_dict(report.stats))
    return asdict(persona)


@app.get("/api/poster")
def get_poster(
    title: str = Query(...),
    year: str = Query(""),
):
    """Poster URL for a single film card."""
    if not tmdb_client:
        return {"url": None}
    return {"url": tmdb_client.get_poster_url(title, year)}
