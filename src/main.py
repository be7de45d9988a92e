"""Main entry point for Letterboxd Wrapped."""

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from src.config import Config
from src.enrichment.merger import EnrichmentRun
from src.enrichment.tmdb import TMDBClient
from src.exporters.report import ReportExporter
from src.models import EnrichmentSnapshot, Persona, SimpleMovie
from src.narrative.persona import PersonaClient
from src.sources.base import ExportSource
from src.sources.letterboxd import LetterboxdFilesSource, LetterboxdZipSource
from src.stats.aggregator import compute_stats
from src.stats.year import select_year


def setup_logging(level: str) -> None:
    """Configure logging."""
    log_dir = Path("logs")
    log_dir.mkdir(exist_ok=True)

    log_file = log_dir / f"wrapped_{datetime.now().strftime('%Y-%m-%d')}.log"

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.FileHandler(log_file, encoding="utf-8"),
            logging.StreamHandler(),
        ],
    )


def get_source(args: argparse.Namespace) -> ExportSource:
    """Create and return the appropriate source."""
    if args.export:
        return LetterboxdZipSource(Path(args.export))
    if args.diary:
        return LetterboxdFilesSource(
            diary_path=Path(args.diary),
            ratings_path=Path(args.ratings) if args.ratings else None,
        )
    raise ValueError("Either --diary or --export is required")


def run_enrichment(
    films: list[SimpleMovie],
    tmdb_client: TMDBClient,
    logger: logging.Logger,
) -> EnrichmentSnapshot:
    """Run enrichment to completion, logging progress after each batch."""
    run = EnrichmentRun(
        films,
        tmdb_client.lookup_metadata,
        batch_size=Config.ENRICH_BATCH_SIZE,
        batch_delay=Config.ENRICH_BATCH_DELAY,
    )

    def on_update(snapshot: EnrichmentSnapshot) -> None:
        logger.info(f"Enriching movies: {snapshot.processed_count}/{snapshot.total_count}")

    return run.run(on_update)


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Build a year-in-review report from a Letterboxd export"
    )
    parser.add_argument("--diary", help="Path to diary.csv")
    parser.add_argument("--ratings", help="Path to ratings.csv (optional)")
    parser.add_argument("--export", help="Path to the Letterboxd export .zip")
    parser.add_argument(
        "--year",
        type=int,
        default=None,
        help="Year to analyse (default: year of the most recent diary entry)",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Only count films released in the analysed year",
    )
    parser.add_argument(
        "--enrich",
        action="store_true",
        help="Add top actors, directors and genres from TMDB",
    )
    parser.add_argument(
        "--persona",
        action="store_true",
        help="Generate a cinema persona with Gemini",
    )
    parser.add_argument("--output", default=None, help="Output directory (default: from .env)")
    args = parser.parse_args(argv)

    # Validate configuration
    errors = Config.validate()
    if args.enrich and not Config.enrichment_enabled():
        errors.append("TMDB_API_KEY is required for --enrich")
    if errors:
        print("Configuration errors:")
        for error in errors:
            print(f"  - {error}")
        print("\nPlease check your .env file")
        return 1

    # Setup
    Config.ensure_directories()
    setup_logging(Config.LOG_LEVEL)
    logger = logging.getLogger(__name__)

    logger.info("=" * 50)
    logger.info("Letterboxd Wrapped")
    logger.info("=" * 50)

    try:
        source = get_source(args)
        diary = source.get_diary()
        ratings = source.get_ratings()
    except (ValueError, OSError) as e:
        logger.error(str(e))
        return 1

    logger.info(f"Using source: {source.name}")

    year = select_year(diary, args.year)
    if year is None:
        logger.error("No diary entry has a valid watched date")
        return 1

    stats = compute_stats(
        diary,
        ratings,
        year,
        strict=args.strict,
        minutes_per_film=Config.MINUTES_PER_FILM,
    )
    if stats is None:
        logger.error(f"Not enough data for {year}. Check your export or pick another year.")
        return 1

    logger.info(f"{year}: {stats.total_watched} films, ~{stats.total_runtime_hours} hours")

    enrichment = None
    if args.enrich:
        logger.info("")
        logger.info(f"Enriching {len(stats.all_films)} films with TMDB data...")
        enrichment = run_enrichment(stats.all_films, TMDBClient(Config.TMDB_API_KEY), logger)

    persona: Optional[Persona] = None
    if args.persona:
        persona = PersonaClient(Config.GEMINI_API_KEY, Config.GEMINI_MODEL).generate(stats)
        logger.info(f"Persona: {persona.title}")

    output_dir = Path(args.output) if args.output else Config.OUTPUT_DIR
    exporter = ReportExporter(output_dir)
    report_file = exporter.export_report(stats, enrichment, persona)
    calendar_file = exporter.export_calendar(stats)

    logger.info("")
    logger.info("=" * 50)
    logger.info("Report complete!")
    logger.info(f"Report: {report_file}")
    logger.info(f"Calendar: {calendar_file}")
    logger.info("=" * 50)

    return 0


if __name__ == "__main__":
    sys.exit(main())
