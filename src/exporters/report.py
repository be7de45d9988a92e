"""Year-in-review report exporter (JSON snapshot + calendar CSV)."""

import csv
import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Optional

from src.models import EnrichmentSnapshot, Persona, Stats

logger = logging.getLogger(__name__)


class ReportExporter:
    """Write a Stats snapshot to disk for sharing or a static front end."""

    CALENDAR_HEADERS = ["Date", "Count", "Titles"]

    def __init__(self, output_dir: Path):
        self.output_dir = output_dir
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def export_report(
        self,
        stats: Stats,
        enrichment: Optional[EnrichmentSnapshot] = None,
        persona: Optional[Persona] = None,
        filename: Optional[str] = None,
    ) -> Path:
        """
        Export the full report as JSON.

        Args:
            stats: Statistics snapshot
            enrichment: Latest enrichment snapshot, if enrichment ran
            persona: Generated persona, if requested
            filename: Output filename (default wrapped_<year>.json)

        Returns:
            Path to the created JSON file
        """
        output_path = self.output_dir / (filename or f"wrapped_{stats.year}.json")

        report = {
            "stats": stats.to_dict(),
            "enrichment": enrichment.to_dict() if enrichment else None,
            "persona": asdict(persona) if persona else None,
        }

        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(report, f, ensure_ascii=False, indent=2)

        logger.info(f"Exported {stats.year} report to {output_path}")
        return output_path

    def export_calendar(self, stats: Stats, filename: Optional[str] = None) -> Path:
        """
        Export daily activity as CSV, one row per day with at least one film.

        Returns:
            Path to the created CSV file
        """
        output_path = self.output_dir / (filename or f"wrapped_{stats.year}_calendar.csv")

        with open(output_path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(self.CALENDAR_HEADERS)

            for day in stats.daily_activity:
                writer.writerow([
                    day.label,
                    day.count,
                    "; ".join(movie.title for movie in day.movies),
                ])

        logger.info(f"Exported {len(stats.daily_activity)} calendar days to {output_path}")
        return output_path
