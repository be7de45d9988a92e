"""Letterboxd export readers (loose CSV files or the export zip)."""

import logging
import zipfile
from pathlib import Path
from typing import Optional

from src.sources.base import ExportSource, InvalidExportError, validate_diary, validate_ratings
from src.sources.csv_parser import parse_csv

logger = logging.getLogger(__name__)


def read_text(path: Path) -> str:
    """Read an export file as text. The BOM is left for the parser to drop."""
    return path.read_text(encoding="utf-8", errors="replace")


class LetterboxdFilesSource(ExportSource):
    """Diary and optional ratings CSV files on disk."""

    def __init__(self, diary_path: Path, ratings_path: Optional[Path] = None):
        self.diary_path = diary_path
        self.ratings_path = ratings_path

    @property
    def name(self) -> str:
        return "Letterboxd CSV"

    def get_diary(self) -> list[dict[str, str]]:
        if not self.diary_path.exists():
            raise InvalidExportError(f"Diary file not found: {self.diary_path}")

        records = parse_csv(read_text(self.diary_path))
        validate_diary(records)
        logger.info(f"Loaded {len(records)} diary entries from {self.diary_path}")
        return records

    def get_ratings(self) -> list[dict[str, str]]:
        if not self.ratings_path:
            return []
        if not self.ratings_path.exists():
            raise InvalidExportError(f"Ratings file not found: {self.ratings_path}")

        records = parse_csv(read_text(self.ratings_path))
        validate_ratings(records)
        logger.info(f"Loaded {len(records)} ratings from {self.ratings_path}")
        return records


class LetterboxdZipSource(ExportSource):
    """The zip archive Letterboxd produces from Settings > Import & Export."""

    DIARY_NAME = "diary.csv"
    RATINGS_NAME = "ratings.csv"

    def __init__(self, zip_path: Path):
        self.zip_path = zip_path

    @property
    def name(self) -> str:
        return "Letterboxd export"

    def _read_member(self, member_name: str) -> Optional[str]:
        """Read a top-level CSV from the archive, or None if it is absent."""
        try:
            with zipfile.ZipFile(self.zip_path) as archive:
                for info in archive.infolist():
                    if info.filename.lower() == member_name:
                        return archive.read(info).decode("utf-8", errors="replace")
        except (OSError, zipfile.BadZipFile) as e:
            raise InvalidExportError(f"Could not read export archive {self.zip_path}: {e}") from e
        return None

    def get_diary(self) -> list[dict[str, str]]:
        text = self._read_member(self.DIARY_NAME)
        if text is None:
            raise InvalidExportError(f"{self.DIARY_NAME} missing from {self.zip_path}")

        records = parse_csv(text)
        validate_diary(records)
        logger.info(f"Loaded {len(records)} diary entries from {self.zip_path}")
        return records

    def get_ratings(self) -> list[dict[str, str]]:
        text = self._read_member(self.RATINGS_NAME)
        if text is None:
            logger.info(f"No {self.RATINGS_NAME} in {self.zip_path}, ratings come from the diary")
            return []

        records = parse_csv(text)
        validate_ratings(records)
        return records
