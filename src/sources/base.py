"""Abstract base class for export sources."""

from abc import ABC, abstractmethod


class InvalidExportError(ValueError):
    """Raised when an export does not look like a Letterboxd CSV."""


class ExportSource(ABC):
    """Abstract base class for viewing-log sources."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the source name."""
        pass

    @abstractmethod
    def get_diary(self) -> list[dict[str, str]]:
        """
        Get the diary (watch log).

        Returns:
            List of records, one per viewing, keyed by column header.
        """
        pass

    @abstractmethod
    def get_ratings(self) -> list[dict[str, str]]:
        """
        Get the ratings log.

        Returns:
            List of records keyed by column header. Empty when the
            source has no ratings log.
        """
        pass


def validate_diary(records: list[dict[str, str]]) -> None:
    """Check that parsed diary records carry a watched-date column."""
    if not records:
        raise InvalidExportError("Diary CSV contains no entries")

    first = records[0]
    if not first.get("Watched Date") and not first.get("Date"):
        raise InvalidExportError("Invalid Diary CSV: no 'Watched Date' or 'Date' column")


def validate_ratings(records: list[dict[str, str]]) -> None:
    """Check that parsed ratings records carry a rating column. Empty is valid."""
    if records and not records[0].get("Rating"):
        raise InvalidExportError("Invalid Ratings CSV: no 'Rating' column")
