"""Background enrichment runs for stored reports."""

import logging
import threading
from typing import Optional

from src.config import Config
from src.enrichment.merger import EnrichmentRun, MetadataLookup
from src.models import EnrichmentSnapshot, SimpleMovie
from src.web.database import Database

logger = logging.getLogger(__name__)


class EnrichmentService:
    """Starts one enrichment thread per report and records its snapshots."""

    def __init__(
        self,
        database: Database,
        lookup: MetadataLookup,
        batch_size: int = Config.ENRICH_BATCH_SIZE,
        batch_delay: float = Config.ENRICH_BATCH_DELAY,
    ):
        self.db = database
        self.lookup = lookup
        self.batch_size = batch_size
        self.batch_delay = batch_delay
        self._cancel_events: dict[int, threading.Event] = {}
        self._threads: dict[int, threading.Thread] = {}
        self._lock = threading.Lock()

    def start(self, report_id: int, films: list[SimpleMovie]) -> bool:
        """Start enriching a report in the background. False if already running."""
        with self._lock:
            if report_id in self._threads and self._threads[report_id].is_alive():
                logger.warning(f"Enrichment already running for report {report_id}")
                return False

            cancel_event = threading.Event()
            thread = threading.Thread(
                target=self._run,
                args=(report_id, films, cancel_event),
                name=f"enrich-{report_id}",
                daemon=True,
            )
            self._cancel_events[report_id] = cancel_event
            self._threads[report_id] = thread

        self.db.update_enrichment(report_id, status="running")
        thread.start()
        return True

    def cancel(self, report_id: int) -> bool:
        """Ask a run to stop at its next batch boundary."""
        with self._lock:
            event = self._cancel_events.get(report_id)
        if event is None:
            return False
        event.set()
        return True

    def is_running(self, report_id: int) -> bool:
        with self._lock:
            thread = self._threads.get(report_id)
        return thread is not None and thread.is_alive()

    def wait(self, report_id: int, timeout: Optional[float] = None) -> None:
        """Block until the report's run finishes."""
        with self._lock:
            thread = self._threads.get(report_id)
        if thread is not None:
            thread.join(timeout)

    def stop(self) -> None:
        """Cancel every running enrichment."""
        with self._lock:
            events = list(self._cancel_events.values())
        for event in events:
            event.set()
        logger.info("Enrichment service stopped")

    def _run(self, report_id: int, films: list[SimpleMovie], cancel_event: threading.Event) -> None:
        run = EnrichmentRun(
            films,
            self.lookup,
            batch_size=self.batch_size,
            batch_delay=self.batch_delay,
        )

        def on_update(snapshot: EnrichmentSnapshot) -> None:
            self.db.update_enrichment(report_id, snapshot=snapshot.to_dict())

        try:
            logger.info(f"Starting enrichment for report {report_id} ({len(films)} films)")
            final = run.run(on_update, should_cancel=cancel_event.is_set)

            if final.finished:
                self.db.update_enrichment(report_id, snapshot=final.to_dict(), status="done")
            else:
                self.db.update_enrichment(report_id, status="cancelled")

            logger.info(
                f"Enrichment for report {report_id} stopped at "
                f"{final.processed_count}/{final.total_count}"
            )

        except Exception as e:
            logger.error(f"Enrichment error for report {report_id}: {e}")
            self.db.update_enrichment(report_id, status="error", error_message=str(e))

        finally:
            with self._lock:
                self._cancel_events.pop(report_id, None)
                self._threads.pop(report_id, None)
