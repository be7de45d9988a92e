"""
Test suite for src/web/app.py: API endpoints with a temporary database
"""

import threading

import pytest
from fastapi.testclient import TestClient

from conftest import DIARY_HEADERS, diary_row, to_csv
from src.models import MovieMetadata, Person
from src.narrative.persona import FALLBACK_PERSONA, PersonaClient
from src.web import app as app_module
from src.web.database import Database
from src.web.enrichment_service import EnrichmentService


def fake_lookup(title, year):
    if title == "Heat":
        return MovieMetadata(genres=["Crime"], cast=[Person("Al Pacino")], directors=[Person("Michael Mann")])
    return None


@pytest.fixture
def db(tmp_path, monkeypatch):
    database = Database(tmp_path / "test.db")
    monkeypatch.setattr(app_module, "db", database)
    monkeypatch.setattr(app_module, "tmdb_client", None)
    monkeypatch.setattr(app_module, "enrichment_service", None)
    monkeypatch.setattr(app_module, "persona_client", PersonaClient(""))
    return database


@pytest.fixture
def service(db, monkeypatch):
    service = EnrichmentService(db, fake_lookup, batch_size=2, batch_delay=0)
    monkeypatch.setattr(app_module, "enrichment_service", service)
    return service


@pytest.fixture
def client(db):
    return TestClient(app_module.app)


class TestCreateWrapped:

    def test_stats_returned(self, client, sample_diary_csv):
        response = client.post("/api/wrapped", json={"diary_csv": sample_diary_csv})
        assert response.status_code == 200

        body = response.json()
        assert body["report_id"] >= 1
        assert body["stats"]["year"] == 2024
        assert body["stats"]["total_watched"] == 7
        assert body["stats"]["longest_streak"] == 3

    def test_explicit_year_and_strict(self, client, sample_diary_csv):
        response = client.post(
            "/api/wrapped",
            json={"diary_csv": sample_diary_csv, "year": 2024, "strict": True},
        )
        assert response.status_code == 200
        assert response.json()["stats"]["total_watched"] == 1

    def test_invalid_export(self, client):
        response = client.post("/api/wrapped", json={"diary_csv": "Name,Year\nHeat,1995\n"})
        assert response.status_code == 400

    def test_invalid_ratings(self, client, sample_diary_csv):
        response = client.post(
            "/api/wrapped",
            json={"diary_csv": sample_diary_csv, "ratings_csv": "Date,Name\n2024-01-01,Heat\n"},
        )
        assert response.status_code == 400

    def test_insufficient_data(self, client, sample_diary_csv):
        response = client.post("/api/wrapped", json={"diary_csv": sample_diary_csv, "year": 2010})
        assert response.status_code == 422

    def test_enrichment_disabled_without_tmdb(self, client, sample_diary_csv):
        report_id = client.post("/api/wrapped", json={"diary_csv": sample_diary_csv}).json()["report_id"]
        body = client.get(f"/api/wrapped/{report_id}/enrichment").json()
        assert body["status"] == "disabled"
        assert body["snapshot"] is None


class TestReports:

    def test_get_report(self, client, sample_diary_csv):
        report_id = client.post("/api/wrapped", json={"diary_csv": sample_diary_csv}).json()["report_id"]
        body = client.get(f"/api/wrapped/{report_id}").json()
        assert body["id"] == report_id
        assert body["stats"]["top_month"] == "Jan"

    def test_unknown_report(self, client):
        assert client.get("/api/wrapped/999").status_code == 404
        assert client.get("/api/wrapped/999/enrichment").status_code == 404
        assert client.get("/api/wrapped/999/persona").status_code == 404

    def test_persona_fallback(self, client, sample_diary_csv):
        report_id = client.post("/api/wrapped", json={"diary_csv": sample_diary_csv}).json()["report_id"]
        body = client.get(f"/api/wrapped/{report_id}/persona").json()
        assert body == {"title": FALLBACK_PERSONA.title, "description": FALLBACK_PERSONA.description}

    def test_years(self, client, sample_diary_csv):
        body = client.post("/api/years", json={"diary_csv": sample_diary_csv}).json()
        assert body == {"years": [2024, 2023]}

    def test_poster_without_tmdb(self, client):
        assert client.get("/api/poster", params={"title": "Heat", "year": "1995"}).json() == {"url": None}

    def test_delete_report(self, client, sample_diary_csv):
        report_id = client.post("/api/wrapped", json={"diary_csv": sample_diary_csv}).json()["report_id"]
        assert client.delete(f"/api/wrapped/{report_id}").json() == {"status": "deleted"}
        assert client.get(f"/api/wrapped/{report_id}").status_code == 404

    def test_delete_unknown_report(self, client):
        assert client.delete("/api/wrapped/999").status_code == 404


class TestEnrichment:

    def test_background_enrichment(self, client, service, sample_diary_csv):
        report_id = client.post("/api/wrapped", json={"diary_csv": sample_diary_csv}).json()["report_id"]
        service.wait(report_id, timeout=10)

        body = client.get(f"/api/wrapped/{report_id}/enrichment").json()
        assert body["status"] == "done"
        assert body["is_running"] is False
        snapshot = body["snapshot"]
        assert snapshot["finished"] is True
        assert snapshot["processed_count"] == snapshot["total_count"] == 7
        assert snapshot["top_directors"] == [
            {
                "name": "Michael Mann",
                "count": 2,
                "image": None,
                "movies": [
                    {"title": "Heat", "year": "1995", "rating": "5"},
                    {"title": "Heat", "year": "1995", "rating": "5"},
                ],
            }
        ]

    def test_cancel(self, client, db, monkeypatch):
        started = threading.Event()
        release = threading.Event()

        def slow_lookup(title, year):
            started.set()
            release.wait(timeout=10)
            return None

        service = EnrichmentService(db, slow_lookup, batch_size=1, batch_delay=0)
        monkeypatch.setattr(app_module, "enrichment_service", service)

        diary = [diary_row(f"2024-01-0{i}", f"Film {i}") for i in range(1, 6)]
        response = client.post("/api/wrapped", json={"diary_csv": to_csv(DIARY_HEADERS, diary)})
        report_id = response.json()["report_id"]
        assert started.wait(timeout=10)

        assert client.delete(f"/api/wrapped/{report_id}/enrichment").json() == {"status": "cancelling"}
        release.set()
        service.wait(report_id, timeout=10)

        body = client.get(f"/api/wrapped/{report_id}/enrichment").json()
        assert body["status"] == "cancelled"
        assert body["snapshot"]["processed_count"] == 1
        assert body["snapshot"]["finished"] is False

    def test_cancel_when_not_running(self, client, sample_diary_csv):
        report_id = client.post("/api/wrapped", json={"diary_csv": sample_diary_csv}).json()["report_id"]
        assert client.delete(f"/api/wrapped/{report_id}/enrichment").json() == {"status": "not_running"}

    def test_delete_cancels_running_enrichment(self, client, db, monkeypatch):
        started = threading.Event()
        release = threading.Event()

        def slow_lookup(title, year):
            started.set()
            release.wait(timeout=10)
            return None

        service = EnrichmentService(db, slow_lookup, batch_size=1, batch_delay=0)
        monkeypatch.setattr(app_module, "enrichment_service", service)

        diary = [diary_row(f"2024-01-0{i}", f"Film {i}") for i in range(1, 6)]
        response = client.post("/api/wrapped", json={"diary_csv": to_csv(DIARY_HEADERS, diary)})
        report_id = response.json()["report_id"]
        assert started.wait(timeout=10)

        assert client.delete(f"/api/wrapped/{report_id}").json() == {"status": "deleted"}
        release.set()
        service.wait(report_id, timeout=10)

        assert not service.is_running(report_id)
        assert db.get_report(report_id) is None

    def test_finished_runs_are_forgotten(self, client, service, sample_diary_csv):
        report_id = client.post("/api/wrapped", json={"diary_csv": sample_diary_csv}).json()["report_id"]
        service.wait(report_id, timeout=10)

        assert report_id not in service._threads
        assert report_id not in service._cancel_events
        assert service.cancel(report_id) is False
