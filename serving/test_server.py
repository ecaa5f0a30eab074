import asyncio
import json
from datetime import date

import pytest
from fastapi.testclient import TestClient

from config import Settings, get_settings
from models.models import SelectionResponse, ShlokResponse
from notifications.dispatcher import NotificationDispatcher
from notifications.test_dispatcher import FakeCollection, make_users
from processing.processing import ShlokService
from retrieval.csv_datasource import DataSource
from serving import server

ORIGIN = get_settings().cors_origins[0]


def configure(csv_path):
    server.configure_app_state(Settings(csv_path=str(csv_path), fallback_csv_path=None))


def body(response) -> dict:
    return json.loads(response.body)


@pytest.fixture
def client(sample_csv_path):
    configure(sample_csv_path)
    # Not used as a context manager, so the startup event keeps this state
    return TestClient(server.app)


def test_health():
    response = asyncio.run(server.root())
    assert response.status == "ok"
    assert response.version == server.VERSION


def test_daily_shlok(sample_csv_path):
    configure(sample_csv_path)
    response = server.daily_shlok()
    assert isinstance(response, ShlokResponse)
    assert response.success is True


def test_random_shlok(sample_csv_path):
    configure(sample_csv_path)
    assert isinstance(server.random_shlok(), ShlokResponse)


def test_selection_for_date(sample_csv_path):
    configure(sample_csv_path)
    response = server.daily_selection(on=date(2024, 1, 15))
    assert isinstance(response, SelectionResponse)
    assert response.selection.date_string == "2024-1-15"
    assert response.selection.index == 0


def test_shlok_by_chapter_verse(sample_csv_path):
    configure(sample_csv_path)
    response = server.shlok_by_chapter_verse("2", "47")
    assert response.shlok.transliteration.startswith("karmaṇy")


def test_shlok_not_found(sample_csv_path):
    configure(sample_csv_path)
    response = server.shlok_by_chapter_verse("99", "99")
    assert response.status_code == 404
    assert body(response) == {
        "success": False,
        "message": "Shlok not found for chapter 99, verse 99",
    }


def test_empty_corpus_is_404(empty_csv):
    configure(empty_csv)
    for handler in (server.daily_shlok, server.random_shlok):
        response = handler()
        assert response.status_code == 404
        assert body(response) == {"success": False, "message": "No shloks found"}


def test_missing_source_is_404(tmp_path):
    configure(tmp_path / "missing.csv")
    assert server.daily_shlok().status_code == 404
    assert server.shlok_by_chapter_verse("1", "1").status_code == 404


def test_notifications_need_mongo(sample_csv_path):
    configure(sample_csv_path)
    for call in (
        lambda: server.check_notifications(),
        lambda: server.notify_user("someone"),
        lambda: server.debug_notifications("someone"),
    ):
        response = asyncio.run(call())
        assert response.status_code == 503


def test_routes_over_http(client):
    response = client.get("/api/shloks/selection", params={"date": "2024-01-15"})
    assert response.status_code == 200
    assert response.json()["selection"] == {
        "date_string": "2024-1-15",
        "date_hash": 441,
        "index": 0,
        "corpus_size": 9,
    }

    response = client.get("/api/shloks/2/47")
    assert response.status_code == 200
    assert response.json()["shlok"]["chapter"] == "2"

    assert client.get("/api/shloks/99/99").status_code == 404
    assert client.get("/api/shloks/daily").json()["success"] is True
    assert client.get("/").json()["status"] == "ok"


def test_cors_preflight(client):
    response = client.options(
        "/api/notifications/user/abc",
        headers={
            "Origin": ORIGIN,
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "authorization,content-type",
        },
    )
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == ORIGIN
    assert response.headers["access-control-allow-credentials"] == "true"
    assert "POST" in response.headers["access-control-allow-methods"]


def test_cors_simple_request(client):
    response = client.get("/api/shloks/daily", headers={"Origin": ORIGIN})
    assert response.headers["access-control-allow-origin"] == ORIGIN

    response = client.get("/api/shloks/daily", headers={"Origin": "https://elsewhere.example"})
    assert "access-control-allow-origin" not in response.headers


def test_debug_route(client, sample_csv_path):
    server.app.state.dispatcher = NotificationDispatcher(
        FakeCollection(make_users()),
        FakeCollection(),
        ShlokService(DataSource(sample_csv_path)),
    )
    response = client.get("/api/notifications/debug/due")
    assert response.status_code == 200
    debug = response.json()["debug"]
    assert debug["tokenFirstChars"] == "tok-1..."
    assert debug["hasFcmToken"] is True

    assert client.get("/api/notifications/debug/nobody").status_code == 404


def test_shlok_routes_are_threadpool_handlers():
    # Plain functions run in the threadpool, keeping file reads off the event loop
    for handler in (
        server.daily_shlok,
        server.random_shlok,
        server.daily_selection,
        server.shlok_by_chapter_verse,
    ):
        assert not asyncio.iscoroutinefunction(handler), handler.__name__


if __name__ == "__main__":
    pytest.main([__file__])
