from __future__ import annotations

from datetime import date
from pathlib import Path
import sys

sys.path.append(str(Path(__file__).resolve().parents[1]))

import httpx
import pytest
from fastapi.testclient import TestClient

from backend.application import (
    MenuService,
    ProposalService,
    TaskAggregator,
    configure_image_cache,
    configure_menu_service,
    configure_proposal_service,
    configure_task_aggregator,
    reset_services,
)
from backend.infrastructure import DeckClient, HttpTransport, MenuFeedClient, WebDavClient
from backend.workers.pipeline import ParsePipeline


@pytest.fixture(autouse=True)
def reset_state():
    reset_services()
    yield
    reset_services()


@pytest.fixture()
def client():
    from backend.app import create_app

    app = create_app()
    with TestClient(app) as test_client:
        yield test_client


def _transport(handler) -> HttpTransport:
    return HttpTransport(http_client=httpx.Client(transport=httpx.MockTransport(handler)))


def _install_proposals(file_path: str, body: bytes = b"", *, propfind_status: int = 207, get_status: int = 200):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "PROPFIND":
            return httpx.Response(propfind_status)
        return httpx.Response(get_status, content=body)

    webdav = WebDavClient("https://cloud.example.test", "jane", "pw", transport=_transport(handler))
    configure_proposal_service(ProposalService(webdav, ParsePipeline(), file_path))


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert "timestamp" in response.json()


def test_proposals_success(client):
    _install_proposals("/Documents/proposals.csv", b"title;owner\nRoof;Ann\n")

    response = client.get("/proposals")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["file_info"] == {"path": "/Documents/proposals.csv", "type": "csv", "size": 21}
    assert body["parsing_result"]["data"] == [{"title": "Roof", "owner": "Ann"}]
    assert body["parsing_result"]["total_records"] == 1


def test_proposals_unreachable_share(client):
    _install_proposals("/Documents/proposals.csv", propfind_status=401)

    response = client.get("/proposals")

    assert response.status_code == 503
    assert response.json()["success"] is False


def test_proposals_empty_file(client):
    _install_proposals("/Documents/proposals.csv", b"")

    response = client.get("/proposals")

    assert response.status_code == 404
    assert response.json()["file_path"] == "/Documents/proposals.csv"


def test_proposals_unsupported_format(client):
    _install_proposals("/Documents/proposals.pdf", b"%PDF-1.4")

    response = client.get("/proposals")

    assert response.status_code == 400
    body = response.json()
    assert body["detected_format"] == "pdf"
    assert body["supported_formats"] == ["csv", "xml", "xlsx", "xls"]


def test_proposals_parse_failure(client):
    _install_proposals("/Documents/proposals.xml", b"<broken>")

    response = client.get("/proposals")

    assert response.status_code == 500
    assert response.json()["error"] == "File parsing failed"


def test_proposals_fetch_failure(client):
    _install_proposals("/Documents/proposals.csv", get_status=500)

    response = client.get("/proposals")

    assert response.status_code == 503


def test_parser_health(client):
    _install_proposals("/Documents/proposals.csv")
    assert client.get("/parser/health").json()["status"] == "healthy"

    _install_proposals("/Documents/proposals.csv", propfind_status=500)
    response = client.get("/parser/health")
    assert response.status_code == 503
    assert response.json()["status"] == "degraded"


FEED = (
    '<plan><mensa>Mensa Test</mensa>'
    '<tagesplan datum="14.05.2024"><menue art="Essen 1"><name>Linsen</name></menue></tagesplan>'
    "</plan>"
).encode("utf-8")


def _install_menu(handler):
    feed = MenuFeedClient("https://menu.example.test/api", "KEY", "610", transport=_transport(handler))
    configure_menu_service(MenuService(feed, today=lambda: date(2024, 5, 14)))
    configure_image_cache(None)


def test_mensa(client):
    _install_menu(lambda request: httpx.Response(200, content=FEED))

    body = client.get("/mensa").json()

    assert body["success"] is True
    assert body["data"]["mensa_name"] == "Mensa Test"
    assert body["data"]["days"][0]["items"][0]["name"] == "Linsen"


def test_mensa_with_images_without_search_configured(client):
    _install_menu(lambda request: httpx.Response(200, content=FEED))

    body = client.get("/mensa/with-images").json()

    assert body["data"]["days"][0]["items"][0]["image"] is None


def test_mensa_upstream_failure(client):
    _install_menu(lambda request: httpx.Response(502))

    response = client.get("/mensa")

    assert response.status_code == 503
    assert response.json() == {
        "success": False,
        "error": response.json()["error"],
        "data": None,
    }
    assert response.json()["error"].startswith("Fehler beim Laden des Speiseplans")


def test_mensa_malformed_feed(client):
    _install_menu(lambda request: httpx.Response(200, content=b"<plan>"))

    assert client.get("/mensa").status_code == 500


def _install_tasks(routes: dict[str, object]):
    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path.split("/api/v1.0", 1)[1]
        body = routes.get(path, 404)
        if isinstance(body, int):
            return httpx.Response(body)
        return httpx.Response(200, json=body)

    deck = DeckClient("https://cloud.example.test", "jane", "pw", transport=_transport(handler))
    configure_task_aggregator(TaskAggregator(deck))


def test_tasks_filtered_by_board_id(client):
    _install_tasks({"/boards/4": {"id": 4, "title": "Four", "stacks": [{"id": 1, "cards": [{"id": 9}]}]}})

    response = client.get("/tasks", params={"board_id": "4"})

    body = response.json()
    assert response.status_code == 200
    assert body["success"] is True
    assert body["data"]["total_cards"] == 1
    assert body["data"]["boards"][0]["id"] == 4


def test_tasks_enumeration_failure(client):
    _install_tasks({"/boards": 503})

    response = client.get("/tasks")

    assert response.status_code == 503
    assert response.json()["success"] is False
