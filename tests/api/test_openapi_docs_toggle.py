from __future__ import annotations

from types import SimpleNamespace

from fastapi.testclient import TestClient

from examprep import main as app_main
from tests.api.api_fakes import FakeRedis, NullSessionFactory


def _settings(*, enable_openapi_docs: bool) -> SimpleNamespace:
    return SimpleNamespace(
        log_level="INFO",
        app_env="test",
        enable_openapi_docs=enable_openapi_docs,
        explanation_cache_ttl_seconds=60,
    )


def _client() -> TestClient:
    return TestClient(app_main.create_app(session_factory=NullSessionFactory(), redis_client=FakeRedis()))


def test_openapi_docs_enabled(monkeypatch) -> None:
    monkeypatch.setattr(app_main, "get_settings", lambda: _settings(enable_openapi_docs=True))
    client = _client()

    docs_response = client.get("/docs")
    redoc_response = client.get("/redoc")
    openapi_response = client.get("/openapi.json")

    assert docs_response.status_code == 200
    assert redoc_response.status_code == 200
    assert openapi_response.status_code == 200
    assert "/api/mock-exams" in openapi_response.json()["paths"]


def test_openapi_docs_disabled(monkeypatch) -> None:
    monkeypatch.setattr(app_main, "get_settings", lambda: _settings(enable_openapi_docs=False))
    client = _client()

    docs_response = client.get("/docs")
    redoc_response = client.get("/redoc")
    openapi_response = client.get("/openapi.json")

    assert docs_response.status_code == 404
    assert redoc_response.status_code == 404
    assert openapi_response.status_code == 404
