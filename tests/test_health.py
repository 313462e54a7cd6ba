import pytest

from examprep.api.routes import health as health_routes
from tests.api.api_fakes import make_client


async def _ok_check(*_args) -> dict[str, str]:
    return {"status": "ok"}


def test_health_ok(monkeypatch) -> None:
    monkeypatch.setattr(health_routes, "_check_database", _ok_check)
    monkeypatch.setattr(health_routes, "_check_redis", _ok_check)
    monkeypatch.setattr(health_routes, "_check_celery_worker", _ok_check)

    client = make_client()
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {
        "status": "ok",
        "checks": {
            "database": {"status": "ok"},
            "redis": {"status": "ok"},
            "celery": {"status": "ok"},
        },
    }


def test_live_ok() -> None:
    client = make_client()
    response = client.get("/live")
    assert response.status_code == 200
    assert response.json() == {"status": "live"}


def test_health_returns_503_when_dependency_failed(monkeypatch) -> None:
    async def _failed_redis(*_args) -> dict[str, str]:
        return {"status": "failed", "error": "redis_unavailable"}

    monkeypatch.setattr(health_routes, "_check_database", _ok_check)
    monkeypatch.setattr(health_routes, "_check_redis", _failed_redis)
    monkeypatch.setattr(health_routes, "_check_celery_worker", _ok_check)

    client = make_client()
    response = client.get("/health")

    assert response.status_code == 503
    payload = response.json()
    assert payload["status"] == "degraded"
    assert payload["checks"]["redis"] == {"status": "failed", "error": "redis_unavailable"}


def test_ready_stays_200_when_celery_failed(monkeypatch) -> None:
    async def _failed_celery(*_args) -> dict[str, str]:
        return {"status": "failed", "error": "celery_no_workers"}

    monkeypatch.setattr(health_routes, "_check_database", _ok_check)
    monkeypatch.setattr(health_routes, "_check_redis", _ok_check)
    monkeypatch.setattr(health_routes, "_check_celery_worker", _failed_celery)

    client = make_client()
    response = client.get("/ready")

    assert response.status_code == 200
    assert response.json() == {
        "status": "ready",
        "checks": {
            "database": {"status": "ok"},
            "redis": {"status": "ok"},
        },
    }


def test_ready_returns_503_when_database_failed(monkeypatch) -> None:
    async def _failed_database(*_args) -> dict[str, str]:
        return {"status": "failed", "error": "database_unavailable"}

    monkeypatch.setattr(health_routes, "_check_database", _failed_database)
    monkeypatch.setattr(health_routes, "_check_redis", _ok_check)

    client = make_client()
    response = client.get("/ready")

    assert response.status_code == 503
    assert response.json()["status"] == "not_ready"


@pytest.mark.asyncio
async def test_database_check_sanitizes_exception() -> None:
    class _BrokenSession:
        async def __aenter__(self):
            raise RuntimeError("password=secret")

        async def __aexit__(self, exc_type, exc, tb) -> bool:
            return False

    result = await health_routes._check_database(lambda: _BrokenSession())
    assert result == {"status": "failed", "error": "database_unavailable"}


@pytest.mark.asyncio
async def test_redis_check_reports_missing_client() -> None:
    result = await health_routes._check_redis(None)
    assert result == {"status": "failed", "error": "redis_not_configured"}


@pytest.mark.asyncio
async def test_redis_check_sanitizes_exception() -> None:
    class _BrokenRedis:
        async def ping(self) -> bool:
            raise ConnectionError("redis://:secret@cache:6379")

    result = await health_routes._check_redis(_BrokenRedis())
    assert result == {"status": "failed", "error": "redis_unavailable"}


def test_celery_check_sanitizes_exception(monkeypatch) -> None:
    class _BrokenControl:
        def inspect(self, timeout: float):
            raise RuntimeError("broker-url=redis://secret")

    monkeypatch.setattr(health_routes.celery_app, "control", _BrokenControl())

    result = health_routes._check_celery_worker_sync()
    assert result == {"status": "failed", "error": "celery_unavailable"}


def test_celery_check_counts_responding_workers(monkeypatch) -> None:
    class _Inspector:
        def ping(self) -> dict[str, dict[str, str]]:
            return {"worker@a": {"ok": "pong"}, "worker@b": {"ok": "pong"}}

    class _Control:
        def inspect(self, timeout: float):
            return _Inspector()

    monkeypatch.setattr(health_routes.celery_app, "control", _Control())

    result = health_routes._check_celery_worker_sync()
    assert result == {"status": "ok", "workers": 2}
