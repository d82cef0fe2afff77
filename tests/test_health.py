from __future__ import annotations

from fastapi.testclient import TestClient

from settlement.api.routes import health as health_routes
from settlement.main import app


async def _ok() -> dict[str, str]:
    return {"status": "ok"}


def _patch_checks(monkeypatch, *, database=_ok, redis=_ok, celery=_ok) -> None:
    monkeypatch.setattr(health_routes, "_check_database", database)
    monkeypatch.setattr(health_routes, "_check_redis", redis)
    monkeypatch.setattr(health_routes, "_check_celery_worker", celery)


def test_health_reports_every_dependency(monkeypatch) -> None:
    _patch_checks(monkeypatch)

    response = TestClient(app).get("/health")

    assert response.status_code == 200
    assert response.json() == {
        "status": "ok",
        "checks": {
            "database": {"status": "ok"},
            "redis": {"status": "ok"},
            "celery": {"status": "ok"},
        },
    }


def test_health_degrades_when_payout_worker_is_missing(monkeypatch) -> None:
    async def _no_workers() -> dict[str, str]:
        return {"status": "failed", "error": "no_celery_workers"}

    _patch_checks(monkeypatch, celery=_no_workers)

    response = TestClient(app).get("/health")

    assert response.status_code == 503
    assert response.json()["status"] == "degraded"
    assert response.json()["checks"]["celery"] == {"status": "failed", "error": "no_celery_workers"}


def test_ready_ignores_worker_and_fails_on_database(monkeypatch) -> None:
    async def _db_down() -> dict[str, str]:
        return {"status": "failed", "error": "database_unavailable"}

    async def _unreachable() -> dict[str, str]:
        raise AssertionError("readiness must not probe workers")

    _patch_checks(monkeypatch, database=_db_down, celery=_unreachable)

    response = TestClient(app).get("/ready")

    assert response.status_code == 503
    assert response.json() == {
        "status": "not_ready",
        "checks": {
            "database": {"status": "failed", "error": "database_unavailable"},
            "redis": {"status": "ok"},
        },
    }


def test_live_needs_no_dependencies() -> None:
    response = TestClient(app).get("/live")

    assert response.status_code == 200
    assert response.json() == {"status": "live"}


async def test_database_check_hides_connection_details(monkeypatch) -> None:
    class _BrokenSession:
        async def __aenter__(self):
            raise RuntimeError("password=secret")

        async def __aexit__(self, exc_type, exc, tb) -> bool:
            return False

    monkeypatch.setattr(health_routes, "SessionLocal", lambda: _BrokenSession())

    assert await health_routes._check_database() == {"status": "failed", "error": "database_unavailable"}


async def test_redis_check_flags_unexpected_ping(monkeypatch) -> None:
    class _Redis:
        async def ping(self) -> str:
            return "PONG?"

        async def aclose(self) -> None:
            return None

    monkeypatch.setattr(health_routes.Redis, "from_url", staticmethod(lambda url: _Redis()))

    assert await health_routes._check_redis() == {
        "status": "failed",
        "error": "redis_unexpected_ping_response",
    }


def test_celery_check_counts_workers(monkeypatch) -> None:
    class _Inspector:
        def ping(self) -> dict[str, dict[str, str]]:
            return {"worker@a": {"ok": "pong"}, "worker@b": {"ok": "pong"}}

    class _Control:
        def inspect(self, timeout: float) -> _Inspector:
            return _Inspector()

    monkeypatch.setattr(health_routes.celery_app, "control", _Control())

    assert health_routes._check_celery_worker_sync() == {"status": "ok", "workers": 2}


def test_celery_check_hides_broker_details(monkeypatch) -> None:
    class _BrokenControl:
        def inspect(self, timeout: float):
            raise RuntimeError("broker-url=redis://secret")

    monkeypatch.setattr(health_routes.celery_app, "control", _BrokenControl())

    assert health_routes._check_celery_worker_sync() == {"status": "failed", "error": "celery_unavailable"}
