from __future__ import annotations

import hashlib
import hmac
import json
import time
from types import SimpleNamespace

from fastapi.testclient import TestClient

from settlement.api.routes import payment_webhook
from settlement.economy.errors import IdempotencyViolation
from settlement.economy.reconciliation.types import ReconciliationResult
from settlement.main import app

SECRET = "whsec_route_secret"


class _Reconciler:
    def __init__(self, *, error: Exception | None = None) -> None:
        self.events: list[object] = []
        self._error = error

    async def apply(self, event):
        self.events.append(event)
        if self._error is not None:
            raise self._error
        return ReconciliationResult(
            external_event_id=event.id,
            event_type=event.type,
            status="processed",
            outcomes=["ticket_confirmed"],
        )


def _signed_request(body: dict[str, object], *, secret: str = SECRET) -> tuple[bytes, dict[str, str]]:
    payload = json.dumps(body).encode("utf-8")
    timestamp = int(time.time())
    signature = hmac.new(
        secret.encode("utf-8"),
        f"{timestamp}.{payload.decode('utf-8')}".encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()
    return payload, {"Stripe-Signature": f"t={timestamp},v1={signature}", "Content-Type": "application/json"}


def _event_body() -> dict[str, object]:
    return {
        "id": "evt_route_1",
        "type": "payment_intent.succeeded",
        "data": {"object": {"id": "pi_1", "metadata": {"ticket_id": "t-1"}}},
    }


def _patch(monkeypatch, reconciler: _Reconciler) -> None:
    monkeypatch.setattr(
        payment_webhook,
        "get_settings",
        lambda: SimpleNamespace(stripe_webhook_secret=SECRET, stripe_webhook_tolerance_seconds=300),
    )
    monkeypatch.setattr(payment_webhook, "_build_reconciler", lambda: reconciler)


def test_webhook_applies_signed_event(monkeypatch) -> None:
    reconciler = _Reconciler()
    _patch(monkeypatch, reconciler)
    payload, headers = _signed_request(_event_body())

    client = TestClient(app)
    response = client.post("/webhooks/payments", content=payload, headers=headers)

    assert response.status_code == 200
    assert response.json() == {
        "status": "processed",
        "external_event_id": "evt_route_1",
        "event_type": "payment_intent.succeeded",
        "outcomes": ["ticket_confirmed"],
    }
    assert len(reconciler.events) == 1


def test_webhook_rejects_bad_signature_without_touching_state(monkeypatch) -> None:
    reconciler = _Reconciler()
    _patch(monkeypatch, reconciler)
    payload, headers = _signed_request(_event_body(), secret="whsec_forged")

    client = TestClient(app)
    response = client.post("/webhooks/payments", content=payload, headers=headers)

    assert response.status_code == 400
    assert response.json() == {"code": "E_INVALID_SIGNATURE"}
    assert reconciler.events == []


def test_webhook_rejects_missing_signature(monkeypatch) -> None:
    reconciler = _Reconciler()
    _patch(monkeypatch, reconciler)

    client = TestClient(app)
    response = client.post("/webhooks/payments", json=_event_body())

    assert response.status_code == 400
    assert reconciler.events == []


def test_webhook_acknowledges_replayed_event(monkeypatch) -> None:
    reconciler = _Reconciler(error=IdempotencyViolation("evt_route_1"))
    _patch(monkeypatch, reconciler)
    payload, headers = _signed_request(_event_body())

    client = TestClient(app)
    response = client.post("/webhooks/payments", content=payload, headers=headers)

    assert response.status_code == 200
    assert response.json() == {"status": "duplicate", "external_event_id": "evt_route_1"}


def test_webhook_surfaces_unexpected_failure_for_redelivery(monkeypatch) -> None:
    _patch(monkeypatch, _Reconciler(error=RuntimeError("database unavailable")))
    payload, headers = _signed_request(_event_body())

    client = TestClient(app, raise_server_exceptions=False)
    response = client.post("/webhooks/payments", content=payload, headers=headers)

    assert response.status_code == 500
