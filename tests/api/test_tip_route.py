from __future__ import annotations

from decimal import Decimal
from uuid import UUID, uuid4

from fastapi.testclient import TestClient

from settlement.api.routes import tips
from settlement.economy.errors import ArtistNotPayableError
from settlement.economy.tips.service import TipResult
from settlement.main import app

TIP_ID = UUID("00000000-0000-0000-0000-0000000000b1")


class _TipService:
    def __init__(self, *, error: Exception | None = None) -> None:
        self.calls: list[dict[str, object]] = []
        self._error = error

    async def create_tip(self, **kwargs: object) -> TipResult:
        self.calls.append(kwargs)
        if self._error is not None:
            raise self._error
        return TipResult(
            tip_id=TIP_ID,
            client_token="pi_9_secret",
            amount=Decimal("20.00"),
            platform_fee=Decimal("2.00"),
        )


def test_tip_returns_fee_and_token(monkeypatch) -> None:
    service = _TipService()
    monkeypatch.setattr(tips, "_build_tip_service", lambda: service)
    artist_id = uuid4()

    client = TestClient(app)
    response = client.post(
        "/tips",
        json={"artist_id": str(artist_id), "amount": "20.00", "message": "great show"},
        headers={"X-User-Id": str(uuid4())},
    )

    assert response.status_code == 200
    assert response.json() == {
        "tip_id": str(TIP_ID),
        "client_token": "pi_9_secret",
        "amount": "20.00",
        "platform_fee": "2.00",
    }
    assert service.calls[0]["artist_id"] == artist_id
    assert service.calls[0]["amount"] == Decimal("20.00")
    assert service.calls[0]["event_id"] is None


def test_tip_rejects_non_positive_amount_before_service(monkeypatch) -> None:
    service = _TipService()
    monkeypatch.setattr(tips, "_build_tip_service", lambda: service)

    client = TestClient(app)
    response = client.post(
        "/tips",
        json={"artist_id": str(uuid4()), "amount": "0"},
        headers={"X-User-Id": str(uuid4())},
    )

    assert response.status_code == 422
    assert service.calls == []


def test_tip_to_artist_without_payout_account_conflicts(monkeypatch) -> None:
    monkeypatch.setattr(
        tips,
        "_build_tip_service",
        lambda: _TipService(error=ArtistNotPayableError("artist has not completed payout onboarding")),
    )

    client = TestClient(app)
    response = client.post(
        "/tips",
        json={"artist_id": str(uuid4()), "amount": "5.00"},
        headers={"X-User-Id": str(uuid4())},
    )

    assert response.status_code == 409
    assert response.json() == {
        "detail": {
            "code": "E_ARTIST_NOT_PAYABLE",
            "reason": "artist has not completed payout onboarding",
        }
    }
