from __future__ import annotations

import json
import time

from examprep.api.routes import payments_webhook as webhook_routes
from examprep.billing.types import WebhookOutcome
from examprep.billing.webhook_signature import compute_signature
from tests.api.api_fakes import make_client

URL = "/api/payments/paymongo/webhook"
SECRET = "test-webhook-secret"


def _paid_body() -> bytes:
    return json.dumps(
        {
            "data": {
                "attributes": {
                    "type": "payment.paid",
                    "data": {
                        "id": "pay_1",
                        "attributes": {"amount": 39900, "metadata": {"userId": 5, "referenceNumber": "REF-9"}},
                    },
                }
            }
        }
    ).encode("utf-8")


def _signed_headers(body: bytes) -> dict[str, str]:
    timestamp = str(int(time.time()))
    signature = compute_signature(secret=SECRET, timestamp=timestamp, raw_body=body)
    return {"Paymongo-Signature": f"t={timestamp},te={signature},li=", "Content-Type": "application/json"}


def test_invalid_signature_is_acknowledged_but_not_processed(monkeypatch) -> None:
    calls = []

    async def _handle_event(session, *, event, now_utc):
        calls.append(event)

    monkeypatch.setattr(webhook_routes.PaymentWebhookService, "handle_event", _handle_event)

    client = make_client()
    response = client.post(URL, content=_paid_body(), headers={"Paymongo-Signature": "t=1,te=deadbeef,li="})

    assert response.status_code == 200
    assert response.json() == {"received": False, "error": "invalid_signature"}
    assert calls == []


def test_signed_event_is_processed(monkeypatch) -> None:
    async def _handle_event(session, *, event, now_utc):
        assert event.user_id == 5
        assert event.reference_number == "REF-9"
        return WebhookOutcome(event_type=event.event_type, status="activated", user_id=5, reference_number="REF-9")

    monkeypatch.setattr(webhook_routes.PaymentWebhookService, "handle_event", _handle_event)

    body = _paid_body()
    client = make_client()
    response = client.post(URL, content=body, headers=_signed_headers(body))

    assert response.status_code == 200
    assert response.json() == {"received": True, "status": "activated"}


def test_signed_garbage_payload_is_acknowledged_as_invalid() -> None:
    body = b"not json"
    client = make_client()
    response = client.post(URL, content=body, headers=_signed_headers(body))

    assert response.status_code == 200
    assert response.json() == {"received": False, "error": "invalid_payload"}
