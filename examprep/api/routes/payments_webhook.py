from __future__ import annotations

import json
from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Depends, Path, Request, status
from fastapi.responses import JSONResponse

from examprep.api.deps import SessionFactory, UserId, require_internal_access
from examprep.api.schemas import ApiModel
from examprep.billing.errors import InvalidWebhookPayloadError
from examprep.billing.payments import PaymentWebhookService, parse_payment_event
from examprep.billing.webhook_signature import is_valid_signature
from examprep.core.config import get_settings

router = APIRouter(tags=["payments"])
logger = structlog.get_logger(__name__)

SIGNATURE_HEADER = "Paymongo-Signature"


class PaymentStatusResponse(ApiModel):
    reference_number: str
    status: str
    is_premium: bool
    plan_name: str | None = None
    activated_at: datetime | None = None


def _ack(*, received: bool, **extra: object) -> JSONResponse:
    # always 200: the gateway retries anything else
    return JSONResponse(status_code=status.HTTP_200_OK, content={"received": received, **extra})


@router.post("/api/payments/paymongo/webhook")
async def paymongo_webhook(request: Request, session_factory: SessionFactory) -> JSONResponse:
    settings = get_settings()
    raw_body = await request.body()
    if not is_valid_signature(
        header=request.headers.get(SIGNATURE_HEADER),
        raw_body=raw_body,
        secret=settings.paymongo_webhook_secret,
        live_mode=settings.paymongo_live_mode,
    ):
        logger.warning(
            "paymongo_webhook_invalid_signature",
            client_ip=request.client.host if request.client is not None else None,
            has_signature=SIGNATURE_HEADER.lower() in request.headers,
        )
        return _ack(received=False, error="invalid_signature")

    try:
        event = parse_payment_event(json.loads(raw_body))
    except (ValueError, InvalidWebhookPayloadError) as exc:
        logger.warning("paymongo_webhook_invalid_payload", error=str(exc))
        return _ack(received=False, error="invalid_payload")

    async with session_factory.begin() as session:
        outcome = await PaymentWebhookService.handle_event(
            session,
            event=event,
            now_utc=datetime.now(timezone.utc),
        )

    logger.info(
        "paymongo_webhook_processed",
        event_type=outcome.event_type,
        outcome=outcome.status,
        user_id=outcome.user_id,
        reference_number=outcome.reference_number,
    )
    return _ack(received=True, status=outcome.status)


@router.get(
    "/api/payments/paymongo/status/{reference_number}",
    response_model=PaymentStatusResponse,
    dependencies=[Depends(require_internal_access)],
)
async def get_payment_status(
    user_id: UserId,
    session_factory: SessionFactory,
    reference_number: str = Path(min_length=1, max_length=128),
) -> PaymentStatusResponse:
    async with session_factory() as session:
        payment_status = await PaymentWebhookService.payment_status(
            session,
            user_id=user_id,
            reference_number=reference_number,
            now_utc=datetime.now(timezone.utc),
        )
    return PaymentStatusResponse.model_validate(payment_status)
