# app/api/v1/routers/webhook.py
"""
Stripe webhook: signature check, then license issuance.

Status codes drive Stripe's retry behaviour:
- 400: bad signature / unusable event (rejected before any core logic)
- 500: license could not be persisted (Stripe retries)
- 200: issued, already issued, or ignored event type
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from app.api.v1.deps import get_services
from app.core.bootstrap import Services
from app.core.errors import PersistenceError, SignatureError, ValidationError
from app.core.security import verify_stripe_signature
from app.schemas.license import WebhookAck

router = APIRouter(prefix="/webhook", tags=["webhook"])
logger = logging.getLogger("uvicorn.error")


@router.post("/stripe", response_model=WebhookAck)
async def stripe_webhook(request: Request, services: Services = Depends(get_services)):
    payload = await request.body()
    settings = services.settings

    try:
        event = verify_stripe_signature(
            payload,
            request.headers.get("stripe-signature"),
            settings.stripe_webhook_secret,
            tolerance=settings.stripe_webhook_tolerance,
        )
    except SignatureError as e:
        logger.warning("[webhook] Rejected event: %s", e.message)
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())

    try:
        result = await services.issuance.on_payment_completed(event)
    except ValidationError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())
    except PersistenceError as e:
        logger.error("[webhook] License issuance failed for session %s: %s", event.transaction_reference, e)
        raise HTTPException(
            status_code=500,
            detail={"code": e.code, "message": "Failed to create license"},
        )

    return WebhookAck(issued=result.issued, duplicate=result.duplicate, ignored=result.ignored)
