"""
Payment API routes: subscription status, order creation and the provider webhook.

SECURITY:
- The webhook MUST verify the HMAC signature over the raw body
- The webhook has no user session; the order is found by its reference
"""

import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from examprep.api.dependencies import get_current_user_id, get_db_session, require_user_id
from examprep.api.errors import to_app_error
from examprep.billing import PaymentService, PaymentServiceError, verify_webhook_signature
from examprep.billing.payment_service import to_minor_units
from examprep.config.billing import get_webhook_secret
from examprep.entitlements import get_status
from examprep.platform.errors import AuthenticationError, ServiceUnavailableError, ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/payment", tags=["payment"])


class CreateOrderRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    plan_id: str = Field(..., alias="planId", description="Plan to pay for")


class CreateOrderResponse(BaseModel):
    """Values the client passes to the payment provider."""
    reference: str
    planId: str
    amount: int = Field(..., description="Amount in minor currency units")
    currency: str


@router.get("/status")
def payment_status(
    user_id: Optional[str] = Depends(get_current_user_id),
    db: Session = Depends(get_db_session),
) -> dict:
    """Advisory subscription snapshot; anonymous callers get {"authenticated": false}."""
    return get_status(db, user_id).to_dict()


@router.post("/orders", response_model=CreateOrderResponse, status_code=status.HTTP_201_CREATED)
def create_order(
    body: CreateOrderRequest,
    user_id: str = Depends(require_user_id),
    db: Session = Depends(get_db_session),
):
    try:
        order = PaymentService(db).create_order(user_id, body.plan_id)
    except PaymentServiceError as e:
        raise to_app_error(e) from e

    return CreateOrderResponse(
        reference=order.reference,
        planId=order.plan_id,
        amount=to_minor_units(order.amount),
        currency=order.currency,
    )


@router.post("/webhook")
async def payment_webhook(
    request: Request,
    x_paystack_signature: Optional[str] = Header(None, alias="x-paystack-signature"),
    db: Session = Depends(get_db_session),
) -> dict:
    """
    Provider webhook. charge.success fulfils the referenced order; other
    events are acknowledged and ignored.
    """
    if not get_webhook_secret():
        logger.error("Webhook received but PAYSTACK_SECRET_KEY is not configured")
        raise ServiceUnavailableError("Payment webhooks are not configured")

    body = await request.body()
    if not verify_webhook_signature(body, x_paystack_signature):
        logger.warning("Invalid webhook signature", extra={"path": request.url.path})
        raise AuthenticationError("Invalid webhook signature")

    try:
        event = json.loads(body)
    except json.JSONDecodeError:
        logger.error("Invalid webhook JSON payload")
        raise ValidationError("Invalid JSON payload")
    if not isinstance(event, dict):
        raise ValidationError("Invalid JSON payload")

    try:
        processed = PaymentService(db).process_webhook_event(event)
    except PaymentServiceError as e:
        logger.error(
            "Failed to process payment webhook",
            extra={"event": event.get("event"), "error": str(e)},
        )
        raise to_app_error(e) from e

    return {"status": "processed" if processed else "ignored"}
