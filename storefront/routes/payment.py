from typing import Optional

from fastapi import APIRouter, Depends, Header, Request

from storefront.models.user import User
from storefront.schemas.payment_schemas import (
    ConfirmPaymentRequest,
    ConfirmPaymentResponse,
    CreateIntentRequest,
    CreateIntentResponse,
    WebhookAck,
)
from storefront.services.confirmation import PaymentConfirmationVerifier
from storefront.services.intent_service import PaymentIntentService
from storefront.dependencies.services import get_confirmation_verifier, get_intent_service
from storefront.utils.token import get_current_user

router = APIRouter()


async def raw_body(request: Request) -> bytes:
    return await request.body()


@router.post("/create-intent", response_model=CreateIntentResponse)
def create_intent(
    payload: CreateIntentRequest,
    service: PaymentIntentService = Depends(get_intent_service),
    current_user: User = Depends(get_current_user),
):
    """Open a Razorpay order for one product."""
    intent = service.create_intent(current_user, payload.product_id)

    return CreateIntentResponse(
        intent_id=intent.intent_id,
        order_id=intent.order_id,
        amount=intent.amount,
        currency=intent.currency,
        gateway_public_key=intent.gateway_public_key,
    )


@router.post("/confirm", response_model=ConfirmPaymentResponse)
def confirm_payment(
    payload: ConfirmPaymentRequest,
    verifier: PaymentConfirmationVerifier = Depends(get_confirmation_verifier),
    current_user: User = Depends(get_current_user),
):
    result = verifier.verify_client_confirmation(
        payload.order_id,
        payload.payment_id,
        payload.signature,
        requester=current_user,
    )

    return ConfirmPaymentResponse(
        success=True,
        order_id=result.order.order_id,
        already_processed=not result.transitioned,
    )


@router.post("/webhook", response_model=WebhookAck)
def payment_webhook(
    body: bytes = Depends(raw_body),
    x_razorpay_signature: Optional[str] = Header(default=None),
    verifier: PaymentConfirmationVerifier = Depends(get_confirmation_verifier),
):
    """
    Razorpay server-to-server callback.

    Answers 400 only when the signature is bad. Once it checks out the
    gateway always gets an ack, whatever the lookup found, so business-level
    misses do not trigger retry storms.
    """
    verifier.verify_webhook(body, x_razorpay_signature)
    return WebhookAck()
