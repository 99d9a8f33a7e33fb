"""
Payment confirmation.

Two channels assert that a payment succeeded: the client relaying the
Razorpay checkout response, and Razorpay's own webhook. Both are untrusted
until their HMAC checks out, and both funnel into ``_confirm`` so the
created -> paid transition and the entitlement grant happen at most once.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic import ValidationError as PydanticValidationError
from sqlmodel import Session

from storefront.constants.order_status import OrderStatus
from storefront.errors import OrderNotFound, OrderTerminal, SignatureMismatch
from storefront.models.order import Order
from storefront.models.user import User
from storefront.schemas.payment_schemas import RazorpayWebhookEvent
from storefront.services.entitlements import grant_entitlement
from storefront.services.order_ledger import OrderLedger
from storefront.services.payment_gateway import PaymentGateway

logger = logging.getLogger(__name__)
security_logger = logging.getLogger("storefront.security")

CAPTURE_EVENTS = {"payment.captured", "order.paid"}


class ConfirmationChannel(str, Enum):
    client = "client"
    webhook = "webhook"


@dataclass
class ConfirmationResult:
    order: Order
    transitioned: bool


class WebhookOutcome(str, Enum):
    transitioned = "transitioned"
    already_paid = "already_paid"
    order_missing = "order_missing"
    order_terminal = "order_terminal"
    ignored = "ignored"


@dataclass
class WebhookResult:
    outcome: WebhookOutcome
    order_id: Optional[str] = None
    event: Optional[str] = None


class PaymentConfirmationVerifier:
    def __init__(self, session: Session, gateway: PaymentGateway):
        self.session = session
        self.gateway = gateway
        self.ledger = OrderLedger(session)

    # -------- client relay --------

    def verify_client_confirmation(
        self,
        order_id: str,
        payment_id: str,
        signature: str,
        requester: Optional[User] = None,
    ) -> ConfirmationResult:
        if not self.gateway.verify_payment_signature(order_id, payment_id, signature):
            self._reject_client_confirmation(order_id, requester)
            raise SignatureMismatch()

        return self._confirm(order_id, payment_id, signature, ConfirmationChannel.client)

    def _reject_client_confirmation(self, order_id: str, requester: Optional[User]):
        """
        Mark the order failed after a signature mismatch.

        Only the order's owner (or an internal caller with no requester) can
        fail it. A mismatch relayed by another user is logged and the order
        stays created, so nobody can fail someone else's purchase.
        """
        requester_id = requester.id if requester else None
        security_logger.warning(
            f"Signature mismatch: channel=client order={order_id} user={requester_id}"
        )

        order = self.ledger.get(order_id)
        if order is None:
            return

        if requester is not None and order.user_id != requester.id:
            security_logger.warning(
                f"Order {order_id} belongs to user {order.user_id}, not {requester_id}; left untouched"
            )
            return

        if self.ledger.mark_failed(order_id):
            self.session.commit()

    # -------- webhook --------

    def verify_webhook(self, raw_body: bytes, header_signature: Optional[str]) -> WebhookResult:
        if not self.gateway.verify_webhook_signature(raw_body, header_signature):
            security_logger.warning(
                f"Signature mismatch: channel=webhook body_bytes={len(raw_body)} "
                f"header_present={bool(header_signature)}"
            )
            raise SignatureMismatch("Invalid webhook signature")

        try:
            event = RazorpayWebhookEvent.model_validate_json(raw_body)
        except PydanticValidationError as e:
            logger.warning(f"Webhook with valid signature but unreadable payload: {e.error_count()} errors")
            return WebhookResult(WebhookOutcome.ignored)

        if event.event not in CAPTURE_EVENTS:
            logger.info(f"Webhook event {event.event} ignored")
            return WebhookResult(WebhookOutcome.ignored, event=event.event)

        payment = event.payload.payment.entity if event.payload.payment else None
        if payment is None or not payment.order_id:
            logger.warning(f"Webhook {event.event} without payment order id")
            return WebhookResult(WebhookOutcome.ignored, event=event.event)

        try:
            result = self._confirm(payment.order_id, payment.id, None, ConfirmationChannel.webhook)
        except OrderNotFound:
            logger.warning(f"Webhook {event.event} for unknown order {payment.order_id}")
            return WebhookResult(WebhookOutcome.order_missing, payment.order_id, event.event)
        except OrderTerminal:
            logger.error(
                f"Webhook {event.event} captured payment {payment.id} for failed order "
                f"{payment.order_id}; needs manual reconciliation"
            )
            return WebhookResult(WebhookOutcome.order_terminal, payment.order_id, event.event)

        outcome = WebhookOutcome.transitioned if result.transitioned else WebhookOutcome.already_paid
        return WebhookResult(outcome, payment.order_id, event.event)

    # -------- shared transition --------

    def _confirm(
        self,
        order_id: str,
        payment_id: str,
        signature: Optional[str],
        channel: ConfirmationChannel,
    ) -> ConfirmationResult:
        order = self.ledger.get(order_id)
        if order is None:
            raise OrderNotFound()

        if order.status == OrderStatus.paid:
            logger.info(f"Order {order_id} already paid, {channel.value} confirmation is a no-op")
            return ConfirmationResult(order, transitioned=False)

        if order.status == OrderStatus.failed:
            raise OrderTerminal()

        if self.ledger.mark_paid(order_id, payment_id, signature):
            grant_entitlement(self.session, order.user_id, order.product_id, order_id)
            self.session.commit()
            self.session.refresh(order)
            logger.info(f"Order {order_id} paid via {channel.value} (payment={payment_id})")
            return ConfirmationResult(order, transitioned=True)

        # lost the race to a concurrent confirmation
        self.session.rollback()
        self.session.refresh(order)
        if order.status == OrderStatus.paid:
            return ConfirmationResult(order, transitioned=False)
        raise OrderTerminal()
