import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

import razorpay
import requests

from storefront.errors import GatewayUnavailable

logger = logging.getLogger(__name__)


class GatewayState(str, Enum):
    configured = "configured"
    unconfigured = "unconfigured"


@dataclass(frozen=True)
class GatewayOrder:
    id: str
    amount: int
    currency: str


class PaymentGateway:
    """
    Razorpay client wrapper.

    Built once from settings and injected into the services. Signature
    checks go through Razorpay's own utility so the HMAC and constant-time
    compare stay identical to what the gateway signs.
    """

    def __init__(
        self,
        key_id: Optional[str] = None,
        key_secret: Optional[str] = None,
        webhook_secret: Optional[str] = None,
        timeout: float = 10.0,
        client: Optional[razorpay.Client] = None,
    ):
        self.key_id = key_id
        self.timeout = timeout
        self._webhook_secret = webhook_secret
        self._client = client
        if self._client is None and key_id and key_secret:
            self._client = razorpay.Client(auth=(key_id, key_secret))

    @classmethod
    def from_settings(cls, settings) -> "PaymentGateway":
        gateway = cls(
            key_id=settings.razorpay_key_id,
            key_secret=settings.razorpay_key_secret,
            webhook_secret=settings.razorpay_webhook_secret,
            timeout=settings.gateway_timeout_seconds,
        )
        if gateway.state is GatewayState.unconfigured:
            logger.warning("Razorpay not configured. Payment routes will answer 503 until keys are added.")
        if not gateway.webhook_configured:
            logger.warning("Razorpay webhook secret missing. Webhooks will be rejected.")
        return gateway

    @property
    def state(self) -> GatewayState:
        if self._client is None or not self.key_id:
            return GatewayState.unconfigured
        return GatewayState.configured

    @property
    def webhook_configured(self) -> bool:
        return self._client is not None and bool(self._webhook_secret)

    def _require_client(self) -> razorpay.Client:
        if self.state is GatewayState.unconfigured:
            raise GatewayUnavailable("Payment gateway not configured")
        return self._client

    def create_order(self, amount: int, currency: str, receipt: str, notes: Optional[Dict[str, Any]] = None) -> GatewayOrder:
        client = self._require_client()
        try:
            razorpay_order = client.order.create(
                data={
                    "amount": amount,
                    "currency": currency,
                    "receipt": receipt,
                    "payment_capture": 1,
                    "notes": notes or {},
                },
                timeout=self.timeout,
            )
        except requests.Timeout as e:
            logger.error(f"Razorpay order create timed out after {self.timeout}s (receipt={receipt})")
            raise GatewayUnavailable("Payment gateway timed out") from e
        except (
            requests.RequestException,
            razorpay.errors.BadRequestError,
            razorpay.errors.GatewayError,
            razorpay.errors.ServerError,
        ) as e:
            logger.error(f"Razorpay order create failed (receipt={receipt}): {e}")
            raise GatewayUnavailable() from e

        return GatewayOrder(
            id=razorpay_order["id"],
            amount=int(razorpay_order.get("amount", amount)),
            currency=razorpay_order.get("currency", currency),
        )

    def verify_payment_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        """HMAC-SHA256(key_secret, "order_id|payment_id") against ``signature``."""
        client = self._require_client()
        try:
            client.utility.verify_payment_signature({
                "razorpay_order_id": order_id,
                "razorpay_payment_id": payment_id,
                "razorpay_signature": signature,
            })
        except (razorpay.errors.SignatureVerificationError, TypeError):
            return False
        return True

    def verify_webhook_signature(self, raw_body: bytes, signature: Optional[str]) -> bool:
        """HMAC-SHA256(webhook_secret, raw_body) against the header value."""
        if not self.webhook_configured:
            raise GatewayUnavailable("Webhook secret not configured")
        if not signature:
            return False
        try:
            body = raw_body.decode("utf-8")
            self._client.utility.verify_webhook_signature(body, signature, self._webhook_secret)
        except (razorpay.errors.SignatureVerificationError, UnicodeDecodeError, TypeError):
            return False
        return True
