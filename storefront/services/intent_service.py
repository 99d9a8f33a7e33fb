import logging
import time
from dataclasses import dataclass

from sqlmodel import Session

from storefront.errors import AlreadyPurchased, ProductNotFound
from storefront.models.product import Product
from storefront.models.user import User
from storefront.services.entitlements import has_entitlement
from storefront.services.order_ledger import OrderLedger
from storefront.services.payment_gateway import PaymentGateway

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IntentResult:
    intent_id: str
    order_id: str
    amount: int
    currency: str
    gateway_public_key: str
    reused: bool = False


class PaymentIntentService:
    def __init__(self, session: Session, gateway: PaymentGateway, currency: str = "INR"):
        self.session = session
        self.gateway = gateway
        self.currency = currency
        self.ledger = OrderLedger(session)

    def create_intent(self, user: User, product_id: int) -> IntentResult:
        """
        Open a gateway order for one product and record it as ``created``.

        The gateway call happens first. If it fails nothing is persisted,
        and the Order row is committed before the client ever sees the
        gateway order id, so no payment can complete without a local record.
        """
        product = self.session.get(Product, product_id)
        if not product or not product.is_active:
            raise ProductNotFound()

        if has_entitlement(self.session, user.id, product.id):
            raise AlreadyPurchased()

        # order amount is a snapshot of the current price, in minor units
        amount = product.price

        pending = self.ledger.find_pending(
            user_id=user.id,
            product_id=product.id,
            amount=amount,
            currency=self.currency,
        )
        if pending and self.gateway.key_id:
            logger.info(f"Reusing pending order {pending.order_id} for user {user.id}, product {product.id}")
            return IntentResult(
                intent_id=pending.order_id,
                order_id=pending.order_id,
                amount=pending.amount,
                currency=pending.currency,
                gateway_public_key=self.gateway.key_id,
                reused=True,
            )

        gateway_order = self.gateway.create_order(
            amount=amount,
            currency=self.currency,
            receipt=f"rcpt_{user.id}_{product.id}_{int(time.time())}",
            notes={
                "user_id": str(user.id),
                "product_id": str(product.id),
                "product_title": product.title[:200],
            },
        )

        order = self.ledger.create(
            order_id=gateway_order.id,
            user_id=user.id,
            product_id=product.id,
            amount=amount,
            currency=gateway_order.currency,
        )
        self.session.commit()

        logger.info(f"Order {order.order_id} created for user {user.id}, product {product.id}, amount {amount}")

        return IntentResult(
            intent_id=gateway_order.id,
            order_id=order.order_id,
            amount=amount,
            currency=order.currency,
            gateway_public_key=self.gateway.key_id,
        )
