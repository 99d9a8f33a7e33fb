"""
Order ledger.

Orders are only ever created or moved forward. Transitions are conditional
updates (``... WHERE order_id = :id AND status IN (<allowed sources>)``), so
two confirmations racing on the same order cannot both win. The caller owns
the transaction and commits.
"""
import logging
from typing import List, Optional

from sqlalchemy import update
from sqlmodel import Session, select

from storefront.constants.order_status import ALLOWED_TRANSITIONS, OrderStatus
from storefront.models.base import utcnow
from storefront.models.order import Order

logger = logging.getLogger(__name__)


def _sources_for(target: OrderStatus) -> List[OrderStatus]:
    return [status for status, targets in ALLOWED_TRANSITIONS.items() if target in targets]


class OrderLedger:
    def __init__(self, session: Session):
        self.session = session

    def create(self, *, order_id: str, user_id: int, product_id: int, amount: int, currency: str) -> Order:
        order = Order(
            order_id=order_id,
            user_id=user_id,
            product_id=product_id,
            amount=amount,
            currency=currency,
            status=OrderStatus.created,
        )
        self.session.add(order)
        self.session.flush()
        return order

    def get(self, order_id: str) -> Optional[Order]:
        return self.session.exec(
            select(Order).where(Order.order_id == order_id)
        ).first()

    def find_pending(self, *, user_id: int, product_id: int, amount: int, currency: str) -> Optional[Order]:
        return self.session.exec(
            select(Order)
            .where(Order.user_id == user_id)
            .where(Order.product_id == product_id)
            .where(Order.amount == amount)
            .where(Order.currency == currency)
            .where(Order.status == OrderStatus.created)
            .order_by(Order.created_at.desc())
        ).first()

    def _transition(self, order_id: str, target: OrderStatus, **values) -> bool:
        stmt = (
            update(Order)
            .where(Order.order_id == order_id)
            .where(Order.status.in_(_sources_for(target)))
            .values(status=target, **values)
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)
        moved = result.rowcount == 1
        if moved:
            logger.info(f"Order {order_id} -> {target.value}")
        return moved

    def mark_paid(self, order_id: str, payment_id: str, signature: Optional[str] = None) -> bool:
        """created -> paid. False when another confirmation got there first."""
        return self._transition(
            order_id,
            OrderStatus.paid,
            payment_id=payment_id,
            signature=signature,
            paid_at=utcnow(),
        )

    def mark_failed(self, order_id: str) -> bool:
        return self._transition(order_id, OrderStatus.failed)

    def list_for_user(self, user_id: int, status: Optional[OrderStatus] = OrderStatus.paid) -> List[Order]:
        query = select(Order).where(Order.user_id == user_id)
        if status is not None:
            query = query.where(Order.status == status)
        return list(self.session.exec(query.order_by(Order.created_at.desc())).all())

    def list_all(self) -> List[Order]:
        return list(self.session.exec(select(Order).order_by(Order.created_at.desc())).all())
