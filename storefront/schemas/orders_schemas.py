from datetime import datetime
from typing import Optional

from storefront.constants.order_status import OrderStatus
from storefront.models.order import Order
from storefront.schemas.payment_schemas import CamelModel


class OrderView(CamelModel):
    order_id: str
    product_id: int
    product_title: Optional[str] = None
    amount: int
    currency: str
    status: OrderStatus
    payment_id: Optional[str] = None
    created_at: datetime
    paid_at: Optional[datetime] = None

    @classmethod
    def from_order(cls, order: Order, product_title: Optional[str] = None) -> "OrderView":
        return cls(
            order_id=order.order_id,
            product_id=order.product_id,
            product_title=product_title,
            amount=order.amount,
            currency=order.currency,
            status=order.status,
            payment_id=order.payment_id,
            created_at=order.created_at,
            paid_at=order.paid_at,
        )


class AdminOrderView(OrderView):
    """Adds the audit fields only admins may see."""

    user_id: int
    signature: Optional[str] = None

    @classmethod
    def from_order(cls, order: Order, product_title: Optional[str] = None) -> "AdminOrderView":
        base = OrderView.from_order(order, product_title)
        return cls(**base.model_dump(), user_id=order.user_id, signature=order.signature)


class AdminStats(CamelModel):
    total_products: int
    total_orders: int
    total_revenue: int
    total_customers: int
