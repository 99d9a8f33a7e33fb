from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime

from storefront.constants.order_status import OrderStatus
from storefront.models.base import TimestampField


class Order(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    # gateway-issued order id (razorpay "order_...")
    order_id: str = Field(index=True, unique=True)

    user_id: int = Field(foreign_key="user.id", index=True)
    product_id: int = Field(foreign_key="product.id", index=True)

    # snapshot at creation, minor units
    amount: int
    currency: str = "INR"

    status: OrderStatus = Field(default=OrderStatus.created, index=True)

    # audit fields, set on confirmation
    payment_id: Optional[str] = Field(default=None, index=True)
    signature: Optional[str] = None

    created_at: datetime = TimestampField()
    paid_at: Optional[datetime] = TimestampField(nullable=True)
