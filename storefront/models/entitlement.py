from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime

from storefront.models.base import TimestampField


class Entitlement(SQLModel, table=True):
    """One row per (user, product) the user owns."""

    __table_args__ = (UniqueConstraint("user_id", "product_id", name="uq_entitlement_user_product"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    product_id: int = Field(foreign_key="product.id", index=True)
    order_id: Optional[str] = None

    granted_at: datetime = TimestampField()
