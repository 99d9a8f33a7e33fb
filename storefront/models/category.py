from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime

from storefront.models.base import TimestampField


class Category(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    slug: str = Field(index=True, unique=True)
    description: Optional[str] = None
    created_at: datetime = TimestampField()
