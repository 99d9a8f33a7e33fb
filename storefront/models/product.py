from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field
from typing import List, Optional
from datetime import datetime

from storefront.models.base import TimestampField


class Product(SQLModel, table=True):
    #main info
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    slug: str = Field(index=True)
    description: str = ""
    category_id: Optional[int] = Field(default=None, foreign_key="category.id")

    #price in smallest currency unit (paise)
    price: int = Field(gt=0)

    #stored objects (opaque R2 keys)
    file_key: str
    file_name: str
    file_size: Optional[int] = None
    preview_images: List[str] = Field(default_factory=list, sa_column=Column(JSON))

    downloads: int = Field(default=0)
    is_active: bool = Field(default=True)

    created_at: datetime = TimestampField()
