from datetime import datetime
from typing import Optional

from pydantic import Field

from storefront.models.category import Category
from storefront.schemas.payment_schemas import CamelModel


class CategoryCreate(CamelModel):
    name: str = Field(min_length=1, max_length=80)
    description: Optional[str] = None


class CategoryUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=80)
    description: Optional[str] = None


class CategoryResponse(CamelModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_category(cls, category: Category) -> "CategoryResponse":
        return cls(
            id=category.id,
            name=category.name,
            slug=category.slug,
            description=category.description,
            created_at=category.created_at,
        )
