from enum import Enum
from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime

from storefront.models.base import TimestampField


class UserRole(str, Enum):
    customer = "customer"
    admin = "admin"


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    email: str = Field(index=True, unique=True)
    password_hash: str
    role: UserRole = Field(default=UserRole.customer)
    created_at: datetime = TimestampField()

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.admin
