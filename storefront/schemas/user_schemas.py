from typing import List

from pydantic import BaseModel, EmailStr, Field, model_validator

from storefront.schemas.payment_schemas import CamelModel


class UserRegister(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    email: EmailStr
    password: str = Field(min_length=8, max_length=72)
    confirm_password: str

    @model_validator(mode="after")
    def validate_passwords(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class UserResponse(BaseModel):
    message: str
    user_id: int
    email: EmailStr
    role: str


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class Token(BaseModel):
    access_token: str
    token_type: str


class MeResponse(CamelModel):
    id: int
    name: str
    email: str
    role: str
    purchased_products: List[int] = []
