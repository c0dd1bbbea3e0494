from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Kind = Literal["income", "expense"]


class RegisterRequest(BaseModel):
    username: str
    password: str
    full_name: str | None = None


class LoginRequest(BaseModel):
    username: str
    password: str


class CategoryCreateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1, max_length=64)
    icon: str | None = Field(default=None, max_length=64)
    category_type: Kind


class CategoryUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=1, max_length=64)
    icon: str | None = Field(default=None, max_length=64)
    category_type: Kind | None = None


class TransactionCreateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    date: str
    transaction_type: Kind
    amount: Decimal = Field(ge=0, max_digits=14, decimal_places=2)
    note: str = Field(default="", max_length=500)
    category_id: str | None = None


class TransactionUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    date: str | None = None
    transaction_type: Kind | None = None
    amount: Decimal | None = Field(default=None, ge=0, max_digits=14, decimal_places=2)
    note: str | None = Field(default=None, max_length=500)
    category_id: str | None = None

