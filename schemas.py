import datetime as dt
from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, field_validator

from models import TransactionType
from periods import MONTH_RE

Money = Annotated[
    Decimal, PlainSerializer(float, return_type=float, when_used="json")
]


def _strip_required(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be blank")
    return value


class TransactionIn(BaseModel):
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    description: str = Field(..., min_length=1, max_length=200)
    category: str = Field(..., min_length=1, max_length=50)
    date: date
    type: TransactionType

    @field_validator("description", "category")
    @classmethod
    def strip_text(cls, value: str) -> str:
        return _strip_required(value)


class TransactionUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    amount: Optional[Decimal] = Field(
        default=None, gt=0, max_digits=12, decimal_places=2
    )
    description: Optional[str] = Field(default=None, min_length=1, max_length=200)
    category: Optional[str] = Field(default=None, min_length=1, max_length=50)
    date: Optional[dt.date] = None
    type: Optional[TransactionType] = None

    @field_validator("description", "category")
    @classmethod
    def strip_text(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return _strip_required(value)


class TransactionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    amount: Money
    description: str
    category: str
    date: str
    type: TransactionType
    created_at: datetime
    updated_at: datetime


class Pagination(BaseModel):
    page: int
    limit: int
    has_more: bool


class TransactionPage(BaseModel):
    transactions: list[TransactionOut]
    pagination: Pagination


class BudgetIn(BaseModel):
    category: str = Field(..., min_length=1, max_length=50)
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    month: str = Field(..., pattern=MONTH_RE.pattern)


class BudgetOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    category: str
    amount: Money
    month: str
    created_at: datetime
    updated_at: datetime
