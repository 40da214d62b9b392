from datetime import datetime
from decimal import Decimal
from typing import Annotated, List, Literal, Union
from pydantic import BaseModel, Field, model_validator

# Split method variants. Each carries only the fields its method needs.

class PercentageShare(BaseModel):
    user_id: int
    percentage: Decimal

class ExactShare(BaseModel):
    user_id: int
    amount: Decimal

class ItemInput(BaseModel):
    name: str
    amount: Decimal
    shared_by: List[int]

class EqualSplit(BaseModel):
    method: Literal["equal"] = "equal"

class PercentageSplit(BaseModel):
    method: Literal["percentage"] = "percentage"
    shares: List[PercentageShare]

class ExactSplit(BaseModel):
    method: Literal["exact"] = "exact"
    shares: List[ExactShare]

class ItemizedSplit(BaseModel):
    method: Literal["itemized"] = "itemized"
    items: List[ItemInput]

SplitParams = Annotated[
    Union[EqualSplit, PercentageSplit, ExactSplit, ItemizedSplit],
    Field(discriminator="method"),
]

# Request payloads

class CustomSplitInput(BaseModel):
    user_id: int
    percentage: Decimal | None = None
    amount: Decimal | None = None

class ExpenseCreate(BaseModel):
    group_id: int | None = None
    friend_id: int | None = None
    amount: Decimal = Field(gt=0)
    description: str = Field(min_length=1)
    category: str = "general"
    date: datetime | None = None
    split_method: str = "equal"
    custom_splits: List[CustomSplitInput] | None = None
    items: List[ItemInput] | None = None

    @model_validator(mode="after")
    def one_context(self):
        if (self.group_id is None) == (self.friend_id is None):
            raise ValueError("exactly one of group_id or friend_id is required")
        return self

class ExpenseUpdate(BaseModel):
    amount: Decimal | None = Field(default=None, gt=0)
    description: str | None = None
    category: str | None = None
    date: datetime | None = None
    split_method: str | None = None
    custom_splits: List[CustomSplitInput] | None = None
    items: List[ItemInput] | None = None

# Responses

class SplitOut(BaseModel):
    user_id: int
    amount: Decimal
    percentage: Decimal | None = None
    paid_amount: Decimal
    settled: bool

    class Config:
        from_attributes = True

class ItemOut(BaseModel):
    name: str
    amount: Decimal
    shared_by: List[int]

    class Config:
        from_attributes = True

class ExpenseOut(BaseModel):
    id: int
    group_id: int | None = None
    created_by: int
    amount: Decimal
    description: str
    category: str
    date: datetime | None = None
    split_method: str
    splits: List[SplitOut]
    items: List[ItemOut] = []

    class Config:
        from_attributes = True
