from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field, model_validator

class SettlementCreate(BaseModel):
    from_user_id: int
    to_user_id: int
    amount: Decimal = Field(gt=0)

    @model_validator(mode="after")
    def distinct_parties(self):
        if self.from_user_id == self.to_user_id:
            raise ValueError("a user cannot settle with themselves")
        return self

class SettlementOut(BaseModel):
    id: int
    group_id: int | None = None
    from_user_id: int
    to_user_id: int
    amount: Decimal
    settled_at: datetime | None = None

    class Config:
        from_attributes = True
