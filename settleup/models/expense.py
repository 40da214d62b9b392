from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Numeric
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from settleup.db.session import Base

class Expense(Base):
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True, index=True)
    # NULL for expenses between two friends
    group_id = Column(Integer, ForeignKey("groups.id"), nullable=True, index=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    description = Column(String, nullable=False)
    category = Column(String, nullable=False, server_default="general")
    date = Column(DateTime(timezone=True), server_default=func.now())
    split_method = Column(String, nullable=False, server_default="equal")
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    splits = relationship("ExpenseSplit", back_populates="expense", cascade="all, delete-orphan", order_by="ExpenseSplit.id")
    items = relationship("ExpenseItem", back_populates="expense", cascade="all, delete-orphan", order_by="ExpenseItem.id")

    def locked_for(self, user_id: int) -> bool:
        """An expense settled by anyone but its creator can no longer change."""
        return any(s.settled and s.user_id != user_id for s in self.splits)
