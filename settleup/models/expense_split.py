from sqlalchemy import Column, Integer, Numeric, ForeignKey, Boolean
from sqlalchemy.orm import relationship
from settleup.db.session import Base

class ExpenseSplit(Base):
    __tablename__ = "expense_splits"

    id = Column(Integer, primary_key=True, index=True)
    expense_id = Column(Integer, ForeignKey("expenses.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    percentage = Column(Numeric(6, 3), nullable=True)
    paid_amount = Column(Numeric(10, 2), nullable=False, server_default="0")
    settled = Column(Boolean, nullable=False, server_default="false", default=False)

    expense = relationship("Expense", back_populates="splits")
