from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from settleup.db.session import Base

# Rows are written by the account service; this side only reads them.
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
