from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from duesbook.db.base import Base


class User(Base):
    """Shopkeeper account. Owns customers."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    name = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
