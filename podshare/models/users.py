from sqlalchemy import Column, Integer, String, DateTime, func
from . import Base

class User(Base):
    """Identity-provider owned user row; read-only from this service."""
    __tablename__ = 'users'
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(150), nullable=True)
    email = Column(String, unique=True, index=True, nullable=True)
    image = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
