from sqlalchemy import Column, Integer, BigInteger, String, DateTime, ForeignKey, JSON, func
from . import Base

class Upload(Base):
    __tablename__ = 'uploads'
    id = Column(String(36), primary_key=True)
    user_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), index=True, nullable=False)
    file_name = Column(String(255), nullable=False)
    file_type = Column(String(255), nullable=False)
    file_size = Column(BigInteger, nullable=False)
    folder = Column(String(255), nullable=False, default='podcasts')
    parts = Column(JSON, nullable=False, default=list)
    status = Column(String(20), nullable=False, default='initiated')  # initiated, completed
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    completed_at = Column(DateTime(timezone=True), nullable=True)
