from sqlalchemy import Column, Integer, String, DateTime, Text, Numeric, Enum
from sqlalchemy.sql import func
from app.db.session import Base
import enum


class ServicoStatus(str, enum.Enum):
    active = 'active'
    inactive = 'inactive'


class Servico(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    category = Column(String(100), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    duration_minutes = Column(Integer, nullable=False, default=60)
    description = Column(Text, nullable=True)
    # stored as plain strings to avoid native ENUM migrations
    status = Column(Enum(ServicoStatus, native_enum=False, length=20), nullable=False, default=ServicoStatus.active)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
