from sqlalchemy import Column, Integer, String, Date, DateTime, Text
from sqlalchemy.sql import func
from app.db.session import Base


class Cliente(Base):
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String(255), nullable=False)
    # unique but optional: NULLs never collide
    email = Column(String(255), nullable=True, unique=True)
    phone = Column(String(50), nullable=False)
    birth_date = Column(Date, nullable=True)
    gender = Column(String(20), nullable=True, default="nao_informado")
    address = Column(String(500), nullable=True)
    observations = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
