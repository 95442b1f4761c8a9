from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime

from app.models.servico import ServicoStatus
from app.schemas.money import Preco


class ServicoCreate(BaseModel):
    name: Optional[str] = None
    category: Optional[str] = None
    price: Optional[Preco] = None
    duration_minutes: Optional[int] = 60
    description: Optional[str] = None
    status: Optional[ServicoStatus] = ServicoStatus.active


class ServicoUpdate(BaseModel):
    name: Optional[str] = None
    category: Optional[str] = None
    price: Optional[Preco] = None
    duration_minutes: Optional[int] = None
    description: Optional[str] = None
    status: Optional[ServicoStatus] = None


class ServicoRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    category: str
    price: float
    duration_minutes: Optional[int] = None
    description: Optional[str] = None
    status: ServicoStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ServicoStats(BaseModel):
    total_appointments: int
    completed_appointments: int
    total_revenue: float
