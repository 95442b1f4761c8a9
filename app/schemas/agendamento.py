from pydantic import BaseModel, field_validator
from typing import Optional
from datetime import date, time, datetime

from app.models.agendamento import AgendamentoStatus
from app.schemas.money import Preco


class AgendamentoCreate(BaseModel):
    # required fields are checked by the booking service so a missing value
    # gets the same 400 response as an empty one
    client_id: Optional[int] = None
    service_id: Optional[int] = None
    appointment_date: Optional[date] = None
    appointment_time: Optional[time] = None
    observations: Optional[str] = None
    total_price: Optional[Preco] = None

    @field_validator("client_id", "service_id", "appointment_date", "appointment_time", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class AgendamentoUpdate(BaseModel):
    client_id: Optional[int] = None
    service_id: Optional[int] = None
    appointment_date: Optional[date] = None
    appointment_time: Optional[time] = None
    status: Optional[AgendamentoStatus] = None
    observations: Optional[str] = None
    total_price: Optional[Preco] = None


class AgendamentoRead(BaseModel):
    id: int
    client_id: int
    service_id: int
    appointment_date: date
    appointment_time: time
    status: AgendamentoStatus
    observations: Optional[str] = None
    total_price: float
    client_name: Optional[str] = None
    client_phone: Optional[str] = None
    service_name: Optional[str] = None
    duration_minutes: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
