from sqlalchemy import Column, Integer, String, Date, Time, Text, Enum, DateTime, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db.session import Base
from app.models.client import Cliente  # noqa: F401
from app.models.servico import Servico  # noqa: F401
import enum


class AgendamentoStatus(str, enum.Enum):
    scheduled = 'scheduled'
    confirmed = 'confirmed'
    completed = 'completed'
    cancelled = 'cancelled'
    no_show = 'no_show'


class Agendamento(Base):
    __tablename__ = 'appointments'

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False, index=True)
    appointment_date = Column(Date, nullable=False, index=True)
    appointment_time = Column(Time, nullable=False)
    status = Column(Enum(AgendamentoStatus, native_enum=False, length=20), nullable=False, default=AgendamentoStatus.scheduled)
    observations = Column(Text, nullable=True)
    # price frozen at booking time, independent of later service price changes
    total_price = Column(Numeric(10, 2), nullable=False)
    # "<date> <time>" while the appointment holds its slot, NULL once cancelled.
    # The unique constraint allows one non-cancelled appointment per slot.
    slot_key = Column(String(32), nullable=True, unique=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    cliente = relationship("Cliente", lazy="joined", viewonly=True)
    servico = relationship("Servico", lazy="joined", viewonly=True)
