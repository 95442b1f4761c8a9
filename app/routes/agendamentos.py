from fastapi import APIRouter, Depends, Query
from typing import List, Optional
from datetime import date
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import logging

from app.core.errors import StoreError, ValidationError
from app.core.timezone_utils import month_bounds, today_in_brazil
from app.db.session import get_db
from app.models.agendamento import Agendamento as AgendamentoModel, AgendamentoStatus
from app.schemas.agendamento import AgendamentoCreate, AgendamentoRead, AgendamentoUpdate
from app.services import agendamentos as booking

router = APIRouter(prefix="/appointments", tags=["Appointments"])

logger = logging.getLogger(__name__)


def _ordered_by_slot(q):
    return q.order_by(AgendamentoModel.appointment_date.asc(), AgendamentoModel.appointment_time.asc())


@router.get("", response_model=List[AgendamentoRead])
@router.get("/", response_model=List[AgendamentoRead])
def list_appointments(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    day: Optional[date] = Query(None, alias="date"),
    status: Optional[AgendamentoStatus] = None,
    client_id: Optional[int] = None,
    service_id: Optional[int] = None,
    db: Session = Depends(get_db),
):
    try:
        q = db.query(AgendamentoModel)
        if day:
            q = q.filter(AgendamentoModel.appointment_date == day)
        if status:
            q = q.filter(AgendamentoModel.status == status)
        if client_id:
            q = q.filter(AgendamentoModel.client_id == client_id)
        if service_id:
            q = q.filter(AgendamentoModel.service_id == service_id)

        q = q.order_by(AgendamentoModel.appointment_date.desc(), AgendamentoModel.appointment_time.desc())
        offset = (page - 1) * limit
        rows = q.offset(offset).limit(limit).all()
        return [booking.serialize_agendamento(a) for a in rows]
    except SQLAlchemyError as e:
        logger.exception("Erro ao buscar agendamentos")
        raise StoreError(str(e))


@router.get("/proximos", response_model=List[AgendamentoRead])
def today_upcoming(db: Session = Depends(get_db)):
    """Today's scheduled or confirmed appointments at the clinic, by time."""
    try:
        rows = (
            db.query(AgendamentoModel)
            .filter(
                AgendamentoModel.appointment_date == today_in_brazil(),
                AgendamentoModel.status.in_([AgendamentoStatus.scheduled, AgendamentoStatus.confirmed]),
            )
            .order_by(AgendamentoModel.appointment_time.asc())
            .all()
        )
        return [booking.serialize_agendamento(a) for a in rows]
    except SQLAlchemyError as e:
        logger.exception("Erro ao buscar próximos agendamentos")
        raise StoreError(str(e))


@router.get("/agenda/{day}", response_model=List[AgendamentoRead])
def day_agenda(day: date, db: Session = Depends(get_db)):
    try:
        rows = _ordered_by_slot(
            db.query(AgendamentoModel).filter(
                AgendamentoModel.appointment_date == day,
                AgendamentoModel.status != AgendamentoStatus.cancelled,
            )
        ).all()
        return [booking.serialize_agendamento(a) for a in rows]
    except SQLAlchemyError as e:
        logger.exception("Erro ao buscar agenda de %s", day)
        raise StoreError(str(e))


@router.get("/month/{year}/{month}", response_model=List[AgendamentoRead])
def month_appointments(year: int, month: int, db: Session = Depends(get_db)):
    try:
        inicio, fim = month_bounds(year, month)
    except ValueError:
        raise ValidationError("Mês inválido")
    try:
        rows = _ordered_by_slot(
            db.query(AgendamentoModel).filter(
                AgendamentoModel.appointment_date >= inicio,
                AgendamentoModel.appointment_date < fim,
                AgendamentoModel.status != AgendamentoStatus.cancelled,
            )
        ).all()
        return [booking.serialize_agendamento(a) for a in rows]
    except SQLAlchemyError as e:
        logger.exception("Erro ao buscar agendamentos de %s/%s", month, year)
        raise StoreError(str(e))


@router.get("/{appointment_id}", response_model=AgendamentoRead)
def get_appointment(appointment_id: int, db: Session = Depends(get_db)):
    return booking.serialize_agendamento(booking.buscar_agendamento(db, appointment_id))


@router.post("", response_model=AgendamentoRead, status_code=201)
@router.post("/", response_model=AgendamentoRead, status_code=201)
def create_appointment(payload: AgendamentoCreate, db: Session = Depends(get_db)):
    try:
        ag = booking.criar_agendamento(db, payload)
        return booking.serialize_agendamento(ag)
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Erro ao criar agendamento")
        raise StoreError(str(e))


@router.put("/{appointment_id}", response_model=AgendamentoRead)
def update_appointment(appointment_id: int, payload: AgendamentoUpdate, db: Session = Depends(get_db)):
    ag = booking.buscar_agendamento(db, appointment_id)
    try:
        ag = booking.atualizar_agendamento(db, ag, payload.model_dump(exclude_unset=True))
        return booking.serialize_agendamento(ag)
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Erro ao atualizar agendamento %s", appointment_id)
        raise StoreError(str(e))


@router.delete("/{appointment_id}")
def cancel_appointment(appointment_id: int, db: Session = Depends(get_db)):
    """Cancel instead of deleting; the row stays for history."""
    ag = booking.buscar_agendamento(db, appointment_id)
    try:
        booking.cancelar_agendamento(db, ag)
        return {"message": "Agendamento cancelado com sucesso"}
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Erro ao cancelar agendamento %s", appointment_id)
        raise StoreError(str(e))
