from fastapi import APIRouter, Depends
from sqlalchemy import case, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from app.core.errors import NotFoundError, StoreError, ValidationError
from app.db.session import get_db
from app.models.agendamento import Agendamento as AgendamentoModel, AgendamentoStatus
from app.models.servico import Servico as ServicoModel, ServicoStatus
from app.schemas.servico import ServicoCreate, ServicoRead, ServicoStats, ServicoUpdate

router = APIRouter(prefix="/services", tags=["Services"])

logger = logging.getLogger(__name__)


def _get_service_or_404(db: Session, service_id: int) -> ServicoModel:
    s = db.query(ServicoModel).filter(ServicoModel.id == service_id).first()
    if not s:
        raise NotFoundError("Serviço não encontrado")
    return s


@router.get("", response_model=List[ServicoRead])
@router.get("/", response_model=List[ServicoRead])
def list_services(status: Optional[ServicoStatus] = None, db: Session = Depends(get_db)):
    try:
        q = db.query(ServicoModel)
        if status:
            q = q.filter(ServicoModel.status == status)
        return q.order_by(ServicoModel.name.asc()).all()
    except SQLAlchemyError as e:
        logger.exception("Erro ao buscar serviços")
        raise StoreError(str(e))


@router.get("/{service_id}", response_model=ServicoRead)
def get_service(service_id: int, db: Session = Depends(get_db)):
    return _get_service_or_404(db, service_id)


@router.get("/{service_id}/stats", response_model=ServicoStats)
def service_stats(service_id: int, db: Session = Depends(get_db)):
    """Booking count, completed count and revenue (completed only) of a service."""
    _get_service_or_404(db, service_id)
    concluido = AgendamentoModel.status == AgendamentoStatus.completed
    try:
        total, concluidos, receita = (
            db.query(
                func.count(AgendamentoModel.id),
                func.coalesce(func.sum(case((concluido, 1), else_=0)), 0),
                func.coalesce(func.sum(case((concluido, AgendamentoModel.total_price), else_=0)), 0),
            )
            .filter(AgendamentoModel.service_id == service_id)
            .one()
        )
    except SQLAlchemyError as e:
        logger.exception("Erro ao buscar estatísticas do serviço %s", service_id)
        raise StoreError(str(e))
    return {
        "total_appointments": int(total or 0),
        "completed_appointments": int(concluidos or 0),
        "total_revenue": float(receita or 0),
    }


@router.post("", response_model=ServicoRead, status_code=201)
@router.post("/", response_model=ServicoRead, status_code=201)
def create_service(payload: ServicoCreate, db: Session = Depends(get_db)):
    if not (payload.name or "").strip() or not (payload.category or "").strip() or payload.price is None:
        raise ValidationError("Nome, categoria e preço são obrigatórios")
    if payload.price <= 0:
        raise ValidationError("Preço deve ser maior que zero")
    try:
        s = ServicoModel(
            name=payload.name.strip(),
            category=payload.category.strip(),
            price=payload.price,
            duration_minutes=payload.duration_minutes or 60,
            description=payload.description or "",
            status=payload.status or ServicoStatus.active,
        )
        db.add(s)
        db.commit()
        db.refresh(s)
        logger.info("created service id=%s price=%s", s.id, s.price)
        return s
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Erro ao criar serviço")
        raise StoreError(str(e))


@router.put("/{service_id}", response_model=ServicoRead)
def update_service(service_id: int, payload: ServicoUpdate, db: Session = Depends(get_db)):
    s = _get_service_or_404(db, service_id)
    data = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}
    if "price" in data and data["price"] <= 0:
        raise ValidationError("Preço deve ser maior que zero")
    for campo in ("name", "category"):
        if campo in data and not data[campo].strip():
            raise ValidationError("Nome, categoria e preço são obrigatórios")
    try:
        for campo, valor in data.items():
            setattr(s, campo, valor)
        db.add(s)
        db.commit()
        db.refresh(s)
        return s
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Erro ao atualizar serviço %s", service_id)
        raise StoreError(str(e))


@router.delete("/{service_id}")
def delete_service(service_id: int, db: Session = Depends(get_db)):
    """Hard delete, or deactivation when appointments still reference the service."""
    s = _get_service_or_404(db, service_id)
    try:
        referencias = (
            db.query(func.count(AgendamentoModel.id))
            .filter(AgendamentoModel.service_id == service_id)
            .scalar()
        ) or 0
        if referencias > 0:
            s.status = ServicoStatus.inactive
            db.add(s)
            db.commit()
            db.refresh(s)
            return {
                "message": f"Serviço desativado com sucesso ({referencias} agendamentos encontrados)",
                "service": ServicoRead.model_validate(s),
            }
        db.delete(s)
        db.commit()
        return {"message": "Serviço removido com sucesso"}
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Erro ao remover serviço %s", service_id)
        raise StoreError(str(e))
