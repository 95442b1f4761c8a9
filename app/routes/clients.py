from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from typing import List, Optional
import logging
import math

from app.core.errors import ConflictError, DuplicateError, NotFoundError, StoreError, ValidationError
from app.db.session import get_db
from app.models.agendamento import Agendamento as AgendamentoModel
from app.models.client import Cliente as ClienteModel
from app.schemas.agendamento import AgendamentoRead
from app.schemas.client import ClienteCreate, ClienteList, ClienteRead, ClienteUpdate
from app.services.agendamentos import serialize_agendamento

router = APIRouter(prefix="/clients", tags=["Clients"])

logger = logging.getLogger(__name__)


def _get_client_or_404(db: Session, client_id: int) -> ClienteModel:
    client = db.query(ClienteModel).filter(ClienteModel.id == client_id).first()
    if not client:
        raise NotFoundError("Cliente não encontrado")
    return client


def _blank(value: Optional[str]) -> bool:
    return not (value or "").strip()


@router.get("", response_model=ClienteList)
@router.get("/", response_model=ClienteList)
def list_clients(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    search: Optional[str] = None,
    db: Session = Depends(get_db),
):
    try:
        q = db.query(ClienteModel)
        if search:
            pattern = f"%{search}%"
            q = q.filter(or_(
                ClienteModel.full_name.ilike(pattern),
                ClienteModel.email.ilike(pattern),
                ClienteModel.phone.ilike(pattern),
            ))
        total = q.with_entities(func.count(ClienteModel.id)).scalar() or 0
        rows = q.order_by(ClienteModel.full_name.asc()).offset((page - 1) * limit).limit(limit).all()
        return {
            "data": [ClienteRead.model_validate(r) for r in rows],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": int(total),
                "pages": math.ceil(total / limit),
            },
        }
    except SQLAlchemyError as e:
        logger.exception("Erro ao buscar clientes")
        raise StoreError(str(e))


@router.get("/{client_id}", response_model=ClienteRead)
def get_client(client_id: int, db: Session = Depends(get_db)):
    return _get_client_or_404(db, client_id)


@router.get("/{client_id}/appointments", response_model=List[AgendamentoRead])
def client_appointments(client_id: int, db: Session = Depends(get_db)):
    """Appointment history of a client, newest first."""
    _get_client_or_404(db, client_id)
    try:
        rows = (
            db.query(AgendamentoModel)
            .filter(AgendamentoModel.client_id == client_id)
            .order_by(AgendamentoModel.appointment_date.desc(), AgendamentoModel.appointment_time.desc())
            .all()
        )
        return [serialize_agendamento(a) for a in rows]
    except SQLAlchemyError as e:
        logger.exception("Erro ao buscar histórico do cliente %s", client_id)
        raise StoreError(str(e))


@router.post("", response_model=ClienteRead, status_code=201)
@router.post("/", response_model=ClienteRead, status_code=201)
def create_client(payload: ClienteCreate, db: Session = Depends(get_db)):
    if _blank(payload.full_name) or _blank(payload.phone):
        raise ValidationError("Nome completo e telefone são obrigatórios")
    try:
        client = ClienteModel(
            full_name=payload.full_name.strip(),
            email=payload.email,
            phone=payload.phone.strip(),
            birth_date=payload.birth_date,
            gender=payload.gender or "nao_informado",
            address=payload.address,
            observations=payload.observations,
        )
        db.add(client)
        db.commit()
        db.refresh(client)
        return client
    except IntegrityError:
        db.rollback()
        raise DuplicateError("Email já cadastrado")
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Erro ao criar cliente")
        raise StoreError(str(e))


@router.put("/{client_id}", response_model=ClienteRead)
def update_client(client_id: int, payload: ClienteUpdate, db: Session = Depends(get_db)):
    client = _get_client_or_404(db, client_id)
    data = payload.model_dump(exclude_unset=True)
    for campo in ("full_name", "phone"):
        if campo in data and data[campo] is not None and _blank(data[campo]):
            raise ValidationError("Nome completo e telefone são obrigatórios")
    try:
        for campo, valor in data.items():
            # coalesce: an explicit null keeps the stored value
            if valor is not None:
                setattr(client, campo, valor)
        db.add(client)
        db.commit()
        db.refresh(client)
        return client
    except IntegrityError:
        db.rollback()
        raise DuplicateError("Email já cadastrado")
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Erro ao atualizar cliente %s", client_id)
        raise StoreError(str(e))


@router.delete("/{client_id}")
def delete_client(client_id: int, db: Session = Depends(get_db)):
    client = _get_client_or_404(db, client_id)
    try:
        total = (
            db.query(func.count(AgendamentoModel.id))
            .filter(AgendamentoModel.client_id == client_id)
            .scalar()
        ) or 0
    except SQLAlchemyError as e:
        logger.exception("Erro ao verificar agendamentos do cliente %s", client_id)
        raise StoreError(str(e))
    if total > 0:
        raise ConflictError("Cliente possui agendamentos e não pode ser excluído")
    try:
        db.delete(client)
        db.commit()
        return {"message": "Cliente removido com sucesso"}
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Erro ao remover cliente %s", client_id)
        raise StoreError(str(e))
