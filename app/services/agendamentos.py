"""Appointment booking rules.

Booking is strict: every referenced client and service must exist, the
service must be active, and a (date, time) slot holds at most one
non-cancelled appointment. The last rule is checked up front for a friendly
error and enforced by the unique ``slot_key`` column, so two concurrent
bookings that both pass the check still end with exactly one row.
"""
import logging
from datetime import date, time
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.models.agendamento import Agendamento as AgendamentoModel, AgendamentoStatus
from app.models.client import Cliente as ClienteModel
from app.models.servico import Servico as ServicoModel, ServicoStatus

logger = logging.getLogger(__name__)

S = AgendamentoStatus

# Allowed status changes. Terminal states have no way out.
TRANSICOES = {
    S.scheduled: {S.confirmed, S.cancelled, S.no_show},
    S.confirmed: {S.completed, S.cancelled, S.no_show},
    S.completed: set(),
    S.cancelled: set(),
    S.no_show: set(),
}

MSG_HORARIO_OCUPADO = "Já existe um agendamento neste horário"


def pode_transitar(atual: AgendamentoStatus, destino: AgendamentoStatus) -> bool:
    if atual == destino:
        return True
    return destino in TRANSICOES[atual]


def checar_transicao(atual: AgendamentoStatus, destino: AgendamentoStatus) -> None:
    if not pode_transitar(atual, destino):
        raise ConflictError(
            f"Não é possível alterar o status de '{atual.value}' para '{destino.value}'"
        )


def slot_key_for(appointment_date: date, appointment_time: time, status: AgendamentoStatus) -> Optional[str]:
    """Key of the slot an appointment occupies, None when it frees the slot."""
    if status == S.cancelled:
        return None
    return f"{appointment_date.isoformat()} {appointment_time.strftime('%H:%M:%S')}"


def aplicar_status(agendamento: AgendamentoModel, destino: AgendamentoStatus) -> None:
    """Move an appointment to ``destino`` and keep its slot_key in sync.

    Raises ConflictError for a transition the state machine forbids.
    """
    destino = S(destino)
    checar_transicao(S(agendamento.status), destino)
    agendamento.status = destino
    agendamento.slot_key = slot_key_for(agendamento.appointment_date, agendamento.appointment_time, destino)


def resolver_preco(total_price, servico: ServicoModel) -> float:
    """Price to snapshot on the appointment.

    A supplied non-zero price wins; otherwise the service's current price.
    """
    if total_price:
        if total_price < 0:
            raise ValidationError("Preço deve ser maior que zero")
        return float(total_price)
    return float(servico.price)


def validar_campos_obrigatorios(payload) -> None:
    faltando = [
        campo for campo in ("client_id", "service_id", "appointment_date", "appointment_time")
        if not getattr(payload, campo, None)
    ]
    if faltando:
        raise ValidationError("Cliente, serviço, data e horário são obrigatórios")


def buscar_cliente(db: Session, client_id: int) -> ClienteModel:
    cliente = db.query(ClienteModel).filter(ClienteModel.id == client_id).first()
    if not cliente:
        raise ValidationError(f"Cliente {client_id} não encontrado")
    return cliente


def buscar_servico_ativo(db: Session, service_id: int) -> ServicoModel:
    servico = db.query(ServicoModel).filter(ServicoModel.id == service_id).first()
    if not servico:
        raise ValidationError(f"Serviço {service_id} não encontrado")
    if not servico_ativo(servico):
        raise ValidationError(f"Serviço {service_id} está inativo")
    return servico


def servico_ativo(servico: ServicoModel) -> bool:
    return ServicoStatus(servico.status) == ServicoStatus.active


def buscar_agendamento(db: Session, agendamento_id: int) -> AgendamentoModel:
    ag = db.query(AgendamentoModel).filter(AgendamentoModel.id == agendamento_id).first()
    if not ag:
        raise NotFoundError("Agendamento não encontrado")
    return ag


def buscar_conflito(db: Session, appointment_date: date, appointment_time: time, excluir_id: Optional[int] = None):
    """First non-cancelled appointment on the slot, ignoring ``excluir_id``."""
    q = db.query(AgendamentoModel.id).filter(
        AgendamentoModel.appointment_date == appointment_date,
        AgendamentoModel.appointment_time == appointment_time,
        AgendamentoModel.status != S.cancelled,
    )
    if excluir_id is not None:
        q = q.filter(AgendamentoModel.id != excluir_id)
    return q.first()


def _commit_slot(db: Session, agendamento: AgendamentoModel) -> AgendamentoModel:
    try:
        db.commit()
    except IntegrityError:
        # slot_key unique constraint: another request took the slot between
        # our conflict check and this write
        db.rollback()
        logger.warning(
            "Conflito de horário detectado pelo banco: %s %s",
            agendamento.appointment_date, agendamento.appointment_time,
        )
        raise ConflictError(MSG_HORARIO_OCUPADO)
    db.refresh(agendamento)
    return agendamento


def criar_agendamento(db: Session, payload) -> AgendamentoModel:
    validar_campos_obrigatorios(payload)
    buscar_cliente(db, payload.client_id)
    servico = buscar_servico_ativo(db, payload.service_id)
    preco = resolver_preco(payload.total_price, servico)

    if buscar_conflito(db, payload.appointment_date, payload.appointment_time):
        raise ConflictError(MSG_HORARIO_OCUPADO)

    ag = AgendamentoModel(
        client_id=payload.client_id,
        service_id=payload.service_id,
        appointment_date=payload.appointment_date,
        appointment_time=payload.appointment_time,
        observations=payload.observations or "",
        total_price=preco,
        status=S.scheduled,
        slot_key=slot_key_for(payload.appointment_date, payload.appointment_time, S.scheduled),
    )
    db.add(ag)
    ag = _commit_slot(db, ag)
    logger.info("Agendamento %s criado para %s %s (R$ %.2f)", ag.id, ag.appointment_date, ag.appointment_time, preco)
    return ag


def atualizar_agendamento(db: Session, ag: AgendamentoModel, data: dict) -> AgendamentoModel:
    """Partial update; keys missing from ``data`` (or set to None) keep their value."""
    data = {k: v for k, v in data.items() if v is not None}

    if "client_id" in data and data["client_id"] != ag.client_id:
        buscar_cliente(db, data["client_id"])
    if "service_id" in data and data["service_id"] != ag.service_id:
        buscar_servico_ativo(db, data["service_id"])
    if "total_price" in data and data["total_price"] <= 0:
        raise ValidationError("Preço deve ser maior que zero")

    nova_data = data.get("appointment_date", ag.appointment_date)
    novo_horario = data.get("appointment_time", ag.appointment_time)
    destino = S(data.get("status", ag.status))

    checar_transicao(S(ag.status), destino)

    mudou_horario = (nova_data, novo_horario) != (ag.appointment_date, ag.appointment_time)
    if mudou_horario and destino != S.cancelled:
        if buscar_conflito(db, nova_data, novo_horario, excluir_id=ag.id):
            raise ConflictError(MSG_HORARIO_OCUPADO)

    for campo in ("client_id", "service_id", "appointment_date", "appointment_time", "observations", "total_price"):
        if campo in data:
            setattr(ag, campo, data[campo])
    aplicar_status(ag, destino)
    db.add(ag)
    return _commit_slot(db, ag)


def cancelar_agendamento(db: Session, ag: AgendamentoModel) -> AgendamentoModel:
    """Soft-cancel: the row stays, only the status changes and the slot frees."""
    aplicar_status(ag, S.cancelled)
    db.add(ag)
    db.commit()
    db.refresh(ag)
    logger.info("Agendamento %s cancelado", ag.id)
    return ag


def serialize_agendamento(ag: AgendamentoModel) -> dict:
    cliente = ag.cliente
    servico = ag.servico
    return {
        'id': ag.id,
        'client_id': ag.client_id,
        'service_id': ag.service_id,
        'appointment_date': ag.appointment_date,
        'appointment_time': ag.appointment_time,
        'status': S(ag.status),
        'observations': ag.observations,
        'total_price': float(ag.total_price or 0),
        'client_name': cliente.full_name if cliente else None,
        'client_phone': cliente.phone if cliente else None,
        'service_name': servico.name if servico else None,
        'duration_minutes': servico.duration_minutes if servico else None,
        'created_at': ag.created_at,
        'updated_at': ag.updated_at,
    }
