from fastapi import APIRouter, Depends, Query
from sqlalchemy import and_, case, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from datetime import date, datetime, timezone
from typing import Optional
import logging

from app.core.errors import StoreError, ValidationError
from app.core.timezone_utils import start_of_month, today_in_brazil
from app.db.session import get_db
from app.models.agendamento import Agendamento as AgendamentoModel, AgendamentoStatus
from app.models.client import Cliente as ClienteModel
from app.models.product import Produto as ProdutoModel
from app.models.servico import Servico as ServicoModel, ServicoStatus
from app.schemas.client import ClienteRead
from app.schemas.servico import ServicoRead
from app.services.agendamentos import serialize_agendamento
from app.services.estoque import stock_deficit
from app.services.relatorios import cancelamentos_por_dia, inventario, receita_por_periodo

router = APIRouter(prefix="/reports", tags=["Reports"])

logger = logging.getLogger(__name__)

CONCLUIDO = AgendamentoModel.status == AgendamentoStatus.completed


def _count(db: Session, column, *filters) -> int:
    q = db.query(func.count(column))
    if filters:
        q = q.filter(*filters)
    return int(q.scalar() or 0)


def _receita(db: Session, *filters) -> float:
    q = db.query(func.coalesce(func.sum(AgendamentoModel.total_price), 0)).filter(CONCLUIDO)
    if filters:
        q = q.filter(*filters)
    return float(q.scalar() or 0)


def _janela(start_date: Optional[date], end_date: Optional[date]):
    """Join/filter condition restricting appointments to [start, end] when both are given."""
    if start_date and end_date:
        return AgendamentoModel.appointment_date.between(start_date, end_date)
    return None


@router.get("/stats")
def report_stats(db: Session = Depends(get_db)):
    try:
        return {
            "total_clientes": _count(db, ClienteModel.id),
            "total_agendamentos": _count(db, AgendamentoModel.id),
            "total_servicos": _count(db, ServicoModel.id),
            "total_produtos": _count(db, ProdutoModel.id),
            "receita_total": _receita(db),
        }
    except SQLAlchemyError as e:
        logger.exception("Erro ao buscar estatísticas")
        raise StoreError(str(e))


@router.get("/dashboard")
def report_dashboard(db: Session = Depends(get_db)):
    """Headline numbers plus the next appointments and the worst stock alerts."""
    hoje = today_in_brazil()
    nao_cancelado = AgendamentoModel.status != AgendamentoStatus.cancelled
    estoque_baixo = ProdutoModel.stock_quantity <= ProdutoModel.min_stock_alert
    try:
        stats = {
            "total_clients": _count(db, ClienteModel.id),
            "active_services": _count(db, ServicoModel.id, ServicoModel.status == ServicoStatus.active),
            "total_products": _count(db, ProdutoModel.id),
            "upcoming_appointments": _count(db, AgendamentoModel.id, AgendamentoModel.appointment_date >= hoje, nao_cancelado),
            "today_appointments": _count(db, AgendamentoModel.id, AgendamentoModel.appointment_date == hoje, nao_cancelado),
            "monthly_revenue": _receita(db, AgendamentoModel.appointment_date >= start_of_month(hoje)),
            "low_stock_products": _count(db, ProdutoModel.id, estoque_baixo),
        }
        proximos = (
            db.query(AgendamentoModel)
            .filter(AgendamentoModel.appointment_date >= hoje, nao_cancelado)
            .order_by(AgendamentoModel.appointment_date.asc(), AgendamentoModel.appointment_time.asc())
            .limit(10)
            .all()
        )
        baixos = (
            db.query(ProdutoModel)
            .filter(estoque_baixo)
            .order_by((ProdutoModel.min_stock_alert - ProdutoModel.stock_quantity).desc())
            .limit(10)
            .all()
        )
    except SQLAlchemyError as e:
        logger.exception("Erro ao buscar dashboard")
        raise StoreError(str(e))
    return {
        "stats": stats,
        "upcoming_appointments": [serialize_agendamento(a) for a in proximos],
        "low_stock_products": [
            {
                "id": p.id,
                "name": p.name,
                "category": p.category,
                "stock_quantity": p.stock_quantity,
                "min_stock_alert": p.min_stock_alert,
                "deficit": stock_deficit(p.stock_quantity, p.min_stock_alert),
            }
            for p in baixos
        ],
    }


@router.get("/revenue")
def report_revenue(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    group_by: str = "day",
    db: Session = Depends(get_db),
):
    """Appointments and completed revenue per day, week or month."""
    if not start_date or not end_date:
        raise ValidationError("Data inicial e final são obrigatórias")
    try:
        rows = (
            db.query(AgendamentoModel.appointment_date, AgendamentoModel.status, AgendamentoModel.total_price)
            .filter(_janela(start_date, end_date))
            .all()
        )
    except SQLAlchemyError as e:
        logger.exception("Erro ao buscar relatório de receita")
        raise StoreError(str(e))
    return receita_por_periodo(rows, group_by)


@router.get("/popular-services")
def report_popular_services(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """Services ranked by bookings, then by completed revenue.

    The period filter sits in the join so services without bookings still
    show up with zero.
    """
    juncao = AgendamentoModel.service_id == ServicoModel.id
    janela = _janela(start_date, end_date)
    if janela is not None:
        juncao = and_(juncao, janela)
    total_bookings = func.count(AgendamentoModel.id).label("total_bookings")
    completed = func.coalesce(func.sum(case((CONCLUIDO, 1), else_=0)), 0).label("completed_bookings")
    revenue = func.coalesce(func.sum(case((CONCLUIDO, AgendamentoModel.total_price), else_=0)), 0).label("total_revenue")
    try:
        rows = (
            db.query(ServicoModel.id, ServicoModel.name, ServicoModel.category, ServicoModel.price,
                     total_bookings, completed, revenue)
            .outerjoin(AgendamentoModel, juncao)
            .group_by(ServicoModel.id, ServicoModel.name, ServicoModel.category, ServicoModel.price)
            .order_by(total_bookings.desc(), revenue.desc())
            .limit(limit)
            .all()
        )
    except SQLAlchemyError as e:
        logger.exception("Erro ao buscar serviços populares")
        raise StoreError(str(e))
    return [
        {
            "id": r.id,
            "name": r.name,
            "category": r.category,
            "price": float(r.price or 0),
            "total_bookings": int(r.total_bookings or 0),
            "completed_bookings": int(r.completed_bookings or 0),
            "total_revenue": float(r.total_revenue or 0),
        }
        for r in rows
    ]


@router.get("/clients")
def report_clients(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
):
    """Spend and visit count per client, biggest spenders first."""
    juncao = AgendamentoModel.client_id == ClienteModel.id
    janela = _janela(start_date, end_date)
    if janela is not None:
        juncao = and_(juncao, janela)
    total_appointments = func.count(AgendamentoModel.id).label("total_appointments")
    completed = func.coalesce(func.sum(case((CONCLUIDO, 1), else_=0)), 0).label("completed_appointments")
    spent = func.coalesce(func.sum(case((CONCLUIDO, AgendamentoModel.total_price), else_=0)), 0).label("total_spent")
    last = func.max(AgendamentoModel.appointment_date).label("last_appointment")
    try:
        rows = (
            db.query(ClienteModel.id, ClienteModel.full_name, ClienteModel.email, ClienteModel.phone,
                     ClienteModel.created_at, total_appointments, completed, spent, last)
            .outerjoin(AgendamentoModel, juncao)
            .group_by(ClienteModel.id, ClienteModel.full_name, ClienteModel.email, ClienteModel.phone,
                      ClienteModel.created_at)
            .order_by(spent.desc(), total_appointments.desc())
            .all()
        )
    except SQLAlchemyError as e:
        logger.exception("Erro ao buscar relatório de clientes")
        raise StoreError(str(e))
    return [
        {
            "id": r.id,
            "full_name": r.full_name,
            "email": r.email,
            "phone": r.phone,
            "created_at": r.created_at,
            "total_appointments": int(r.total_appointments or 0),
            "completed_appointments": int(r.completed_appointments or 0),
            "total_spent": float(r.total_spent or 0),
            "last_appointment": r.last_appointment,
        }
        for r in rows
    ]


@router.get("/cancellations")
def report_cancellations(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
):
    try:
        q = db.query(AgendamentoModel.appointment_date, AgendamentoModel.status)
        janela = _janela(start_date, end_date)
        if janela is not None:
            q = q.filter(janela)
        rows = q.all()
    except SQLAlchemyError as e:
        logger.exception("Erro ao buscar relatório de cancelamentos")
        raise StoreError(str(e))
    days, summary = cancelamentos_por_dia(rows)
    return {"summary": summary, "days": days}


@router.get("/inventory")
def report_inventory(db: Session = Depends(get_db)):
    try:
        produtos = db.query(ProdutoModel).all()
    except SQLAlchemyError as e:
        logger.exception("Erro ao buscar relatório de inventário")
        raise StoreError(str(e))
    products, summary = inventario(produtos)
    return {"products": products, "summary": summary}


@router.get("/geral")
def report_export_general(db: Session = Depends(get_db)):
    """Full export of clients, appointments and services."""
    try:
        clientes = db.query(ClienteModel).order_by(ClienteModel.full_name.asc()).all()
        agendamentos = db.query(AgendamentoModel).order_by(AgendamentoModel.appointment_date.desc()).all()
        servicos = db.query(ServicoModel).order_by(ServicoModel.name.asc()).all()
    except SQLAlchemyError as e:
        logger.exception("Erro ao gerar relatório geral")
        raise StoreError(str(e))
    return {
        "clientes": [ClienteRead.model_validate(c) for c in clientes],
        "agendamentos": [serialize_agendamento(a) for a in agendamentos],
        "servicos": [ServicoRead.model_validate(s) for s in servicos],
        "data_geracao": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/detalhado")
def report_export_detailed(db: Session = Depends(get_db)):
    """Totals, appointments per month and clients ranked by number of visits."""
    try:
        estatisticas = {
            "total_clientes": _count(db, ClienteModel.id),
            "total_agendamentos": _count(db, AgendamentoModel.id),
            "total_servicos": _count(db, ServicoModel.id),
            "total_produtos": _count(db, ProdutoModel.id),
        }
        agendamentos = db.query(AgendamentoModel.appointment_date, AgendamentoModel.status).all()
        total_agendamentos = func.count(AgendamentoModel.id).label("total_agendamentos")
        clientes = (
            db.query(ClienteModel.full_name, ClienteModel.email, ClienteModel.phone, total_agendamentos,
                     func.max(AgendamentoModel.appointment_date).label("ultimo_agendamento"))
            .outerjoin(AgendamentoModel, AgendamentoModel.client_id == ClienteModel.id)
            .group_by(ClienteModel.id, ClienteModel.full_name, ClienteModel.email, ClienteModel.phone)
            .order_by(total_agendamentos.desc())
            .all()
        )
    except SQLAlchemyError as e:
        logger.exception("Erro ao gerar relatório detalhado")
        raise StoreError(str(e))

    por_mes = {}
    for appointment_date, status in agendamentos:
        key = (appointment_date.year, appointment_date.month)
        m = por_mes.setdefault(key, {"ano": key[0], "mes": key[1], "total": 0, "concluidos": 0})
        m["total"] += 1
        if AgendamentoStatus(status) == AgendamentoStatus.completed:
            m["concluidos"] += 1

    return {
        "estatisticas": estatisticas,
        "agendamentos_por_mes": [por_mes[k] for k in sorted(por_mes, reverse=True)],
        "clientes_ativos": [
            {
                "full_name": c.full_name,
                "email": c.email,
                "phone": c.phone,
                "total_agendamentos": int(c.total_agendamentos or 0),
                "ultimo_agendamento": c.ultimo_agendamento,
            }
            for c in clientes
        ],
        "data_geracao": datetime.now(timezone.utc).isoformat(),
    }
