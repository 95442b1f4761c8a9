from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import logging

from app.core.errors import StoreError
from app.core.timezone_utils import start_of_month, today_in_brazil
from app.db.session import get_db
from app.models.agendamento import Agendamento as AgendamentoModel, AgendamentoStatus
from app.models.client import Cliente as ClienteModel

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])

logger = logging.getLogger(__name__)


@router.get("/stats")
def dashboard_stats(db: Session = Depends(get_db)):
    """
    Front page counters.

    Returns: { totalClientes, agendamentosHoje, receitaMes, servicosRealizados }
    where receitaMes sums completed appointments since the first day of the
    current month and servicosRealizados counts completed appointments.
    """
    hoje = today_in_brazil()
    concluido = AgendamentoModel.status == AgendamentoStatus.completed
    try:
        total_clientes = db.query(func.count(ClienteModel.id)).scalar()
        hoje_count = (
            db.query(func.count(AgendamentoModel.id))
            .filter(AgendamentoModel.appointment_date == hoje, AgendamentoModel.status != AgendamentoStatus.cancelled)
            .scalar()
        )
        receita_mes = (
            db.query(func.coalesce(func.sum(AgendamentoModel.total_price), 0))
            .filter(concluido, AgendamentoModel.appointment_date >= start_of_month(hoje))
            .scalar()
        )
        realizados = db.query(func.count(AgendamentoModel.id)).filter(concluido).scalar()
    except SQLAlchemyError as e:
        logger.exception("Erro ao buscar estatísticas do dashboard")
        raise StoreError(str(e))
    return {
        "totalClientes": int(total_clientes or 0),
        "agendamentosHoje": int(hoje_count or 0),
        "receitaMes": float(receita_mes or 0),
        "servicosRealizados": int(realizados or 0),
    }
