from datetime import date

from app.core.errors import ValidationError
from app.models.agendamento import AgendamentoStatus
from app.services.estoque import (
    SEM_ESTOQUE, profit_margin, stock_status, stock_value,
)

AGRUPAMENTOS = ("day", "week", "month")


def period_key(d: date, group_by: str = "day") -> str:
    """Label of the reporting period containing ``d``.

    day -> YYYY-MM-DD, month -> YYYY-MM, week -> YYYY-WW where week 1 is
    Jan 1-7 of that year.
    """
    if group_by == "month":
        return f"{d.year}-{d.month:02d}"
    if group_by == "week":
        semana = (d.timetuple().tm_yday - 1) // 7 + 1
        return f"{d.year}-{semana:02d}"
    return d.isoformat()


def taxa_cancelamento(total: int, cancelados: int, nao_compareceu: int) -> float:
    """Cancelled plus no-show appointments as a percentage of ``total``."""
    if not total:
        return 0.0
    return round((cancelados + nao_compareceu) / total * 100, 2)


def receita_por_periodo(agendamentos, group_by: str = "day"):
    """Group (date, status, total_price) rows into revenue per period.

    Only completed appointments count as revenue; every appointment counts
    in ``total_appointments``. Periods come out in ascending order.
    """
    if group_by not in AGRUPAMENTOS:
        raise ValidationError("group_by deve ser day, week ou month")
    periodos = {}
    for appointment_date, status, total_price in agendamentos:
        key = period_key(appointment_date, group_by)
        p = periodos.setdefault(key, {
            'period': key,
            'total_appointments': 0,
            'completed_appointments': 0,
            'total_revenue': 0.0,
        })
        p['total_appointments'] += 1
        if AgendamentoStatus(status) == AgendamentoStatus.completed:
            p['completed_appointments'] += 1
            p['total_revenue'] = round(p['total_revenue'] + float(total_price or 0), 2)
    return [periodos[k] for k in sorted(periodos)]


def cancelamentos_por_dia(agendamentos):
    """Per-day cancellation figures plus a summary over the whole window.

    ``agendamentos`` yields (date, status) pairs. Days are newest first.
    """
    dias = {}
    for appointment_date, status in agendamentos:
        d = dias.setdefault(appointment_date, {'total': 0, 'cancelados': 0, 'nao_compareceu': 0})
        d['total'] += 1
        st = AgendamentoStatus(status)
        if st == AgendamentoStatus.cancelled:
            d['cancelados'] += 1
        elif st == AgendamentoStatus.no_show:
            d['nao_compareceu'] += 1

    out = []
    for dia in sorted(dias, reverse=True):
        d = dias[dia]
        out.append({
            'date': dia.isoformat(),
            'total_appointments': d['total'],
            'cancelled_appointments': d['cancelados'],
            'no_show_appointments': d['nao_compareceu'],
            'cancellation_rate': taxa_cancelamento(d['total'], d['cancelados'], d['nao_compareceu']),
        })

    total = sum(d['total'] for d in dias.values())
    cancelados = sum(d['cancelados'] for d in dias.values())
    nao_compareceu = sum(d['nao_compareceu'] for d in dias.values())
    summary = {
        'total_appointments': total,
        'cancelled_appointments': cancelados,
        'no_show_appointments': nao_compareceu,
        'cancellation_rate': taxa_cancelamento(total, cancelados, nao_compareceu),
    }
    return out, summary


def linha_inventario(produto) -> dict:
    return {
        'id': produto.id,
        'name': produto.name,
        'category': produto.category,
        'unit_price': float(produto.unit_price or 0),
        'cost_price': float(produto.cost_price) if produto.cost_price is not None else None,
        'stock_quantity': int(produto.stock_quantity or 0),
        'min_stock_alert': int(produto.min_stock_alert or 0),
        'stock_value': stock_value(produto.unit_price, produto.stock_quantity),
        'stock_status': stock_status(produto.stock_quantity, produto.min_stock_alert),
        'profit_margin': profit_margin(produto.unit_price, produto.cost_price),
    }


def inventario(produtos):
    """Inventory valuation rows (largest stock value first) and a summary."""
    linhas = sorted((linha_inventario(p) for p in produtos), key=lambda r: r['stock_value'], reverse=True)
    summary = {
        'total_products': len(linhas),
        'total_stock_value': round(sum(r['stock_value'] for r in linhas), 2),
        'out_of_stock': sum(1 for r in linhas if r['stock_status'] == SEM_ESTOQUE),
        # same rule as the low-stock alert
        'low_stock': sum(1 for r in linhas if r['stock_quantity'] <= r['min_stock_alert']),
    }
    return linhas, summary
