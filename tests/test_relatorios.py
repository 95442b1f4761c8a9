from datetime import date
from types import SimpleNamespace

import pytest

from app.core.errors import ValidationError
from app.models.agendamento import AgendamentoStatus as S
from app.services.relatorios import (
    cancelamentos_por_dia, inventario, period_key, receita_por_periodo, taxa_cancelamento,
)


def test_period_key():
    d = date(2025, 3, 9)
    assert period_key(d, "day") == "2025-03-09"
    assert period_key(d, "month") == "2025-03"
    assert period_key(date(2025, 1, 1), "week") == "2025-01"
    assert period_key(date(2025, 1, 7), "week") == "2025-01"
    assert period_key(date(2025, 1, 8), "week") == "2025-02"


def test_taxa_cancelamento():
    assert taxa_cancelamento(0, 0, 0) == 0.0
    assert taxa_cancelamento(4, 1, 1) == 50.0
    assert taxa_cancelamento(3, 1, 0) == 33.33


def test_receita_por_periodo_counts_only_completed_revenue():
    rows = [
        (date(2025, 1, 16), S.completed, 80),
        (date(2025, 1, 15), S.completed, 120),
        (date(2025, 1, 15), S.cancelled, 120),
        (date(2025, 1, 15), S.scheduled, 50),
    ]
    out = receita_por_periodo(rows, "day")
    assert [p["period"] for p in out] == ["2025-01-15", "2025-01-16"]
    assert out[0] == {
        "period": "2025-01-15",
        "total_appointments": 3,
        "completed_appointments": 1,
        "total_revenue": 120.0,
    }
    assert out[1]["total_revenue"] == 80.0


def test_receita_por_periodo_by_month():
    rows = [
        (date(2025, 1, 3), S.completed, 100),
        (date(2025, 1, 28), S.completed, 50.5),
        (date(2025, 2, 1), S.completed, 10),
    ]
    out = receita_por_periodo(rows, "month")
    assert [(p["period"], p["total_revenue"]) for p in out] == [("2025-01", 150.5), ("2025-02", 10.0)]


def test_receita_por_periodo_rejects_unknown_grouping():
    with pytest.raises(ValidationError):
        receita_por_periodo([], "year")


def test_cancelamentos_por_dia():
    rows = [
        (date(2025, 1, 15), S.cancelled),
        (date(2025, 1, 15), S.no_show),
        (date(2025, 1, 15), S.completed),
        (date(2025, 1, 15), S.scheduled),
        (date(2025, 1, 16), S.completed),
    ]
    days, summary = cancelamentos_por_dia(rows)
    assert [d["date"] for d in days] == ["2025-01-16", "2025-01-15"]
    assert days[1]["cancellation_rate"] == 50.0
    assert days[0]["cancellation_rate"] == 0.0
    assert summary == {
        "total_appointments": 5,
        "cancelled_appointments": 1,
        "no_show_appointments": 1,
        "cancellation_rate": 40.0,
    }


def test_inventario():
    produtos = [
        SimpleNamespace(id=1, name="Sérum", category="Facial", unit_price=50, cost_price=25,
                        stock_quantity=2, min_stock_alert=5),
        SimpleNamespace(id=2, name="Óleo", category="Corporal", unit_price=30, cost_price=None,
                        stock_quantity=10, min_stock_alert=5),
        SimpleNamespace(id=3, name="Máscara", category="Facial", unit_price=40, cost_price=20,
                        stock_quantity=0, min_stock_alert=5),
    ]
    linhas, summary = inventario(produtos)
    assert [r["id"] for r in linhas] == [2, 1, 3]
    assert linhas[1]["stock_value"] == 100.0
    assert linhas[1]["profit_margin"] == 100.0
    assert linhas[0]["profit_margin"] == 0.0
    assert summary == {
        "total_products": 3,
        "total_stock_value": 400.0,
        "out_of_stock": 1,
        "low_stock": 2,
    }
