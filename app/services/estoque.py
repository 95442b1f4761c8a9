"""Stock classification and stock adjustments for products.

Everything here is a pure function over values already read from the
database, so the rules are testable without a session.
"""
from app.core.errors import ValidationError

SEM_ESTOQUE = "sem_estoque"
ESTOQUE_BAIXO = "estoque_baixo"
ESTOQUE_OK = "estoque_ok"

OPERACOES_ESTOQUE = ("set", "add", "subtract")


def stock_status(stock_quantity, min_stock_alert) -> str:
    """Classify a product's stock level.

    ``stock_quantity <= 0`` is out of stock, ``<= min_stock_alert`` is low,
    anything else is fine.
    """
    qty = int(stock_quantity or 0)
    if qty <= 0:
        return SEM_ESTOQUE
    if qty <= int(min_stock_alert or 0):
        return ESTOQUE_BAIXO
    return ESTOQUE_OK


def apply_stock_operation(current, quantity, operation: str = "set") -> int:
    """Return the new stock quantity after a set/add/subtract operation.

    subtract clamps at zero; no operation ever yields a negative stock.
    """
    if operation not in OPERACOES_ESTOQUE:
        raise ValidationError("Operação inválida. Use set, add ou subtract")
    if quantity is None or isinstance(quantity, bool) or not isinstance(quantity, (int, float)):
        raise ValidationError("Quantidade deve ser um número")
    if quantity < 0:
        raise ValidationError("Quantidade não pode ser negativa")

    current = int(current or 0)
    quantity = int(quantity)
    if operation == "add":
        return current + quantity
    if operation == "subtract":
        return max(current - quantity, 0)
    return quantity


def stock_value(unit_price, stock_quantity) -> float:
    return round(float(unit_price or 0) * int(stock_quantity or 0), 2)


def profit_margin(unit_price, cost_price) -> float:
    """Markup over cost in percent, 0 when the cost is unknown."""
    cost = float(cost_price or 0)
    if cost <= 0:
        return 0.0
    return round((float(unit_price or 0) - cost) / cost * 100, 2)


def stock_deficit(stock_quantity, min_stock_alert) -> int:
    return int(min_stock_alert or 0) - int(stock_quantity or 0)
