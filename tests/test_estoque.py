import pytest

from app.core.errors import ValidationError
from app.services.estoque import (
    ESTOQUE_BAIXO, ESTOQUE_OK, SEM_ESTOQUE,
    apply_stock_operation, profit_margin, stock_deficit, stock_status, stock_value,
)


@pytest.mark.parametrize("qty, minimo, esperado", [
    (5, 10, ESTOQUE_BAIXO),
    (10, 10, ESTOQUE_BAIXO),
    (0, 10, SEM_ESTOQUE),
    (-3, 10, SEM_ESTOQUE),
    (20, 10, ESTOQUE_OK),
    (1, 0, ESTOQUE_OK),
])
def test_stock_status(qty, minimo, esperado):
    assert stock_status(qty, minimo) == esperado


def test_stock_operations():
    assert apply_stock_operation(10, 4, "set") == 4
    assert apply_stock_operation(10, 4, "add") == 14
    assert apply_stock_operation(10, 4, "subtract") == 6


def test_subtract_never_goes_below_zero():
    assert apply_stock_operation(3, 10, "subtract") == 0


def test_default_operation_is_set():
    assert apply_stock_operation(7, 2) == 2


@pytest.mark.parametrize("quantity, operation", [
    (5, "multiply"),
    (None, "set"),
    ("5", "add"),
    (True, "add"),
    (-1, "add"),
])
def test_invalid_stock_operation(quantity, operation):
    with pytest.raises(ValidationError):
        apply_stock_operation(10, quantity, operation)


def test_stock_value_and_margin():
    assert stock_value(25.5, 4) == 102.0
    assert profit_margin(150, 100) == 50.0
    assert profit_margin(150, None) == 0.0
    assert profit_margin(150, 0) == 0.0
    assert stock_deficit(2, 5) == 3
