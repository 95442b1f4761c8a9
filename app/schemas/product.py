from pydantic import BaseModel, ConfigDict
from typing import Optional, Literal
from datetime import datetime

from app.schemas.money import Preco


class ProdutoCreate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    unit_price: Optional[Preco] = None
    cost_price: Optional[Preco] = None
    stock_quantity: Optional[int] = 0
    min_stock_alert: Optional[int] = 5


class ProdutoUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    unit_price: Optional[Preco] = None
    cost_price: Optional[Preco] = None
    stock_quantity: Optional[int] = None
    min_stock_alert: Optional[int] = None


class ProdutoRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    category: str
    unit_price: float
    cost_price: Optional[float] = None
    stock_quantity: int
    min_stock_alert: int
    # derived at read time, see app.services.estoque.stock_status
    stock_status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class EstoqueUpdate(BaseModel):
    quantity: Optional[int] = None
    operation: Literal["set", "add", "subtract"] = "set"


class ProdutoAlerta(BaseModel):
    id: int
    name: str
    category: str
    stock_quantity: int
    min_stock_alert: int
    deficit: int
