from fastapi import APIRouter, Depends
import logging
from typing import List, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import NotFoundError, StoreError, ValidationError
from app.db.session import get_db
from app.models.product import Produto as ProdutoModel
from app.schemas.product import EstoqueUpdate, ProdutoAlerta, ProdutoCreate, ProdutoRead, ProdutoUpdate
from app.services.estoque import apply_stock_operation, stock_deficit, stock_status

router = APIRouter(prefix="/products", tags=["Products"])

logger = logging.getLogger(__name__)


def _get_product_or_404(db: Session, product_id: int) -> ProdutoModel:
    p = db.query(ProdutoModel).filter(ProdutoModel.id == product_id).first()
    if not p:
        raise NotFoundError("Produto não encontrado")
    return p


def _validar_quantidades(stock_quantity, min_stock_alert) -> None:
    if stock_quantity is not None and stock_quantity < 0:
        raise ValidationError("Quantidade não pode ser negativa")
    if min_stock_alert is not None and min_stock_alert < 0:
        raise ValidationError("Alerta de estoque mínimo não pode ser negativo")


def serialize_produto(p: ProdutoModel) -> dict:
    return {
        'id': p.id,
        'name': p.name,
        'description': p.description,
        'category': p.category,
        'unit_price': float(p.unit_price or 0),
        'cost_price': float(p.cost_price) if p.cost_price is not None else None,
        'stock_quantity': int(p.stock_quantity or 0),
        'min_stock_alert': int(p.min_stock_alert or 0),
        'stock_status': stock_status(p.stock_quantity, p.min_stock_alert),
        'created_at': p.created_at,
        'updated_at': p.updated_at,
    }


@router.get("", response_model=List[ProdutoRead])
@router.get("/", response_model=List[ProdutoRead])
def list_products(category: Optional[str] = None, low_stock: bool = False, db: Session = Depends(get_db)):
    try:
        q = db.query(ProdutoModel)
        if category:
            q = q.filter(ProdutoModel.category == category)
        if low_stock:
            q = q.filter(ProdutoModel.stock_quantity <= ProdutoModel.min_stock_alert)
        rows = q.order_by(ProdutoModel.name.asc()).all()
        return [serialize_produto(p) for p in rows]
    except SQLAlchemyError as e:
        logger.exception("Erro ao buscar produtos")
        raise StoreError(str(e))


@router.get("/alerts/low-stock", response_model=List[ProdutoAlerta])
def low_stock_alerts(db: Session = Depends(get_db)):
    """Products at or below their alert threshold, largest deficit first."""
    try:
        rows = (
            db.query(ProdutoModel)
            .filter(ProdutoModel.stock_quantity <= ProdutoModel.min_stock_alert)
            .order_by((ProdutoModel.min_stock_alert - ProdutoModel.stock_quantity).desc())
            .all()
        )
    except SQLAlchemyError as e:
        logger.exception("Erro ao buscar produtos com estoque baixo")
        raise StoreError(str(e))
    return [
        {
            'id': p.id,
            'name': p.name,
            'category': p.category,
            'stock_quantity': p.stock_quantity,
            'min_stock_alert': p.min_stock_alert,
            'deficit': stock_deficit(p.stock_quantity, p.min_stock_alert),
        }
        for p in rows
    ]


@router.get("/meta/categories", response_model=List[str])
def product_categories(db: Session = Depends(get_db)):
    try:
        rows = db.query(ProdutoModel.category).distinct().order_by(ProdutoModel.category.asc()).all()
        return [r[0] for r in rows if r[0]]
    except SQLAlchemyError as e:
        logger.exception("Erro ao buscar categorias")
        raise StoreError(str(e))


@router.get("/{product_id}", response_model=ProdutoRead)
def get_product(product_id: int, db: Session = Depends(get_db)):
    return serialize_produto(_get_product_or_404(db, product_id))


@router.post("", response_model=ProdutoRead, status_code=201)
@router.post("/", response_model=ProdutoRead, status_code=201)
def create_product(payload: ProdutoCreate, db: Session = Depends(get_db)):
    if not (payload.name or "").strip() or not (payload.category or "").strip() or payload.unit_price is None:
        raise ValidationError("Nome, categoria e preço unitário são obrigatórios")
    if payload.unit_price <= 0:
        raise ValidationError("Preço unitário deve ser maior que zero")
    _validar_quantidades(payload.stock_quantity, payload.min_stock_alert)
    try:
        p = ProdutoModel(
            name=payload.name.strip(),
            description=payload.description,
            category=payload.category.strip(),
            unit_price=payload.unit_price,
            cost_price=payload.cost_price,
            stock_quantity=payload.stock_quantity or 0,
            min_stock_alert=payload.min_stock_alert if payload.min_stock_alert is not None else 5,
        )
        db.add(p)
        db.commit()
        db.refresh(p)
        logger.info("created product id=%s category=%r", p.id, p.category)
        return serialize_produto(p)
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Erro ao criar produto")
        raise StoreError(str(e))


@router.put("/{product_id}/stock", response_model=ProdutoRead)
def update_stock(product_id: int, payload: EstoqueUpdate, db: Session = Depends(get_db)):
    p = _get_product_or_404(db, product_id)
    novo = apply_stock_operation(p.stock_quantity, payload.quantity, payload.operation)
    try:
        anterior = p.stock_quantity
        p.stock_quantity = novo
        db.add(p)
        db.commit()
        db.refresh(p)
        logger.info("stock product id=%s %s %s: %s -> %s", p.id, payload.operation, payload.quantity, anterior, novo)
        return serialize_produto(p)
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Erro ao atualizar estoque do produto %s", product_id)
        raise StoreError(str(e))


@router.put("/{product_id}", response_model=ProdutoRead)
def update_product(product_id: int, payload: ProdutoUpdate, db: Session = Depends(get_db)):
    p = _get_product_or_404(db, product_id)
    data = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}
    if "unit_price" in data and data["unit_price"] <= 0:
        raise ValidationError("Preço unitário deve ser maior que zero")
    _validar_quantidades(data.get("stock_quantity"), data.get("min_stock_alert"))
    for campo in ("name", "category"):
        if campo in data and not data[campo].strip():
            raise ValidationError("Nome, categoria e preço unitário são obrigatórios")
    try:
        for campo, valor in data.items():
            setattr(p, campo, valor)
        db.add(p)
        db.commit()
        db.refresh(p)
        return serialize_produto(p)
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Erro ao atualizar produto %s", product_id)
        raise StoreError(str(e))


@router.delete("/{product_id}")
def delete_product(product_id: int, db: Session = Depends(get_db)):
    p = _get_product_or_404(db, product_id)
    try:
        db.delete(p)
        db.commit()
        return {"message": "Produto removido com sucesso"}
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Erro ao remover produto %s", product_id)
        raise StoreError(str(e))
