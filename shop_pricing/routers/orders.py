# shop_pricing/routers/orders.py
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from .. import crud, schemas
from ..core.exceptions import PricingError
from ..database import get_db
from ..services.order_service import OrderService
from .errors import http_error_from

router = APIRouter(
    prefix="/orders",
    tags=["Orders"]
)

def get_order_service(db: Session = Depends(get_db)) -> OrderService:
    return OrderService(db)

@router.get("/{order_id}", response_model=schemas.OrderResponse)
def read_order(order_id: str, db: Session = Depends(get_db)):
    """
    Retorna uma encomenda com os seus itens e o registo de descontos de cada um.
    """
    db_order = crud.order.get_with_items(db, order_id=order_id)
    if db_order is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Order with id {order_id} not found."
        )
    return db_order

@router.post("/{order_id}/items", response_model=schemas.OrderItemResponse, status_code=status.HTTP_201_CREATED)
def add_order_item(
    order_id: str,
    item_in: schemas.OrderItemCreate,
    order_service: OrderService = Depends(get_order_service)
):
    """
    Adiciona um produto à encomenda. O preço é calculado no momento
    (tipo de preço do cliente + descontos) e "congelado" no item.
    """
    try:
        return order_service.add_item(order_id=order_id, item_in=item_in)
    except PricingError as e:
        raise http_error_from(e)

@router.patch("/{order_id}/items/{item_id}", response_model=schemas.OrderItemResponse)
def update_order_item(
    order_id: str,
    item_id: str,
    item_update: schemas.OrderItemUpdate,
    order_service: OrderService = Depends(get_order_service)
):
    """
    Altera a quantidade de um item e recalcula o seu preço.
    """
    try:
        return order_service.reprice_item(order_id=order_id, item_id=item_id, item_update=item_update)
    except PricingError as e:
        raise http_error_from(e)
