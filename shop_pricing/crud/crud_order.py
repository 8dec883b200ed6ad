from sqlalchemy.orm import Session, selectinload
from decimal import Decimal
from typing import Optional

from .base import CRUDBase
from .. import models, schemas

class CRUDOrder(CRUDBase[models.Order, schemas.OrderCreate]):
    def get_with_items(self, db: Session, *, order_id: str) -> Optional[models.Order]:
        """Busca uma encomenda com os itens carregados."""
        return (
            db.query(models.Order)
            .filter(models.Order.id == order_id)
            .options(selectinload(models.Order.items))
            .first()
        )

def create_order_item(
    db: Session,
    *,
    order_id: str,
    product_id: str,
    modification_id: str | None,
    quantity: int,
    base_price: Decimal,
    price: Decimal,
    discount_data: dict | None,
) -> models.OrderItem:
    """
    Cria a entidade OrderItem no banco. Não faz commit.
    """
    db_item = models.OrderItem(
        order_id=order_id,
        product_id=product_id,
        modification_id=modification_id,
        quantity=quantity,
        base_price=base_price,
        price=price,
        discount_data=discount_data,
    )
    db.add(db_item)
    return db_item

def get_order_item(db: Session, *, order_id: str, item_id: str) -> models.OrderItem | None:
    return (
        db.query(models.OrderItem)
        .filter(models.OrderItem.id == item_id, models.OrderItem.order_id == order_id)
        .first()
    )

order = CRUDOrder(models.Order)
order_item = CRUDBase[models.OrderItem, schemas.OrderItemCreate](models.OrderItem)
