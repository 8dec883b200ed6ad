# shop_pricing/crud/crud_product.py

from sqlalchemy.orm import Session
from typing import Optional

from .base import CRUDBase
from ..models import PriceType, Product, ProductModification, ProductPrice, Section
from ..schemas import (
    PriceTypeCreate, ProductCreate, ProductModificationCreate, ProductPriceCreate, SectionCreate
)

class CRUDProduct(CRUDBase[Product, ProductCreate]):
    pass

class CRUDModification(CRUDBase[ProductModification, ProductModificationCreate]):
    def get_for_product(
        self, db: Session, *, product_id: str, modification_id: str
    ) -> Optional[ProductModification]:
        """Busca uma modificação garantindo que pertence ao produto indicado."""
        return (
            db.query(ProductModification)
            .filter(
                ProductModification.id == modification_id,
                ProductModification.product_id == product_id,
            )
            .first()
        )

class CRUDPriceType(CRUDBase[PriceType, PriceTypeCreate]):
    def get_default(self, db: Session) -> Optional[PriceType]:
        """O tipo de preço padrão do catálogo (usado por convidados e como recurso)."""
        return db.query(PriceType).filter(PriceType.is_default.is_(True)).first()

class CRUDProductPrice(CRUDBase[ProductPrice, ProductPriceCreate]):
    def get_for_product(self, db: Session, *, product_id: str) -> list[ProductPrice]:
        """Todas as linhas de preço de um produto (todos os tipos e modificações)."""
        return (
            db.query(ProductPrice)
            .filter(ProductPrice.product_id == product_id)
            .order_by(ProductPrice.id)
            .all()
        )

product = CRUDProduct(Product)
modification = CRUDModification(ProductModification)
price_type = CRUDPriceType(PriceType)
product_price = CRUDProductPrice(ProductPrice)
section = CRUDBase[Section, SectionCreate](Section)
