# shop_pricing/crud/crud_discount.py

from sqlalchemy.orm import Session, selectinload

from .base import CRUDBase
from .. import models, schemas

class CRUDDiscountGroup(CRUDBase[models.DiscountGroup, schemas.DiscountGroupCreate]):
    def get_all(self, db: Session) -> list[models.DiscountGroup]:
        """
        Busca TODOS os grupos, ativos ou não. Um grupo inativo tem de estar
        presente para que a sua subárvore seja ignorada pelo motor, em vez de
        os filhos passarem a ser raízes.
        """
        return db.query(self.model).order_by(self.model.priority, self.model.id).all()

class CRUDDiscount(CRUDBase[models.Discount, schemas.DiscountCreate]):
    def create(self, db: Session, *, obj_in: schemas.DiscountCreate) -> models.Discount:
        """
        Sobrescreve o método 'create' para gravar também os alvos
        e as condições do desconto.
        """
        discount_data = obj_in.model_dump(exclude={"targets", "conditions"})
        db_obj = self.model(
            **discount_data,
            targets=[models.DiscountTarget(**t.model_dump()) for t in obj_in.targets],
            conditions=[models.DiscountCondition(**c.model_dump()) for c in obj_in.conditions],
        )
        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def get_for_price_type(self, db: Session, *, price_type_id: str) -> list[models.Discount]:
        """
        Busca os descontos de um tipo de preço, com alvos e condições
        carregados de uma vez (evita o problema N+1). Os inativos também vêm,
        para que o validador de preços mostre porque foram rejeitados.
        """
        return (
            db.query(self.model)
            .filter(self.model.price_type_id == price_type_id)
            .options(
                selectinload(self.model.targets),
                selectinload(self.model.conditions),
            )
            .order_by(self.model.priority, self.model.id)
            .all()
        )

discount_group = CRUDDiscountGroup(models.DiscountGroup)
discount = CRUDDiscount(models.Discount)
