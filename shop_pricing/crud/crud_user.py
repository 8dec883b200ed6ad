# shop_pricing/crud/crud_user.py

from sqlalchemy.orm import Session, joinedload
from typing import Optional

from .base import CRUDBase
from ..models import User, UserCategory
from ..schemas import UserCreate, UserCategoryCreate

class CRUDUser(CRUDBase[User, UserCreate]):
    def get_with_category(self, db: Session, *, user_id: str) -> Optional[User]:
        """Busca um utilizador já com a categoria (e o tipo de preço dela) carregada."""
        return (
            db.query(User)
            .filter(User.id == user_id)
            .options(joinedload(User.category).joinedload(UserCategory.price_type))
            .first()
        )

# Instâncias únicas usadas em toda a aplicação.
user = CRUDUser(User)
user_category = CRUDBase[UserCategory, UserCategoryCreate](UserCategory)
