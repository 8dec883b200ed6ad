# shop_pricing/crud/base.py

from typing import Any, Dict, Generic, Optional, Type, TypeVar, Union
from pydantic import BaseModel
from sqlalchemy.orm import Session
from ..database import Base

# Define tipos genéricos para o nosso Modelo SQLAlchemy e Schemas Pydantic
ModelType = TypeVar("ModelType", bound=Base)
CreateSchemaType = TypeVar("CreateSchemaType", bound=BaseModel)

class CRUDBase(Generic[ModelType, CreateSchemaType]):
    """
    Classe base para operações CRUD com tipos genéricos para
    um modelo SQLAlchemy e um schema de criação.
    """
    def __init__(self, model: Type[ModelType]):
        """
        Construtor da classe CRUD.

        :param model: A classe do modelo SQLAlchemy (ex: models.Product)
        """
        self.model = model

    def get(self, db: Session, id: Any) -> Optional[ModelType]:
        """Busca um único objeto pelo seu ID."""
        return db.query(self.model).filter(self.model.id == id).first()

    def create(self, db: Session, *, obj_in: CreateSchemaType) -> ModelType:
        """Cria um novo objeto no banco."""
        obj_in_data = obj_in.model_dump()
        db_obj = self.model(**obj_in_data)
        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def update(
        self,
        db: Session,
        *,
        db_obj: ModelType,
        obj_in: Union[BaseModel, Dict[str, Any]]
    ) -> ModelType:
        """Atualiza um objeto existente. Não faz commit: a transação é do serviço."""
        if isinstance(obj_in, dict):
            update_data = obj_in
        else:
            # exclude_unset=True garante que apenas os campos enviados sejam atualizados
            update_data = obj_in.model_dump(exclude_unset=True)

        for field, value in update_data.items():
            setattr(db_obj, field, value)

        db.add(db_obj)
        return db_obj
