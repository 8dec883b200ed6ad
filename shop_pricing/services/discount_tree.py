# shop_pricing/services/discount_tree.py
#
# Montagem da floresta de grupos de desconto a partir de linhas "planas"
# (cada grupo conhece apenas o id do pai). A montagem acontece uma vez por
# cálculo, antes da avaliação, que trabalha sobre uma estrutura já validada.

from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError

from ..core.exceptions import DiscountStructureError
from ..core.logging import get_logger
from .discount_types import (
    ConditionType,
    Discount,
    DiscountCondition,
    DiscountGroup,
    DiscountTarget,
    KnownCondition,
    UnrecognizedCondition,
)

logger = get_logger(__name__)

_known_condition = TypeAdapter(KnownCondition)


class _Row(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class DiscountGroupRow(_Row):
    id: str
    name: str
    description: Optional[str] = None
    operator: str = "and"
    is_active: bool = True
    priority: int = 0
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    parent_group_id: Optional[str] = None

class DiscountConditionRow(_Row):
    condition_type: str
    operator: str
    value: Any = None

class DiscountRow(_Row):
    id: str
    group_id: str
    name: str
    description: Optional[str] = None
    discount_type: str
    discount_value: Decimal
    priority: int = 0
    is_active: bool = True
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    targets: List[DiscountTarget] = []
    conditions: List[DiscountConditionRow] = []


def parse_condition(row: DiscountConditionRow) -> DiscountCondition:
    """
    Converte uma linha de condição na variante tipada correspondente.
    Linhas que não encaixam em nenhuma variante viram UnrecognizedCondition,
    que nunca é satisfeita.
    """
    value = row.value
    # Categorias gravadas como um único id em vez de lista
    if row.condition_type == ConditionType.USER_CATEGORY and isinstance(value, str):
        value = [value]

    payload = {"condition_type": row.condition_type, "operator": row.operator, "value": value}
    try:
        return _known_condition.validate_python(payload)
    except ValidationError as e:
        detail = "; ".join(err["msg"] for err in e.errors())
        logger.warning(
            "invalid_discount_condition",
            condition_type=row.condition_type,
            operator=row.operator,
            detail=detail,
        )
        return UnrecognizedCondition(condition_type=row.condition_type, detail=detail)


def _build_discount(row: DiscountRow) -> Discount:
    try:
        return Discount(
            id=row.id,
            name=row.name,
            description=row.description,
            discount_type=row.discount_type,
            discount_value=row.discount_value,
            priority=row.priority,
            is_active=row.is_active,
            starts_at=row.starts_at,
            ends_at=row.ends_at,
            targets=row.targets,
            conditions=[parse_condition(c) for c in row.conditions],
        )
    except ValidationError as e:
        detail = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        logger.warning("invalid_discount", discount_id=row.id, detail=detail)
        # Fica na árvore para aparecer como rejeitado no validador de preços
        return Discount(
            id=row.id,
            name=row.name,
            discount_type=row.discount_type,
            discount_value=Decimal("0"),
            priority=row.priority,
            is_active=row.is_active,
            invalid=detail,
        )


def _check_for_cycles(parent_of: Dict[str, str]) -> None:
    for start in parent_of:
        seen = set()
        current = start
        while current in parent_of:
            if current in seen:
                logger.error("discount_group_cycle", group_id=current)
                raise DiscountStructureError(
                    f"Discount group '{current}' is its own ancestor.",
                    details={"group_id": current},
                )
            seen.add(current)
            current = parent_of[current]


def build_discount_forest(
    group_rows: Iterable[Any], discount_rows: Iterable[Any]
) -> List[DiscountGroup]:
    """
    Monta a floresta de grupos a partir das linhas da base de dados
    (objetos ORM ou dicionários).

    1. Indexa os grupos por id e constrói a adjacência pai -> filhos.
    2. Rejeita ciclos (DiscountStructureError).
    3. Associa cada desconto ao seu grupo.
    4. Materializa os nós imutáveis, das folhas para a raiz.

    Grupos cujo pai não existe tornam-se raízes; descontos sem grupo são ignorados.
    Descontos inválidos ficam marcados (campo invalid) e o motor rejeita-os.
    """
    groups: Dict[str, DiscountGroupRow] = {}
    for raw in group_rows:
        row = DiscountGroupRow.model_validate(raw)
        if row.id in groups:
            logger.warning("duplicate_discount_group", group_id=row.id)
            continue
        groups[row.id] = row

    parent_of: Dict[str, str] = {}
    children_of: Dict[str, List[str]] = defaultdict(list)
    roots: List[str] = []
    for row in groups.values():
        if row.parent_group_id is None:
            roots.append(row.id)
        elif row.parent_group_id not in groups:
            logger.warning("orphan_discount_group", group_id=row.id, parent_group_id=row.parent_group_id)
            roots.append(row.id)
        else:
            parent_of[row.id] = row.parent_group_id
            children_of[row.parent_group_id].append(row.id)

    _check_for_cycles(parent_of)

    discounts_of: Dict[str, List[Discount]] = defaultdict(list)
    for raw in discount_rows:
        row = DiscountRow.model_validate(raw)
        if row.group_id not in groups:
            logger.warning("discount_without_group", discount_id=row.id, group_id=row.group_id)
            continue
        discounts_of[row.group_id].append(_build_discount(row))

    def materialize(group_id: str) -> DiscountGroup:
        row = groups[group_id]
        return DiscountGroup(
            id=row.id,
            name=row.name,
            description=row.description,
            operator=row.operator,
            is_active=row.is_active,
            priority=row.priority,
            starts_at=row.starts_at,
            ends_at=row.ends_at,
            discounts=discounts_of[group_id],
            children=[materialize(child_id) for child_id in children_of[group_id]],
        )

    return [materialize(group_id) for group_id in roots]
