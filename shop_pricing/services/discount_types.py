# shop_pricing/services/discount_types.py
#
# Tipos de domínio do motor de preços. São "snapshots" imutáveis: o chamador
# carrega os dados uma vez por cálculo e o motor apenas os lê.

import enum
from datetime import datetime, timezone
from decimal import Decimal
from typing import Annotated, List, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class DiscountType(str, enum.Enum):
    PERCENT = "percent"
    FIXED_AMOUNT = "fixed_amount"
    FIXED_PRICE = "fixed_price"

class GroupOperator(str, enum.Enum):
    AND = "and"
    OR = "or"
    NOT = "not"
    MIN = "min"
    MAX = "max"

class TargetType(str, enum.Enum):
    ALL = "all"
    PRODUCT = "product"
    SECTION = "section"
    MODIFICATION = "modification"

class ConditionType(str, enum.Enum):
    USER_CATEGORY = "user_category"
    MIN_QUANTITY = "min_quantity"
    MIN_ORDER_AMOUNT = "min_order_amount"
    USER_LOGGED_IN = "user_logged_in"

ComparisonOperator = Literal[">=", ">", "=", "<=", "<"]


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Datas sem fuso horário (ex: vindas do SQLite) são lidas como UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class DomainModel(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)


class _Scheduled(DomainModel):
    """Campos comuns a grupos e descontos: estado, prioridade e janela de validade."""
    id: str
    name: str
    description: Optional[str] = None
    is_active: bool = True
    priority: int = 0
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None

    @field_validator("starts_at", "ends_at")
    @classmethod
    def _normalize_timezone(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)

# --- Preços ---

class PriceEntry(DomainModel):
    # As linhas da base de dados chamam-lhe price_type_id
    price_tier_id: str = Field(validation_alias=AliasChoices("price_tier_id", "price_type_id"))
    product_id: Optional[str] = None
    modification_id: Optional[str] = None
    price: Decimal = Field(..., ge=0)
    old_price: Optional[Decimal] = None

class ResolvedPrice(DomainModel):
    price: Optional[Decimal] = None
    old_price: Optional[Decimal] = None

# --- Alvos e condições ---

class DiscountTarget(DomainModel):
    # Mantido como str para que tipos desconhecidos cheguem ao motor e sejam rejeitados lá
    target_type: str
    target_id: Optional[str] = None

class UserCategoryCondition(DomainModel):
    condition_type: Literal["user_category"]
    operator: Literal["in"] = "in"
    value: List[str]

class MinQuantityCondition(DomainModel):
    condition_type: Literal["min_quantity"]
    operator: ComparisonOperator = ">="
    value: Decimal

class MinOrderAmountCondition(DomainModel):
    condition_type: Literal["min_order_amount"]
    operator: ComparisonOperator = ">="
    value: Decimal

class UserLoggedInCondition(DomainModel):
    condition_type: Literal["user_logged_in"]
    # Comparação sempre por igualdade; o operador gravado é ignorado
    operator: str = "="
    value: bool

KnownCondition = Annotated[
    Union[UserCategoryCondition, MinQuantityCondition, MinOrderAmountCondition, UserLoggedInCondition],
    Field(discriminator="condition_type"),
]

class UnrecognizedCondition(DomainModel):
    """Linha de condição que não corresponde a nenhuma variante conhecida. Nunca é satisfeita."""
    condition_type: str
    detail: str = ""

DiscountCondition = Annotated[
    Union[KnownCondition, UnrecognizedCondition],
    Field(union_mode="left_to_right"),
]

# --- Descontos e grupos ---

class Discount(_Scheduled):
    discount_type: str
    discount_value: Decimal = Field(..., ge=0)
    targets: List[DiscountTarget] = []
    conditions: List[DiscountCondition] = []
    # Preenchido quando a linha gravada é inválida; o desconto nunca se aplica
    invalid: Optional[str] = None

class DiscountGroup(_Scheduled):
    operator: str = GroupOperator.AND.value
    discounts: List[Discount] = []
    children: List["DiscountGroup"] = []

# --- Contexto do pedido ---

class DiscountContext(DomainModel):
    user_id: Optional[str] = None
    user_category_id: Optional[str] = None
    quantity: int = Field(1, gt=0)
    cart_total: Decimal = Field(Decimal("0"), ge=0)
    product_id: str
    modification_id: Optional[str] = None
    section_id: Optional[str] = None
    is_logged_in: bool = False

# --- Resultado ---

class DiscountEligibility(DomainModel):
    eligible: bool
    reason: Optional[str] = None

class AppliedDiscount(DomainModel):
    id: str
    name: str
    type: str
    value: Decimal
    calculated_amount: Decimal
    group_name: str

class RejectedDiscount(DomainModel):
    id: str
    name: str
    group_name: str
    reason: str

class GroupOutcome(DomainModel):
    discount_amount: Decimal = Decimal("0")
    applied: List[AppliedDiscount] = []
    rejected: List[RejectedDiscount] = []

class ResolutionResult(DomainModel):
    final_price: Decimal
    total_discount: Decimal
    applied_discounts: List[AppliedDiscount] = []
    rejected_discounts: List[RejectedDiscount] = []
