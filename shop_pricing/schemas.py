import enum
from pydantic import BaseModel, Field, ConfigDict
from typing import Any, List, Optional
from datetime import datetime
from decimal import Decimal

from .services.discount_types import AppliedDiscount, RejectedDiscount

# --- Schemas de criação (usados pela camada CRUD) ---

class PriceTypeCreate(BaseModel):
    name: str
    is_default: bool = False

class UserCategoryCreate(BaseModel):
    name: str
    price_type_id: str | None = None

class UserCreate(BaseModel):
    email: str
    category_id: str | None = None

class SectionCreate(BaseModel):
    name: str

class ProductCreate(BaseModel):
    name: str
    section_id: str | None = None
    has_modifications: bool = False
    is_active: bool = True

class ProductModificationCreate(BaseModel):
    product_id: str
    name: str
    sort_order: int = 0

class ProductPriceCreate(BaseModel):
    product_id: str
    modification_id: str | None = None
    price_type_id: str
    price: Decimal = Field(..., ge=0)
    old_price: Decimal | None = None

class DiscountGroupCreate(BaseModel):
    name: str
    description: str | None = None
    operator: str = "and"
    is_active: bool = True
    priority: int = 0
    starts_at: datetime | None = None
    ends_at: datetime | None = None
    parent_group_id: str | None = None

class DiscountTargetCreate(BaseModel):
    target_type: str
    target_id: str | None = None

class DiscountConditionCreate(BaseModel):
    condition_type: str
    operator: str
    value: Any = None

class DiscountCreate(BaseModel):
    group_id: str
    price_type_id: str
    name: str
    description: str | None = None
    discount_type: str
    discount_value: Decimal = Field(..., ge=0)
    priority: int = 0
    is_active: bool = True
    starts_at: datetime | None = None
    ends_at: datetime | None = None
    targets: List[DiscountTargetCreate] = []
    conditions: List[DiscountConditionCreate] = []

class OrderCreate(BaseModel):
    user_id: str | None = None
    status: str = "pending"

# --- Cotação de preço (montra e encomendas) ---

class PriceQuoteRequest(BaseModel):
    user_id: str | None = None # None = convidado
    product_id: str
    modification_id: str | None = None
    quantity: int = Field(1, gt=0, description="Quantity must be greater than zero")
    # Se omitido, usa preço base * quantidade
    cart_total: Decimal | None = Field(None, ge=0)

class PriceQuote(BaseModel):
    product_id: str
    modification_id: str | None = None
    price_tier_id: str | None = None
    base_price: Decimal
    old_price: Decimal | None = None
    final_price: Decimal
    total_discount: Decimal
    applied_discounts: List[AppliedDiscount] = []

# --- Validador de preços (diagnóstico do admin) ---

class PriceValidationRequest(PriceQuoteRequest):
    pass

class StepStatus(str, enum.Enum):
    OK = "ok"
    ERROR = "error"
    INFO = "info"

class ValidationStep(BaseModel):
    title: str
    value: str
    reason: str
    status: StepStatus
    old_price: Decimal | None = None
    applied: List[AppliedDiscount] | None = None
    rejected: List[RejectedDiscount] | None = None

class PriceValidationReport(BaseModel):
    product_id: str
    price_tier_id: str | None = None
    base_price: Decimal | None = None
    final_price: Decimal | None = None
    steps: List[ValidationStep] = []

# --- Encomendas ---

class OrderItemCreate(BaseModel):
    product_id: str
    modification_id: str | None = None
    quantity: int = Field(..., gt=0, description="Quantity must be greater than zero")

class OrderItemUpdate(BaseModel):
    quantity: int = Field(..., gt=0, description="Quantity must be greater than zero")

class DiscountData(BaseModel):
    """Registo de auditoria guardado junto de cada item da encomenda."""
    total_discount: Decimal
    applied_discounts: List[AppliedDiscount] = []

class OrderItemResponse(BaseModel):
    id: str
    product_id: str
    modification_id: str | None = None
    quantity: int
    base_price: Decimal
    price: Decimal
    discount_data: DiscountData | None = None

    model_config = ConfigDict(from_attributes=True)

class OrderResponse(BaseModel):
    id: str
    user_id: str | None = None
    status: str
    items: List[OrderItemResponse] = []

    model_config = ConfigDict(from_attributes=True)
