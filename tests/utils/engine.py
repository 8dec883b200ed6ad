# tests/utils/engine.py
#
# Construtores de objetos de domínio para testar o motor puro, sem base de dados.

from datetime import datetime, timezone
from decimal import Decimal
from faker import Faker

from shop_pricing.services.discount_types import Discount, DiscountContext, DiscountGroup

fake = Faker()

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)

def make_discount(
    *,
    discount_type: str = "percent",
    value="10",
    priority: int = 0,
    targets: list = None,
    conditions: list = None,
    **overrides,
) -> Discount:
    data = dict(
        id=fake.uuid4(),
        name=fake.catch_phrase(),
        discount_type=discount_type,
        discount_value=Decimal(str(value)),
        priority=priority,
        targets=targets or [],
        conditions=conditions or [],
    )
    data.update(overrides)
    return Discount(**data)

def make_group(
    *,
    operator: str = "and",
    discounts: list = None,
    children: list = None,
    priority: int = 0,
    **overrides,
) -> DiscountGroup:
    data = dict(
        id=fake.uuid4(),
        name=f"{fake.word().title()} group",
        operator=operator,
        priority=priority,
        discounts=discounts or [],
        children=children or [],
    )
    data.update(overrides)
    return DiscountGroup(**data)

def make_context(**overrides) -> DiscountContext:
    data = dict(
        product_id="product-1",
        quantity=1,
        cart_total=Decimal("0"),
        is_logged_in=False,
    )
    data.update(overrides)
    return DiscountContext(**data)
