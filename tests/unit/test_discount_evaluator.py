# tests/unit/test_discount_evaluator.py

import pytest
from datetime import timedelta
from decimal import Decimal

from shop_pricing.services.discount_engine import (
    REASON_EXPIRED,
    REASON_INACTIVE,
    REASON_NOT_STARTED,
    REASON_TARGET_MISMATCH,
    calculate_discount_amount,
    evaluate_discount,
)
from shop_pricing.services.discount_types import (
    DiscountTarget,
    MinQuantityCondition,
    UnrecognizedCondition,
    UserLoggedInCondition,
)
from tests.utils.engine import NOW, make_context, make_discount

# --- Elegibilidade ---

def test_active_discount_without_targets_applies_to_everything():
    eligibility = evaluate_discount(make_discount(), make_context(), NOW)

    assert eligibility.eligible is True
    assert eligibility.reason is None

def test_inactive_discount_is_rejected():
    eligibility = evaluate_discount(make_discount(is_active=False), make_context(), NOW)

    assert eligibility.eligible is False
    assert eligibility.reason == REASON_INACTIVE

def test_discount_before_start_is_rejected():
    discount = make_discount(starts_at=NOW + timedelta(days=1))

    assert evaluate_discount(discount, make_context(), NOW).reason == REASON_NOT_STARTED

def test_expired_discount_is_rejected():
    discount = make_discount(ends_at=NOW - timedelta(seconds=1))

    assert evaluate_discount(discount, make_context(), NOW).reason == REASON_EXPIRED

def test_window_bounds_are_inclusive():
    discount = make_discount(starts_at=NOW, ends_at=NOW)

    assert evaluate_discount(discount, make_context(), NOW).eligible is True

def test_naive_now_is_read_as_utc():
    discount = make_discount(starts_at=NOW - timedelta(hours=1))

    assert evaluate_discount(discount, make_context(), NOW.replace(tzinfo=None)).eligible is True

def test_inactive_is_reported_before_expired():
    """
    As verificações param na primeira falha: um desconto inativo e expirado
    é reportado como inativo.
    """
    discount = make_discount(is_active=False, ends_at=NOW - timedelta(days=30))

    assert evaluate_discount(discount, make_context(), NOW).reason == REASON_INACTIVE

def test_invalid_discount_is_rejected_before_any_other_check():
    discount = make_discount(is_active=False, invalid="discount_value: Input should be greater than or equal to 0")

    eligibility = evaluate_discount(discount, make_context(), NOW)

    assert eligibility.eligible is False
    assert eligibility.reason == "invalid discount: discount_value: Input should be greater than or equal to 0"

def test_discount_for_another_product_is_a_target_mismatch():
    discount = make_discount(targets=[DiscountTarget(target_type="product", target_id="product-2")])

    eligibility = evaluate_discount(discount, make_context(product_id="product-1"), NOW)

    assert eligibility.reason == REASON_TARGET_MISMATCH

def test_any_matching_target_is_enough():
    discount = make_discount(targets=[
        DiscountTarget(target_type="product", target_id="product-2"),
        DiscountTarget(target_type="section", target_id="rings"),
    ])

    eligibility = evaluate_discount(discount, make_context(section_id="rings"), NOW)

    assert eligibility.eligible is True

def test_first_failing_condition_names_the_reason():
    # --- Arrange ---
    discount = make_discount(conditions=[
        MinQuantityCondition(condition_type="min_quantity", value=Decimal("1")),
        UserLoggedInCondition(condition_type="user_logged_in", value=True),
        MinQuantityCondition(condition_type="min_quantity", value=Decimal("10")),
    ])

    # --- Act ---
    eligibility = evaluate_discount(discount, make_context(quantity=2, is_logged_in=False), NOW)

    # --- Assert ---
    assert eligibility.eligible is False
    assert eligibility.reason == "condition not met: user_logged_in"

def test_unrecognized_condition_rejects_the_discount():
    discount = make_discount(conditions=[UnrecognizedCondition(condition_type="loyalty_points")])

    eligibility = evaluate_discount(discount, make_context(), NOW)

    assert eligibility.reason == "unrecognized condition: loyalty_points"

def test_unknown_discount_type_is_rejected():
    discount = make_discount(discount_type="buy_one_get_one")

    eligibility = evaluate_discount(discount, make_context(), NOW)

    assert eligibility.eligible is False
    assert eligibility.reason == "unknown discount type: buy_one_get_one"

# --- Valor do desconto ---

@pytest.mark.parametrize(
    "discount_type, value, base, expected",
    [
        ("percent", "10", "1000.00", "100.00"),
        ("percent", "12.5", "9.99", "1.25"),
        ("percent", "150", "100.00", "100.00"),
        ("fixed_amount", "50", "500.00", "50.00"),
        ("fixed_amount", "50", "30.00", "30.00"),
        ("fixed_price", "80", "100.00", "20.00"),
        ("fixed_price", "100", "100.00", "100.00"),
        ("fixed_price", "150", "100.00", "100.00"),
        ("percent", "0", "100.00", "0.00"),
    ],
)
def test_calculate_discount_amount(discount_type, value, base, expected):
    discount = make_discount(discount_type=discount_type, value=value)

    amount = calculate_discount_amount(discount, Decimal(base))

    assert amount == Decimal(expected)

def test_calculate_discount_amount_respects_precision():
    discount = make_discount(discount_type="percent", value="33.333")

    assert calculate_discount_amount(discount, Decimal("10"), Decimal("1")) == Decimal("3")

def test_unknown_discount_type_amount_is_zero():
    discount = make_discount(discount_type="buy_one_get_one", value="10")

    assert calculate_discount_amount(discount, Decimal("100")) == Decimal("0")
