# tests/unit/test_price_resolver.py

from decimal import Decimal

from shop_pricing.services.discount_types import PriceEntry
from shop_pricing.services.price_resolver import resolve_price

RETAIL = "retail"
WHOLESALE = "wholesale"

def _entry(tier, price, *, modification_id=None, old_price=None):
    return PriceEntry(
        price_tier_id=tier,
        product_id="product-1",
        modification_id=modification_id,
        price=Decimal(price),
        old_price=Decimal(old_price) if old_price else None,
    )

def test_resolve_price_uses_requested_tier():
    """
    Se existe uma linha para o tipo de preço pedido, é essa que conta,
    com o respetivo preço antigo.
    """
    # --- Arrange ---
    prices = [
        _entry(RETAIL, "1000.00"),
        _entry(WHOLESALE, "800.00", old_price="850.00"),
    ]

    # --- Act ---
    resolved = resolve_price(prices, WHOLESALE, RETAIL)

    # --- Assert ---
    assert resolved.price == Decimal("800.00")
    assert resolved.old_price == Decimal("850.00")

def test_resolve_price_falls_back_to_default_tier():
    # --- Arrange ---
    prices = [_entry(RETAIL, "1000.00", old_price="1200.00")]

    # --- Act ---
    resolved = resolve_price(prices, WHOLESALE, RETAIL)

    # --- Assert ---
    assert resolved.price == Decimal("1000.00")
    assert resolved.old_price == Decimal("1200.00")

def test_resolve_price_without_requested_tier_uses_default():
    prices = [_entry(RETAIL, "1000.00")]

    resolved = resolve_price(prices, None, RETAIL)

    assert resolved.price == Decimal("1000.00")

def test_resolve_price_returns_none_when_nothing_matches():
    """
    Sem linhas de preço o resultado é None, nunca zero.
    """
    resolved = resolve_price([], RETAIL, RETAIL)

    assert resolved.price is None
    assert resolved.old_price is None

def test_resolve_price_without_any_tier_returns_none():
    prices = [_entry(RETAIL, "1000.00")]

    resolved = resolve_price(prices, None, None)

    assert resolved.price is None

def test_product_price_never_replaces_modification_price():
    """
    O preço do produto simples não serve de preço para uma modificação,
    nem o contrário.
    """
    # --- Arrange ---
    prices = [
        _entry(RETAIL, "1000.00"),
        _entry(RETAIL, "1100.00", modification_id="size-18"),
    ]

    # --- Act & Assert ---
    assert resolve_price(prices, RETAIL, RETAIL, "size-18").price == Decimal("1100.00")
    assert resolve_price(prices, RETAIL, RETAIL).price == Decimal("1000.00")
    assert resolve_price(prices, RETAIL, RETAIL, "size-20").price is None

def test_modification_only_prices_leave_the_plain_product_without_price():
    prices = [_entry(RETAIL, "1100.00", modification_id="size-18")]

    assert resolve_price(prices, RETAIL, RETAIL).price is None

def test_duplicate_price_rows_keep_the_first_and_warn(mocker):
    # --- Arrange ---
    mock_logger = mocker.patch("shop_pricing.services.price_resolver.logger")
    prices = [_entry(RETAIL, "1000.00"), _entry(RETAIL, "999.00")]

    # --- Act ---
    resolved = resolve_price(prices, RETAIL, RETAIL)

    # --- Assert ---
    assert resolved.price == Decimal("1000.00")
    mock_logger.warning.assert_called_once()
    assert mock_logger.warning.call_args.args[0] == "duplicate_price_rows"

def test_price_entry_accepts_database_column_name():
    """As linhas ORM chamam price_type_id ao tipo de preço."""
    entry = PriceEntry.model_validate({"price_type_id": RETAIL, "price": "10.00"})

    assert entry.price_tier_id == RETAIL
