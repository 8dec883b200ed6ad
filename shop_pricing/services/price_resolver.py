# shop_pricing/services/price_resolver.py

from typing import Iterable, Optional

from ..core.logging import get_logger
from .discount_types import PriceEntry, ResolvedPrice

logger = get_logger(__name__)


def _find_entry(
    prices: list[PriceEntry], tier_id: str, modification_id: Optional[str]
) -> Optional[PriceEntry]:
    matches = [
        p for p in prices
        if p.price_tier_id == tier_id and p.modification_id == modification_id
    ]
    if len(matches) > 1:
        # Dados inconsistentes: não tentamos reparar, a primeira linha ganha
        logger.warning(
            "duplicate_price_rows",
            price_tier_id=tier_id,
            modification_id=modification_id,
            count=len(matches),
        )
    return matches[0] if matches else None


def resolve_price(
    prices: Iterable[PriceEntry],
    requested_tier_id: Optional[str],
    default_tier_id: Optional[str],
    modification_id: Optional[str] = None,
) -> ResolvedPrice:
    """
    Determina o preço base e o "preço antigo" de um produto ou modificação.
    1. Procura a linha do tipo de preço pedido (com a mesma modificação).
    2. Se não existir, recorre ao tipo de preço padrão do catálogo.
    3. Se nada for encontrado, devolve preço None. Nunca assume zero.

    O preço de um produto simples (modification_id None) nunca substitui o de
    uma modificação, e vice-versa.
    """
    prices = list(prices)

    if requested_tier_id is not None:
        entry = _find_entry(prices, requested_tier_id, modification_id)
        if entry:
            return ResolvedPrice(price=entry.price, old_price=entry.old_price)

    if default_tier_id is not None and default_tier_id != requested_tier_id:
        entry = _find_entry(prices, default_tier_id, modification_id)
        if entry:
            return ResolvedPrice(price=entry.price, old_price=entry.old_price)

    return ResolvedPrice(price=None, old_price=None)
