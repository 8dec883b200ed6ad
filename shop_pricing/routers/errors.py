# shop_pricing/routers/errors.py

from fastapi import HTTPException, status

from ..core.exceptions import (
    DiscountStructureError, NotFoundError, OrderPricingError, PriceUnavailableError, PricingError
)
from ..core.logging import get_logger

logger = get_logger(__name__)


def http_error_from(exc: PricingError) -> HTTPException:
    """Traduz exceções de negócio do serviço para erros HTTP."""
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.message)
    if isinstance(exc, (PriceUnavailableError, OrderPricingError)):
        return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=exc.message)
    if isinstance(exc, DiscountStructureError):
        # Configuração corrompida: precisa de intervenção de um operador
        logger.error("discount_configuration_corrupted", error=exc.message, **exc.details)
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Discount configuration is corrupted; contact an administrator.",
        )
    logger.error("unhandled_pricing_error", error=exc.message, **exc.details)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=exc.message)
