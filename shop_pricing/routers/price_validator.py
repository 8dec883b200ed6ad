# shop_pricing/routers/price_validator.py

from fastapi import APIRouter, Depends

from .. import schemas
from ..core.exceptions import PricingError
from ..services.pricing_engine import PricingEngine
from .errors import http_error_from
from .pricing import get_pricing_engine

router = APIRouter(
    prefix="/price-validator",
    tags=["Price Validator (Admin)"]
)

@router.post("/", response_model=schemas.PriceValidationReport)
def validate_price(
    validation_request: schemas.PriceValidationRequest,
    pricing_engine: PricingEngine = Depends(get_pricing_engine)
):
    """
    Ferramenta de diagnóstico: mostra, passo a passo, como o preço final
    de um produto é calculado para um utilizador.

    - Tipo de preço escolhido e porquê.
    - Preço base encontrado (ou a falta dele).
    - Descontos aplicados e rejeitados, com o motivo de cada rejeição.
    - Preço final.
    """
    try:
        return pricing_engine.validate(validation_request)
    except PricingError as e:
        raise http_error_from(e)
