# shop_pricing/routers/pricing.py

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import schemas
from ..core.exceptions import PricingError
from ..database import get_db
from ..services.pricing_engine import PricingEngine
from .errors import http_error_from

router = APIRouter(
    prefix="/pricing",
    tags=["Pricing"]
)

def get_pricing_engine(db: Session = Depends(get_db)) -> PricingEngine:
    return PricingEngine(db=db)

@router.post("/quote", response_model=schemas.PriceQuote)
def quote_price(
    quote_request: schemas.PriceQuoteRequest,
    pricing_engine: PricingEngine = Depends(get_pricing_engine)
):
    """
    Preço final de um produto (ou modificação) para um utilizador ou convidado.

    - **422** se o produto não tiver preço para o tipo pedido nem para o padrão.
    """
    try:
        return pricing_engine.quote(quote_request)
    except PricingError as e:
        raise http_error_from(e)
