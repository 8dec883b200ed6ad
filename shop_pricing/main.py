# shop_pricing/main.py

from fastapi import FastAPI

from .core.config import settings
from .core.logging import setup_logging
from .routers import orders, price_validator, pricing

setup_logging(settings.LOG_LEVEL, settings.DEBUG)

app = FastAPI(
    title="Shop Pricing API",
    description="Price and discount resolution for the storefront, order repricing and the admin price validator."
)

app.include_router(pricing.router)
app.include_router(price_validator.router)
app.include_router(orders.router)

@app.get("/")
def read_root():
    """
    Endpoint raiz. Apenas confirma que a API está no ar.
    """
    return {"message": "Shop Pricing API is running."}
