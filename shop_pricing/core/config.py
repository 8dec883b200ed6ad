# shop_pricing/core/config.py

from decimal import Decimal

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

# Carrega as variáveis do arquivo .env para o ambiente
load_dotenv()


class Settings(BaseSettings):
    """
    Classe de configurações da aplicação, carregada a partir de variáveis de ambiente.
    """
    # --- Configurações do Banco de Dados ---
    DATABASE_URL: str = "sqlite:///./shop_pricing.db"

    # --- Logging ---
    LOG_LEVEL: str = "INFO"
    DEBUG: bool = False

    # --- Motor de preços ---
    # Menor unidade monetária; todos os valores calculados são arredondados para ela.
    CURRENCY_PRECISION: Decimal = Decimal("0.01")
    # Limite de profundidade da floresta de grupos de desconto.
    DISCOUNT_TREE_MAX_DEPTH: int = 32
    # Se ativo, um desconto fixed_price aplicado sobrepõe o resto do seu grupo AND.
    FIXED_PRICE_OVERRIDES_AND_GROUP: bool = False

    model_config = SettingsConfigDict(case_sensitive=True)

# Instância única das configurações usada em toda a aplicação.
settings = Settings()
