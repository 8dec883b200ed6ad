# shop_pricing/core/logging.py
#
# Logs estruturados com structlog: cada evento tem um nome fixo
# (ex: "invalid_price_row") e o contexto vai em pares chave/valor.

import logging
import sys
from typing import Any

import structlog


def _renderer(is_debug: bool) -> list:
    # Em desenvolvimento, saída legível na consola; em produção, uma linha JSON por evento
    if is_debug:
        return [structlog.dev.ConsoleRenderer()]
    return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]


def setup_logging(log_level: str = "INFO", is_debug: bool = False) -> None:
    """
    Configura o structlog para toda a aplicação. Chamado uma vez, no arranque (main.py).

    :param log_level: Nível mínimo (DEBUG, INFO, WARNING, ERROR).
    :param is_debug: Se True, usa o formato de consola em vez de JSON.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    # Bibliotecas que usam o logging padrão (uvicorn, sqlalchemy) vão para o mesmo stdout
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            *_renderer(is_debug),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> Any:
    """Logger do módulo: `logger = get_logger(__name__)`."""
    return structlog.get_logger(name)
