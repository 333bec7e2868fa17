"""Exchange client initialization from settings."""

from __future__ import annotations

import logging

from .base import BaseExchangeClient
from .errors import ExchangeError
from .factory import create_exchange_client
from .identity import Exchange
from ..settings import Settings

logger = logging.getLogger(__name__)


def create_exchange_client_from_settings(settings: Settings, exchange: Exchange) -> BaseExchangeClient:
    """Create the client for one configured exchange.

    Raises:
        ExchangeError: If the exchange is not configured, disabled, has no
            credentials, or the adapter rejects them
    """
    exchange_config = settings.exchanges.get(exchange)
    if exchange_config is None:
        raise ExchangeError(str(exchange), "exchange is not configured")
    if not exchange_config.enabled:
        raise ExchangeError(str(exchange), "exchange is disabled")
    if not exchange_config.credentials:
        raise ExchangeError(str(exchange), "exchange has no credentials configured")

    return create_exchange_client(
        exchange,
        exchange_config.credentials,
        proxy=settings.proxy.as_dict(),
        **exchange_config.options,
    )


def create_exchange_clients_from_settings(settings: Settings) -> dict[Exchange, BaseExchangeClient]:
    """Create clients for every enabled exchange, skipping ones that fail."""
    clients: dict[Exchange, BaseExchangeClient] = {}

    for exchange, exchange_config in settings.exchanges.items():
        if not exchange_config.enabled:
            logger.debug("Exchange %s is disabled, skipping", exchange)
            continue

        if not exchange_config.credentials:
            logger.warning("Exchange %s has no credentials configured, skipping", exchange)
            continue

        try:
            clients[exchange] = create_exchange_client_from_settings(settings, exchange)
            logger.info("Initialized exchange client for %s", exchange)
        except ExchangeError as e:
            logger.error("Failed to initialize exchange client for %s: %s", exchange, e)
            continue

    return clients
