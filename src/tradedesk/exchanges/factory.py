"""Factory for creating exchange client instances."""

from __future__ import annotations

import logging
from functools import partial
from typing import Any, Callable

from .base import BaseExchangeClient, ProxyConfig
from .binance import BinanceClient
from .coinbase import CoinbaseClient
from .credentials import ExchangeCredentials
from .ftx import FtxClient
from .identity import Exchange
from .kraken import KrakenClient

logger = logging.getLogger(__name__)


EXCHANGE_CLIENTS: dict[Exchange, Callable[..., BaseExchangeClient]] = {
    Exchange.BINANCE: BinanceClient,
    Exchange.BINANCE_US: partial(BinanceClient, us=True),
    Exchange.COINBASE: CoinbaseClient,
    Exchange.FTX: FtxClient,
    Exchange.FTX_US: partial(FtxClient, us=True),
    Exchange.KRAKEN: KrakenClient,
}


def create_exchange_client(
    exchange: Exchange | str,
    credentials: ExchangeCredentials,
    *,
    proxy: dict[str, Any] | None = None,
    **options: Any,
) -> BaseExchangeClient:
    """Create an exchange client instance.

    Args:
        exchange: Exchange, or its canonical/lowercase spelling
        credentials: Credentials forwarded unchanged to the adapter
        proxy: Proxy configuration (url, username, password)
        **options: Additional exchange-specific options

    Returns:
        Configured exchange client

    Raises:
        ParseExchangeError: If exchange is text naming no supported exchange
        ExchangeError: If the adapter rejects the credentials
    """
    if isinstance(exchange, str):
        exchange = Exchange.parse(exchange)

    proxy_config = None
    if proxy:
        proxy_config = ProxyConfig(
            url=proxy.get("url"),
            username=proxy.get("username"),
            password=proxy.get("password"),
        )

    client = EXCHANGE_CLIENTS[exchange](credentials, proxy=proxy_config, **options)
    logger.debug("Created %s client", exchange)
    return client
