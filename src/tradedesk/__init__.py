"""tradedesk: one client contract over many crypto exchanges."""

from .settings import Settings
from .exchanges import (
    Exchange,
    ExchangeClient,
    ExchangeCredentials,
    ExchangeError,
    ParseExchangeError,
    create_exchange_client,
)

__all__ = [
    "Settings",
    "Exchange",
    "ExchangeClient",
    "ExchangeCredentials",
    "ExchangeError",
    "ParseExchangeError",
    "create_exchange_client",
]
