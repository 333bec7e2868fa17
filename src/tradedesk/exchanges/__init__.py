"""Exchange adapters and the client contract they share."""

from .identity import Exchange, ParseExchangeError
from .errors import ExchangeError
from .credentials import ExchangeCredentials
from .models import (
    USD_COINS,
    BidAsk,
    DepositInfo,
    ExchangeBalance,
    LendingHistory,
    LendingHistoryPrevious,
    LendingHistoryRange,
    LendingInfo,
    MarketInfoFormat,
    OrderId,
    OrderSide,
    OrderStatus,
    WithdrawalInfo,
)
from .protocol import ExchangeClient
from .normalization import normalize_symbol, extract_base_symbol, check_symbol_mismatch
from .factory import create_exchange_client, EXCHANGE_CLIENTS
from .base import BaseExchangeClient, ProxyConfig

__all__ = [
    "Exchange",
    "ParseExchangeError",
    "ExchangeError",
    "ExchangeCredentials",
    "USD_COINS",
    "BidAsk",
    "DepositInfo",
    "ExchangeBalance",
    "LendingHistory",
    "LendingHistoryPrevious",
    "LendingHistoryRange",
    "LendingInfo",
    "MarketInfoFormat",
    "OrderId",
    "OrderSide",
    "OrderStatus",
    "WithdrawalInfo",
    "ExchangeClient",
    "normalize_symbol",
    "extract_base_symbol",
    "check_symbol_mismatch",
    "create_exchange_client",
    "EXCHANGE_CLIENTS",
    "BaseExchangeClient",
    "ProxyConfig",
]
