"""Exchange-agnostic value types returned by exchange clients."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Union

# Symbols treated as US dollars when reading balances and pairs
USD_COINS: frozenset[str] = frozenset({"USD", "USDC", "USDT", "BUSD", "ZUSD"})

OrderId = str


@dataclass
class ExchangeBalance:
    """Funds for one asset on one exchange."""

    available: float = 0.0
    total: float = 0.0


@dataclass
class DepositInfo:
    """An observed incoming transfer.

    ``amount`` is a UI quantity (already adjusted for asset precision), not
    raw integer units.
    """

    tx_id: str
    amount: float


@dataclass
class WithdrawalInfo:
    """A requested or observed outgoing transfer.

    A completed withdrawal without a transaction id was cancelled by the
    exchange.
    """

    address: str
    token: str
    amount: float
    tag: str
    completed: bool
    tx_id: str | None = None

    @property
    def cancelled(self) -> bool:
        return self.completed and self.tx_id is None


@dataclass
class BidAsk:
    bid_price: float
    ask_price: float


class OrderSide(Enum):
    """Order side."""

    BUY = "Buy"
    SELL = "Sell"

    def __str__(self) -> str:
        return self.value


@dataclass
class OrderStatus:
    """Snapshot of one order's lifecycle.

    Open orders may be partially filled. Once ``open`` is False the order is
    either filled or cancelled; compare ``filled_amount`` to ``amount`` to
    tell which.
    """

    open: bool
    side: OrderSide
    price: float
    amount: float
    filled_amount: float
    last_update: date
    fee: tuple[float, str] | None = None

    @property
    def filled(self) -> bool:
        return not self.open and self.filled_amount >= self.amount

    @property
    def cancelled(self) -> bool:
        return not self.open and self.filled_amount < self.amount


class MarketInfoFormat(Enum):
    """Shape of a market info report."""

    ALL = "all"
    ASK = "ask"
    WEIGHTED_24H_AVERAGE_PRICE = "weighted-24h-average-price"
    HOURLY = "hourly"


@dataclass
class LendingInfo:
    """Margin lending state for one asset."""

    lendable: float
    offered: float
    locked: float
    estimate_rate: float  # next spot margin cycle
    previous_rate: float  # previous spot margin cycle


@dataclass(frozen=True)
class LendingHistoryRange:
    """Lending rates between two dates, inclusive."""

    start_date: date
    end_date: date

    def __post_init__(self) -> None:
        if self.start_date > self.end_date:
            raise ValueError(f"start_date {self.start_date} is after end_date {self.end_date}")


@dataclass(frozen=True)
class LendingHistoryPrevious:
    """Lending rates for the last ``days`` days."""

    days: int

    def __post_init__(self) -> None:
        if self.days < 1:
            raise ValueError(f"days must be at least 1, got {self.days}")


LendingHistory = Union[LendingHistoryRange, LendingHistoryPrevious]
