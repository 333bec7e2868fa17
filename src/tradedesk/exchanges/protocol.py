"""Protocol definition for exchange clients."""

from __future__ import annotations

from typing import Protocol

from .models import (
    BidAsk,
    DepositInfo,
    ExchangeBalance,
    LendingHistory,
    LendingInfo,
    MarketInfoFormat,
    OrderId,
    OrderSide,
    OrderStatus,
    WithdrawalInfo,
)


class ExchangeClient(Protocol):
    """Operations every exchange adapter exposes.

    Every coroutine either returns its value or raises ``ExchangeError``.
    ``None`` results mean "unsupported" or "not available" and are never used
    to signal failure.
    """

    async def deposit_address(self, token: str) -> str:
        """Resolve the account's receive address for a token.

        Args:
            token: Asset symbol (e.g., 'SOL')

        Returns:
            Deposit address
        """
        ...

    async def recent_deposits(self) -> list[DepositInfo] | None:
        """Fetch recent deposits.

        Returns:
            None if the exchange does not expose deposit history, otherwise the
            (possibly empty) list of deposits
        """
        ...

    async def recent_withdrawals(self) -> list[WithdrawalInfo]:
        """Fetch recent withdrawals in a stable order."""
        ...

    async def request_withdraw(
        self,
        address: str,
        token: str,
        amount: float,
        withdrawal_password: str | None = None,
        withdrawal_code: str | None = None,
    ) -> tuple[str, float]:
        """Initiate a withdrawal.

        Args:
            address: Destination address
            token: Asset symbol
            amount: UI amount; sent without rounding
            withdrawal_password: Second factor for exchanges that need one
            withdrawal_code: Second factor for exchanges that need one

        Returns:
            Tuple of (withdraw_id, withdraw_fee)
        """
        ...

    async def balances(self) -> dict[str, ExchangeBalance]:
        """Fetch a snapshot of balances keyed by asset symbol."""
        ...

    async def print_market_info(self, pair: str, format: MarketInfoFormat) -> None:
        """Print a market report for a pair."""
        ...

    async def bid_ask(self, pair: str) -> BidAsk:
        """Fetch the current best bid and ask for a pair."""
        ...

    async def place_order(
        self,
        pair: str,
        side: OrderSide,
        price: float,
        amount: float,
    ) -> OrderId:
        """Place a limit order.

        Returns:
            Order id usable immediately with cancel_order and order_status
        """
        ...

    async def cancel_order(self, pair: str, order_id: OrderId) -> None:
        """Request cancellation of an order.

        Success means the request was accepted. Use order_status for the
        final state.
        """
        ...

    async def order_status(self, pair: str, order_id: OrderId) -> OrderStatus:
        """Fetch the current lifecycle snapshot of an order."""
        ...

    async def get_lending_info(self, coin: str) -> LendingInfo | None:
        """Fetch lending state, or None if there is no lending market for coin."""
        ...

    async def get_lending_history(self, lending_history: LendingHistory) -> dict[str, float]:
        """Fetch historical lending rates keyed by date label."""
        ...

    async def submit_lending_offer(self, coin: str, size: float) -> None:
        """Offer ``size`` of ``coin`` for margin lending."""
        ...

    def preferred_solusd_pair(self) -> str:
        """Return this exchange's spelling of the SOL/USD pair."""
        ...

    async def close(self) -> None:
        """Close connections (HTTP session, etc.)."""
        ...
