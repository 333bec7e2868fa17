"""Behavioural checks of the client contract against an in-memory exchange."""

from datetime import date

import pytest
from rich.console import Console

from tradedesk.exchanges import ExchangeClient
from tradedesk.exchanges.base import BaseExchangeClient
from tradedesk.exchanges.errors import ExchangeError
from tradedesk.exchanges.models import (
    BidAsk,
    DepositInfo,
    ExchangeBalance,
    LendingInfo,
    MarketInfoFormat,
    OrderSide,
    OrderStatus,
    WithdrawalInfo,
)


class InMemoryExchange(BaseExchangeClient):
    """Exchange that keeps its books in memory."""

    def __init__(self, credentials, *, deposit_history=True, **options):
        super().__init__("memory", credentials, **options)
        self.deposit_history = deposit_history
        self.deposits: list[DepositInfo] = []
        self.withdrawals: list[WithdrawalInfo] = []
        self.orders: dict[str, OrderStatus] = {}
        self.lending: dict[str, LendingInfo] = {}

    def get_base_url(self) -> str:
        return "memory://"

    async def deposit_address(self, token):
        return f"{token.upper()}-address"

    async def recent_deposits(self):
        if not self.deposit_history:
            return await super().recent_deposits()
        return list(self.deposits)

    async def recent_withdrawals(self):
        return list(self.withdrawals)

    async def request_withdraw(self, address, token, amount, withdrawal_password=None, withdrawal_code=None):
        self.withdrawals.append(WithdrawalInfo(address=address, token=token, amount=amount, tag="", completed=False))
        return str(len(self.withdrawals)), 0.0

    async def balances(self):
        return {"USD": ExchangeBalance(available=100.0, total=100.0)}

    async def print_market_info(self, pair, format):
        self._print_market_table(pair, ["Format"], [[format.value]])

    async def bid_ask(self, pair):
        return BidAsk(bid_price=99.0, ask_price=101.0)

    async def place_order(self, pair, side, price, amount):
        order_id = str(len(self.orders) + 1)
        self.orders[order_id] = OrderStatus(
            open=True,
            side=side,
            price=price,
            amount=amount,
            filled_amount=0.0,
            last_update=date.today(),
        )
        return order_id

    async def cancel_order(self, pair, order_id):
        if order_id not in self.orders:
            raise ExchangeError(self.name, f"unknown order {order_id}")
        self.orders[order_id].open = False

    async def order_status(self, pair, order_id):
        if order_id not in self.orders:
            raise ExchangeError(self.name, f"unknown order {order_id}")
        return self.orders[order_id]

    async def get_lending_info(self, coin):
        return self.lending.get(coin.upper())

    def preferred_solusd_pair(self):
        return "SOLUSD"


@pytest.fixture
def exchange(credentials):
    return InMemoryExchange(credentials)


def test_satisfies_protocol(exchange):
    client: ExchangeClient = exchange
    assert client.preferred_solusd_pair() == "SOLUSD"


class TestOrderLifecycle:
    """Orders move from open to filled or cancelled."""

    @pytest.mark.asyncio
    async def test_new_order_is_open_and_unfilled(self, exchange):
        order_id = await exchange.place_order("SOLUSD", OrderSide.BUY, 100.0, 2.0)

        status = await exchange.order_status("SOLUSD", order_id)

        assert status.open
        assert status.filled_amount == 0.0
        assert (status.side, status.price, status.amount) == (OrderSide.BUY, 100.0, 2.0)
        assert not status.filled and not status.cancelled

    @pytest.mark.asyncio
    async def test_cancelled_order_is_closed_and_not_fully_filled(self, exchange):
        order_id = await exchange.place_order("SOLUSD", OrderSide.SELL, 120.0, 1.0)

        await exchange.cancel_order("SOLUSD", order_id)
        status = await exchange.order_status("SOLUSD", order_id)

        assert not status.open
        assert status.filled_amount < status.amount
        assert status.cancelled

    @pytest.mark.asyncio
    async def test_unknown_order(self, exchange):
        with pytest.raises(ExchangeError, match="unknown order"):
            await exchange.order_status("SOLUSD", "404")


class TestOptionalCapabilities:
    """Unsupported differs from supported-but-empty."""

    @pytest.mark.asyncio
    async def test_deposit_history_unsupported_is_none(self, credentials):
        exchange = InMemoryExchange(credentials, deposit_history=False)

        assert await exchange.recent_deposits() is None

    @pytest.mark.asyncio
    async def test_deposit_history_empty_is_empty_list(self, exchange):
        assert await exchange.recent_deposits() == []

    @pytest.mark.asyncio
    async def test_lending_info_without_market_is_none(self, exchange):
        exchange.lending["USD"] = LendingInfo(
            lendable=10.0, offered=5.0, locked=1.0, estimate_rate=1e-6, previous_rate=2e-6
        )

        assert await exchange.get_lending_info("usd") == exchange.lending["USD"]
        assert await exchange.get_lending_info("DOGE") is None

    @pytest.mark.asyncio
    async def test_lending_offer_unsupported_raises(self, exchange):
        with pytest.raises(ExchangeError, match="lending is not supported"):
            await exchange.submit_lending_offer("USD", 1.0)


class TestWithdrawals:
    """Withdrawal requests show up in recent withdrawals."""

    @pytest.mark.asyncio
    async def test_requested_withdrawal_is_pending(self, exchange):
        withdraw_id, fee = await exchange.request_withdraw("addr", "SOL", 1.5)

        (withdrawal,) = await exchange.recent_withdrawals()

        assert withdraw_id == "1"
        assert fee == 0.0
        assert not withdrawal.completed
        assert not withdrawal.cancelled

    @pytest.mark.asyncio
    async def test_market_info_prints_requested_format(self, exchange):
        exchange.console = Console(record=True, width=80)

        await exchange.print_market_info("SOLUSD", MarketInfoFormat.HOURLY)

        assert "hourly" in exchange.console.export_text()
