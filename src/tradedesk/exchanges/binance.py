"""Binance and Binance US exchange adapter."""

from __future__ import annotations

import logging
import time
from typing import Any
from urllib.parse import urlencode

from .base import BaseExchangeClient, ProxyConfig, date_from_timestamp, format_amount, format_hour
from .credentials import ExchangeCredentials
from .errors import ExchangeError
from .models import (
    BidAsk,
    DepositInfo,
    ExchangeBalance,
    MarketInfoFormat,
    OrderId,
    OrderSide,
    OrderStatus,
    WithdrawalInfo,
)
from .normalization import check_symbol_mismatch, normalize_symbol

logger = logging.getLogger(__name__)

# Withdrawal statuses from /sapi/v1/capital/withdraw/history
WITHDRAW_CANCELLED = 1
WITHDRAW_REJECTED = 3
WITHDRAW_FAILURE = 5
WITHDRAW_COMPLETED = 6

# Deposit statuses: 1 = success, 6 = credited but cannot withdraw
DEPOSIT_CREDITED = {1, 6}

OPEN_ORDER_STATUSES = {"NEW", "PARTIALLY_FILLED", "PENDING_CANCEL"}


class BinanceClient(BaseExchangeClient):
    """Binance exchange client.

    With ``us=True`` the same client talks to Binance US.
    """

    def __init__(
        self,
        credentials: ExchangeCredentials,
        *,
        us: bool = False,
        proxy: ProxyConfig | None = None,
        recv_window_ms: int = 5000,
        **options: Any,
    ):
        super().__init__(
            "binanceus" if us else "binance",
            credentials,
            proxy=proxy,
            recv_window_ms=recv_window_ms,
            **options,
        )
        self.us = us
        self.recv_window_ms = recv_window_ms

    def get_base_url(self) -> str:
        if self.us:
            return "https://api.binance.us"
        return "https://api.binance.com"

    def _get_headers(self) -> dict[str, str]:
        return {
            "X-MBX-APIKEY": self.api_key,
            "User-Agent": "tradedesk/1.0",
        }

    def _signed_path(self, path: str, params: dict[str, Any]) -> str:
        """Append timestamp, recvWindow and signature to the query string."""
        params = dict(params)
        params["timestamp"] = int(time.time() * 1000)
        params["recvWindow"] = self.recv_window_ms

        query_string = urlencode(params)
        signature = self.generate_signature(self.api_secret, query_string)
        return f"{path}?{query_string}&signature={signature}"

    async def _public(self, path: str, params: dict[str, Any]) -> Any:
        return await self._request("GET", path, params=params)

    async def _signed(self, method: str, path: str, params: dict[str, Any] | None = None) -> Any:
        return await self._request(
            method,
            self._signed_path(path, params or {}),
            headers=self._get_headers(),
        )

    async def deposit_address(self, token: str) -> str:
        data = await self._signed("GET", "/sapi/v1/capital/deposit/address", {"coin": token.upper()})
        address = data.get("address")
        if not address:
            raise ExchangeError(self.name, f"no deposit address for {token}")
        return address

    async def recent_deposits(self) -> list[DepositInfo] | None:
        data = await self._signed("GET", "/sapi/v1/capital/deposit/hisrec")
        return [
            DepositInfo(tx_id=d["txId"], amount=float(d["amount"]))
            for d in data
            if d.get("status") in DEPOSIT_CREDITED
        ]

    async def recent_withdrawals(self) -> list[WithdrawalInfo]:
        data = await self._signed("GET", "/sapi/v1/capital/withdraw/history")

        withdrawals = []
        for w in data:
            status = w.get("status")
            completed = status in {WITHDRAW_CANCELLED, WITHDRAW_REJECTED, WITHDRAW_FAILURE, WITHDRAW_COMPLETED}
            tx_id = None
            if status == WITHDRAW_COMPLETED:
                tx_id = w.get("txId") or None
            withdrawals.append(
                WithdrawalInfo(
                    address=w["address"],
                    token=w["coin"],
                    amount=float(w["amount"]),
                    tag=w.get("addressTag") or "",
                    completed=completed,
                    tx_id=tx_id,
                )
            )
        return withdrawals

    async def _withdraw_fee(self, token: str) -> float:
        coins = await self._signed("GET", "/sapi/v1/capital/config/getall")
        for coin in coins:
            if coin.get("coin") != token:
                continue
            for network in coin.get("networkList", []):
                if network.get("isDefault"):
                    return float(network["withdrawFee"])
        raise ExchangeError(self.name, f"withdrawals of {token} are not supported")

    async def request_withdraw(
        self,
        address: str,
        token: str,
        amount: float,
        withdrawal_password: str | None = None,
        withdrawal_code: str | None = None,
    ) -> tuple[str, float]:
        token = token.upper()
        fee = await self._withdraw_fee(token)
        data = await self._signed(
            "POST",
            "/sapi/v1/capital/withdraw/apply",
            {"coin": token, "address": address, "amount": format_amount(amount)},
        )
        withdraw_id = str(data["id"])
        logger.info("%s withdrawal %s requested: %s %s", self.name, withdraw_id, amount, token)
        return withdraw_id, fee

    async def balances(self) -> dict[str, ExchangeBalance]:
        data = await self._signed("GET", "/api/v3/account")

        balances = {}
        for b in data.get("balances", []):
            free = float(b["free"])
            locked = float(b["locked"])
            if free > 0 or locked > 0:
                balances[b["asset"]] = ExchangeBalance(available=free, total=free + locked)
        return balances

    async def print_market_info(self, pair: str, format: MarketInfoFormat) -> None:
        symbol = normalize_symbol(pair)

        if format == MarketInfoFormat.HOURLY:
            klines = await self._public("/api/v3/klines", {"symbol": symbol, "interval": "1h", "limit": 24})
            rows = [
                [format_hour(k[0] / 1000), k[1], k[2], k[3], k[4], k[5]]
                for k in klines
            ]
            self._print_market_table(pair, ["Hour", "Open", "High", "Low", "Close", "Volume"], rows)
            return

        ticker = await self._public("/api/v3/ticker/24hr", {"symbol": symbol})
        if format == MarketInfoFormat.ASK:
            self._print_market_table(pair, ["Ask"], [[ticker["askPrice"]]])
        elif format == MarketInfoFormat.WEIGHTED_24H_AVERAGE_PRICE:
            self._print_market_table(pair, ["24h weighted average"], [[ticker["weightedAvgPrice"]]])
        else:
            fields = ["lastPrice", "bidPrice", "askPrice", "weightedAvgPrice", "highPrice", "lowPrice", "volume"]
            self._print_market_table(pair, ["Field", "Value"], [[f, ticker.get(f)] for f in fields])

    async def bid_ask(self, pair: str) -> BidAsk:
        data = await self._public("/api/v3/ticker/bookTicker", {"symbol": normalize_symbol(pair)})
        return BidAsk(bid_price=float(data["bidPrice"]), ask_price=float(data["askPrice"]))

    async def place_order(self, pair: str, side: OrderSide, price: float, amount: float) -> OrderId:
        data = await self._signed(
            "POST",
            "/api/v3/order",
            {
                "symbol": normalize_symbol(pair),
                "side": side.value.upper(),
                "type": "LIMIT",
                "timeInForce": "GTC",
                "quantity": format_amount(amount),
                "price": format_amount(price),
                "newOrderRespType": "ACK",
            },
        )
        order_id = str(data["orderId"])
        logger.info("%s order %s placed: %s %s %s @ %s", self.name, order_id, side, amount, pair, price)
        return order_id

    async def cancel_order(self, pair: str, order_id: OrderId) -> None:
        await self._signed("DELETE", "/api/v3/order", {"symbol": normalize_symbol(pair), "orderId": order_id})
        logger.info("%s order %s cancel requested", self.name, order_id)

    async def _order_fee(self, symbol: str, order_id: OrderId) -> tuple[float, str] | None:
        trades = await self._signed("GET", "/api/v3/myTrades", {"symbol": symbol, "orderId": order_id})
        if not trades:
            return None
        fee = sum(float(t["commission"]) for t in trades)
        return fee, trades[0]["commissionAsset"]

    async def order_status(self, pair: str, order_id: OrderId) -> OrderStatus:
        symbol = normalize_symbol(pair)
        data = await self._signed("GET", "/api/v3/order", {"symbol": symbol, "orderId": order_id})
        check_symbol_mismatch(symbol, data.get("symbol", symbol))

        filled_amount = float(data["executedQty"])
        fee = await self._order_fee(symbol, order_id) if filled_amount > 0 else None

        return OrderStatus(
            open=data["status"] in OPEN_ORDER_STATUSES,
            side=OrderSide.BUY if data["side"] == "BUY" else OrderSide.SELL,
            price=float(data["price"]),
            amount=float(data["origQty"]),
            filled_amount=filled_amount,
            last_update=date_from_timestamp(data["updateTime"] / 1000),
            fee=fee,
        )

    def preferred_solusd_pair(self) -> str:
        return "SOLUSD" if self.us else "SOLUSDT"
