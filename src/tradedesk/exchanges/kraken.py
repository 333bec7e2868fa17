"""Kraken exchange adapter."""

from __future__ import annotations

import base64
import hashlib
import hmac
import logging
import time
from typing import Any
from urllib.parse import urlencode

from .base import BaseExchangeClient, ProxyConfig, date_from_timestamp, format_amount, format_hour
from .credentials import ExchangeCredentials
from .errors import ExchangeError
from .models import (
    BidAsk,
    ExchangeBalance,
    MarketInfoFormat,
    OrderId,
    OrderSide,
    OrderStatus,
    WithdrawalInfo,
)
from .normalization import extract_base_symbol, normalize_symbol

logger = logging.getLogger(__name__)

OPEN_ORDER_STATUSES = {"pending", "open"}


class KrakenClient(BaseExchangeClient):
    """Kraken exchange client.

    Kraken only reports deposits per asset and method, so deposit history is
    left unsupported. Withdrawals go to a withdrawal key registered on the
    account: pass its name as ``withdrawal_code``, otherwise the destination
    address is used as the key name.
    """

    def __init__(
        self,
        credentials: ExchangeCredentials,
        *,
        proxy: ProxyConfig | None = None,
        **options: Any,
    ):
        super().__init__("kraken", credentials, proxy=proxy, **options)
        try:
            self._secret_bytes = base64.b64decode(self.api_secret, validate=True)
        except ValueError as exc:
            raise ExchangeError(self.name, "API secret is not valid base64") from exc

    def get_base_url(self) -> str:
        return "https://api.kraken.com"

    def _sign_request(self, path: str, nonce: str, postdata: str) -> str:
        """Generate Kraken API-Sign: HMAC-SHA512 of path + SHA256(nonce + postdata)."""
        message = path.encode() + hashlib.sha256((nonce + postdata).encode()).digest()
        return base64.b64encode(hmac.new(self._secret_bytes, message, hashlib.sha512).digest()).decode()

    async def _private(self, method: str, params: dict[str, Any] | None = None) -> Any:
        path = f"/0/private/{method}"
        nonce = str(int(time.time() * 1000))
        postdata = urlencode({"nonce": nonce, **(params or {})})
        headers = {
            "API-Key": self.api_key,
            "API-Sign": self._sign_request(path, nonce, postdata),
            "Content-Type": "application/x-www-form-urlencoded",
            "User-Agent": "tradedesk/1.0",
        }
        return self._unwrap(await self._request("POST", path, data=postdata, headers=headers))

    async def _public(self, method: str, params: dict[str, Any]) -> Any:
        return self._unwrap(await self._request("GET", f"/0/public/{method}", params=params))

    def _unwrap(self, data: dict[str, Any]) -> Any:
        errors = data.get("error") or []
        if errors:
            raise ExchangeError(self.name, ", ".join(errors))
        return data.get("result")

    async def _ticker(self, pair: str) -> dict[str, Any]:
        result = await self._public("Ticker", {"pair": normalize_symbol(pair)})
        if not result:
            raise ExchangeError(self.name, f"unknown pair {pair}")
        return next(iter(result.values()))

    async def deposit_address(self, token: str) -> str:
        asset = token.upper()
        methods = await self._private("DepositMethods", {"asset": asset})
        if not methods:
            raise ExchangeError(self.name, f"no deposit method for {token}")

        addresses = await self._private("DepositAddresses", {"asset": asset, "method": methods[0]["method"]})
        if not addresses:
            raise ExchangeError(self.name, f"no deposit address for {token}")
        return addresses[0]["address"]

    async def recent_withdrawals(self) -> list[WithdrawalInfo]:
        entries = await self._private("WithdrawStatus")

        withdrawals = []
        for w in sorted(entries, key=lambda e: e.get("time", 0)):
            status = w.get("status")
            cancelled = w.get("status-prop") == "canceled"
            withdrawals.append(
                WithdrawalInfo(
                    address=w.get("info") or "",
                    token=w["asset"],
                    amount=float(w["amount"]),
                    tag="",
                    completed=cancelled or status in ("Success", "Failure"),
                    tx_id=w.get("txid") if status == "Success" and not cancelled else None,
                )
            )
        return withdrawals

    async def request_withdraw(
        self,
        address: str,
        token: str,
        amount: float,
        withdrawal_password: str | None = None,
        withdrawal_code: str | None = None,
    ) -> tuple[str, float]:
        params = {
            "asset": token.upper(),
            "key": withdrawal_code or address,
            "amount": format_amount(amount),
        }
        info = await self._private("WithdrawInfo", params)
        data = await self._private("Withdraw", {**params, "address": address})

        withdraw_id = data["refid"]
        logger.info("%s withdrawal %s requested: %s %s", self.name, withdraw_id, amount, token)
        return withdraw_id, float(info["fee"])

    async def balances(self) -> dict[str, ExchangeBalance]:
        data = await self._private("BalanceEx")

        balances = {}
        for asset, entry in data.items():
            total = float(entry["balance"])
            if total > 0:
                hold = float(entry.get("hold_trade") or 0)
                balances[asset] = ExchangeBalance(available=total - hold, total=total)
        return balances

    async def print_market_info(self, pair: str, format: MarketInfoFormat) -> None:
        if format == MarketInfoFormat.HOURLY:
            result = await self._public("OHLC", {"pair": normalize_symbol(pair), "interval": 60})
            candles = next(v for k, v in result.items() if k != "last")[-24:]
            # [time, open, high, low, close, vwap, volume, count]
            rows = [[format_hour(c[0]), c[1], c[2], c[3], c[4], c[6]] for c in candles]
            self._print_market_table(pair, ["Hour", "Open", "High", "Low", "Close", "Volume"], rows)
            return

        ticker = await self._ticker(pair)
        if format == MarketInfoFormat.ASK:
            self._print_market_table(pair, ["Ask"], [[ticker["a"][0]]])
        elif format == MarketInfoFormat.WEIGHTED_24H_AVERAGE_PRICE:
            self._print_market_table(pair, ["24h weighted average"], [[ticker["p"][1]]])
        else:
            rows = [
                ["last", ticker["c"][0]],
                ["bid", ticker["b"][0]],
                ["ask", ticker["a"][0]],
                ["24h weighted average", ticker["p"][1]],
                ["24h high", ticker["h"][1]],
                ["24h low", ticker["l"][1]],
                ["24h volume", ticker["v"][1]],
            ]
            self._print_market_table(pair, ["Field", "Value"], rows)

    async def bid_ask(self, pair: str) -> BidAsk:
        ticker = await self._ticker(pair)
        return BidAsk(bid_price=float(ticker["b"][0]), ask_price=float(ticker["a"][0]))

    async def place_order(self, pair: str, side: OrderSide, price: float, amount: float) -> OrderId:
        data = await self._private(
            "AddOrder",
            {
                "pair": normalize_symbol(pair),
                "type": side.value.lower(),
                "ordertype": "limit",
                "price": format_amount(price),
                "volume": format_amount(amount),
            },
        )
        order_id = data["txid"][0]
        logger.info("%s order %s placed: %s %s %s @ %s", self.name, order_id, side, amount, pair, price)
        return order_id

    async def cancel_order(self, pair: str, order_id: OrderId) -> None:
        await self._private("CancelOrder", {"txid": order_id})
        logger.info("%s order %s cancel requested", self.name, order_id)

    async def order_status(self, pair: str, order_id: OrderId) -> OrderStatus:
        result = await self._private("QueryOrders", {"txid": order_id})
        data = result.get(order_id)
        if data is None:
            raise ExchangeError(self.name, f"unknown order {order_id}")

        filled_amount = float(data["vol_exec"])
        fee = None
        if filled_amount > 0:
            _, quote = extract_base_symbol(pair)
            fee = (float(data["fee"]), quote)

        return OrderStatus(
            open=data["status"] in OPEN_ORDER_STATUSES,
            side=OrderSide.BUY if data["descr"]["type"] == "buy" else OrderSide.SELL,
            price=float(data["descr"]["price"]),
            amount=float(data["vol"]),
            filled_amount=filled_amount,
            last_update=date_from_timestamp(data.get("closetm") or data["opentm"]),
            fee=fee,
        )

    def preferred_solusd_pair(self) -> str:
        return "SOLUSD"
