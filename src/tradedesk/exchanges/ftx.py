"""FTX and FTX US exchange adapter."""

from __future__ import annotations

import json
import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Any
from urllib.parse import quote, urlencode

from .base import BaseExchangeClient, ProxyConfig, date_from_iso, format_amount, format_hour
from .credentials import ExchangeCredentials
from .errors import ExchangeError
from .models import (
    BidAsk,
    DepositInfo,
    ExchangeBalance,
    LendingHistory,
    LendingHistoryRange,
    LendingInfo,
    MarketInfoFormat,
    OrderId,
    OrderSide,
    OrderStatus,
    WithdrawalInfo,
)
from .normalization import normalize_symbol

logger = logging.getLogger(__name__)

OPEN_ORDER_STATUSES = {"new", "open"}

# Lowest hourly rate FTX accepts; the offer then lends at the market rate
MIN_LENDING_RATE = 1e-6


class FtxClient(BaseExchangeClient):
    """FTX exchange client.

    With ``us=True`` the same client talks to FTX US, which has no spot margin
    lending market.
    """

    def __init__(
        self,
        credentials: ExchangeCredentials,
        *,
        us: bool = False,
        proxy: ProxyConfig | None = None,
        lending_history_coin: str = "USD",
        **options: Any,
    ):
        super().__init__(
            "ftxus" if us else "ftx",
            credentials,
            proxy=proxy,
            lending_history_coin=lending_history_coin,
            **options,
        )
        self.us = us
        self.lending_history_coin = lending_history_coin

    def get_base_url(self) -> str:
        if self.us:
            return "https://ftx.us/api"
        return "https://ftx.com/api"

    def _get_headers(self, timestamp: str, signature: str) -> dict[str, str]:
        prefix = "FTXUS" if self.us else "FTX"
        headers = {
            f"{prefix}-KEY": self.api_key,
            f"{prefix}-SIGN": signature,
            f"{prefix}-TS": timestamp,
            "Content-Type": "application/json",
            "User-Agent": "tradedesk/1.0",
        }
        if self.credentials.subaccount:
            headers[f"{prefix}-SUBACCOUNT"] = quote(self.credentials.subaccount)
        return headers

    async def _private(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        body: dict[str, Any] | None = None,
    ) -> Any:
        request_path = f"{path}?{urlencode(params)}" if params else path
        payload = json.dumps(body) if body is not None else ""
        timestamp = str(int(time.time() * 1000))
        signature = self.generate_signature(self.api_secret, f"{timestamp}{method}/api{request_path}{payload}")

        data = await self._request(
            method,
            request_path,
            data=payload or None,
            headers=self._get_headers(timestamp, signature),
        )
        return self._unwrap(data)

    async def _public(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return self._unwrap(await self._request("GET", path, params=params))

    def _unwrap(self, data: dict[str, Any]) -> Any:
        if not data.get("success"):
            raise ExchangeError(self.name, data.get("error") or "request failed")
        return data.get("result")

    async def deposit_address(self, token: str) -> str:
        data = await self._private("GET", f"/wallet/deposit_address/{token.upper()}")
        address = (data or {}).get("address")
        if not address:
            raise ExchangeError(self.name, f"no deposit address for {token}")
        return address

    async def recent_deposits(self) -> list[DepositInfo] | None:
        deposits = await self._private("GET", "/wallet/deposits")
        return [
            DepositInfo(tx_id=d["txid"], amount=float(d["size"]))
            for d in deposits
            if d.get("status") == "confirmed" and d.get("txid")
        ]

    async def recent_withdrawals(self) -> list[WithdrawalInfo]:
        withdrawals = await self._private("GET", "/wallet/withdrawals")
        return [
            WithdrawalInfo(
                address=w.get("address") or "",
                token=w["coin"],
                amount=float(w["size"]),
                tag=w.get("tag") or "",
                completed=w["status"] in ("complete", "cancelled"),
                tx_id=w.get("txid") if w["status"] == "complete" else None,
            )
            for w in withdrawals
        ]

    async def request_withdraw(
        self,
        address: str,
        token: str,
        amount: float,
        withdrawal_password: str | None = None,
        withdrawal_code: str | None = None,
    ) -> tuple[str, float]:
        body: dict[str, Any] = {
            "coin": token.upper(),
            "size": format_amount(amount),
            "address": address,
        }
        if withdrawal_password is not None:
            body["password"] = withdrawal_password
        if withdrawal_code is not None:
            body["code"] = withdrawal_code

        data = await self._private("POST", "/wallet/withdrawals", body=body)
        withdraw_id = str(data["id"])
        logger.info("%s withdrawal %s requested: %s %s", self.name, withdraw_id, amount, token)
        return withdraw_id, float(data.get("fee") or 0)

    async def balances(self) -> dict[str, ExchangeBalance]:
        data = await self._private("GET", "/wallet/balances")
        return {
            b["coin"]: ExchangeBalance(available=float(b["free"]), total=float(b["total"]))
            for b in data
            if float(b["total"]) > 0
        }

    async def _hourly_candles(self, market: str) -> list[dict[str, Any]]:
        start_time = int(time.time()) - 24 * 3600
        return await self._public(f"/markets/{market}/candles", {"resolution": 3600, "start_time": start_time})

    async def print_market_info(self, pair: str, format: MarketInfoFormat) -> None:
        market = normalize_symbol(pair, "slash")

        if format == MarketInfoFormat.HOURLY:
            candles = await self._hourly_candles(market)
            rows = [
                [format_hour(c["time"] / 1000), c["open"], c["high"], c["low"], c["close"], c["volume"]]
                for c in candles
            ]
            self._print_market_table(pair, ["Hour", "Open", "High", "Low", "Close", "Volume"], rows)
        elif format == MarketInfoFormat.WEIGHTED_24H_AVERAGE_PRICE:
            candles = await self._hourly_candles(market)
            volume = sum(c["volume"] for c in candles)
            if not volume:
                raise ExchangeError(self.name, f"no trades for {market} in the last 24h")
            average = sum(c["close"] * c["volume"] for c in candles) / volume
            self._print_market_table(pair, ["24h weighted average"], [[f"{average:.4f}"]])
        else:
            data = await self._public(f"/markets/{market}")
            if format == MarketInfoFormat.ASK:
                self._print_market_table(pair, ["Ask"], [[data["ask"]]])
            else:
                fields = ["last", "bid", "ask", "price", "change24h", "quoteVolume24h"]
                self._print_market_table(pair, ["Field", "Value"], [[f, data.get(f)] for f in fields])

    async def bid_ask(self, pair: str) -> BidAsk:
        data = await self._public(f"/markets/{normalize_symbol(pair, 'slash')}")
        return BidAsk(bid_price=float(data["bid"]), ask_price=float(data["ask"]))

    async def place_order(self, pair: str, side: OrderSide, price: float, amount: float) -> OrderId:
        data = await self._private(
            "POST",
            "/orders",
            body={
                "market": normalize_symbol(pair, "slash"),
                "side": side.value.lower(),
                "price": price,
                "size": amount,
                "type": "limit",
            },
        )
        order_id = str(data["id"])
        logger.info("%s order %s placed: %s %s %s @ %s", self.name, order_id, side, amount, pair, price)
        return order_id

    async def cancel_order(self, pair: str, order_id: OrderId) -> None:
        await self._private("DELETE", f"/orders/{order_id}")
        logger.info("%s order %s cancel requested", self.name, order_id)

    async def order_status(self, pair: str, order_id: OrderId) -> OrderStatus:
        data = await self._private("GET", f"/orders/{order_id}")

        filled_amount = float(data.get("filledSize") or 0)
        fee = None
        if filled_amount > 0:
            fills = await self._private("GET", "/fills", {"orderId": order_id})
            if fills:
                fee = (sum(float(f["fee"]) for f in fills), fills[0]["feeCurrency"])

        return OrderStatus(
            open=data["status"] in OPEN_ORDER_STATUSES,
            side=OrderSide.BUY if data["side"] == "buy" else OrderSide.SELL,
            price=float(data["price"]),
            amount=float(data["size"]),
            filled_amount=filled_amount,
            last_update=date_from_iso(data["createdAt"]),
            fee=fee,
        )

    async def get_lending_info(self, coin: str) -> LendingInfo | None:
        if self.us:
            return None

        coin = coin.upper()
        info = await self._private("GET", "/spot_margin/lending_info")
        entry = next((i for i in info if i["coin"] == coin), None)
        if entry is None:
            return None

        rates = await self._public("/spot_margin/lending_rates")
        rate = next((r for r in rates if r["coin"] == coin), {})
        return LendingInfo(
            lendable=float(entry["lendable"]),
            offered=float(entry["offered"]),
            locked=float(entry["locked"]),
            estimate_rate=float(rate.get("estimate") or 0),
            previous_rate=float(rate.get("previous") or 0),
        )

    async def get_lending_history(self, lending_history: LendingHistory) -> dict[str, float]:
        """Daily lending rates of ``lending_history_coin``.

        Each entry sums the hourly rates of one UTC day, keyed by ISO date.
        """
        if self.us:
            return await super().get_lending_history(lending_history)

        if isinstance(lending_history, LendingHistoryRange):
            start = datetime.combine(lending_history.start_date, datetime.min.time(), tzinfo=timezone.utc)
            end = datetime.combine(
                lending_history.end_date + timedelta(days=1), datetime.min.time(), tzinfo=timezone.utc
            )
        else:
            end = datetime.now(timezone.utc)
            start = end - timedelta(days=lending_history.days)

        entries = await self._public(
            "/spot_margin/history",
            {
                "coin": self.lending_history_coin,
                "start_time": int(start.timestamp()),
                "end_time": int(end.timestamp()),
            },
        )

        history: dict[str, float] = {}
        for entry in sorted(entries, key=lambda e: e["time"]):
            day = date_from_iso(entry["time"]).isoformat()
            history[day] = history.get(day, 0.0) + float(entry["rate"])
        return history

    async def submit_lending_offer(self, coin: str, size: float) -> None:
        if self.us:
            return await super().submit_lending_offer(coin, size)

        await self._private(
            "POST",
            "/spot_margin/offers",
            body={"coin": coin.upper(), "size": size, "rate": MIN_LENDING_RATE},
        )
        logger.info("%s lending offer submitted: %s %s", self.name, size, coin)

    def preferred_solusd_pair(self) -> str:
        return "SOL/USD"
