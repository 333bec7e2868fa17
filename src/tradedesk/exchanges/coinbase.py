"""Coinbase Exchange adapter."""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import logging
import time
from datetime import datetime, timezone
from typing import Any
from urllib.parse import urlencode

from .base import BaseExchangeClient, ProxyConfig, date_from_iso, format_amount, format_hour
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
from .normalization import extract_base_symbol, normalize_symbol

logger = logging.getLogger(__name__)

OPEN_ORDER_STATUSES = {"open", "pending", "active"}


class CoinbaseClient(BaseExchangeClient):
    """Coinbase Exchange client.

    Coinbase API keys come with a passphrase; it is carried in the
    credentials' ``subaccount`` field.
    """

    def __init__(
        self,
        credentials: ExchangeCredentials,
        *,
        proxy: ProxyConfig | None = None,
        **options: Any,
    ):
        super().__init__("coinbase", credentials, proxy=proxy, **options)

        if not credentials.subaccount:
            raise ExchangeError(self.name, "API passphrase is required (set it as the subaccount)")
        try:
            self._secret_bytes = base64.b64decode(self.api_secret, validate=True)
        except ValueError as exc:
            raise ExchangeError(self.name, "API secret is not valid base64") from exc

        # Coinbase forgets cancelled orders that never matched, so their status
        # has to come from what this client placed and cancelled.
        self._placed: dict[OrderId, tuple[OrderSide, float, float]] = {}
        self._cancelled: set[OrderId] = set()

    def get_base_url(self) -> str:
        return "https://api.exchange.coinbase.com"

    def _sign_request(self, method: str, request_path: str, body: str = "") -> tuple[str, str]:
        """Generate Coinbase signature."""
        timestamp = str(time.time())
        message = timestamp + method + request_path + body
        signature = base64.b64encode(
            hmac.new(self._secret_bytes, message.encode(), hashlib.sha256).digest()
        ).decode()
        return timestamp, signature

    def _get_headers(self, timestamp: str, signature: str) -> dict[str, str]:
        return {
            "CB-ACCESS-KEY": self.api_key,
            "CB-ACCESS-SIGN": signature,
            "CB-ACCESS-TIMESTAMP": timestamp,
            "CB-ACCESS-PASSPHRASE": self.credentials.subaccount or "",
            "Content-Type": "application/json",
            "User-Agent": "tradedesk/1.0",
        }

    async def _private(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        body: dict[str, Any] | None = None,
    ) -> Any:
        request_path = f"{path}?{urlencode(params)}" if params else path
        payload = json.dumps(body) if body is not None else ""
        timestamp, signature = self._sign_request(method, request_path, payload)
        return await self._request(
            method,
            request_path,
            data=payload or None,
            headers=self._get_headers(timestamp, signature),
        )

    async def deposit_address(self, token: str) -> str:
        accounts = await self._private("GET", "/coinbase-accounts")
        account_id = next((a["id"] for a in accounts if a.get("currency") == token.upper()), None)
        if account_id is None:
            raise ExchangeError(self.name, f"no {token} account")

        data = await self._private("POST", f"/coinbase-accounts/{account_id}/addresses")
        address = data.get("address")
        if not address:
            raise ExchangeError(self.name, f"no deposit address for {token}")
        return address

    async def recent_deposits(self) -> list[DepositInfo] | None:
        transfers = await self._private("GET", "/transfers", {"type": "deposit"})

        deposits = []
        for t in transfers:
            tx_id = (t.get("details") or {}).get("crypto_transaction_hash")
            if t.get("completed_at") and not t.get("canceled_at") and tx_id:
                deposits.append(DepositInfo(tx_id=tx_id, amount=float(t["amount"])))
        return deposits

    async def recent_withdrawals(self) -> list[WithdrawalInfo]:
        transfers = await self._private("GET", "/transfers", {"type": "withdraw"})

        withdrawals = []
        for t in transfers:
            details = t.get("details") or {}
            cancelled = bool(t.get("canceled_at"))
            withdrawals.append(
                WithdrawalInfo(
                    address=details.get("sent_to_address") or details.get("crypto_address", ""),
                    token=t.get("currency", ""),
                    amount=float(t["amount"]),
                    tag=details.get("destination_tag") or "",
                    completed=cancelled or bool(t.get("completed_at")),
                    tx_id=None if cancelled else details.get("crypto_transaction_hash"),
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
        data = await self._private(
            "POST",
            "/withdrawals/crypto",
            body={
                "amount": format_amount(amount),
                "currency": token.upper(),
                "crypto_address": address,
            },
        )
        withdraw_id = data["id"]
        logger.info("%s withdrawal %s requested: %s %s", self.name, withdraw_id, amount, token)
        return withdraw_id, float(data.get("fee") or 0)

    async def balances(self) -> dict[str, ExchangeBalance]:
        accounts = await self._private("GET", "/accounts")
        return {
            a["currency"]: ExchangeBalance(available=float(a["available"]), total=float(a["balance"]))
            for a in accounts
            if float(a["balance"]) > 0
        }

    async def _hourly_candles(self, product_id: str) -> list[list[float]]:
        # [time, low, high, open, close, volume], newest first
        candles = await self._request("GET", f"/products/{product_id}/candles", params={"granularity": 3600})
        return candles[:24]

    async def print_market_info(self, pair: str, format: MarketInfoFormat) -> None:
        product_id = normalize_symbol(pair, "hyphen")

        if format == MarketInfoFormat.ASK:
            ticker = await self._request("GET", f"/products/{product_id}/ticker")
            self._print_market_table(pair, ["Ask"], [[ticker["ask"]]])
        elif format == MarketInfoFormat.WEIGHTED_24H_AVERAGE_PRICE:
            candles = await self._hourly_candles(product_id)
            volume = sum(c[5] for c in candles)
            if not volume:
                raise ExchangeError(self.name, f"no trades for {product_id} in the last 24h")
            average = sum((c[1] + c[2] + c[4]) / 3 * c[5] for c in candles) / volume
            self._print_market_table(pair, ["24h weighted average"], [[f"{average:.4f}"]])
        elif format == MarketInfoFormat.HOURLY:
            candles = await self._hourly_candles(product_id)
            rows = [[format_hour(c[0]), c[3], c[2], c[1], c[4], c[5]] for c in reversed(candles)]
            self._print_market_table(pair, ["Hour", "Open", "High", "Low", "Close", "Volume"], rows)
        else:
            stats = await self._request("GET", f"/products/{product_id}/stats")
            ticker = await self._request("GET", f"/products/{product_id}/ticker")
            rows = [["bid", ticker.get("bid")], ["ask", ticker.get("ask")]]
            rows += [[field, stats.get(field)] for field in ("last", "open", "high", "low", "volume")]
            self._print_market_table(pair, ["Field", "Value"], rows)

    async def bid_ask(self, pair: str) -> BidAsk:
        ticker = await self._request("GET", f"/products/{normalize_symbol(pair, 'hyphen')}/ticker")
        return BidAsk(bid_price=float(ticker["bid"]), ask_price=float(ticker["ask"]))

    async def place_order(self, pair: str, side: OrderSide, price: float, amount: float) -> OrderId:
        data = await self._private(
            "POST",
            "/orders",
            body={
                "product_id": normalize_symbol(pair, "hyphen"),
                "side": side.value.lower(),
                "type": "limit",
                "price": format_amount(price),
                "size": format_amount(amount),
            },
        )
        order_id = data["id"]
        self._placed[order_id] = (side, price, amount)
        logger.info("%s order %s placed: %s %s %s @ %s", self.name, order_id, side, amount, pair, price)
        return order_id

    async def cancel_order(self, pair: str, order_id: OrderId) -> None:
        await self._private("DELETE", f"/orders/{order_id}", {"product_id": normalize_symbol(pair, "hyphen")})
        self._cancelled.add(order_id)
        logger.info("%s order %s cancel requested", self.name, order_id)

    async def order_status(self, pair: str, order_id: OrderId) -> OrderStatus:
        try:
            data = await self._private("GET", f"/orders/{order_id}")
        except ExchangeError as exc:
            if exc.status == 404 and order_id in self._cancelled and order_id in self._placed:
                return self._cancelled_without_fills(order_id)
            raise

        filled_amount = float(data.get("filled_size") or 0)
        fee = None
        if filled_amount > 0:
            _, quote = extract_base_symbol(data.get("product_id") or pair)
            fee = (float(data.get("fill_fees") or 0), quote)

        return OrderStatus(
            open=data["status"] in OPEN_ORDER_STATUSES,
            side=OrderSide.BUY if data["side"] == "buy" else OrderSide.SELL,
            price=float(data["price"]),
            amount=float(data["size"]),
            filled_amount=filled_amount,
            last_update=date_from_iso(data.get("done_at") or data["created_at"]),
            fee=fee,
        )

    def _cancelled_without_fills(self, order_id: OrderId) -> OrderStatus:
        side, price, amount = self._placed[order_id]
        logger.debug("%s order %s was cancelled before any fill", self.name, order_id)
        return OrderStatus(
            open=False,
            side=side,
            price=price,
            amount=amount,
            filled_amount=0.0,
            last_update=datetime.now(timezone.utc).date(),
        )

    def preferred_solusd_pair(self) -> str:
        return "SOL-USD"
