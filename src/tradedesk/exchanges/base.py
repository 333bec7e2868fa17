"""Base client class for exchange adapters."""

from __future__ import annotations

import asyncio
import hashlib
import hmac
import logging
from abc import ABC, abstractmethod
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any

import aiohttp
from rich.console import Console
from rich.table import Table

from .credentials import ExchangeCredentials
from .errors import ExchangeError
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

logger = logging.getLogger(__name__)


class ProxyConfig:
    """HTTP proxy configuration."""

    def __init__(self, url: str | None = None, username: str | None = None, password: str | None = None):
        self.url = url
        self.username = username
        self.password = password

    @property
    def proxy_url(self) -> str | None:
        if not self.url:
            return None
        if self.username and self.password:
            protocol = self.url.split("://")[0] if "://" in self.url else "http"
            rest = self.url.split("://")[1] if "://" in self.url else self.url
            return f"{protocol}://{self.username}:{self.password}@{rest}"
        return self.url


def format_amount(value: float) -> str:
    """Render an amount as a plain decimal string without rounding it.

    ``format_amount(0.00001) == "0.00001"`` where ``str()`` would give ``1e-05``.
    """
    text = format(Decimal(repr(float(value))), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def date_from_timestamp(seconds: float) -> date:
    """UTC calendar date of a unix timestamp in seconds."""
    return datetime.fromtimestamp(seconds, tz=timezone.utc).date()


def format_hour(seconds: float) -> str:
    return datetime.fromtimestamp(seconds, tz=timezone.utc).strftime("%Y-%m-%d %H:%M")


def date_from_iso(text: str) -> date:
    """Calendar date of an ISO-8601 timestamp such as '2022-03-01T12:00:00.123Z'."""
    return datetime.fromisoformat(text.replace("Z", "+00:00")).date()


class BaseExchangeClient(ABC):
    """Base class for all exchange adapters.

    Subclasses implement the mandatory operations. Optional capabilities
    default to "unsupported": deposit history is None, there is no lending
    market for any coin, and lending history/offers raise ExchangeError.
    """

    def __init__(
        self,
        name: str,
        credentials: ExchangeCredentials,
        *,
        proxy: ProxyConfig | None = None,
        console: Console | None = None,
        **options: Any,
    ):
        """Initialize exchange client.

        Args:
            name: Exchange name
            credentials: API key, secret and optional subaccount
            proxy: Proxy configuration
            console: Console that market reports are printed to
            **options: Additional exchange-specific options

        Raises:
            ExchangeError: If the API key or secret is empty
        """
        if not credentials.api_key.get_secret_value() or not credentials.secret.get_secret_value():
            raise ExchangeError(name, "API key and secret are required")

        self.name = name
        self.credentials = credentials
        self.proxy = proxy or ProxyConfig()
        self.console = console or Console()
        self.options = options
        self.session: aiohttp.ClientSession | None = None

    @property
    def api_key(self) -> str:
        return self.credentials.api_key.get_secret_value()

    @property
    def api_secret(self) -> str:
        return self.credentials.secret.get_secret_value()

    @staticmethod
    def generate_signature(secret: str | bytes, message: str, method: str = "hmac-sha256") -> str:
        """Generate a hex-encoded HMAC signature.

        Args:
            secret: Secret key
            message: Message to sign
            method: Signature method (default: hmac-sha256)

        Returns:
            Hex-encoded signature
        """
        key = secret.encode() if isinstance(secret, str) else secret
        if method == "hmac-sha256":
            return hmac.new(key, message.encode(), hashlib.sha256).hexdigest()
        elif method == "hmac-sha512":
            return hmac.new(key, message.encode(), hashlib.sha512).hexdigest()
        else:
            raise ValueError(f"Unsupported signature method: {method}")

    @abstractmethod
    def get_base_url(self) -> str:
        """Get base API URL."""
        ...

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self.session is None:
            connector = aiohttp.TCPConnector()
            self.session = aiohttp.ClientSession(connector=connector)
        return self.session

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        data: Any = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Send a request and return the decoded JSON body.

        Raises:
            ExchangeError: On transport failure, timeout, a non-200 status
                or a body that is not JSON
        """
        session = await self._ensure_session()
        url = f"{self.get_base_url()}{path}"
        logger.debug("%s %s %s", self.name, method, path)

        try:
            async with session.request(
                method,
                url,
                params=params,
                data=data,
                headers=headers,
                proxy=self.proxy.proxy_url,
            ) as resp:
                if resp.status != 200:
                    detail = await resp.text()
                    raise ExchangeError(
                        self.name,
                        f"{method} {path} failed: {resp.status} {detail}",
                        status=resp.status,
                    )
                return await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            reason = str(exc) or type(exc).__name__
            raise ExchangeError(self.name, f"{method} {path} failed: {reason}") from exc

    def _print_market_table(self, pair: str, columns: list[str], rows: list[list[Any]]) -> None:
        title = f"{self.name} {pair}"
        # Narrow tables would otherwise wrap the title
        table = Table(title=title, min_width=len(title))
        for column in columns:
            table.add_column(column)
        for row in rows:
            table.add_row(*(str(value) for value in row))
        self.console.print(table)

    @abstractmethod
    async def deposit_address(self, token: str) -> str:
        """Resolve the deposit address for a token."""
        ...

    async def recent_deposits(self) -> list[DepositInfo] | None:
        """Deposit history is unsupported unless an adapter overrides this."""
        return None

    @abstractmethod
    async def recent_withdrawals(self) -> list[WithdrawalInfo]:
        """Fetch recent withdrawals."""
        ...

    @abstractmethod
    async def request_withdraw(
        self,
        address: str,
        token: str,
        amount: float,
        withdrawal_password: str | None = None,
        withdrawal_code: str | None = None,
    ) -> tuple[str, float]:
        """Initiate a withdrawal."""
        ...

    @abstractmethod
    async def balances(self) -> dict[str, ExchangeBalance]:
        """Fetch account balances."""
        ...

    @abstractmethod
    async def print_market_info(self, pair: str, format: MarketInfoFormat) -> None:
        """Print a market report."""
        ...

    @abstractmethod
    async def bid_ask(self, pair: str) -> BidAsk:
        """Fetch best bid and ask."""
        ...

    @abstractmethod
    async def place_order(self, pair: str, side: OrderSide, price: float, amount: float) -> OrderId:
        """Place a limit order."""
        ...

    @abstractmethod
    async def cancel_order(self, pair: str, order_id: OrderId) -> None:
        """Cancel an order."""
        ...

    @abstractmethod
    async def order_status(self, pair: str, order_id: OrderId) -> OrderStatus:
        """Fetch order status."""
        ...

    async def get_lending_info(self, coin: str) -> LendingInfo | None:
        """No lending market unless an adapter overrides this."""
        return None

    async def get_lending_history(self, lending_history: LendingHistory) -> dict[str, float]:
        raise ExchangeError(self.name, "lending is not supported")

    async def submit_lending_offer(self, coin: str, size: float) -> None:
        raise ExchangeError(self.name, "lending is not supported")

    @abstractmethod
    def preferred_solusd_pair(self) -> str:
        ...

    async def close(self) -> None:
        """Close connections."""
        if self.session:
            await self.session.close()
            self.session = None

    async def __aenter__(self) -> "BaseExchangeClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
