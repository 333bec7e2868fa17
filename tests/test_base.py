"""Tests for the shared exchange client base."""

import asyncio
import json
from datetime import date
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest
from rich.console import Console

from conftest import create_async_response

from tradedesk.exchanges.base import BaseExchangeClient, date_from_iso, date_from_timestamp, format_amount
from tradedesk.exchanges.binance import BinanceClient
from tradedesk.exchanges.errors import ExchangeError
from tradedesk.exchanges.models import LendingHistoryPrevious


class TestHelpers:
    """Tests for module helpers."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (1.0, "1"),
            (0.1, "0.1"),
            (0.00001, "0.00001"),
            (1234.5678, "1234.5678"),
            (0.123456789, "0.123456789"),
            (100, "100"),
        ],
    )
    def test_format_amount_keeps_every_digit(self, value, expected):
        assert format_amount(value) == expected

    def test_binance_documented_signature(self):
        """HMAC-SHA256 example from Binance's API documentation."""
        secret = "NhqPtmdSJYdKjVHjA7PZj4Mge3R5YNiP1e3UZjInClVN65XAbvqqM6A7H5fATj0j"
        query = (
            "symbol=LTCBTC&side=BUY&type=LIMIT&timeInForce=GTC&quantity=1&price=0.1"
            "&recvWindow=5000&timestamp=1499827319559"
        )
        assert BaseExchangeClient.generate_signature(secret, query) == (
            "c8db56825ae71d6d79447849e617115f4a920fa2acdcab2b053c4b2838bd6b71"
        )

    def test_unsupported_signature_method(self):
        with pytest.raises(ValueError, match="Unsupported signature method"):
            BaseExchangeClient.generate_signature("s", "m", method="md5")

    def test_dates(self):
        assert date_from_timestamp(1640995200) == date(2022, 1, 1)
        assert date_from_iso("2022-03-01T12:00:00.123456Z") == date(2022, 3, 1)
        assert date_from_iso("2021-12-31T23:00:00+00:00") == date(2021, 12, 31)


class TestRequest:
    """Tests for the shared request path."""

    @pytest.mark.asyncio
    async def test_non_200_raises_exchange_error(self, credentials, mock_session):
        client = BinanceClient(credentials)
        mock_session(client, (400, {"code": -1121}, '{"code":-1121,"msg":"Invalid symbol."}'))

        with pytest.raises(ExchangeError, match="Invalid symbol") as excinfo:
            await client.bid_ask("NOPE")

        assert excinfo.value.status == 400
        assert excinfo.value.exchange == "binance"

    @pytest.mark.asyncio
    async def test_transport_error_is_wrapped(self, credentials):
        client = BinanceClient(credentials)
        session = MagicMock()
        session.request = MagicMock(side_effect=aiohttp.ClientConnectionError("connection reset"))
        client._ensure_session = AsyncMock(return_value=session)

        with pytest.raises(ExchangeError, match="connection reset") as excinfo:
            await client.bid_ask("SOLUSDT")

        assert isinstance(excinfo.value.__cause__, aiohttp.ClientError)

    @pytest.mark.asyncio
    async def test_timeout_is_wrapped(self, credentials):
        client = BinanceClient(credentials)
        session = MagicMock()
        session.request = MagicMock(side_effect=asyncio.TimeoutError())
        client._ensure_session = AsyncMock(return_value=session)

        with pytest.raises(ExchangeError, match="TimeoutError") as excinfo:
            await client.balances()

        assert isinstance(excinfo.value.__cause__, asyncio.TimeoutError)

    @pytest.mark.asyncio
    async def test_non_json_body_is_wrapped(self, credentials):
        client = BinanceClient(credentials)
        resp = create_async_response(200, text="<html>maintenance</html>")
        resp.json = AsyncMock(side_effect=json.JSONDecodeError("Expecting value", "<html>", 0))
        session = MagicMock()
        session.request = MagicMock(return_value=resp)
        client._ensure_session = AsyncMock(return_value=session)

        with pytest.raises(ExchangeError, match="Expecting value") as excinfo:
            await client.bid_ask("SOLUSDT")

        assert excinfo.value.exchange == "binance"
        assert isinstance(excinfo.value.__cause__, json.JSONDecodeError)

    @pytest.mark.asyncio
    async def test_proxy_is_passed_to_session(self, credentials, mock_session):
        from tradedesk.exchanges.base import ProxyConfig

        client = BinanceClient(credentials, proxy=ProxyConfig(url="http://127.0.0.1:8080"))
        session = mock_session(client, {"bidPrice": "1", "askPrice": "2"})

        await client.bid_ask("SOLUSDT")

        assert session.request.call_args.kwargs["proxy"] == "http://127.0.0.1:8080"


class TestCapabilityDefaults:
    """Optional capabilities default to unsupported."""

    @pytest.mark.asyncio
    async def test_lending_defaults(self, credentials):
        client = BinanceClient(credentials)

        assert await client.get_lending_info("USD") is None
        with pytest.raises(ExchangeError, match="lending is not supported"):
            await client.get_lending_history(LendingHistoryPrevious(days=3))
        with pytest.raises(ExchangeError, match="lending is not supported"):
            await client.submit_lending_offer("USD", 10.0)

    @pytest.mark.asyncio
    async def test_close_releases_session(self, credentials):
        client = BinanceClient(credentials)
        session = MagicMock()
        session.close = AsyncMock()
        client.session = session

        async with client:
            pass

        session.close.assert_awaited_once()
        assert client.session is None

    def test_market_table_goes_to_console(self, credentials):
        console = Console(record=True, width=120)
        client = BinanceClient(credentials, console=console)

        client._print_market_table("SOLUSDT", ["Ask"], [[42.5]])

        output = console.export_text()
        assert "binance SOLUSDT" in output.splitlines()[0]
        assert "42.5" in output
