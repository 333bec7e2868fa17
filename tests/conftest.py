"""Pytest configuration and fixtures."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from tradedesk.exchanges.credentials import ExchangeCredentials

# Example secret from Kraken's API documentation (valid base64)
BASE64_SECRET = "kQH5HW/8p1uGOVjbgWA7FunAmGO8lsSUXNsu3eow76sz84Q18fWxnyRzBHCd3pd5nE9qa99HAZtuZuj6F1huXg=="


def create_async_response(status=200, json_data=None, text=""):
    """Create a mock async response."""
    resp = AsyncMock()
    resp.status = status
    resp.json = AsyncMock(return_value=json_data if json_data is not None else {})
    resp.text = AsyncMock(return_value=text)
    resp.__aenter__ = AsyncMock(return_value=resp)
    resp.__aexit__ = AsyncMock(return_value=None)
    return resp


@pytest.fixture
def credentials():
    """Plain API key and secret."""
    return ExchangeCredentials(api_key="test_api_key_123456", secret="test_api_secret_789012")


@pytest.fixture
def base64_credentials():
    """Credentials with a base64 secret, as Kraken issues them."""
    return ExchangeCredentials(api_key="test_api_key_123456", secret=BASE64_SECRET)


@pytest.fixture
def coinbase_credentials():
    """Coinbase credentials: base64 secret plus passphrase in subaccount."""
    return ExchangeCredentials(
        api_key="test_api_key_123456",
        secret=BASE64_SECRET,
        subaccount="test_passphrase_345678",
    )


@pytest.fixture
def mock_session():
    """Attach a mocked aiohttp session to a client.

    Each call to ``session.request`` returns the next response, given as
    ``(status, json_data)`` tuples or plain json payloads (status 200).
    """

    def _attach(client, *responses):
        mocked = []
        for response in responses:
            if isinstance(response, tuple):
                mocked.append(create_async_response(*response))
            else:
                mocked.append(create_async_response(200, response))

        session = MagicMock()
        session.request = MagicMock(side_effect=mocked)
        client._ensure_session = AsyncMock(return_value=session)
        return session

    return _attach
