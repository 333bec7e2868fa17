"""Credential bundle handed to exchange adapters."""

from __future__ import annotations

from pydantic import BaseModel, SecretStr


class ExchangeCredentials(BaseModel):
    """API key, secret and optional subaccount for one exchange account.

    The bundle is frozen and its secrets are masked in repr and dumps. Adapters
    decide what the fields mean for their exchange (Coinbase carries its API
    passphrase in ``subaccount``).
    """

    api_key: SecretStr
    secret: SecretStr
    subaccount: str | None = None

    model_config = {"extra": "forbid", "frozen": True}
