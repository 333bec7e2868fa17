from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, SecretStr, field_validator

from .exchanges.credentials import ExchangeCredentials
from .exchanges.identity import Exchange


class ProxySettings(BaseModel):
    enabled: bool = False
    url: str | None = None
    username: str | None = None
    password: SecretStr | None = None

    model_config = {"extra": "forbid"}

    def as_dict(self) -> dict[str, Any] | None:
        if not self.enabled or not self.url:
            return None
        return {
            "url": self.url,
            "username": self.username,
            "password": self.password.get_secret_value() if self.password else None,
        }


class ExchangeSettings(BaseModel):
    enabled: bool = True
    credentials: ExchangeCredentials | None = None
    options: dict[str, Any] = Field(default_factory=dict)

    model_config = {"extra": "forbid"}


class Settings(BaseModel):
    env: str = "dev"
    proxy: ProxySettings = Field(default_factory=ProxySettings)
    exchanges: dict[Exchange, ExchangeSettings] = Field(default_factory=dict)

    model_config = {"extra": "forbid"}

    @field_validator("exchanges", mode="before")
    @classmethod
    def _parse_exchange_names(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return value
        return {
            key if isinstance(key, Exchange) else Exchange.parse(str(key)): exch
            for key, exch in value.items()
        }

    def redacted(self) -> dict[str, Any]:
        data = self.model_dump(mode="json")
        for exch in data.get("exchanges", {}).values():
            creds = exch.get("credentials")
            if isinstance(creds, dict):
                if "api_key" in creds:
                    creds["api_key"] = "***"
                if "secret" in creds:
                    creds["secret"] = "***"
        proxy = data.get("proxy")
        if isinstance(proxy, dict) and proxy.get("password") is not None:
            proxy["password"] = "***"
        return data
