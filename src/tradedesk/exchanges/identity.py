"""Supported exchange identities and their text form."""

from __future__ import annotations

from enum import Enum


class ParseExchangeError(ValueError):
    """Raised when text does not name a supported exchange."""

    def __init__(self, text: str):
        super().__init__(f"invalid exchange: {text!r}")
        self.text = text


class Exchange(Enum):
    """Exchange backends a client can be created for.

    The value is the canonical display spelling. Parsing also accepts the
    all-lowercase spelling, which is what config files and the CLI use.
    """

    BINANCE = "Binance"
    BINANCE_US = "BinanceUs"
    COINBASE = "Coinbase"
    FTX = "Ftx"
    FTX_US = "FtxUs"
    KRAKEN = "Kraken"

    def __str__(self) -> str:
        return self.value

    def display(self) -> str:
        return self.value

    @property
    def slug(self) -> str:
        """Lowercase spelling used in config and on the command line."""
        return self.value.lower()

    @classmethod
    def parse(cls, text: str) -> "Exchange":
        """Parse a canonical or lowercase exchange spelling.

        Args:
            text: e.g. "Kraken" or "kraken"

        Returns:
            Matching Exchange member

        Raises:
            ParseExchangeError: For any other spelling, including "KRAKEN"
        """
        for member in cls:
            if text == member.value or text == member.slug:
                return member
        raise ParseExchangeError(text)
