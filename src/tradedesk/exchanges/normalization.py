"""Pair symbol normalization for exchange symbols."""

from __future__ import annotations

import logging
from typing import Any

from .models import USD_COINS

logger = logging.getLogger(__name__)

QUOTE_ASSETS = USD_COINS | {"DAI", "TUSD", "USDD", "EUR", "BTC", "ETH"}


def normalize_symbol(symbol: str, format: str = "unified") -> str:
    """Normalize a pair symbol to one exchange spelling.

    Converts various symbol formats:
    - SOL/USD, SOL-USD, solusd -> SOLUSD ('unified', Binance and Kraken)
    - SOLUSD -> SOL-USD ('hyphen', Coinbase)
    - SOLUSD -> SOL/USD ('slash', FTX)

    Args:
        symbol: Symbol in any format
        format: Target format ('unified', 'hyphen' or 'slash')

    Returns:
        Normalized symbol
    """
    if not symbol:
        return symbol

    symbol = symbol.strip()

    # First normalize to unified format
    unified = symbol.replace("-", "").replace("/", "").replace(" ", "").upper()

    if format == "unified":
        return unified
    elif format in ("hyphen", "slash"):
        base, quote = extract_base_symbol(symbol)
        if base and quote:
            separator = "-" if format == "hyphen" else "/"
            return f"{base}{separator}{quote}"
        return unified
    else:
        return unified


def extract_base_symbol(symbol: str) -> tuple[str, str]:
    """Extract base and quote currency from a symbol.

    Handles various formats:
    - SOLUSDT -> (SOL, USDT)
    - SOL-USD -> (SOL, USD)
    - SOL/USD -> (SOL, USD)
    - SOL -> (SOL, '')

    Args:
        symbol: Symbol in any format

    Returns:
        Tuple of (base, quote) currencies
    """
    if not symbol:
        return "", ""

    symbol = symbol.strip().upper()

    for separator in ("-", "/"):
        if separator in symbol:
            parts = symbol.split(separator)
            if len(parts) == 2:
                return parts[0].strip(), parts[1].strip()

    # Longest quote first, but XBTUSD is XBT/USD and not XB/TUSD
    quotes = sorted(QUOTE_ASSETS, key=len, reverse=True)
    for min_base in (3, 1):
        for quote in quotes:
            if symbol.endswith(quote) and len(symbol) - len(quote) >= min_base:
                return symbol[: -len(quote)], quote

    return symbol, ""


def check_symbol_mismatch(
    expected: str,
    actual: str,
    logger_func: Any = None,
) -> bool:
    """Check if two symbols represent the same trading pair.

    Logs a warning if they don't match.

    Args:
        expected: Expected symbol
        actual: Actual symbol
        logger_func: Logger function (defaults to logger.warning)

    Returns:
        True if symbols match, False otherwise
    """
    if logger_func is None:
        logger_func = logger.warning

    expected_normalized = normalize_symbol(expected)
    actual_normalized = normalize_symbol(actual)

    if expected_normalized != actual_normalized:
        logger_func(
            f"Symbol mismatch: expected {expected} ({expected_normalized}), "
            f"got {actual} ({actual_normalized})"
        )
        return False

    return True
