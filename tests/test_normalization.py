"""Tests for pair symbol normalization."""

from tradedesk.exchanges.normalization import (
    check_symbol_mismatch,
    extract_base_symbol,
    normalize_symbol,
)


class TestNormalizeSymbol:
    """Tests for normalize_symbol function."""

    def test_unified_format(self):
        """Binance and Kraken spell pairs without a separator."""
        assert normalize_symbol("SOLUSD", "unified") == "SOLUSD"
        assert normalize_symbol("SOL-USD", "unified") == "SOLUSD"
        assert normalize_symbol("SOL/USDT", "unified") == "SOLUSDT"

    def test_hyphen_format(self):
        """Coinbase spells pairs with a hyphen."""
        assert normalize_symbol("SOLUSD", "hyphen") == "SOL-USD"
        assert normalize_symbol("SOL/USD", "hyphen") == "SOL-USD"
        assert normalize_symbol("ethbtc", "hyphen") == "ETH-BTC"
        assert normalize_symbol("FETUSD", "hyphen") == "FET-USD"

    def test_slash_format(self):
        """FTX spells pairs with a slash."""
        assert normalize_symbol("SOLUSD", "slash") == "SOL/USD"
        assert normalize_symbol("SOL-USDC", "slash") == "SOL/USDC"

    def test_unknown_quote_stays_unified(self):
        assert normalize_symbol("SOLXYZ", "slash") == "SOLXYZ"

    def test_case_and_whitespace(self):
        assert normalize_symbol("  sol-usd  ") == "SOLUSD"
        assert normalize_symbol("sol / usd") == "SOLUSD"

    def test_empty(self):
        assert normalize_symbol("") == ""


class TestExtractBaseSymbol:
    """Tests for extract_base_symbol function."""

    def test_separated(self):
        assert extract_base_symbol("SOL-USD") == ("SOL", "USD")
        assert extract_base_symbol("SOL/USDT") == ("SOL", "USDT")

    def test_unified_format(self):
        assert extract_base_symbol("SOLUSDT") == ("SOL", "USDT")
        assert extract_base_symbol("SOLUSD") == ("SOL", "USD")
        assert extract_base_symbol("SOLBUSD") == ("SOL", "BUSD")
        assert extract_base_symbol("SOLZUSD") == ("SOL", "ZUSD")
        assert extract_base_symbol("ETHBTC") == ("ETH", "BTC")

    def test_short_base_does_not_steal_quote_letters(self):
        """A 4-letter quote only wins when it leaves a full base asset."""
        assert extract_base_symbol("XBTUSD") == ("XBT", "USD")
        assert extract_base_symbol("FETUSD") == ("FET", "USD")
        assert extract_base_symbol("XBTUSDT") == ("XBT", "USDT")
        assert extract_base_symbol("OPUSD") == ("OP", "USD")

    def test_single_currency(self):
        assert extract_base_symbol("SOL") == ("SOL", "")
        assert extract_base_symbol("BTC") == ("BTC", "")

    def test_empty_symbol(self):
        assert extract_base_symbol("") == ("", "")


class TestCheckSymbolMismatch:
    """Tests for check_symbol_mismatch function."""

    def test_matching_symbols(self):
        assert check_symbol_mismatch("SOLUSD", "SOL/USD") is True
        assert check_symbol_mismatch("SOL-USD", "solusd") is True

    def test_mismatched_symbols(self):
        logged = []

        result = check_symbol_mismatch("SOLUSD", "SOLUSDT", logger_func=logged.append)

        assert result is False
        assert len(logged) == 1
        assert "Symbol mismatch" in logged[0]
