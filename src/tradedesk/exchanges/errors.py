"""Errors raised by exchange clients."""

from __future__ import annotations


class ExchangeError(Exception):
    """An exchange operation (or client construction) could not complete.

    This is the single failure category of the client contract. Callers decide
    whether to retry, abort or surface it; nothing is retried automatically.
    """

    def __init__(self, exchange: str, message: str, *, status: int | None = None):
        super().__init__(f"{exchange}: {message}")
        self.exchange = exchange
        self.status = status
