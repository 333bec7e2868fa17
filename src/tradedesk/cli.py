"""Typer-based CLI for exchange treasury and trading operations."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, Awaitable, Callable, NoReturn, Optional, TypeVar

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .exchanges.identity import Exchange
from .exchanges.models import (
    LendingHistoryPrevious,
    LendingHistoryRange,
    MarketInfoFormat,
    OrderSide,
    OrderStatus,
)

if TYPE_CHECKING:
    from .exchanges.base import BaseExchangeClient
    from .settings import Settings

T = TypeVar("T")


# Import with local function to avoid circular imports
def _load_settings(config_path: Optional[Path] = None) -> "Settings":
    from .config import load_settings
    return load_settings(config_path)

def _create_exchange_client_from_settings(settings: "Settings", exchange: Exchange) -> "BaseExchangeClient":
    from .exchanges.init import create_exchange_client_from_settings
    return create_exchange_client_from_settings(settings, exchange)

def _create_exchange_clients_from_settings(settings: "Settings") -> dict[Exchange, "BaseExchangeClient"]:
    from .exchanges.init import create_exchange_clients_from_settings
    return create_exchange_clients_from_settings(settings)


app = typer.Typer(help="Exchange treasury and trading CLI")
console = Console()
logger = logging.getLogger(__name__)

EXCHANGE_HELP = "Exchange (" + ", ".join(e.slug for e in Exchange) + ")"
FORMAT_HELP = "Report format (" + ", ".join(f.value for f in MarketInfoFormat) + ")"


def run_cli(argv: list[str] | None = None) -> None:
    """Run CLI with optional argv parameter."""
    app(argv)


def _fail(message: str, exc: Exception) -> NoReturn:
    logger.error("%s: %s", message, exc, exc_info=True)
    console.print(f"[red]Error:[/red] {exc}")
    raise typer.Exit(1)


async def _with_client(client: "BaseExchangeClient", action: Callable[["BaseExchangeClient"], Awaitable[T]]) -> T:
    async with client:
        return await action(client)


def _run(exchange: str, config: Optional[Path], action: Callable[["BaseExchangeClient"], Awaitable[T]]) -> T:
    """Build the client for ``exchange`` from config and run one action against it."""
    try:
        settings = _load_settings(config)
        client = _create_exchange_client_from_settings(settings, Exchange.parse(exchange))
        return asyncio.run(_with_client(client, action))
    except Exception as e:
        _fail(f"{exchange} command failed", e)


def _parse_side(side: str) -> OrderSide:
    for member in OrderSide:
        if side.lower() == member.value.lower():
            return member
    raise typer.BadParameter(f"side must be buy or sell, got {side!r}")


def _parse_format(format: str) -> MarketInfoFormat:
    try:
        return MarketInfoFormat(format)
    except ValueError:
        raise typer.BadParameter(f"unknown format {format!r}")


ExchangeOption = typer.Option(..., "--exchange", "-e", help=EXCHANGE_HELP)
ConfigOption = typer.Option(None, help="Path to config file")


@app.command("exchanges")
def exchanges_list(config: Optional[Path] = ConfigOption) -> None:
    """List configured exchanges and whether a client could be built."""
    try:
        settings = _load_settings(config)
    except ValueError as e:
        _fail("Failed to load settings", e)

    clients = _create_exchange_clients_from_settings(settings)

    table = Table(title="Configured Exchanges")
    table.add_column("Exchange", style="cyan")
    table.add_column("Enabled")
    table.add_column("Credentials")
    table.add_column("Ready")
    for exchange, exchange_config in settings.exchanges.items():
        table.add_row(
            str(exchange),
            "yes" if exchange_config.enabled else "no",
            "yes" if exchange_config.credentials else "no",
            "[green]yes[/green]" if exchange in clients else "[red]no[/red]",
        )
    console.print(table)

    for client in clients.values():
        asyncio.run(client.close())


@app.command()
def balances(exchange: str = ExchangeOption, config: Optional[Path] = ConfigOption) -> None:
    """Show account balances."""
    result = _run(exchange, config, lambda client: client.balances())

    table = Table(title=f"{exchange} balances")
    table.add_column("Asset", style="cyan")
    table.add_column("Available", justify="right")
    table.add_column("Total", justify="right")
    for asset, balance in sorted(result.items()):
        table.add_row(asset, f"{balance.available}", f"{balance.total}")
    console.print(table)


@app.command("deposit-address")
def deposit_address(
    token: str = typer.Argument(..., help="Token symbol, e.g. SOL"),
    exchange: str = ExchangeOption,
    config: Optional[Path] = ConfigOption,
) -> None:
    """Show the deposit address for a token."""
    address = _run(exchange, config, lambda client: client.deposit_address(token))
    console.print(f"{token} deposit address: [bold]{address}[/bold]")


@app.command()
def deposits(exchange: str = ExchangeOption, config: Optional[Path] = ConfigOption) -> None:
    """Show recent deposits."""
    result = _run(exchange, config, lambda client: client.recent_deposits())

    if result is None:
        console.print(f"[yellow]{exchange} does not report deposit history[/yellow]")
        return
    if not result:
        console.print("No recent deposits")
        return

    table = Table(title=f"{exchange} recent deposits")
    table.add_column("Transaction", style="cyan")
    table.add_column("Amount", justify="right")
    for deposit in result:
        table.add_row(deposit.tx_id, f"{deposit.amount}")
    console.print(table)


@app.command()
def withdrawals(exchange: str = ExchangeOption, config: Optional[Path] = ConfigOption) -> None:
    """Show recent withdrawals."""
    result = _run(exchange, config, lambda client: client.recent_withdrawals())

    table = Table(title=f"{exchange} recent withdrawals")
    table.add_column("Token", style="cyan")
    table.add_column("Amount", justify="right")
    table.add_column("Address")
    table.add_column("Tag")
    table.add_column("Status")
    table.add_column("Transaction")
    for w in result:
        if w.cancelled:
            status = "[red]cancelled[/red]"
        elif w.completed:
            status = "[green]completed[/green]"
        else:
            status = "[yellow]pending[/yellow]"
        table.add_row(w.token, f"{w.amount}", w.address, w.tag, status, w.tx_id or "-")
    console.print(table)


@app.command()
def withdraw(
    address: str = typer.Argument(..., help="Destination address"),
    token: str = typer.Argument(..., help="Token symbol"),
    amount: float = typer.Argument(..., help="Amount to withdraw"),
    password: Optional[str] = typer.Option(None, help="Withdrawal password, if the exchange requires one"),
    code: Optional[str] = typer.Option(None, help="Withdrawal code (2FA, or Kraken withdrawal key name)"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    exchange: str = ExchangeOption,
    config: Optional[Path] = ConfigOption,
) -> None:
    """Request a withdrawal."""
    if not yes:
        typer.confirm(f"Withdraw {amount} {token} from {exchange} to {address}?", abort=True)

    withdraw_id, fee = _run(
        exchange,
        config,
        lambda client: client.request_withdraw(address, token, amount, password, code),
    )
    console.print(Panel.fit(
        f"[green]✓ Withdrawal requested[/green]\n"
        f"Withdrawal ID: {withdraw_id}\n"
        f"Amount: {amount} {token}\n"
        f"Fee: {fee}",
        title="Withdraw"
    ))


@app.command("market-info")
def market_info(
    pair: Optional[str] = typer.Argument(None, help="Trading pair (default: the exchange's SOL/USD pair)"),
    format: str = typer.Option("all", "--format", "-f", help=FORMAT_HELP),
    exchange: str = ExchangeOption,
    config: Optional[Path] = ConfigOption,
) -> None:
    """Print market information for a pair."""
    info_format = _parse_format(format)
    _run(exchange, config, lambda client: client.print_market_info(pair or client.preferred_solusd_pair(), info_format))


@app.command("bid-ask")
def bid_ask(
    pair: Optional[str] = typer.Argument(None, help="Trading pair (default: the exchange's SOL/USD pair)"),
    exchange: str = ExchangeOption,
    config: Optional[Path] = ConfigOption,
) -> None:
    """Show the best bid and ask for a pair."""
    quote = _run(exchange, config, lambda client: client.bid_ask(pair or client.preferred_solusd_pair()))
    console.print(f"bid: [green]{quote.bid_price}[/green]  ask: [red]{quote.ask_price}[/red]")


@app.command("order-place")
def order_place(
    pair: str = typer.Argument(..., help="Trading pair"),
    side: str = typer.Option(..., help="buy or sell"),
    price: float = typer.Option(..., help="Limit price"),
    amount: float = typer.Option(..., help="Order amount"),
    exchange: str = ExchangeOption,
    config: Optional[Path] = ConfigOption,
) -> None:
    """Place a limit order."""
    order_side = _parse_side(side)
    order_id = _run(exchange, config, lambda client: client.place_order(pair, order_side, price, amount))
    console.print(Panel.fit(
        f"[green]✓ Order placed[/green]\n"
        f"Order ID: {order_id}\n"
        f"{order_side} {amount} {pair} @ {price}",
        title="Order"
    ))


@app.command("order-cancel")
def order_cancel(
    pair: str = typer.Argument(..., help="Trading pair"),
    order_id: str = typer.Argument(..., help="Order ID"),
    exchange: str = ExchangeOption,
    config: Optional[Path] = ConfigOption,
) -> None:
    """Request cancellation of an order."""
    _run(exchange, config, lambda client: client.cancel_order(pair, order_id))
    console.print(f"Cancel requested for order {order_id}")


def _order_state(status: OrderStatus) -> str:
    if status.open:
        return "open (partially filled)" if status.filled_amount > 0 else "open"
    return "filled" if status.filled else "cancelled"


@app.command("order-status")
def order_status(
    pair: str = typer.Argument(..., help="Trading pair"),
    order_id: str = typer.Argument(..., help="Order ID"),
    exchange: str = ExchangeOption,
    config: Optional[Path] = ConfigOption,
) -> None:
    """Show the status of an order."""
    status = _run(exchange, config, lambda client: client.order_status(pair, order_id))

    table = Table(title=f"Order {order_id}")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    rows: list[tuple[str, Any]] = [
        ("State", _order_state(status)),
        ("Side", status.side),
        ("Price", status.price),
        ("Amount", status.amount),
        ("Filled", status.filled_amount),
        ("Last update", status.last_update),
        ("Fee", f"{status.fee[0]} {status.fee[1]}" if status.fee else "-"),
    ]
    for field, value in rows:
        table.add_row(field, str(value))
    console.print(table)


@app.command("lending-info")
def lending_info(
    coin: str = typer.Argument(..., help="Coin symbol"),
    exchange: str = ExchangeOption,
    config: Optional[Path] = ConfigOption,
) -> None:
    """Show margin lending state for a coin."""
    info = _run(exchange, config, lambda client: client.get_lending_info(coin))

    if info is None:
        console.print(f"[yellow]{exchange} has no lending market for {coin}[/yellow]")
        return

    console.print(Panel.fit(
        f"Lendable: {info.lendable}\n"
        f"Offered: {info.offered}\n"
        f"Locked: {info.locked}\n"
        f"Estimated rate: {info.estimate_rate}\n"
        f"Previous rate: {info.previous_rate}",
        title=f"{coin} lending"
    ))


@app.command("lending-history")
def lending_history(
    start: Optional[datetime] = typer.Option(None, formats=["%Y-%m-%d"], help="Start date"),
    end: Optional[datetime] = typer.Option(None, formats=["%Y-%m-%d"], help="End date"),
    days: Optional[int] = typer.Option(None, help="Number of previous days"),
    exchange: str = ExchangeOption,
    config: Optional[Path] = ConfigOption,
) -> None:
    """Show historical lending rates, for a date range or the last N days."""
    if days is not None and (start or end):
        raise typer.BadParameter("use either --days or --start/--end, not both")

    try:
        if days is not None:
            query = LendingHistoryPrevious(days=days)
        elif start and end:
            query = LendingHistoryRange(start_date=start.date(), end_date=end.date())
        else:
            raise typer.BadParameter("pass --days or both --start and --end")
    except ValueError as e:
        raise typer.BadParameter(str(e))

    history = _run(exchange, config, lambda client: client.get_lending_history(query))

    table = Table(title=f"{exchange} lending history")
    table.add_column("Date", style="cyan")
    table.add_column("Rate", justify="right")
    for label, rate in history.items():
        table.add_row(label, f"{rate:.6f}")
    console.print(table)


@app.command("lending-offer")
def lending_offer(
    coin: str = typer.Argument(..., help="Coin symbol"),
    size: float = typer.Argument(..., help="Amount to offer"),
    exchange: str = ExchangeOption,
    config: Optional[Path] = ConfigOption,
) -> None:
    """Submit a margin lending offer."""
    _run(exchange, config, lambda client: client.submit_lending_offer(coin, size))
    console.print(f"[green]✓ Lending offer submitted:[/green] {size} {coin}")
