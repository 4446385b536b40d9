"""Command-line interface for the wallet dashboard."""

import getpass
import logging
import os
import sys

# Fix Windows encoding issues
if sys.platform == "win32":
    os.environ.setdefault("PYTHONIOENCODING", "utf-8")
    try:
        sys.stdout.reconfigure(encoding="utf-8")
        sys.stderr.reconfigure(encoding="utf-8")
    except (AttributeError, OSError):
        pass

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.table import Table

from .api.base import UpstreamUnavailable
from .config import Config
from .dashboard import WalletDashboard
from .favorites import DuplicateFavorite, FavoritesStore
from .models import FavoriteWallet, Portfolio, TransferRecord, WalletReport
from .validation import InvalidInput, is_address
from .valuation import (
    address_url,
    allocation,
    filter_transactions,
    format_amount,
    format_usd,
    short_hash,
    sort_by_value,
    tx_url,
)

logger = logging.getLogger(__name__)

console = Console(force_terminal=True)

BAR_WIDTH = 40


def print_banner():
    """Print the application banner."""
    banner = (
        "\n[bold cyan]"
        "+-----------------------------------------------------------+\n"
        "|           ETHEREUM WALLET DASHBOARD                       |\n"
        "|     Balances, prices and transfers for any address        |\n"
        "+-----------------------------------------------------------+"
        "[/bold cyan]\n"
    )
    console.print(banner)


def _current_user(config: Config) -> str:
    return config.default_user or getpass.getuser()


def display_portfolio(portfolio: Portfolio, top: int | None = 10):
    """Display the portfolio summary: total value and holdings by value."""
    console.print()

    if not portfolio.holdings:
        console.print(Panel(
            "No balances found for this wallet.",
            title="Portfolio Summary",
            border_style="yellow",
        ))
        return

    console.print(Panel(
        f"[bold]${portfolio.total_value:,.2f}[/bold]\n[dim]Total Portfolio Value[/dim]",
        title="Portfolio Summary",
        border_style="green",
    ))

    holdings = sort_by_value(portfolio.holdings)
    shown = holdings if top is None else holdings[:top]

    table = Table()
    table.add_column("#", style="cyan", width=4)
    table.add_column("Token", width=12)
    table.add_column("Name", width=25)
    table.add_column("Balance", style="yellow", justify="right")
    table.add_column("Price (USD)", justify="right")
    table.add_column("Value (USD)", style="green", justify="right")

    for i, holding in enumerate(shown, 1):
        table.add_row(
            str(i),
            holding.symbol,
            holding.name[:25],
            format_amount(holding.balance),
            format_usd(holding.price),
            format_usd(holding.value),
        )

    console.print(table)

    if len(shown) < len(holdings):
        console.print(
            f"[dim]Showing top {len(shown)} of {len(holdings)} holdings "
            f"(use --all to view all)[/dim]"
        )


def display_allocation(portfolio: Portfolio):
    """Display token allocation as a bar chart."""
    slices = allocation(portfolio)
    console.print()

    if not slices:
        console.print("[dim]No priced holdings to chart.[/dim]")
        return

    table = Table(title="Token Allocation", show_header=False, box=None)
    table.add_column("Token", style="cyan", width=10)
    table.add_column("Bar")
    table.add_column("Share", justify="right", width=6)
    table.add_column("Value", justify="right")

    for s in slices:
        bar = "#" * max(1, round(s.percent / 100 * BAR_WIDTH))
        table.add_row(s.symbol, f"[green]{bar}[/green]", f"{s.percent:.0f}%", format_usd(s.value))

    console.print(table)


def display_transactions(transactions: list[TransferRecord], direction: str = "all"):
    """Display the transaction table."""
    shown = filter_transactions(transactions, direction)
    console.print()

    if not shown:
        console.print(Panel(
            "No transactions found.",
            title="Transaction History",
            border_style="yellow",
        ))
        return

    title = "Transaction History" if direction == "all" else f"Transaction History ({direction})"
    table = Table(title=title)
    table.add_column("Timestamp", width=20)
    table.add_column("Dir", width=4)
    table.add_column("Token", width=10)
    table.add_column("Value", style="yellow", justify="right")
    table.add_column("Category", width=9)
    table.add_column("Hash", style="dim")

    for tx in shown:
        table.add_row(
            tx.timestamp.replace("T", " ")[:19],
            "[green]IN[/green]" if tx.incoming else "[red]OUT[/red]",
            tx.token,
            format_amount(tx.value),
            (tx.category or "N/A").upper(),
            f"[link={tx_url(tx.hash)}]{short_hash(tx.hash)}[/link]",
        )

    console.print(table)


def display_report(report: WalletReport, top: int | None = 10):
    """Display a full wallet report."""
    console.print(Panel(
        f"[bold]{report.address}[/bold]\n"
        f"[dim]{address_url(report.address)}[/dim]\n"
        f"[dim]Looked up in {report.lookup_time_ms}ms[/dim]",
        title="Wallet",
        border_style="cyan",
    ))
    display_portfolio(report.portfolio, top=top)
    display_allocation(report.portfolio)
    display_transactions(report.transactions)


def display_favorites(favorites: list[FavoriteWallet]):
    """Display a user's favorite wallets."""
    if not favorites:
        console.print("[dim]No favorite wallets yet. Add one after looking up a wallet![/dim]")
        return

    table = Table(title="Favorite Wallets")
    table.add_column("#", style="cyan", width=4)
    table.add_column("Label", width=20)
    table.add_column("Address", style="green")
    table.add_column("Added", style="dim", width=20)

    for i, fav in enumerate(favorites, 1):
        table.add_row(str(i), fav.label or "-", fav.address, fav.created_at[:19].replace("T", " "))

    console.print(table)


def run_lookup(config: Config, address: str, limit: int | None = None, show_all: bool = False) -> WalletReport | None:
    """Look up and display one wallet. Returns None on failure."""
    dashboard = WalletDashboard(config)
    try:
        with console.status("[bold]Fetching balances, transfers and prices...[/bold]"):
            report = dashboard.lookup(address, limit)
    except InvalidInput as e:
        console.print(f"[red]{e}[/red]")
        return None
    except UpstreamUnavailable as e:
        logger.exception("Lookup failed for %s", address)
        console.print(Panel(str(e), title="Provider Unavailable", border_style="red"))
        return None
    finally:
        dashboard.close()

    display_report(report, top=None if show_all else config.top_holdings)
    return report


def _pick_address(store: FavoritesStore, user: str) -> str:
    favorites = store.list(user)
    if favorites:
        display_favorites(favorites)
        console.print("  [dim]Enter a number to pick a favorite, or paste an address[/dim]")

    value = Prompt.ask("  Wallet address").strip()
    if value.isdigit() and favorites:
        index = int(value)
        if 1 <= index <= len(favorites):
            return favorites[index - 1].address
    return value


def interactive_lookup():
    """Run interactive wallet lookup."""
    try:
        config = Config.load()
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        return

    user = _current_user(config)
    store = FavoritesStore(config.favorites_path)

    while True:
        address = _pick_address(store, user)
        report = run_lookup(config, address)

        if report:
            if Confirm.ask("Show incoming/outgoing only?", default=False):
                choice = IntPrompt.ask("  1) incoming  2) outgoing", default=1)
                display_transactions(
                    report.transactions, "incoming" if choice == 1 else "outgoing"
                )

            if not store.is_favorite(user, report.address) and Confirm.ask(
                "Add this wallet to favorites?", default=False
            ):
                label = Prompt.ask("  Label (optional)", default="").strip()
                add_favorite(config, report.address, label or None)

        console.print()
        if not Confirm.ask("Look up another wallet?", default=True):
            break


def add_favorite(config: Config, address: str, label: str | None = None):
    store = FavoritesStore(config.favorites_path)
    try:
        favorite = store.add(_current_user(config), address, label)
    except (InvalidInput, DuplicateFavorite) as e:
        console.print(f"[red]{e}[/red]")
        return
    console.print(f"[green]Added {favorite.address} to favorites.[/green]")


def remove_favorite(config: Config, address: str):
    store = FavoritesStore(config.favorites_path)
    try:
        removed = store.remove(_current_user(config), address)
    except InvalidInput as e:
        console.print(f"[red]{e}[/red]")
        return
    if removed:
        console.print(f"[green]Removed {address.lower()} from favorites.[/green]")
    else:
        console.print(f"[yellow]{address} is not in your favorites.[/yellow]")


def list_favorites(config: Config):
    store = FavoritesStore(config.favorites_path)
    display_favorites(store.list(_current_user(config)))


HELP = """
[bold]Usage:[/bold]
  python -m wallet_dashboard.cli                               Interactive mode
  python -m wallet_dashboard.cli --lookup ADDRESS [LIMIT] [--all]
                                                               Look up one wallet
  python -m wallet_dashboard.cli --favorites                   List favorite wallets
  python -m wallet_dashboard.cli --add-favorite ADDRESS [LABEL]
  python -m wallet_dashboard.cli --remove-favorite ADDRESS
  python -m wallet_dashboard.cli --help                        Show this help

[bold]How it works:[/bold]
  1. Enter an Ethereum address (0x + 40 hex characters)
  2. Balances and recent transfers are fetched from Alchemy
  3. Prices come from Moralis, with CoinGecko as a fallback

[bold]Setup:[/bold]
  1. Copy .env.example to .env
  2. Get an Alchemy API key at https://www.alchemy.com
  3. Add it to .env: ALCHEMY_API_KEY=your_key_here
"""


def main():
    """Main entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    print_banner()

    args = sys.argv[1:]
    if not args:
        interactive_lookup()
        return

    command, rest = args[0], args[1:]
    if command == "--help":
        console.print(HELP)
        return

    try:
        config = Config.load()
    except ValueError:
        sys.exit(1)

    if command == "--lookup" and rest:
        show_all = "--all" in rest
        rest = [a for a in rest if a != "--all"]
        limit = None
        if len(rest) > 1:
            if not rest[1].isdigit():
                console.print(f"[red]Limit must be a number, got {rest[1]}[/red]")
                sys.exit(2)
            limit = int(rest[1])
        if run_lookup(config, rest[0], limit, show_all=show_all) is None:
            sys.exit(1)
    elif command == "--favorites":
        list_favorites(config)
    elif command == "--add-favorite" and rest:
        add_favorite(config, rest[0], " ".join(rest[1:]) or None)
    elif command == "--remove-favorite" and rest:
        remove_favorite(config, rest[0])
    elif is_address(command):
        run_lookup(config, command)
    else:
        console.print(HELP)
        sys.exit(2)


if __name__ == "__main__":
    main()
