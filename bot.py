"""Discord bot for the Ethereum Wallet Dashboard."""

import asyncio
import logging
import os
import sys
from pathlib import Path

import discord
from discord import app_commands
from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).parent / ".env")

from wallet_dashboard.api.base import UpstreamUnavailable
from wallet_dashboard.config import Config
from wallet_dashboard.dashboard import WalletDashboard
from wallet_dashboard.favorites import DuplicateFavorite, FavoritesStore
from wallet_dashboard.models import FavoriteWallet, TransferRecord, WalletReport
from wallet_dashboard.transfers import TransferReconciler
from wallet_dashboard.validation import InvalidInput
from wallet_dashboard.valuation import (
    address_url,
    allocation,
    filter_transactions,
    format_amount,
    format_usd,
    short_hash,
    sort_by_value,
    tx_url,
)

logger = logging.getLogger("wallet_dashboard_bot")


# ---------------------------------------------------------------------------
# Embed builders
# ---------------------------------------------------------------------------

def build_portfolio_embed(report: WalletReport, top: int = 10) -> discord.Embed:
    """Build a Discord embed from a WalletReport."""
    portfolio = report.portfolio
    embed = discord.Embed(
        title="Portfolio Summary",
        description=f"[`{report.address}`]({address_url(report.address)})",
        color=discord.Color.green() if portfolio.priced else discord.Color.gold(),
    )
    embed.add_field(
        name="Total Value",
        value=f"**${portfolio.total_value:,.2f}**",
        inline=False,
    )

    holdings = sort_by_value(portfolio.holdings)
    lines = []
    for i, h in enumerate(holdings[:top], 1):
        lines.append(
            f"{i}. {h.symbol:<8} {format_amount(h.balance):>18}  "
            f"@ {format_usd(h.price):>12} = {format_usd(h.value)}"
        )
    if len(holdings) > top:
        lines.append(f"... and {len(holdings) - top} more")
    embed.add_field(name="Holdings", value=f"```\n{chr(10).join(lines)[:1000]}\n```", inline=False)

    slices = allocation(portfolio)
    if slices:
        embed.add_field(
            name="Allocation",
            value="\n".join(f"**{s.symbol}** {s.percent:.0f}%" for s in slices),
            inline=True,
        )

    embed.set_footer(text=f"Looked up in {report.lookup_time_ms / 1000:.1f}s")
    return embed


def build_transactions_embed(
    address: str,
    transactions: list[TransferRecord],
    direction: str = "all",
) -> discord.Embed:
    """Build a Discord embed listing transactions."""
    shown = filter_transactions(transactions, direction)
    title = "Transactions" if direction == "all" else f"Transactions ({direction})"
    embed = discord.Embed(title=title, description=f"`{address}`", color=discord.Color.blue())

    if not shown:
        embed.add_field(name="Result", value="No transactions found.", inline=False)
        return embed

    for tx in shown[:10]:
        arrow = "IN" if tx.incoming else "OUT"
        embed.add_field(
            name=f"{arrow} {format_amount(tx.value)} {tx.token}",
            value=(
                f"{tx.timestamp[:19].replace('T', ' ')} | {(tx.category or 'N/A').upper()}\n"
                f"[{short_hash(tx.hash)}]({tx_url(tx.hash)})"
            ),
            inline=False,
        )
    if len(shown) > 10:
        embed.set_footer(text=f"... and {len(shown) - 10} more")
    return embed


def build_favorites_embed(favorites: list[FavoriteWallet]) -> discord.Embed:
    """Build a Discord embed listing a user's favorites."""
    embed = discord.Embed(title="Favorite Wallets", color=discord.Color.blurple())
    if not favorites:
        embed.description = "No favorite wallets yet. Add one with `/favorite_add`."
        return embed

    embed.description = "\n".join(
        f"{i}. `{f.address}`" + (f" - {f.label}" if f.label else "")
        for i, f in enumerate(favorites[:25], 1)
    )
    return embed


def build_error_embed(title: str, message: str) -> discord.Embed:
    return discord.Embed(
        title=title,
        description=f"```\n{message[:3900]}\n```",
        color=discord.Color.red(),
    )


# ---------------------------------------------------------------------------
# Bot setup
# ---------------------------------------------------------------------------

class WalletDashboardBot(discord.Client):
    def __init__(self):
        intents = discord.Intents.default()
        super().__init__(intents=intents)
        self.tree = app_commands.CommandTree(self)
        self.config = Config.load()
        self.favorites = FavoritesStore(self.config.favorites_path)

    async def setup_hook(self):
        guild_id = os.getenv("DISCORD_GUILD_ID")
        if guild_id:
            guild = discord.Object(id=int(guild_id))
            self.tree.copy_global_to(guild=guild)
            await self.tree.sync(guild=guild)
            logger.info("Slash commands synced to guild %s", guild_id)
        else:
            await self.tree.sync()
            logger.info("Slash commands synced globally (may take up to 1 hour to propagate)")

    async def on_ready(self):
        logger.info("Logged in as %s (ID: %s)", self.user, self.user.id)


bot = WalletDashboardBot()


def _user_id(interaction: discord.Interaction) -> str:
    return str(interaction.user.id)


async def _lookup(address: str, limit: int | None = None) -> WalletReport:
    dashboard = WalletDashboard(bot.config)
    try:
        return await asyncio.to_thread(dashboard.lookup, address, limit)
    finally:
        dashboard.close()


async def _transactions(address: str, limit: int | None = None) -> list[TransferRecord]:
    dashboard = WalletDashboard(bot.config)
    reconciler = TransferReconciler(dashboard.alchemy)
    try:
        return await asyncio.to_thread(
            reconciler.fetch, address,
            bot.config.transaction_limit if limit is None else limit,
        )
    finally:
        dashboard.close()


# ---------------------------------------------------------------------------
# Slash commands
# ---------------------------------------------------------------------------

@bot.tree.command(name="wallet", description="Show the portfolio of an Ethereum wallet")
@app_commands.describe(address="Ethereum address (0x...)")
async def cmd_wallet(interaction: discord.Interaction, address: str):
    await interaction.response.defer()

    try:
        report = await _lookup(address)
        await interaction.followup.send(
            embed=build_portfolio_embed(report, top=bot.config.top_holdings)
        )
    except InvalidInput as e:
        await interaction.followup.send(embed=build_error_embed("Invalid Input", str(e)))
    except UpstreamUnavailable as e:
        logger.exception("Provider error in /wallet")
        await interaction.followup.send(embed=build_error_embed("Provider Unavailable", str(e)))
    except Exception as e:
        logger.exception("Error in /wallet")
        await interaction.followup.send(embed=build_error_embed("Error", str(e)))


@bot.tree.command(name="transactions", description="Show recent transfers of an Ethereum wallet")
@app_commands.describe(
    address="Ethereum address (0x...)",
    direction="Which transfers to show",
    limit="Max transactions to fetch (1-1000)",
)
@app_commands.choices(direction=[
    app_commands.Choice(name="All", value="all"),
    app_commands.Choice(name="Incoming", value="incoming"),
    app_commands.Choice(name="Outgoing", value="outgoing"),
])
async def cmd_transactions(
    interaction: discord.Interaction,
    address: str,
    direction: str = "all",
    limit: int | None = None,
):
    await interaction.response.defer()

    try:
        transactions = await _transactions(address, limit)
        embed = build_transactions_embed(address.strip().lower(), transactions, direction)
        await interaction.followup.send(embed=embed)
    except InvalidInput as e:
        await interaction.followup.send(embed=build_error_embed("Invalid Input", str(e)))
    except UpstreamUnavailable as e:
        logger.exception("Provider error in /transactions")
        await interaction.followup.send(embed=build_error_embed("Provider Unavailable", str(e)))
    except Exception as e:
        logger.exception("Error in /transactions")
        await interaction.followup.send(embed=build_error_embed("Error", str(e)))


@bot.tree.command(name="favorites", description="List your favorite wallets")
async def cmd_favorites(interaction: discord.Interaction):
    favorites = await asyncio.to_thread(bot.favorites.list, _user_id(interaction))
    await interaction.response.send_message(embed=build_favorites_embed(favorites), ephemeral=True)


@bot.tree.command(name="favorite_add", description="Save a wallet to your favorites")
@app_commands.describe(address="Ethereum address (0x...)", label="Optional label")
async def cmd_favorite_add(interaction: discord.Interaction, address: str, label: str | None = None):
    try:
        favorite = await asyncio.to_thread(
            bot.favorites.add, _user_id(interaction), address, label
        )
    except (InvalidInput, DuplicateFavorite) as e:
        await interaction.response.send_message(str(e), ephemeral=True)
        return
    await interaction.response.send_message(
        f"Added `{favorite.address}` to your favorites.", ephemeral=True
    )


@bot.tree.command(name="favorite_remove", description="Remove a wallet from your favorites")
@app_commands.describe(address="Ethereum address (0x...)")
async def cmd_favorite_remove(interaction: discord.Interaction, address: str):
    try:
        removed = await asyncio.to_thread(bot.favorites.remove, _user_id(interaction), address)
    except InvalidInput as e:
        await interaction.response.send_message(str(e), ephemeral=True)
        return
    message = "Favorite removed." if removed else "That wallet is not in your favorites."
    await interaction.response.send_message(message, ephemeral=True)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main():
    token = os.getenv("DISCORD_BOT_TOKEN")
    if not token:
        print("ERROR: DISCORD_BOT_TOKEN not set in .env file")
        print("Get a bot token at https://discord.com/developers/applications")
        sys.exit(1)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    bot.run(token)


if __name__ == "__main__":
    main()
