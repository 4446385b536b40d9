"""Portfolio valuation - USD prices and values for wallet holdings."""

from collections.abc import Iterable, Mapping

from .models import AllocationSlice, AssetBalance, Portfolio, TransferRecord, ValuedHolding


def resolve_price(balance: AssetBalance, prices: Mapping[str, float]) -> float:
    """
    Resolve the USD price of a balance from a price table.

    Contract address first (lowercased), then the symbol as-is, then
    the symbol uppercased. The first non-zero hit wins; 0 if none.
    """
    price = 0.0
    address = balance.contract_address
    if address and not balance.is_native and address.startswith("0x"):
        price = prices.get(address.lower()) or 0.0

    if not price and balance.symbol:
        price = (
            prices.get(balance.symbol)
            or prices.get(balance.symbol.upper())
            or 0.0
        )
    return float(price)


def value_holding(balance: AssetBalance, prices: Mapping[str, float]) -> ValuedHolding:
    price = resolve_price(balance, prices)
    return ValuedHolding(
        contract_address=balance.contract_address,
        symbol=balance.symbol,
        name=balance.name,
        balance=balance.balance,
        decimals=balance.decimals,
        price=price,
        value=balance.balance * price,
    )


def value_portfolio(balances: Iterable[AssetBalance], prices: Mapping[str, float]) -> Portfolio:
    """
    Value every balance and total them.

    Holdings keep the order of `balances`; use sort_by_value for display.
    """
    holdings = tuple(value_holding(b, prices) for b in balances)
    return Portfolio(
        holdings=holdings,
        total_value=sum(h.value for h in holdings),
    )


def sort_by_value(holdings: Iterable[ValuedHolding]) -> list[ValuedHolding]:
    """Holdings by USD value, highest first. Ties keep their original order."""
    return sorted(holdings, key=lambda h: h.value, reverse=True)


def top_holdings(portfolio: Portfolio, count: int = 10) -> list[ValuedHolding]:
    return sort_by_value(portfolio.holdings)[:count]


def allocation(portfolio: Portfolio, count: int = 10) -> list[AllocationSlice]:
    """Chart data: the largest priced holdings and their share of the charted value."""
    charted = [h for h in sort_by_value(portfolio.holdings) if h.value > 0][:count]
    charted_total = sum(h.value for h in charted)
    return [
        AllocationSlice(
            symbol=h.symbol,
            value=h.value,
            percent=h.value / charted_total * 100 if charted_total else 0.0,
        )
        for h in charted
    ]


def filter_transactions(transactions: Iterable[TransferRecord], direction: str = "all") -> list[TransferRecord]:
    """Filter transactions by direction: "all", "incoming" or "outgoing"."""
    if direction not in ("all", "incoming", "outgoing"):
        raise ValueError(f"Unknown direction filter: {direction}")
    return [t for t in transactions if direction == "all" or t.direction == direction]


# ---------------------------------------------------------------------------
# Display formatting
# ---------------------------------------------------------------------------

ETHERSCAN_URL = "https://etherscan.io"


def format_usd(amount: float) -> str:
    """Format a USD amount; zero (priced at zero or unpriced) shows as N/A."""
    if amount <= 0:
        return "N/A"
    return f"${amount:,.2f}"


def format_amount(amount: float, max_decimals: int = 6) -> str:
    """Format a token amount with up to `max_decimals` fraction digits."""
    text = f"{amount:,.{max_decimals}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def tx_url(tx_hash: str) -> str:
    return f"{ETHERSCAN_URL}/tx/{tx_hash}"


def address_url(address: str) -> str:
    return f"{ETHERSCAN_URL}/address/{address}"


def short_hash(value: str | None, length: int = 10) -> str:
    if not value:
        return "N/A"
    return f"{value[:length]}..." if len(value) > length else value
