"""Price table construction from Moralis, with CoinGecko fallbacks."""

import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor

from .api.base import UpstreamUnavailable
from .api.coingecko import CoinGeckoClient
from .api.moralis import MoralisClient
from .models import NATIVE_ASSET, AssetBalance

logger = logging.getLogger(__name__)

# Moralis prices native ETH through the WETH contract
WETH_ADDRESS = "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"

# Symbols CoinGecko is asked for when no contract price was found
COMMON_TOKENS = {
    "USDT": "tether",
    "USDC": "usd-coin",
    "DAI": "dai",
    "WBTC": "wrapped-bitcoin",
    "LINK": "chainlink",
    "UNI": "uniswap",
    "AAVE": "aave",
}


def price_request(balances: Sequence[AssetBalance]) -> tuple[list[str], list[str]]:
    """Split balances into the symbols and contract addresses to price."""
    symbols = [b.symbol for b in balances if b.symbol and b.symbol != "UNKNOWN"]
    addresses = [
        b.contract_address.lower() for b in balances
        if not b.is_native and b.contract_address.startswith("0x")
    ]
    return symbols, addresses


class PriceService:
    """
    Builds the price table for a set of balances.

    Keys are lowercase contract addresses (Moralis) and uppercase
    symbols (ETH and the COMMON_TOKENS fallback). Individual quote
    failures are logged and skipped; building never raises.
    """

    def __init__(
        self,
        moralis: MoralisClient | None,
        coingecko: CoinGeckoClient,
        max_workers: int = 8,
    ):
        self.moralis = moralis
        self.coingecko = coingecko
        self.max_workers = max_workers

    def _moralis_price(self, address: str) -> float | None:
        if self.moralis is None:
            return None
        try:
            return self.moralis.get_token_price(address)
        except UpstreamUnavailable as e:
            logger.warning("Moralis price for %s unavailable: %s", address, e)
            return None

    def _coingecko_prices(self, coin_ids: list[str]) -> dict[str, float]:
        try:
            return self.coingecko.get_simple_prices(coin_ids)
        except UpstreamUnavailable as e:
            logger.warning("CoinGecko prices for %s unavailable: %s", ",".join(coin_ids), e)
            return {}

    def eth_price(self) -> float:
        price = self._moralis_price(WETH_ADDRESS) or 0.0
        if price <= 0:
            price = self._coingecko_prices(["ethereum"]).get("ethereum", 0.0)
        return price

    def contract_prices(self, addresses: list[str]) -> dict[str, float]:
        """Moralis prices by contract, fetched concurrently."""
        addresses = list(dict.fromkeys(
            a.strip().lower() for a in addresses
            if a and a.strip().lower().startswith("0x")
        ))
        if not addresses or self.moralis is None:
            return {}

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            quotes = list(executor.map(self._moralis_price, addresses))

        return {a: p for a, p in zip(addresses, quotes) if p is not None}

    def symbol_prices(self, symbols: list[str], known: dict[str, float]) -> dict[str, float]:
        """CoinGecko prices for allow-listed symbols missing from `known`."""
        missing = [
            s for s in dict.fromkeys(s.strip().upper() for s in symbols)
            if s != NATIVE_ASSET and not known.get(s) and s in COMMON_TOKENS
        ]
        if not missing:
            return {}

        by_id = self._coingecko_prices([COMMON_TOKENS[s] for s in missing])
        return {s: by_id[COMMON_TOKENS[s]] for s in missing if COMMON_TOKENS[s] in by_id}

    def build_price_table(self, symbols: list[str], addresses: list[str]) -> dict[str, float]:
        """
        Build the price table for the given symbols and contract addresses.

        Args:
            symbols: Asset symbols (ETH triggers the native price)
            addresses: ERC-20 contract addresses

        Returns:
            Mapping of price key to USD price
        """
        prices: dict[str, float] = {}

        if any(s.strip().upper() == NATIVE_ASSET for s in symbols):
            eth = self.eth_price()
            if eth > 0:
                prices[NATIVE_ASSET] = eth

        prices.update(self.contract_prices(addresses))
        prices.update(self.symbol_prices(symbols, prices))

        logger.info("Built price table with %d entries", len(prices))
        return prices

    def prices_for(self, balances: Sequence[AssetBalance]) -> dict[str, float]:
        symbols, addresses = price_request(balances)
        return self.build_price_table(symbols, addresses)

    def close(self) -> None:
        if self.moralis:
            self.moralis.close()
        self.coingecko.close()
