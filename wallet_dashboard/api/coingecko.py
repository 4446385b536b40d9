"""CoinGecko API client for USD prices by coin id (FREE, no key)."""

import httpx

from .base import BaseAPIClient, UpstreamUnavailable


class CoinGeckoClient(BaseAPIClient):
    """Client for the public CoinGecko simple price endpoint."""

    BASE_URL = "https://api.coingecko.com/api/v3"

    def __init__(
        self,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        super().__init__(base_url=self.BASE_URL, timeout=timeout, transport=transport)

    def get_simple_prices(self, coin_ids: list[str]) -> dict[str, float]:
        """
        Get USD prices for CoinGecko coin ids.

        Args:
            coin_ids: CoinGecko ids (e.g. "ethereum", "usd-coin")

        Returns:
            Mapping of coin id to USD price; ids without a price are omitted
        """
        if not coin_ids:
            return {}

        data = self.get(
            "/simple/price",
            params={"ids": ",".join(coin_ids), "vs_currencies": "usd"},
        )
        if not isinstance(data, dict):
            raise UpstreamUnavailable("CoinGecko: unexpected response shape")

        prices: dict[str, float] = {}
        for coin_id in coin_ids:
            entry = data.get(coin_id)
            if not isinstance(entry, dict) or entry.get("usd") is None:
                continue
            try:
                prices[coin_id] = float(entry["usd"])
            except (TypeError, ValueError):
                continue
        return prices
