"""Moralis API client for ERC-20 USD prices."""

import httpx

from .base import BaseAPIClient, UpstreamUnavailable


class MoralisClient(BaseAPIClient):
    """Client for the Moralis Web3 Data API (token prices by contract)."""

    BASE_URL = "https://deep-index.moralis.io/api/v2"

    def __init__(
        self,
        api_key: str,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.api_key = api_key
        super().__init__(base_url=self.BASE_URL, timeout=timeout, transport=transport)

    def _get_default_headers(self) -> dict[str, str]:
        headers = super()._get_default_headers()
        headers["X-API-Key"] = self.api_key
        return headers

    def get_token_price(self, contract_address: str, chain: str = "eth") -> float | None:
        """
        Get the USD price of an ERC-20 token.

        Args:
            contract_address: Token contract address
            chain: Moralis chain id

        Returns:
            USD price, or None if Moralis has no price for the token
        """
        data = self.get(f"/erc20/{contract_address}/price", params={"chain": chain})
        if not isinstance(data, dict):
            raise UpstreamUnavailable("Moralis: unexpected response shape")

        usd_price = data.get("usdPrice")
        if not usd_price:
            return None
        try:
            price = float(usd_price)
        except (TypeError, ValueError):
            raise UpstreamUnavailable(f"Moralis: malformed usdPrice {usd_price!r}")
        return price if price >= 0 else None
