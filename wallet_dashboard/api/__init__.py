"""API clients for external services."""

from .alchemy import AlchemyClient
from .base import RateLimitError, UpstreamUnavailable
from .coingecko import CoinGeckoClient
from .moralis import MoralisClient

__all__ = [
    "AlchemyClient",
    "CoinGeckoClient",
    "MoralisClient",
    "RateLimitError",
    "UpstreamUnavailable",
]
