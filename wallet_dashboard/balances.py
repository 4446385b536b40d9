"""Balance resolution - native and ERC-20 balances with token metadata."""

import logging
from concurrent.futures import ThreadPoolExecutor

from .api.alchemy import AlchemyClient
from .api.base import UpstreamUnavailable
from .models import NATIVE_ASSET, AssetBalance, TokenBalanceEntry
from .validation import normalize_address

logger = logging.getLogger(__name__)

DEFAULT_DECIMALS = 18
NATIVE_DECIMALS = 18


class PartialMetadataFailure(UpstreamUnavailable):
    """Metadata lookup failed for a single token."""
    def __init__(self, contract_address: str, cause: Exception):
        super().__init__(f"Metadata lookup failed for {contract_address}: {cause}")
        self.contract_address = contract_address
        self.cause = cause


def to_human_units(raw_balance: int, decimals: int) -> float:
    """Convert a raw integer balance to human units."""
    return raw_balance / (10 ** decimals)


class BalanceResolver:
    """
    Resolves the balances held by a wallet.

    The native ETH balance always comes first, followed by every
    non-zero ERC-20 balance in the order the balance source returns them.
    """

    def __init__(self, client: AlchemyClient, max_workers: int = 8):
        self.client = client
        self.max_workers = max_workers

    def _token_balance(self, entry: TokenBalanceEntry) -> AssetBalance:
        try:
            metadata = self.client.get_token_metadata(entry.contract_address)
        except UpstreamUnavailable as e:
            raise PartialMetadataFailure(entry.contract_address, e)

        decimals = DEFAULT_DECIMALS if metadata.decimals is None else metadata.decimals
        return AssetBalance(
            contract_address=entry.contract_address,
            symbol=metadata.symbol or "UNKNOWN",
            name=metadata.name or "Unknown Token",
            balance=to_human_units(entry.raw_balance, decimals),
            decimals=decimals,
        )

    def _resolve_tokens(self, entries: list[TokenBalanceEntry]) -> list[AssetBalance]:
        """Fetch metadata for each token concurrently; drop tokens whose lookup fails."""
        if not entries:
            return []

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [executor.submit(self._token_balance, entry) for entry in entries]

        tokens: list[AssetBalance] = []
        for future in futures:
            try:
                tokens.append(future.result())
            except PartialMetadataFailure as e:
                logger.warning("Dropping token %s: %s", e.contract_address, e.cause)
        return tokens

    def resolve(self, address: str) -> list[AssetBalance]:
        """
        Get all balances held by an address.

        Args:
            address: Ethereum address (0x + 40 hex chars, any case)

        Returns:
            Native ETH balance first, then non-zero token balances

        Raises:
            InvalidInput: malformed address
            UpstreamUnavailable: balance source failure
        """
        address = normalize_address(address)

        wei = self.client.get_eth_balance(address)
        native = AssetBalance(
            contract_address=NATIVE_ASSET,
            symbol="ETH",
            name="Ethereum",
            balance=to_human_units(wei, NATIVE_DECIMALS),
            decimals=NATIVE_DECIMALS,
        )

        entries = [
            e for e in self.client.get_token_balances(address)
            if e.raw_balance > 0
        ]
        tokens = self._resolve_tokens(entries)

        logger.info(
            "Resolved %d token balance(s) for %s (%d dropped)",
            len(tokens), address, len(entries) - len(tokens),
        )
        return [native, *tokens]


def resolve_balances(address: str, client: AlchemyClient, max_workers: int = 8) -> list[AssetBalance]:
    """Quick function to resolve the balances of one address."""
    return BalanceResolver(client, max_workers=max_workers).resolve(address)
