"""Alchemy API client for balances, token metadata and asset transfers."""

from typing import Any

import httpx

from ..models import RawTransfer, TokenBalanceEntry, TokenMetadata
from .base import BaseAPIClient, UpstreamUnavailable

TRANSFER_CATEGORIES = ["external", "erc20", "erc721", "erc1155"]


class AlchemyClient(BaseAPIClient):
    """
    Client for the Alchemy Ethereum JSON-RPC endpoint.

    Serves as both the balance source and the transfer source.
    """

    BASE_URL = "https://{network}.g.alchemy.com/v2/{api_key}"

    def __init__(
        self,
        api_key: str,
        network: str = "eth-mainnet",
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        super().__init__(
            base_url=self.BASE_URL.format(network=network, api_key=api_key),
            timeout=timeout,
            transport=transport,
        )
        self.api_key = api_key

    def rpc_request(self, method: str, params: list[Any]) -> Any:
        """
        Make a JSON-RPC request to the Alchemy endpoint.

        Args:
            method: RPC method name
            params: Method parameters

        Returns:
            RPC result
        """
        payload = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": method,
            "params": params,
        }
        data = self.post("", json_data=payload)

        if not isinstance(data, dict):
            raise UpstreamUnavailable(f"{method}: unexpected response shape")
        if data.get("error"):
            raise UpstreamUnavailable(f"RPC Error: {data['error']}")

        return data.get("result")

    def get_eth_balance(self, address: str) -> int:
        """Native balance in wei."""
        result = self.rpc_request("eth_getBalance", [address, "latest"])
        try:
            return int(result or "0x0", 16)
        except (TypeError, ValueError):
            raise UpstreamUnavailable(f"eth_getBalance: malformed result {result!r}")

    def get_token_balances(self, address: str) -> list[TokenBalanceEntry]:
        """
        Get ERC-20 balances for an address, in upstream order.

        Args:
            address: Wallet address

        Returns:
            List of (contract address, raw balance) entries, zero balances included
        """
        result = self.rpc_request("alchemy_getTokenBalances", [address])
        try:
            entries = (result or {}).get("tokenBalances") or []
            return [TokenBalanceEntry.from_alchemy(e) for e in entries]
        except (TypeError, ValueError, AttributeError) as e:
            raise UpstreamUnavailable(f"alchemy_getTokenBalances: {e}")

    def get_token_metadata(self, contract_address: str) -> TokenMetadata:
        """Get symbol, name and decimals for a token contract."""
        result = self.rpc_request("alchemy_getTokenMetadata", [contract_address])
        try:
            return TokenMetadata.from_alchemy(result)
        except (TypeError, ValueError) as e:
            raise UpstreamUnavailable(f"alchemy_getTokenMetadata({contract_address}): {e}")

    def get_asset_transfers(
        self,
        address: str,
        role: str,
        max_count: int = 20,
    ) -> list[RawTransfer]:
        """
        Get transfers where the address is the sender or the recipient.

        Args:
            address: Wallet address
            role: "sender" (fromAddress) or "recipient" (toAddress)
            max_count: Max transfers to return

        Returns:
            List of transfers in upstream order
        """
        if role == "sender":
            address_filter = {"fromAddress": address}
        elif role == "recipient":
            address_filter = {"toAddress": address}
        else:
            raise ValueError(f"role must be 'sender' or 'recipient', got {role!r}")

        result = self.rpc_request(
            "alchemy_getAssetTransfers",
            [{
                "fromBlock": "0x0",
                "toBlock": "latest",
                **address_filter,
                "excludeZeroValue": False,
                "category": TRANSFER_CATEGORIES,
                "maxCount": hex(max_count),
                "withMetadata": True,
            }],
        )
        try:
            transfers = (result or {}).get("transfers") or []
            return [RawTransfer.from_alchemy(t) for t in transfers]
        except (TypeError, ValueError, AttributeError) as e:
            raise UpstreamUnavailable(f"alchemy_getAssetTransfers: {e}")
