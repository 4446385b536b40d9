"""Tests for the BalanceResolver."""

import json
from unittest.mock import MagicMock

import httpx
import pytest

from wallet_dashboard.api.alchemy import AlchemyClient
from wallet_dashboard.api.base import UpstreamUnavailable
from wallet_dashboard.balances import BalanceResolver, resolve_balances, to_human_units
from wallet_dashboard.models import NATIVE_ASSET, TokenBalanceEntry, TokenMetadata
from wallet_dashboard.validation import InvalidInput

from .conftest import WALLET

USDC = "0x" + "a0" * 20
ZERO = "0x" + "b0" * 20
BROKEN = "0x" + "c0" * 20
NODEC = "0x" + "d0" * 20


def _build_client(
    *,
    wei: int = 2 * 10**18,
    entries: list[TokenBalanceEntry] | None = None,
    metadata: dict[str, TokenMetadata] | None = None,
) -> MagicMock:
    metadata = metadata or {}
    client = MagicMock()
    client.get_eth_balance.return_value = wei
    client.get_token_balances.return_value = entries or []

    def get_metadata(contract_address: str) -> TokenMetadata:
        if contract_address not in metadata:
            raise UpstreamUnavailable(f"no metadata for {contract_address}")
        return metadata[contract_address]

    client.get_token_metadata.side_effect = get_metadata
    return client


def test_native_first_then_nonzero_tokens_in_upstream_order() -> None:
    client = _build_client(
        entries=[
            TokenBalanceEntry(NODEC, 5 * 10**18),
            TokenBalanceEntry(ZERO, 0),
            TokenBalanceEntry(USDC, 1_500_000),
        ],
        metadata={
            USDC: TokenMetadata("USDC", "USD Coin", 6),
            ZERO: TokenMetadata("ZRO", "Zero", 18),
            NODEC: TokenMetadata("NOD", "No Decimals", None),
        },
    )

    balances = BalanceResolver(client).resolve(WALLET)

    assert [b.contract_address for b in balances] == [NATIVE_ASSET, NODEC, USDC]
    assert balances[0].symbol == "ETH"
    assert balances[0].balance == 2.0
    assert balances[0].decimals == 18
    assert balances[1].decimals == 18
    assert balances[1].balance == 5.0
    assert balances[2].balance == 1.5
    assert sum(1 for b in balances if b.is_native) == 1
    assert all(b.balance > 0 for b in balances[1:])


def test_zero_balance_tokens_skip_metadata_lookup() -> None:
    client = _build_client(entries=[TokenBalanceEntry(ZERO, 0)])

    balances = BalanceResolver(client).resolve(WALLET)

    assert len(balances) == 1
    client.get_token_metadata.assert_not_called()


def test_metadata_failure_drops_only_that_token(caplog) -> None:
    client = _build_client(
        entries=[TokenBalanceEntry(BROKEN, 10), TokenBalanceEntry(USDC, 1_000_000)],
        metadata={USDC: TokenMetadata("USDC", "USD Coin", 6)},
    )

    balances = BalanceResolver(client, max_workers=2).resolve(WALLET)

    assert [b.symbol for b in balances] == ["ETH", "USDC"]
    assert BROKEN in caplog.text


def test_missing_symbol_and_name_defaults() -> None:
    client = _build_client(
        entries=[TokenBalanceEntry(USDC, 10**6)],
        metadata={USDC: TokenMetadata(None, None, 6)},
    )

    token = BalanceResolver(client).resolve(WALLET)[1]

    assert token.symbol == "UNKNOWN"
    assert token.name == "Unknown Token"


def test_zero_decimals_are_kept() -> None:
    client = _build_client(
        entries=[TokenBalanceEntry(USDC, 42)],
        metadata={USDC: TokenMetadata("WHOLE", "Whole Token", 0)},
    )

    token = BalanceResolver(client).resolve(WALLET)[1]

    assert token.decimals == 0
    assert token.balance == 42.0


def test_empty_wallet_still_has_native_entry() -> None:
    balances = BalanceResolver(_build_client(wei=0)).resolve(WALLET)
    assert len(balances) == 1
    assert balances[0].is_native
    assert balances[0].balance == 0.0


def test_address_is_lowercased_before_upstream_call() -> None:
    client = _build_client()
    BalanceResolver(client).resolve(WALLET.upper().replace("0X", "0x"))
    client.get_eth_balance.assert_called_once_with(WALLET)
    client.get_token_balances.assert_called_once_with(WALLET)


def test_balance_source_failure_propagates() -> None:
    client = _build_client()
    client.get_token_balances.side_effect = UpstreamUnavailable("down", 503)

    with pytest.raises(UpstreamUnavailable):
        BalanceResolver(client).resolve(WALLET)


def test_invalid_address_makes_no_calls() -> None:
    client = _build_client()
    with pytest.raises(InvalidInput):
        BalanceResolver(client).resolve("0xnotanaddress")
    client.get_eth_balance.assert_not_called()


def test_to_human_units() -> None:
    assert to_human_units(1_234_500, 6) == pytest.approx(1.2345)
    assert to_human_units(7, 0) == 7


def test_native_balance_failure_propagates() -> None:
    client = _build_client()
    client.get_eth_balance.side_effect = UpstreamUnavailable("down", 502)

    with pytest.raises(UpstreamUnavailable):
        BalanceResolver(client).resolve(WALLET)
    client.get_token_metadata.assert_not_called()


def test_mistyped_metadata_drops_token() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        result = {
            "eth_getBalance": "0xde0b6b3a7640000",
            "alchemy_getTokenBalances": {"tokenBalances": [{"contractAddress": USDC, "tokenBalance": "0x01"}]},
            "alchemy_getTokenMetadata": {"symbol": 42, "name": "Answer", "decimals": 18},
        }[payload["method"]]
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": payload["id"], "result": result})

    client = AlchemyClient("k", transport=httpx.MockTransport(handler))

    balances = BalanceResolver(client).resolve(WALLET)

    assert [b.symbol for b in balances] == ["ETH"]
    assert balances[0].balance == 1.0


def test_resolve_balances_quick_function() -> None:
    client = _build_client(
        entries=[TokenBalanceEntry(USDC, 2_000_000)],
        metadata={USDC: TokenMetadata("USDC", "USD Coin", 6)},
    )

    balances = resolve_balances(WALLET, client, max_workers=1)

    assert [(b.symbol, b.balance) for b in balances] == [("ETH", 2.0), ("USDC", 2.0)]
