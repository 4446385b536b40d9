"""Shared fixtures for wallet dashboard tests."""

import pytest

from wallet_dashboard.config import Config
from wallet_dashboard.models import AssetBalance, RawTransfer

WALLET = "0x" + "ab" * 20
OTHER = "0x" + "cd" * 20


def make_transfer(
    tx_hash: str,
    to: str | None = OTHER,
    sender: str | None = WALLET,
    timestamp: str | None = "2024-01-01T00:00:00.000Z",
    asset: str | None = "ETH",
    value: float = 1.0,
    category: str = "external",
) -> RawTransfer:
    return RawTransfer(
        hash=tx_hash,
        from_address=sender,
        to_address=to,
        asset=asset,
        value=value,
        block_timestamp=timestamp,
        category=category,
    )


def make_balance(
    symbol: str,
    balance: float,
    contract_address: str | None = None,
    decimals: int = 18,
) -> AssetBalance:
    return AssetBalance(
        contract_address=contract_address or "ETH",
        symbol=symbol,
        name=symbol.title(),
        balance=balance,
        decimals=decimals,
    )


@pytest.fixture
def config(tmp_path) -> Config:
    return Config(
        alchemy_api_key="test-key",
        moralis_api_key="moralis-key",
        favorites_path=tmp_path / "favorites.json",
    )
