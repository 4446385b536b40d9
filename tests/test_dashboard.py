"""Tests for the WalletDashboard lookup."""

from unittest.mock import MagicMock

import pytest

from wallet_dashboard import dashboard as dashboard_module
from wallet_dashboard.api.base import UpstreamUnavailable
from wallet_dashboard.dashboard import WalletDashboard, lookup_wallet
from wallet_dashboard.models import TokenBalanceEntry, TokenMetadata
from wallet_dashboard.validation import InvalidInput

from .conftest import OTHER, WALLET, make_transfer

TOKEN = "0x" + "a1" * 20


def _build_alchemy() -> MagicMock:
    alchemy = MagicMock()
    alchemy.get_eth_balance.return_value = 2 * 10**18
    alchemy.get_token_balances.return_value = [TokenBalanceEntry(TOKEN, 100 * 10**18)]
    alchemy.get_token_metadata.return_value = TokenMetadata("FOO", "Foo Token", 18)
    transfers = {
        "recipient": [make_transfer("0xabc", to=WALLET, sender=OTHER, timestamp="2024-01-01T00:00:00Z")],
        "sender": [make_transfer("0xabc", to=OTHER, sender=WALLET, timestamp="2024-01-01T00:00:00Z")],
    }
    alchemy.get_asset_transfers.side_effect = lambda address, role, max_count: transfers[role]
    return alchemy


def _build_dashboard(config, alchemy: MagicMock, prices: dict[str, float]) -> WalletDashboard:
    dashboard = WalletDashboard(config)
    dashboard._alchemy = alchemy
    dashboard._prices = MagicMock()
    dashboard._prices.prices_for.return_value = prices
    return dashboard


def test_lookup_combines_portfolio_and_transactions(config) -> None:
    dashboard = _build_dashboard(config, _build_alchemy(), {"ETH": 2000.0, "FOO": 0.0})

    report = dashboard.lookup(WALLET.upper().replace("0X", "0x"))

    assert report.address == WALLET
    assert [h.value for h in report.portfolio.holdings] == [4000.0, 0.0]
    assert report.portfolio.total_value == 4000.0
    assert len(report.transactions) == 1
    assert report.transactions[0].to_address == OTHER
    assert dict(report.prices) == {"ETH": 2000.0, "FOO": 0.0}
    dashboard._prices.prices_for.assert_called_once_with(report.balances)


def test_default_limit_comes_from_config(config) -> None:
    config.transaction_limit = 7
    alchemy = _build_alchemy()

    _build_dashboard(config, alchemy, {}).lookup(WALLET)

    alchemy.get_asset_transfers.assert_any_call(WALLET, "recipient", 7)


def test_transfer_failure_fails_lookup(config) -> None:
    alchemy = _build_alchemy()
    alchemy.get_asset_transfers.side_effect = UpstreamUnavailable("down", 502)
    dashboard = _build_dashboard(config, alchemy, {})

    with pytest.raises(UpstreamUnavailable):
        dashboard.lookup(WALLET)
    dashboard._prices.prices_for.assert_not_called()


def test_invalid_address_fails_before_any_call(config) -> None:
    alchemy = _build_alchemy()
    dashboard = _build_dashboard(config, alchemy, {})

    with pytest.raises(InvalidInput):
        dashboard.lookup("vitalik.eth")
    alchemy.get_eth_balance.assert_not_called()
    alchemy.get_asset_transfers.assert_not_called()


def test_clients_built_from_config(config) -> None:
    dashboard = WalletDashboard(config)
    try:
        assert dashboard.alchemy.base_url.endswith("/v2/test-key")
        assert dashboard.prices.moralis is not None
    finally:
        dashboard.close()


def test_report_is_read_only(config) -> None:
    prices = {"ETH": 2000.0}
    report = _build_dashboard(config, _build_alchemy(), prices).lookup(WALLET)

    assert isinstance(report.balances, tuple)
    assert isinstance(report.transactions, tuple)
    assert isinstance(report.portfolio.holdings, tuple)
    with pytest.raises(TypeError):
        report.prices["ETH"] = 1.0

    prices["ETH"] = 1.0
    assert report.prices["ETH"] == 2000.0


def test_lookup_wallet_closes_clients(config, monkeypatch) -> None:
    alchemy = _build_alchemy()
    prices = MagicMock()
    prices.prices_for.return_value = {"ETH": 2000.0}
    monkeypatch.setattr(dashboard_module, "AlchemyClient", lambda *args, **kwargs: alchemy)
    monkeypatch.setattr(dashboard_module, "PriceService", lambda *args, **kwargs: prices)

    report = lookup_wallet(WALLET, limit=5, config=config)

    assert report.portfolio.total_value == 4000.0
    alchemy.get_asset_transfers.assert_any_call(WALLET, "sender", 5)
    alchemy.close.assert_called_once()
    prices.close.assert_called_once()
