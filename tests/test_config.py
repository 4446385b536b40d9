"""Tests for configuration loading."""

import json

import pytest

from wallet_dashboard.config import Config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("ALCHEMY_API_KEY", "MORALIS_API_KEY", "ALCHEMY_NETWORK", "DASHBOARD_USER"):
        monkeypatch.delenv(name, raising=False)


def test_alchemy_key_is_required(tmp_path) -> None:
    with pytest.raises(ValueError, match="ALCHEMY_API_KEY"):
        Config.from_env(config_path=tmp_path / "config.json")


def test_defaults_without_config_json(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("ALCHEMY_API_KEY", "abc")

    config = Config.from_env(config_path=tmp_path / "config.json")

    assert config.alchemy_api_key == "abc"
    assert config.moralis_api_key is None
    assert config.alchemy_network == "eth-mainnet"
    assert config.transaction_limit == 20
    assert config.top_holdings == 10
    assert config.favorites_path.name == "favorites.json"


def test_config_json_overrides(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("ALCHEMY_API_KEY", "abc")
    monkeypatch.setenv("MORALIS_API_KEY", "m")
    monkeypatch.setenv("DASHBOARD_USER", "alice")
    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        "transaction_limit": 50,
        "max_workers": 4,
        "request_timeout": 5,
        "favorites_path": str(tmp_path / "favs.json"),
    }))

    config = Config.from_env(config_path=path)

    assert config.moralis_api_key == "m"
    assert config.default_user == "alice"
    assert config.transaction_limit == 50
    assert config.max_workers == 4
    assert config.request_timeout == 5.0
    assert config.favorites_path == tmp_path / "favs.json"


def test_broken_config_json_uses_defaults(monkeypatch, tmp_path, caplog) -> None:
    monkeypatch.setenv("ALCHEMY_API_KEY", "abc")
    path = tmp_path / "config.json"
    path.write_text("{not json")

    config = Config.from_env(config_path=path)

    assert config.transaction_limit == 20
    assert "Could not parse" in caplog.text
