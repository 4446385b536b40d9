"""Tests for price table construction."""

from unittest.mock import MagicMock

from wallet_dashboard.api.base import UpstreamUnavailable
from wallet_dashboard.pricing import WETH_ADDRESS, PriceService, price_request

from .conftest import make_balance

USDC = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"
LINK = "0x514910771af9ca656af840dff83e8264ecf986ca"


def _build_service(
    moralis_prices: dict[str, float | None] | None = None,
    coingecko_prices: dict[str, float] | None = None,
    with_moralis: bool = True,
) -> tuple[PriceService, MagicMock | None, MagicMock]:
    moralis_prices = moralis_prices or {}
    moralis = None
    if with_moralis:
        moralis = MagicMock()

        def get_token_price(address: str) -> float | None:
            if address not in moralis_prices:
                raise UpstreamUnavailable(f"no price for {address}", 404)
            return moralis_prices[address]

        moralis.get_token_price.side_effect = get_token_price

    coingecko = MagicMock()
    coingecko.get_simple_prices.side_effect = lambda ids: {
        i: p for i, p in (coingecko_prices or {}).items() if i in ids
    }
    return PriceService(moralis, coingecko, max_workers=2), moralis, coingecko


def test_eth_price_from_weth_contract() -> None:
    service, moralis, coingecko = _build_service(moralis_prices={WETH_ADDRESS: 3100.0})

    prices = service.build_price_table(["ETH"], [])

    assert prices == {"ETH": 3100.0}
    coingecko.get_simple_prices.assert_not_called()


def test_eth_price_falls_back_to_coingecko() -> None:
    service, _, coingecko = _build_service(coingecko_prices={"ethereum": 3000.0})

    prices = service.build_price_table(["eth"], [])

    assert prices == {"ETH": 3000.0}
    coingecko.get_simple_prices.assert_called_once_with(["ethereum"])


def test_contract_prices_lowercased_and_missing_skipped() -> None:
    service, moralis, _ = _build_service(moralis_prices={USDC: 1.0, LINK: None})

    prices = service.build_price_table([], [USDC.upper().replace("0X", "0x"), LINK, "ETH", " "])

    assert prices == {USDC: 1.0}
    assert moralis.get_token_price.call_count == 2


def test_allow_listed_symbols_fall_back_to_coingecko() -> None:
    service, _, coingecko = _build_service(
        coingecko_prices={"usd-coin": 1.0, "dai": 0.999, "chainlink": 14.0},
    )

    prices = service.build_price_table(["USDC", "dai", "PEPE"], ["0x" + "99" * 20])

    assert prices == {"USDC": 1.0, "DAI": 0.999}
    coingecko.get_simple_prices.assert_called_once_with(["usd-coin", "dai"])


def test_without_moralis_key_only_coingecko_is_used() -> None:
    service, _, _ = _build_service(
        coingecko_prices={"ethereum": 2500.0, "tether": 1.0},
        with_moralis=False,
    )

    prices = service.build_price_table(["ETH", "USDT"], ["0x" + "77" * 20])

    assert prices == {"ETH": 2500.0, "USDT": 1.0}


def test_provider_failures_never_raise() -> None:
    service, _, coingecko = _build_service()
    coingecko.get_simple_prices.side_effect = UpstreamUnavailable("down", 503)

    assert service.build_price_table(["ETH", "USDC"], [USDC]) == {}


def test_price_request_from_balances() -> None:
    balances = [
        make_balance("ETH", 1),
        make_balance("USDC", 5, contract_address=USDC),
        make_balance("UNKNOWN", 5, contract_address="0x" + "55" * 20),
    ]

    symbols, addresses = price_request(balances)

    assert symbols == ["ETH", "USDC"]
    assert addresses == [USDC, "0x" + "55" * 20]


def test_prices_for_balances() -> None:
    service, _, _ = _build_service(moralis_prices={WETH_ADDRESS: 3000.0, USDC: 1.0})

    prices = service.prices_for([make_balance("ETH", 1), make_balance("USDC", 5, contract_address=USDC)])

    assert prices["ETH"] == 3000.0
    assert prices[USDC] == 1.0
