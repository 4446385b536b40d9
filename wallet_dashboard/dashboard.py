"""Wallet dashboard - one lookup from address to valued portfolio and transactions."""

import logging
import time
from concurrent.futures import ThreadPoolExecutor

from .api.alchemy import AlchemyClient
from .api.coingecko import CoinGeckoClient
from .api.moralis import MoralisClient
from .balances import BalanceResolver
from .config import Config, get_config
from .models import WalletReport
from .pricing import PriceService
from .transfers import TransferReconciler
from .validation import normalize_address, validate_limit
from .valuation import value_portfolio

logger = logging.getLogger(__name__)


class WalletDashboard:
    """
    Core lookup engine.

    Balances and transfers are fetched concurrently; prices are
    fetched once balances are known, then the portfolio is valued.
    """

    def __init__(self, config: Config | None = None):
        self.config = config or get_config()
        self._alchemy: AlchemyClient | None = None
        self._prices: PriceService | None = None

    @property
    def alchemy(self) -> AlchemyClient:
        if self._alchemy is None:
            self._alchemy = AlchemyClient(
                self.config.alchemy_api_key,
                network=self.config.alchemy_network,
                timeout=self.config.request_timeout,
            )
        return self._alchemy

    @property
    def prices(self) -> PriceService:
        if self._prices is None:
            moralis = None
            if self.config.moralis_api_key:
                moralis = MoralisClient(
                    self.config.moralis_api_key, timeout=self.config.request_timeout
                )
            else:
                logger.warning("MORALIS_API_KEY not set; token prices limited to CoinGecko")
            self._prices = PriceService(
                moralis,
                CoinGeckoClient(timeout=self.config.request_timeout),
                max_workers=self.config.max_workers,
            )
        return self._prices

    def lookup(self, address: str, limit: int | None = None) -> WalletReport:
        """
        Look up a wallet.

        Args:
            address: Ethereum address
            limit: Max transactions (defaults to config.transaction_limit)

        Returns:
            WalletReport with balances, valued portfolio and transactions

        Raises:
            InvalidInput: malformed address or limit
            UpstreamUnavailable: balance or transfer source failure
        """
        start_time = time.time()

        address = normalize_address(address)
        limit = validate_limit(self.config.transaction_limit if limit is None else limit)

        resolver = BalanceResolver(self.alchemy, max_workers=self.config.max_workers)
        reconciler = TransferReconciler(self.alchemy)

        with ThreadPoolExecutor(max_workers=2) as executor:
            balances_future = executor.submit(resolver.resolve, address)
            transfers_future = executor.submit(reconciler.fetch, address, limit)
        balances = tuple(balances_future.result())
        transactions = transfers_future.result()

        price_table = self.prices.prices_for(balances)
        portfolio = value_portfolio(balances, price_table)

        elapsed = int((time.time() - start_time) * 1000)
        logger.info(
            "Looked up %s: %d holding(s), $%.2f total, %d transaction(s) in %dms",
            address, len(balances), portfolio.total_value, len(transactions), elapsed,
        )

        return WalletReport(
            address=address,
            balances=balances,
            portfolio=portfolio,
            transactions=transactions,
            prices=price_table,
            lookup_time_ms=elapsed,
        )

    def close(self) -> None:
        """Clean up resources."""
        if self._alchemy:
            self._alchemy.close()
        if self._prices:
            self._prices.close()


def lookup_wallet(
    address: str,
    limit: int | None = None,
    config: Config | None = None,
) -> WalletReport:
    """
    Quick function to look up a wallet.

    Args:
        address: Ethereum address
        limit: Max transactions
        config: Optional config override

    Returns:
        WalletReport
    """
    dashboard = WalletDashboard(config)
    try:
        return dashboard.lookup(address, limit)
    finally:
        dashboard.close()
