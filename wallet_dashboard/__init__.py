"""Ethereum Wallet Dashboard - balances, prices and transfers for any address."""

from .api.base import UpstreamUnavailable
from .balances import BalanceResolver, PartialMetadataFailure
from .dashboard import WalletDashboard, lookup_wallet
from .favorites import DuplicateFavorite, FavoritesStore
from .models import AssetBalance, Portfolio, TransferRecord, ValuedHolding, WalletReport
from .transfers import TransferReconciler, reconcile
from .validation import InvalidInput
from .valuation import resolve_price, value_portfolio

__all__ = [
    "lookup_wallet",
    "WalletDashboard",
    "BalanceResolver",
    "TransferReconciler",
    "reconcile",
    "resolve_price",
    "value_portfolio",
    "FavoritesStore",
    "AssetBalance",
    "Portfolio",
    "TransferRecord",
    "ValuedHolding",
    "WalletReport",
    "InvalidInput",
    "UpstreamUnavailable",
    "PartialMetadataFailure",
    "DuplicateFavorite",
]

__version__ = "0.1.0"
