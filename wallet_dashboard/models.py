"""Data models for the wallet dashboard."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

NATIVE_ASSET = "ETH"
MAX_DECIMALS = 36


def _parse_hex(value: Any) -> int:
    """Parse a 0x-prefixed hex quantity. Empty or missing means zero."""
    if value is None or value in ("0x", ""):
        return 0
    if not isinstance(value, str):
        raise ValueError(f"expected hex string, got {type(value).__name__}")
    return int(value, 16)


def _optional_str(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise ValueError(f"{key} must be a string, got {type(value).__name__}")
    return value


def _optional_object(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"{key} must be an object, got {type(value).__name__}")
    return value


def _parse_decimals(value: Any) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"decimals must be an integer, got {value!r}")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"decimals must be an integer, got {value!r}")
        value = int(value)
    if not 0 <= value <= MAX_DECIMALS:
        raise ValueError(f"decimals out of range: {value}")
    return value


# ---------------------------------------------------------------------------
# Upstream payloads (validated at the client boundary)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TokenBalanceEntry:
    """One row of alchemy_getTokenBalances."""
    contract_address: str
    raw_balance: int

    @classmethod
    def from_alchemy(cls, data: dict[str, Any]) -> "TokenBalanceEntry":
        if not isinstance(data, dict):
            raise ValueError("token balance entry is not an object")
        contract = data.get("contractAddress")
        if not isinstance(contract, str) or not contract:
            raise ValueError("token balance entry without contractAddress")
        return cls(
            contract_address=contract.lower(),
            raw_balance=_parse_hex(data.get("tokenBalance")),
        )


@dataclass(frozen=True)
class TokenMetadata:
    """Result of alchemy_getTokenMetadata."""
    symbol: str | None
    name: str | None
    decimals: int | None

    @classmethod
    def from_alchemy(cls, data: Any) -> "TokenMetadata":
        if not isinstance(data, dict):
            raise ValueError("token metadata is not an object")
        return cls(
            symbol=_optional_str(data, "symbol") or None,
            name=_optional_str(data, "name") or None,
            decimals=_parse_decimals(data.get("decimals")),
        )


@dataclass(frozen=True)
class RawTransfer:
    """One entry of alchemy_getAssetTransfers."""
    hash: str
    from_address: str | None
    to_address: str | None
    asset: str | None
    value: float
    block_timestamp: str | None
    category: str | None
    contract_address: str | None = None

    @classmethod
    def from_alchemy(cls, data: dict[str, Any]) -> "RawTransfer":
        if not isinstance(data, dict):
            raise ValueError("transfer is not an object")
        tx_hash = data.get("hash")
        if not isinstance(tx_hash, str) or not tx_hash:
            raise ValueError("transfer without hash")
        value = data.get("value")
        if isinstance(value, bool) or not isinstance(value, (int, float, type(None))):
            raise ValueError(f"value must be a number, got {value!r}")
        metadata = _optional_object(data, "metadata")
        raw_contract = _optional_object(data, "rawContract")
        return cls(
            hash=tx_hash,
            from_address=_optional_str(data, "from"),
            to_address=_optional_str(data, "to"),
            asset=_optional_str(data, "asset"),
            value=float(value or 0),
            block_timestamp=_optional_str(metadata, "blockTimestamp"),
            category=_optional_str(data, "category"),
            contract_address=_optional_str(raw_contract, "address"),
        )

# ---------------------------------------------------------------------------
# Pipeline entities
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AssetBalance:
    """A held asset with its balance in human units."""
    contract_address: str       # "ETH" for the native asset, else lowercase 0x address
    symbol: str
    name: str
    balance: float              # decimals already applied
    decimals: int

    @property
    def is_native(self) -> bool:
        return self.contract_address == NATIVE_ASSET


@dataclass(frozen=True)
class ValuedHolding(AssetBalance):
    """An asset balance with its resolved USD price and value."""
    price: float = 0.0
    value: float = 0.0


@dataclass(frozen=True)
class AllocationSlice:
    """One slice of the allocation chart."""
    symbol: str
    value: float
    percent: float


@dataclass(frozen=True)
class Portfolio:
    """Valued holdings of a wallet, in balance order."""
    holdings: tuple[ValuedHolding, ...]
    total_value: float

    def __post_init__(self):
        object.__setattr__(self, "holdings", tuple(self.holdings))

    @property
    def priced(self) -> bool:
        return any(h.value > 0 for h in self.holdings)


@dataclass(frozen=True)
class TransferRecord:
    """A reconciled transfer as shown in the transaction table."""
    hash: str
    timestamp: str              # ISO-8601
    token: str
    direction: str              # "incoming" | "outgoing"
    value: float
    from_address: str | None
    to_address: str | None
    category: str | None

    @property
    def incoming(self) -> bool:
        return self.direction == "incoming"


@dataclass(frozen=True)
class FavoriteWallet:
    """A wallet address saved by a user."""
    id: str
    user_id: str
    address: str
    label: str | None
    created_at: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FavoriteWallet":
        return cls(
            id=data["id"],
            user_id=data["user_id"],
            address=data["address"],
            label=data.get("label"),
            created_at=data["created_at"],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "address": self.address,
            "label": self.label,
            "created_at": self.created_at,
        }


@dataclass(frozen=True)
class WalletReport:
    """Everything shown for one wallet lookup."""
    address: str
    balances: tuple[AssetBalance, ...]
    portfolio: Portfolio
    transactions: tuple[TransferRecord, ...]
    prices: Mapping[str, float] = field(default_factory=dict)
    lookup_time_ms: int = 0

    def __post_init__(self):
        object.__setattr__(self, "balances", tuple(self.balances))
        object.__setattr__(self, "transactions", tuple(self.transactions))
        object.__setattr__(self, "prices", MappingProxyType(dict(self.prices)))
