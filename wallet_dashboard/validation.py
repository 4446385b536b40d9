"""Input validation for addresses and request parameters."""

import re

ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")

# alchemy_getAssetTransfers rejects a larger maxCount
MAX_TRANSFER_LIMIT = 1000


class InvalidInput(ValueError):
    """Raised for malformed or missing input, before any upstream call."""
    pass


def is_address(value: str | None) -> bool:
    """Check if a string is an Ethereum address (0x + 40 hex chars)."""
    return bool(value) and bool(ADDRESS_RE.match(value))


def normalize_address(address: str | None) -> str:
    """
    Validate an Ethereum address and return it lowercased.

    Raises:
        InvalidInput: if the address is missing or malformed
    """
    if address is None or not address.strip():
        raise InvalidInput("Address is required")
    address = address.strip()
    if not ADDRESS_RE.match(address):
        raise InvalidInput(f"Invalid Ethereum address format: {address}")
    return address.lower()


def validate_limit(limit: int) -> int:
    """Check a transaction result-size limit."""
    if isinstance(limit, bool) or not isinstance(limit, int):
        raise InvalidInput(f"Limit must be an integer, got {limit!r}")
    if not 1 <= limit <= MAX_TRANSFER_LIMIT:
        raise InvalidInput(f"Limit must be between 1 and {MAX_TRANSFER_LIMIT}, got {limit}")
    return limit


def require_user(user_id: str | None) -> str:
    """Check that a user identity was passed in."""
    if user_id is None or not str(user_id).strip():
        raise InvalidInput("User id is required")
    return str(user_id).strip()
