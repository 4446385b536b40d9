"""Transfer reconciliation - merge, dedupe, classify and order wallet transfers."""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

from .api.alchemy import AlchemyClient
from .models import RawTransfer, TransferRecord
from .validation import normalize_address, validate_limit

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 20


def parse_timestamp(value: str | None, fallback: datetime) -> datetime:
    """Parse an ISO-8601 timestamp, returning the fallback if it can't be parsed."""
    if not value:
        return fallback
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return fallback
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def dedupe_by_hash(transfers: list[RawTransfer]) -> list[RawTransfer]:
    """
    Collapse transfers sharing a hash into one.

    The record seen last wins, at the position where the hash first appeared.
    """
    by_hash: dict[str, RawTransfer] = {}
    for transfer in transfers:
        by_hash[transfer.hash] = transfer
    return list(by_hash.values())


def to_record(transfer: RawTransfer, address: str, now: datetime) -> TransferRecord:
    """Classify a raw transfer relative to the queried address."""
    incoming = (transfer.to_address or "").lower() == address.lower()
    return TransferRecord(
        hash=transfer.hash,
        timestamp=transfer.block_timestamp or now.isoformat(),
        token=transfer.asset or transfer.contract_address or "ETH",
        direction="incoming" if incoming else "outgoing",
        value=transfer.value,
        from_address=transfer.from_address,
        to_address=transfer.to_address,
        category=transfer.category,
    )


def reconcile(
    inbound: list[RawTransfer],
    outbound: list[RawTransfer],
    address: str,
    limit: int = DEFAULT_LIMIT,
    now: datetime | None = None,
) -> list[TransferRecord]:
    """
    Build the transaction list from the two directional fetches.

    Args:
        inbound: Transfers where the address is the recipient
        outbound: Transfers where the address is the sender
        address: The queried wallet address
        limit: Max records to return, applied after sorting
        now: Stand-in time for missing or unparsable timestamps

    Returns:
        Newest-first list of at most `limit` records
    """
    now = now or datetime.now(timezone.utc)

    records = [to_record(t, address, now) for t in dedupe_by_hash(inbound + outbound)]
    # sort is stable with reverse=True, so equal timestamps keep input order
    records.sort(key=lambda r: parse_timestamp(r.timestamp, now), reverse=True)

    return records[:limit]


class TransferReconciler:
    """Fetches incoming and outgoing transfers concurrently and reconciles them."""

    def __init__(self, client: AlchemyClient):
        self.client = client

    def fetch(self, address: str, limit: int = DEFAULT_LIMIT) -> list[TransferRecord]:
        """
        Get the most recent transfers of an address.

        Args:
            address: Ethereum address
            limit: Max transactions (each fetch is capped at the same limit)

        Returns:
            Newest-first list of reconciled transfers

        Raises:
            InvalidInput: malformed address or limit
            UpstreamUnavailable: either fetch failed
        """
        address = normalize_address(address)
        limit = validate_limit(limit)

        with ThreadPoolExecutor(max_workers=2) as executor:
            inbound_future = executor.submit(
                self.client.get_asset_transfers, address, "recipient", limit
            )
            outbound_future = executor.submit(
                self.client.get_asset_transfers, address, "sender", limit
            )
        # Both fetches have finished here; either failure is fatal
        inbound = inbound_future.result()
        outbound = outbound_future.result()

        records = reconcile(inbound, outbound, address, limit)
        logger.info(
            "Reconciled %d inbound + %d outbound transfer(s) into %d for %s",
            len(inbound), len(outbound), len(records), address,
        )
        return records
