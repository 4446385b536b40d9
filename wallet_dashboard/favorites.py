"""Favorite wallets - per-user saved addresses in a JSON file."""

import json
import logging
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path

from .models import FavoriteWallet
from .validation import normalize_address, require_user

logger = logging.getLogger(__name__)


class DuplicateFavorite(Exception):
    """Raised when a user already saved the address."""
    def __init__(self, user_id: str, address: str):
        super().__init__(f"Wallet {address} already in favorites")
        self.user_id = user_id
        self.address = address


class FavoritesStore:
    """
    Stores favorite wallets per user.

    Every operation takes the user id explicitly. Addresses are stored
    lowercased and are unique per user.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read(self) -> list[FavoriteWallet]:
        if not self.path.exists():
            return []
        with open(self.path, "r") as f:
            data = json.load(f)
        return [FavoriteWallet.from_dict(item) for item in data.get("favorites", [])]

    def _write(self, favorites: list[FavoriteWallet]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w") as f:
            json.dump({"favorites": [fav.to_dict() for fav in favorites]}, f, indent=2)
        tmp_path.replace(self.path)

    def add(self, user_id: str, address: str, label: str | None = None) -> FavoriteWallet:
        """
        Save an address for a user.

        Raises:
            InvalidInput: missing user id or malformed address
            DuplicateFavorite: the user already saved this address
        """
        user_id = require_user(user_id)
        address = normalize_address(address)

        with self._lock:
            favorites = self._read()
            if any(f.user_id == user_id and f.address == address for f in favorites):
                raise DuplicateFavorite(user_id, address)

            favorite = FavoriteWallet(
                id=uuid.uuid4().hex,
                user_id=user_id,
                address=address,
                label=label.strip() if label and label.strip() else None,
                created_at=datetime.now(timezone.utc).isoformat(),
            )
            favorites.append(favorite)
            self._write(favorites)

        logger.info("User %s added favorite %s", user_id, address)
        return favorite

    def remove(self, user_id: str, address: str) -> bool:
        """Remove a saved address. Returns False if it wasn't saved."""
        user_id = require_user(user_id)
        address = normalize_address(address)

        with self._lock:
            favorites = self._read()
            kept = [f for f in favorites if not (f.user_id == user_id and f.address == address)]
            if len(kept) == len(favorites):
                return False
            self._write(kept)

        logger.info("User %s removed favorite %s", user_id, address)
        return True

    def list(self, user_id: str) -> list[FavoriteWallet]:
        """A user's favorites, newest first."""
        user_id = require_user(user_id)
        with self._lock:
            mine = [f for f in self._read() if f.user_id == user_id]
        # Stored in insertion order, so reversing breaks created_at ties newest-first
        return sorted(reversed(mine), key=lambda f: f.created_at, reverse=True)

    def is_favorite(self, user_id: str, address: str) -> bool:
        address = normalize_address(address)
        return any(f.address == address for f in self.list(user_id))
