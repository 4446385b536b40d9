"""Configuration management for the wallet dashboard."""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Load .env file from project root
_project_root = Path(__file__).parent.parent
_env_path = _project_root / ".env"
_config_path = _project_root / "config.json"

load_dotenv(_env_path)

# Defaults (used when config.json is missing or incomplete)
_DEFAULTS = {
    "transaction_limit": 20,     # transactions shown per lookup
    "max_workers": 8,            # concurrent upstream requests per fan-out
    "request_timeout": 30.0,     # seconds per HTTP request
    "top_holdings": 10,          # holdings in the summary before "view all"
    "favorites_path": "favorites.json",
}


def _load_config_json(path: Path = _config_path) -> dict:
    """Load config.json from project root. Returns empty dict if missing."""
    if not path.exists():
        return {}
    try:
        with open(path, "r") as f:
            return json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Could not parse %s: %s -- using defaults", path.name, e)
        return {}


@dataclass
class Config:
    """Application configuration."""
    # API Keys
    alchemy_api_key: str
    moralis_api_key: str | None = None

    # Network
    alchemy_network: str = "eth-mainnet"
    request_timeout: float = _DEFAULTS["request_timeout"]
    max_workers: int = _DEFAULTS["max_workers"]

    # Display
    transaction_limit: int = _DEFAULTS["transaction_limit"]
    top_holdings: int = _DEFAULTS["top_holdings"]

    # Favorites
    favorites_path: Path = _project_root / _DEFAULTS["favorites_path"]
    default_user: str | None = None

    @classmethod
    def from_env(cls, config_path: Path = _config_path) -> "Config":
        """Load configuration from .env + config.json."""
        alchemy_key = os.getenv("ALCHEMY_API_KEY", "")

        if not alchemy_key:
            raise ValueError(
                "ALCHEMY_API_KEY environment variable is required.\n"
                "Get a free API key at https://www.alchemy.com"
            )

        # Read user-editable config.json
        user_cfg = _load_config_json(config_path)

        favorites_path = Path(user_cfg.get("favorites_path", _DEFAULTS["favorites_path"]))
        if not favorites_path.is_absolute():
            favorites_path = _project_root / favorites_path

        return cls(
            alchemy_api_key=alchemy_key,
            moralis_api_key=os.getenv("MORALIS_API_KEY") or None,
            alchemy_network=os.getenv("ALCHEMY_NETWORK", "eth-mainnet"),
            request_timeout=float(user_cfg.get(
                "request_timeout", _DEFAULTS["request_timeout"]
            )),
            max_workers=int(user_cfg.get("max_workers", _DEFAULTS["max_workers"])),
            transaction_limit=int(user_cfg.get(
                "transaction_limit", _DEFAULTS["transaction_limit"]
            )),
            top_holdings=int(user_cfg.get("top_holdings", _DEFAULTS["top_holdings"])),
            favorites_path=favorites_path,
            default_user=os.getenv("DASHBOARD_USER") or None,
        )

    @classmethod
    def load(cls) -> "Config":
        """Load configuration, with helpful error messages."""
        try:
            return cls.from_env()
        except ValueError as e:
            print(f"\n[ERROR] Configuration Error:\n{e}\n")
            print("Setup instructions:")
            print("1. Copy .env.example to .env")
            print("2. Sign up at https://www.alchemy.com and create an Ethereum app")
            print("3. Add the key to .env: ALCHEMY_API_KEY=your_key_here")
            print("4. Optional: add MORALIS_API_KEY for token prices by contract\n")
            raise


def get_config() -> Config:
    """Get the application configuration (singleton pattern)."""
    global _config
    if _config is None:
        _config = Config.load()
    return _config


_config: Config | None = None
