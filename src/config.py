"""
Settings - Application configuration.

Settings live in settings.json in the app data directory. Environment
variables override the file:

- GAUSS_API_URL: Ledger API base URL
- GAUSS_NETWORK: Network name (see networks.NETWORKS)
- GAUSS_LOG_LEVEL: Logging level name (DEBUG, INFO, ...)
"""

import json
import logging
import os
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Optional

from networks import NETWORKS, DEFAULT_NETWORK, NetworkConfig
from utils import get_settings_path, set_secure_permissions

logger = logging.getLogger(__name__)


# Keystore entry names (secure storage)
KEYSTORE_PRIVATE_KEY = "gauss_private_key"
KEYSTORE_MNEMONIC = "gauss_mnemonic"

# Metadata entry names (non-sensitive storage)
STORAGE_WALLET_ADDRESS = "@gauss:wallet:address"
STORAGE_WALLET_NAME = "@gauss:wallet:name"


@dataclass
class Settings:
    """User-adjustable settings."""
    network: str = DEFAULT_NETWORK
    api_url: Optional[str] = None        # None = network default
    api_timeout: float = 30.0            # Seconds
    default_fee: Optional[str] = None    # None = network default
    min_passphrase_length: int = 8
    log_level: str = "INFO"
    log_retention_days: int = 0          # 0 = no log files

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "Settings":
        """Build from a dict, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    @property
    def network_config(self) -> NetworkConfig:
        """Resolved network config (unknown names fall back to the default)."""
        network = NETWORKS.get(self.network)
        if network is None:
            logger.warning(f"Unknown network '{self.network}', using {DEFAULT_NETWORK}")
            network = NETWORKS[DEFAULT_NETWORK]
        return network

    @property
    def effective_api_url(self) -> str:
        return (self.api_url or self.network_config.api_url).rstrip("/")

    @property
    def effective_fee(self) -> str:
        return self.default_fee or self.network_config.default_fee


def load_settings(path: Optional[Path] = None) -> Settings:
    """
    Load settings from disk, then apply environment overrides.

    A missing or unreadable file yields defaults.
    """
    settings_path = Path(path) if path else get_settings_path()
    settings = Settings()

    if settings_path.exists():
        try:
            with open(settings_path, 'r') as f:
                settings = Settings.from_dict(json.load(f))
        except (json.JSONDecodeError, OSError, TypeError) as e:
            logger.warning(f"Failed to load settings: {e}")

    if os.environ.get("GAUSS_API_URL"):
        settings.api_url = os.environ["GAUSS_API_URL"]
    if os.environ.get("GAUSS_NETWORK"):
        settings.network = os.environ["GAUSS_NETWORK"]
    if os.environ.get("GAUSS_LOG_LEVEL"):
        settings.log_level = os.environ["GAUSS_LOG_LEVEL"].upper()

    return settings


def save_settings(settings: Settings, path: Optional[Path] = None) -> None:
    """Save settings to disk."""
    settings_path = Path(path) if path else get_settings_path()
    settings_path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = settings_path.with_suffix('.tmp')
    with open(temp_path, 'w') as f:
        json.dump(settings.to_dict(), f, indent=2)
    temp_path.replace(settings_path)
    set_secure_permissions(settings_path)
