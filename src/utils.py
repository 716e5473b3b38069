"""
Shared utility functions for Gauss Wallet.

Contains path helpers and file helpers used across packages.
"""

import os
import sys
from pathlib import Path

# Secure file permissions (Unix only)
SECURE_FILE_MODE = 0o600  # Owner read/write only


def get_app_dir() -> Path:
    """
    Get the application data directory.

    GAUSS_WALLET_HOME overrides the default location.
    """
    override = os.environ.get("GAUSS_WALLET_HOME")
    if override:
        app_dir = Path(override)
    elif getattr(sys, 'frozen', False):
        # Running as compiled
        app_dir = Path(sys.executable).parent / "data"
    else:
        app_dir = Path.home() / ".gauss-wallet"

    app_dir.mkdir(parents=True, exist_ok=True)
    return app_dir


def get_wallet_dir() -> Path:
    """Get the wallet storage directory."""
    wallet_dir = get_app_dir() / "wallet"
    wallet_dir.mkdir(parents=True, exist_ok=True)
    return wallet_dir


def get_settings_path() -> Path:
    """Get path to settings file."""
    return get_app_dir() / "settings.json"


def get_logs_dir() -> Path:
    """Get the logs directory."""
    logs_dir = get_app_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    return logs_dir


def set_secure_permissions(filepath: Path) -> None:
    """
    Set restrictive file permissions on Unix systems.

    Sets file to mode 0600 (owner read/write only) to protect wallet data.
    No-op on Windows (NTFS uses ACLs, not Unix permissions).
    """
    if os.name == 'posix':
        try:
            os.chmod(filepath, SECURE_FILE_MODE)
        except OSError:
            # Best effort - don't fail save operation if chmod fails
            pass
