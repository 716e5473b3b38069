"""
Shared pytest fixtures for the Gauss Wallet test suite.
"""

import pytest

from config import Settings
from wallet import MemoryStore, WalletManager
from wallet import crypto

# BIP-39 test vector: derives the well-known account below at m/44'/60'/0'/0/0
ABANDON_MNEMONIC = " ".join(["abandon"] * 11 + ["about"])
ABANDON_ADDRESS = "0x9858EfFD232B4033E47d90003D41EC34EcaEda94"
ABANDON_PRIVATE_KEY = "0x1ab42cc412b618bdea3a599e3c9bae199ebf030895b039e9db1e30dafb12b727"

# Widely published eth_account sample key
SAMPLE_PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
SAMPLE_ADDRESS = "0x2c7536E3605D9C16a7a3D7b1898e529396a65c23"

RECIPIENT = "0x000000000000000000000000000000000000dEaD"


@pytest.fixture(autouse=True)
def app_home(tmp_path, monkeypatch):
    """Keep every app-data path inside the test's temp directory."""
    home = tmp_path / "home"
    monkeypatch.setenv("GAUSS_WALLET_HOME", str(home))
    for var in ("GAUSS_API_URL", "GAUSS_NETWORK", "GAUSS_LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)
    return home


@pytest.fixture(autouse=True)
def fast_kdf(monkeypatch):
    """Cheap Argon2 parameters so envelope tests run quickly."""
    monkeypatch.setattr(crypto, "ARGON2_TIME_COST", 1)
    monkeypatch.setattr(crypto, "ARGON2_MEMORY_COST", 1024)
    monkeypatch.setattr(crypto, "ARGON2_PARALLELISM", 1)


@pytest.fixture
def keystore():
    return MemoryStore()


@pytest.fixture
def metadata():
    return MemoryStore()


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def manager(keystore, metadata, settings):
    """Empty wallet manager over in-memory stores."""
    return WalletManager(keystore, metadata, settings)
