"""
Errors - Wallet error taxonomy.

Validation errors (InvalidMnemonic, InvalidKey, InvalidAddress,
InvalidTransaction) are raised before anything is persisted and are safe to
show to the user. They also subclass ValueError so generic input handling
keeps working.

KeystoreFailure and SigningFailure are never retried internally.
"""

from typing import Optional


class WalletError(Exception):
    """Base class for all wallet errors."""


# ============================================
# Validation Errors
# ============================================

class InvalidMnemonic(WalletError, ValueError):
    """
    Seed phrase rejected.

    The message is identical for every cause so a caller cannot learn which
    word was wrong. ``kind`` is kept for diagnostics only.
    """

    MESSAGE = "Invalid mnemonic phrase"

    def __init__(self, kind: str = "format"):
        super().__init__(self.MESSAGE)
        self.kind = kind  # format | word_count | wordlist | checksum


class InvalidKey(WalletError, ValueError):
    """Private key is malformed or not a valid secp256k1 scalar."""

    def __init__(self, message: str = "Invalid private key"):
        super().__init__(message)


class InvalidAddress(WalletError, ValueError):
    """Address is not 0x followed by 40 hex digits."""

    def __init__(self, address: Optional[str] = None):
        if isinstance(address, str) and len(address) <= 64:
            message = f"Invalid address: {address!r}"
        else:
            message = "Invalid address"
        super().__init__(message)
        self.address = address


class InvalidTransaction(WalletError, ValueError):
    """Malformed amount, fee, nonce or data payload."""


# ============================================
# State Errors
# ============================================

class WalletNotFound(WalletError):
    """Operation requires an active wallet but none exists."""

    def __init__(self, message: str = "No wallet found"):
        super().__init__(message)


class WalletAlreadyExists(WalletError):
    """Create/import attempted while a wallet is already active."""

    def __init__(self, message: str = "A wallet already exists; delete it first"):
        super().__init__(message)


# ============================================
# Operational Errors
# ============================================

class KeystoreFailure(WalletError):
    """Reading or writing secure or metadata storage failed."""


class DecryptionFailed(WalletError):
    """Wrong passphrase or corrupted data. Deliberately carries no detail."""

    def __init__(self):
        super().__init__("Wrong passphrase or corrupted data")


class SigningFailure(WalletError):
    """Unexpected failure inside the signature primitive."""
