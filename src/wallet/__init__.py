"""
Wallet package - Secure key management for Gauss Wallet.

Contains:
- crypto: BIP-39 mnemonics, BIP-44 derivation, passphrase encryption
- signer: Canonical transaction encoding, signing and verification
- storage: Keystore / metadata store implementations
- WalletManager: Lifecycle of the single active wallet
"""

from .crypto import (
    KeyMaterial,
    EncryptedBlob,
    generate_mnemonic,
    validate_mnemonic,
    parse_mnemonic,
    derive_key_material,
    key_material_from_private_key,
    encrypt_secret,
    decrypt_secret,
    DERIVATION_PATH,
)
from .signer import (
    encode_transaction,
    sign_transaction,
    verify_signature,
    verify_transaction,
    recover_signer,
)
from .storage import (
    KeyValueStore,
    MemoryStore,
    JsonFileStore,
    EncryptedFileKeystore,
)
from .manager import (
    WalletManager,
    ReadWriteLock,
    STATE_EMPTY,
    STATE_ACTIVE,
)

__all__ = [
    # Crypto
    "KeyMaterial",
    "EncryptedBlob",
    "generate_mnemonic",
    "validate_mnemonic",
    "parse_mnemonic",
    "derive_key_material",
    "key_material_from_private_key",
    "encrypt_secret",
    "decrypt_secret",
    "DERIVATION_PATH",
    # Signer
    "encode_transaction",
    "sign_transaction",
    "verify_signature",
    "verify_transaction",
    "recover_signer",
    # Storage
    "KeyValueStore",
    "MemoryStore",
    "JsonFileStore",
    "EncryptedFileKeystore",
    # Manager
    "WalletManager",
    "ReadWriteLock",
    "STATE_EMPTY",
    "STATE_ACTIVE",
]
