"""
Wallet Crypto - Secure key management.

Industry-standard security:
- BIP-39 seed phrases (12 words, 128-bit entropy)
- BIP-32/44 HD derivation at a single fixed path
- Argon2id key derivation (memory-hard)
- AES-256-GCM authenticated encryption

The derivation path and seed passphrase are frozen: changing either changes
every address and breaks existing backups.
"""

import json
import logging
import secrets
from dataclasses import dataclass
from typing import Optional, Sequence, Union

# Cryptography
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from argon2.low_level import hash_secret_raw, Type

# Ethereum
from mnemonic import Mnemonic
from eth_account import Account
from eth_account.hdaccount import seed_from_mnemonic, key_from_seed

from errors import InvalidMnemonic, InvalidKey, DecryptionFailed

logger = logging.getLogger(__name__)


# ============================================
# Security Constants
# ============================================

# Argon2id parameters (OWASP recommendations for high-security)
ARGON2_TIME_COST = 3
ARGON2_MEMORY_COST = 65536  # 64 MB
ARGON2_PARALLELISM = 4
ARGON2_HASH_LEN = 32  # 256 bits for AES-256

# Bounds accepted when decrypting; blobs outside them are treated as corrupt
ARGON2_MAX_TIME_COST = 16
ARGON2_MAX_MEMORY_COST = 1048576  # 1 GB
ARGON2_MAX_PARALLELISM = 16

# AES-GCM constants
AES_IV_SIZE = 12  # 96 bits (recommended for GCM)
AES_TAG_SIZE = 16
SALT_SIZE = 16

ENVELOPE_VERSION = 1

# BIP-39
MNEMONIC_LANGUAGE = "english"
MNEMONIC_WORD_COUNT = 12
ENTROPY_BYTES = 16  # 128 bits -> 12 words
SEED_PASSPHRASE = ""

# BIP-44 derivation path: account 0, external chain, index 0
DERIVATION_PATH = "m/44'/60'/0'/0/0"

# secp256k1 group order
SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141

_mnemo = Mnemonic(MNEMONIC_LANGUAGE)
_wordset = frozenset(_mnemo.wordlist)


# ============================================
# Key Material
# ============================================

class KeyMaterial:
    """
    A private key, its address, and (sometimes) the mnemonic it came from.

    The key is held in a bytearray so it can be zeroed in place. Use as a
    context manager to wipe on exit:

        with derive_key_material(phrase) as key:
            signed = sign_transaction(tx, key)
    """

    def __init__(self, private_key: Union[bytes, bytearray], address: str,
                 mnemonic: Optional[str] = None):
        self.private_key = bytearray(private_key)
        self.address = address
        self.mnemonic = mnemonic

    @property
    def is_wiped(self) -> bool:
        return not any(self.private_key)

    def wipe(self) -> None:
        """Overwrite the private key with zeros and drop the mnemonic."""
        for i in range(len(self.private_key)):
            self.private_key[i] = 0
        self.mnemonic = None

    def __enter__(self) -> "KeyMaterial":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.wipe()

    def __repr__(self) -> str:
        return f"KeyMaterial(address={self.address!r}, private_key=<redacted>)"

    def __del__(self):
        """Attempt to clear sensitive data on destruction."""
        if hasattr(self, 'private_key'):
            self.wipe()


# ============================================
# Mnemonic
# ============================================

def _split_words(candidate: Union[str, Sequence[str]]) -> list[str]:
    """Normalize a phrase (or word list) to lowercase words."""
    if isinstance(candidate, str):
        words = candidate.split()
    else:
        words = list(candidate)
    if not all(isinstance(w, str) for w in words):
        raise InvalidMnemonic("format")
    return [w.strip().lower() for w in words]


def generate_mnemonic() -> str:
    """
    Generate a new 12-word mnemonic from 128 bits of CSPRNG entropy.

    The mnemonic library appends the SHA-256 checksum bits.
    """
    entropy = secrets.token_bytes(ENTROPY_BYTES)
    if len(entropy) != ENTROPY_BYTES:
        raise RuntimeError("Insufficient entropy")
    return _mnemo.to_mnemonic(entropy)


def parse_mnemonic(candidate: Union[str, Sequence[str]]) -> str:
    """
    Parse and validate a mnemonic, returning its normalized form.

    Raises:
        InvalidMnemonic: For every failure cause, with the same message
    """
    if candidate is None or isinstance(candidate, (bytes, bytearray)):
        raise InvalidMnemonic("format")
    try:
        words = _split_words(candidate)
    except TypeError:
        raise InvalidMnemonic("format") from None

    if len(words) != MNEMONIC_WORD_COUNT:
        raise InvalidMnemonic("word_count")
    if any(w not in _wordset for w in words):
        raise InvalidMnemonic("wordlist")

    phrase = " ".join(words)
    if not _mnemo.check(phrase):
        raise InvalidMnemonic("checksum")
    return phrase


def validate_mnemonic(candidate) -> bool:
    """Check a mnemonic. Never raises."""
    try:
        parse_mnemonic(candidate)
    except InvalidMnemonic:
        return False
    return True


# ============================================
# Key Derivation
# ============================================

def derive_key_material(mnemonic: str) -> KeyMaterial:
    """
    Derive the wallet key at m/44'/60'/0'/0/0 from a mnemonic.

    Deterministic: the same phrase always gives the same key and address.

    Raises:
        InvalidMnemonic: If the phrase does not validate
    """
    phrase = parse_mnemonic(mnemonic)
    seed = seed_from_mnemonic(phrase, passphrase=SEED_PASSPHRASE)
    private_key = key_from_seed(seed, DERIVATION_PATH)
    account = Account.from_key(private_key)
    return KeyMaterial(private_key, account.address, mnemonic=phrase)


def key_material_from_private_key(raw: Union[str, bytes, bytearray]) -> KeyMaterial:
    """
    Build KeyMaterial from a raw private key.

    Args:
        raw: 32 bytes, or 64 hex digits with or without 0x prefix

    Raises:
        InvalidKey: If the key is malformed or not a valid secp256k1 scalar
    """
    if isinstance(raw, str):
        pkey = raw.strip()
        if pkey.startswith("0x") or pkey.startswith("0X"):
            pkey = pkey[2:]
        if len(pkey) != 64:
            raise InvalidKey()
        try:
            key_bytes = bytearray.fromhex(pkey)
        except ValueError:
            raise InvalidKey() from None
    elif isinstance(raw, (bytes, bytearray)):
        key_bytes = bytearray(raw)
    else:
        raise InvalidKey()

    if len(key_bytes) != 32:
        raise InvalidKey()

    scalar = int.from_bytes(key_bytes, "big")
    if not 0 < scalar < SECP256K1_N:
        raise InvalidKey("Private key is out of range for secp256k1")

    try:
        account = Account.from_key(bytes(key_bytes))
    except Exception:
        raise InvalidKey() from None
    return KeyMaterial(key_bytes, account.address)


# ============================================
# Secret Envelope (Encryption)
# ============================================

@dataclass(frozen=True)
class EncryptedBlob:
    """Self-contained ciphertext plus everything needed to decrypt it, except the passphrase."""
    ciphertext: bytes
    iv: bytes
    tag: bytes
    salt: bytes
    time_cost: int
    memory_cost: int
    parallelism: int
    version: int = ENVELOPE_VERSION

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "cipher": "aes-256-gcm",
            "kdf": {
                "algorithm": "argon2id",
                "salt": self.salt.hex(),
                "time_cost": self.time_cost,
                "memory_cost": self.memory_cost,
                "parallelism": self.parallelism,
            },
            "ciphertext": self.ciphertext.hex(),
            "iv": self.iv.hex(),
            "tag": self.tag.hex(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "EncryptedBlob":
        kdf = data["kdf"]
        return cls(
            ciphertext=bytes.fromhex(data["ciphertext"]),
            iv=bytes.fromhex(data["iv"]),
            tag=bytes.fromhex(data["tag"]),
            salt=bytes.fromhex(kdf["salt"]),
            time_cost=int(kdf["time_cost"]),
            memory_cost=int(kdf["memory_cost"]),
            parallelism=int(kdf["parallelism"]),
            version=int(data.get("version", ENVELOPE_VERSION)),
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_json(cls, text: str) -> "EncryptedBlob":
        return cls.from_dict(json.loads(text))


def derive_key(passphrase: str, salt: bytes, time_cost: Optional[int] = None,
               memory_cost: Optional[int] = None, parallelism: Optional[int] = None) -> bytes:
    """
    Derive an encryption key from a passphrase using Argon2id.

    Argon2id is memory-hard, making brute-force attacks expensive.
    With the default parameters, each passphrase guess requires ~64MB RAM.
    """
    return hash_secret_raw(
        secret=passphrase.encode('utf-8'),
        salt=salt,
        time_cost=time_cost or ARGON2_TIME_COST,
        memory_cost=memory_cost or ARGON2_MEMORY_COST,
        parallelism=parallelism or ARGON2_PARALLELISM,
        hash_len=ARGON2_HASH_LEN,
        type=Type.ID
    )


def encrypt_secret(plaintext: str, passphrase: str) -> EncryptedBlob:
    """
    Encrypt a secret with a passphrase.

    Every call draws a fresh salt and IV, so encrypting the same input twice
    gives different ciphertexts.
    """
    if not isinstance(passphrase, str) or not passphrase:
        raise ValueError("Passphrase must be a non-empty string")

    salt = secrets.token_bytes(SALT_SIZE)
    iv = secrets.token_bytes(AES_IV_SIZE)
    time_cost, memory_cost, parallelism = ARGON2_TIME_COST, ARGON2_MEMORY_COST, ARGON2_PARALLELISM
    key = derive_key(passphrase, salt, time_cost, memory_cost, parallelism)

    aesgcm = AESGCM(key)
    ciphertext_and_tag = aesgcm.encrypt(iv, plaintext.encode('utf-8'), None)

    return EncryptedBlob(
        ciphertext=ciphertext_and_tag[:-AES_TAG_SIZE],
        iv=iv,
        tag=ciphertext_and_tag[-AES_TAG_SIZE:],
        salt=salt,
        time_cost=time_cost,
        memory_cost=memory_cost,
        parallelism=parallelism,
    )


def _check_kdf_bounds(blob: EncryptedBlob) -> None:
    if blob.version != ENVELOPE_VERSION:
        raise ValueError("unsupported version")
    if not 1 <= blob.time_cost <= ARGON2_MAX_TIME_COST:
        raise ValueError("time_cost out of range")
    if not 1 <= blob.parallelism <= ARGON2_MAX_PARALLELISM:
        raise ValueError("parallelism out of range")
    if not 8 * blob.parallelism <= blob.memory_cost <= ARGON2_MAX_MEMORY_COST:
        raise ValueError("memory_cost out of range")
    if len(blob.iv) != AES_IV_SIZE or len(blob.tag) != AES_TAG_SIZE or not blob.salt:
        raise ValueError("bad parameter length")


def decrypt_secret(blob: Union[EncryptedBlob, str, dict], passphrase: str) -> str:
    """
    Decrypt a secret with a passphrase.

    Accepts an EncryptedBlob or its JSON/dict form.

    Raises:
        DecryptionFailed: Wrong passphrase, tampered or malformed blob
    """
    try:
        if isinstance(blob, str):
            blob = EncryptedBlob.from_json(blob)
        elif isinstance(blob, dict):
            blob = EncryptedBlob.from_dict(blob)
        _check_kdf_bounds(blob)

        key = derive_key(passphrase, blob.salt, blob.time_cost, blob.memory_cost, blob.parallelism)
        aesgcm = AESGCM(key)
        plaintext = aesgcm.decrypt(blob.iv, blob.ciphertext + blob.tag, None)
        return plaintext.decode('utf-8')
    except Exception:
        # No chained cause: every failure must look the same to the caller
        raise DecryptionFailed() from None
