"""
Wallet Manager - Secret lifecycle for the single active wallet.

States: empty (nothing persisted) and active (key in the keystore, address
in metadata). Transitions:

    create / import_mnemonic / import_private_key / restore_backup : empty -> active
    destroy                                                       : active -> empty

The address is written last and removed first, so it acts as the commit
marker: has_wallet() is true only when both the address and the key exist.

Concurrency: transitions are serialized as writers; sign, reveal and export
run as concurrent readers and never overlap a transition.

The manager never hands out a private key. Keys read for signing are zeroed
before sign() returns, whether signing succeeded or not.
"""

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from typing import Optional, Union

from config import (
    Settings,
    KEYSTORE_PRIVATE_KEY,
    KEYSTORE_MNEMONIC,
    STORAGE_WALLET_ADDRESS,
    STORAGE_WALLET_NAME,
)
from errors import (
    DecryptionFailed,
    InvalidKey,
    KeystoreFailure,
    WalletAlreadyExists,
    WalletNotFound,
)
from models.transaction import UnsignedTransaction, SignedTransaction
from networks import addresses_equal, format_address
from .crypto import (
    KeyMaterial,
    EncryptedBlob,
    generate_mnemonic,
    parse_mnemonic,
    derive_key_material,
    key_material_from_private_key,
    encrypt_secret,
    decrypt_secret,
)
from .signer import sign_transaction
from .storage import KeyValueStore

logger = logging.getLogger(__name__)


STATE_EMPTY = "empty"
STATE_ACTIVE = "active"

BACKUP_TYPE_MNEMONIC = "mnemonic"
BACKUP_TYPE_PRIVATE_KEY = "private_key"


class ReadWriteLock:
    """
    asyncio readers-writer lock.

    Any number of readers, or one writer. Waiting writers block new readers
    so a transition is not starved by a stream of signing requests.
    """

    def __init__(self):
        self._cond = asyncio.Condition()
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @asynccontextmanager
    async def read(self):
        async with self._cond:
            await self._cond.wait_for(lambda: not self._writer and self._writers_waiting == 0)
            self._readers += 1
        try:
            yield
        finally:
            async with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @asynccontextmanager
    async def write(self):
        async with self._cond:
            self._writers_waiting += 1
            try:
                await self._cond.wait_for(lambda: not self._writer and self._readers == 0)
            finally:
                self._writers_waiting -= 1
                self._cond.notify_all()
            self._writer = True
        try:
            yield
        finally:
            async with self._cond:
                self._writer = False
                self._cond.notify_all()

    @property
    def readers(self) -> int:
        return self._readers

    @property
    def writing(self) -> bool:
        return self._writer


class WalletManager:
    """
    Owns the wallet's secrets and is the only entry point that touches them.

    Usage:
        manager = WalletManager(keystore, metadata, settings)
        address = await manager.create("Main")
        signed = await manager.sign(UnsignedTransaction(...))
        phrase = await manager.reveal_mnemonic()   # backup display only
        await manager.destroy()
    """

    def __init__(self, keystore: KeyValueStore, metadata: KeyValueStore,
                 settings: Optional[Settings] = None):
        self._keystore = keystore
        self._metadata = metadata
        self._settings = settings or Settings()
        self._lock = ReadWriteLock()

    # ============================================
    # Storage helpers
    # ============================================

    async def _get(self, store: KeyValueStore, key: str) -> Optional[str]:
        try:
            return await store.get(key)
        except DecryptionFailed:
            raise
        except Exception as e:
            raise KeystoreFailure(f"Failed to read '{key}'") from e

    async def _contains(self, store: KeyValueStore, key: str) -> bool:
        try:
            return await store.contains(key)
        except Exception as e:
            raise KeystoreFailure(f"Failed to read '{key}'") from e

    async def _put(self, store: KeyValueStore, key: str, value: str) -> None:
        try:
            await store.put(key, value)
        except Exception as e:
            raise KeystoreFailure(f"Failed to write '{key}'") from e

    async def _delete(self, store: KeyValueStore, key: str) -> None:
        try:
            await store.delete(key)
        except Exception as e:
            raise KeystoreFailure(f"Failed to delete '{key}'") from e

    def _entries(self) -> list[tuple[KeyValueStore, str]]:
        """All persisted entries, in removal order (address first)."""
        return [
            (self._metadata, STORAGE_WALLET_ADDRESS),
            (self._metadata, STORAGE_WALLET_NAME),
            (self._keystore, KEYSTORE_PRIVATE_KEY),
            (self._keystore, KEYSTORE_MNEMONIC),
        ]

    async def _has_wallet(self) -> bool:
        address = await self._get(self._metadata, STORAGE_WALLET_ADDRESS)
        if not address:
            return False
        private_key = await self._get(self._keystore, KEYSTORE_PRIVATE_KEY)
        return bool(private_key)

    async def _clear_all(self) -> None:
        for store, key in self._entries():
            await self._delete(store, key)

    # ============================================
    # Queries
    # ============================================

    async def has_wallet(self) -> bool:
        """True only when both the address and the private key are stored."""
        async with self._lock.read():
            return await self._has_wallet()

    async def get_state(self) -> str:
        return STATE_ACTIVE if await self.has_wallet() else STATE_EMPTY

    async def get_address(self) -> Optional[str]:
        """The active wallet's address, or None when empty."""
        async with self._lock.read():
            if not await self._has_wallet():
                return None
            return await self._get(self._metadata, STORAGE_WALLET_ADDRESS)

    async def get_name(self) -> Optional[str]:
        async with self._lock.read():
            if not await self._has_wallet():
                return None
            return await self._get(self._metadata, STORAGE_WALLET_NAME)

    # ============================================
    # Transitions
    # ============================================

    async def _persist(self, key: KeyMaterial, name: Optional[str]) -> str:
        """Store a new wallet, rolling back every write if any step fails."""
        async with self._lock.write():
            if await self._has_wallet():
                raise WalletAlreadyExists()

            # Leftovers from an interrupted destroy
            await self._clear_all()

            written: list[tuple[KeyValueStore, str]] = []
            try:
                await self._put(self._keystore, KEYSTORE_PRIVATE_KEY, "0x" + key.private_key.hex())
                written.append((self._keystore, KEYSTORE_PRIVATE_KEY))
                if key.mnemonic:
                    await self._put(self._keystore, KEYSTORE_MNEMONIC, key.mnemonic)
                    written.append((self._keystore, KEYSTORE_MNEMONIC))
                if name:
                    await self._put(self._metadata, STORAGE_WALLET_NAME, name)
                    written.append((self._metadata, STORAGE_WALLET_NAME))
                await self._put(self._metadata, STORAGE_WALLET_ADDRESS, key.address)
                written.append((self._metadata, STORAGE_WALLET_ADDRESS))
            except Exception:
                for store, entry in reversed(written):
                    try:
                        await store.delete(entry)
                    except Exception as rollback_error:
                        logger.error(f"Rollback of '{entry}' failed: {type(rollback_error).__name__}")
                raise

        logger.info(f"Wallet stored ({format_address(key.address)})")
        return key.address

    async def create(self, name: Optional[str] = None) -> str:
        """
        Create a wallet from a fresh mnemonic.

        Returns:
            The new address

        Raises:
            WalletAlreadyExists: If a wallet is active
            KeystoreFailure: If persistence failed (nothing is left behind)
        """
        with derive_key_material(generate_mnemonic()) as key:
            return await self._persist(key, name)

    async def import_mnemonic(self, mnemonic: str, name: Optional[str] = None) -> str:
        """
        Import a wallet from a 12-word phrase.

        Raises:
            InvalidMnemonic: Before any storage is touched
        """
        phrase = parse_mnemonic(mnemonic)
        with derive_key_material(phrase) as key:
            return await self._persist(key, name)

    async def import_private_key(self, private_key: Union[str, bytes], name: Optional[str] = None) -> str:
        """
        Import a wallet from a raw private key (no mnemonic to reveal later).

        Raises:
            InvalidKey: Before any storage is touched
        """
        with key_material_from_private_key(private_key) as key:
            return await self._persist(key, name)

    async def destroy(self) -> None:
        """
        Erase every keystore and metadata entry.

        Only checks that entries are present, so a keystore that can no longer
        be decrypted can still be wiped.

        Raises:
            WalletNotFound: If there was no active wallet
            KeystoreFailure: If an entry could not be removed
        """
        async with self._lock.write():
            existed = (await self._contains(self._metadata, STORAGE_WALLET_ADDRESS)
                       and await self._contains(self._keystore, KEYSTORE_PRIVATE_KEY))
            await self._clear_all()
        if not existed:
            raise WalletNotFound()
        logger.info("Wallet destroyed")

    # ============================================
    # Secret use
    # ============================================

    async def _load_key(self) -> KeyMaterial:
        """Read the stored key. Caller must hold the read lock and wipe the result."""
        address = await self._get(self._metadata, STORAGE_WALLET_ADDRESS)
        private_key = await self._get(self._keystore, KEYSTORE_PRIVATE_KEY)
        if not address or not private_key:
            raise WalletNotFound()

        try:
            key = key_material_from_private_key(private_key)
        except InvalidKey:
            raise KeystoreFailure("Stored private key is unreadable") from None
        finally:
            private_key = None

        if not addresses_equal(key.address, address):
            key.wipe()
            raise KeystoreFailure("Stored private key does not match wallet address")
        return key

    async def sign(self, tx: UnsignedTransaction) -> SignedTransaction:
        """
        Sign a transaction with the stored key.

        Raises:
            WalletNotFound: If no wallet is active
            SigningFailure: If the signature primitive fails
        """
        if not isinstance(tx, UnsignedTransaction):
            raise TypeError("sign() expects an UnsignedTransaction")

        async with self._lock.read():
            key = await self._load_key()
            try:
                signed = sign_transaction(tx, key)
            finally:
                key.wipe()

        logger.info(f"Signed transaction {signed.hash[:10]}... nonce={tx.nonce}")
        return signed

    async def reveal_mnemonic(self) -> Optional[str]:
        """
        Return the recovery phrase for backup display.

        The result is sensitive: do not log or cache it. Returns None for
        wallets imported from a raw private key.

        Raises:
            WalletNotFound: If no wallet is active
        """
        async with self._lock.read():
            if not await self._has_wallet():
                raise WalletNotFound()
            mnemonic = await self._get(self._keystore, KEYSTORE_MNEMONIC)
        logger.info("Recovery phrase revealed for backup")
        return mnemonic

    async def export_backup(self, passphrase: str) -> EncryptedBlob:
        """
        Encrypt the wallet secret under a user passphrase for offline backup.

        The mnemonic is exported when present, otherwise the private key.

        Raises:
            ValueError: If the passphrase is too short
            WalletNotFound: If no wallet is active
        """
        min_length = self._settings.min_passphrase_length
        if not isinstance(passphrase, str) or len(passphrase) < min_length:
            raise ValueError(f"Passphrase must be at least {min_length} characters")

        async with self._lock.read():
            if not await self._has_wallet():
                raise WalletNotFound()
            address = await self._get(self._metadata, STORAGE_WALLET_ADDRESS)
            mnemonic = await self._get(self._keystore, KEYSTORE_MNEMONIC)
            if mnemonic:
                payload = {"type": BACKUP_TYPE_MNEMONIC, "mnemonic": mnemonic, "address": address}
            else:
                payload = {
                    "type": BACKUP_TYPE_PRIVATE_KEY,
                    "private_key": await self._get(self._keystore, KEYSTORE_PRIVATE_KEY),
                    "address": address,
                }

        blob = await asyncio.to_thread(encrypt_secret, json.dumps(payload), passphrase)
        payload.clear()
        logger.info(f"Exported encrypted backup ({format_address(address)})")
        return blob

    async def restore_backup(self, blob: Union[EncryptedBlob, str, dict], passphrase: str,
                             name: Optional[str] = None) -> str:
        """
        Restore a wallet from an encrypted backup.

        Raises:
            DecryptionFailed: Wrong passphrase or corrupted backup
            WalletAlreadyExists: If a wallet is active
        """
        plaintext = await asyncio.to_thread(decrypt_secret, blob, passphrase)
        try:
            payload = json.loads(plaintext)
            backup_type = payload["type"]
            expected = payload.get("address")
            if backup_type == BACKUP_TYPE_MNEMONIC:
                key = derive_key_material(payload["mnemonic"])
            elif backup_type == BACKUP_TYPE_PRIVATE_KEY:
                key = key_material_from_private_key(payload["private_key"])
            else:
                raise ValueError("unknown backup type")
        except Exception:
            raise DecryptionFailed() from None
        finally:
            plaintext = None

        with key:
            if expected and not addresses_equal(expected, key.address):
                raise DecryptionFailed()
            return await self._persist(key, name)
