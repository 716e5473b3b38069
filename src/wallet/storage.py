"""
Wallet Storage - Key/value stores for secrets and metadata.

The lifecycle manager talks to two stores through the same async
put/get/delete shape:

- Keystore: secrets (private key, mnemonic). Must be encrypted at rest.
- Metadata: address and display name. No confidentiality required.

Provided implementations:
- MemoryStore: in-process dict (tests, ephemeral sessions)
- JsonFileStore: plain JSON file (metadata)
- EncryptedFileKeystore: JSON file with every value envelope-encrypted
  under a device passphrase (stand-in for a platform keystore)
"""

import asyncio
import json
import logging
import threading
from pathlib import Path
from typing import Optional, Protocol

from utils import set_secure_permissions
from .crypto import encrypt_secret, decrypt_secret

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Storage contract used by WalletManager."""

    async def put(self, key: str, value: str) -> None: ...

    async def get(self, key: str) -> Optional[str]: ...

    async def delete(self, key: str) -> None: ...

    async def contains(self, key: str) -> bool: ...


class MemoryStore:
    """Dict-backed store. Contents vanish with the process."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    async def put(self, key: str, value: str) -> None:
        self._data[key] = value

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def contains(self, key: str) -> bool:
        return key in self._data

    def keys(self) -> list[str]:
        return list(self._data.keys())

    def __len__(self) -> int:
        return len(self._data)


class JsonFileStore:
    """
    Store backed by a single JSON object on disk.

    Writes go to a temp file that replaces the original, so a crash never
    leaves a half-written file. Blocking I/O runs in a worker thread.
    """

    def __init__(self, filepath: str | Path):
        self.filepath = Path(filepath)
        self._lock = threading.Lock()

    def _read(self) -> dict[str, str]:
        if not self.filepath.exists():
            return {}
        with open(self.filepath, 'r') as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Corrupted store file: {self.filepath.name}")
        return data

    def _write(self, data: dict[str, str]) -> None:
        self.filepath.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self.filepath.with_suffix('.tmp')
        with open(temp_path, 'w') as f:
            json.dump(data, f, indent=2)
        temp_path.replace(self.filepath)
        set_secure_permissions(self.filepath)

    def _put_sync(self, key: str, value: str) -> None:
        with self._lock:
            data = self._read()
            data[key] = self._encode(value)
            self._write(data)

    def _get_sync(self, key: str) -> Optional[str]:
        with self._lock:
            stored = self._read().get(key)
        return None if stored is None else self._decode(stored)

    def _contains_sync(self, key: str) -> bool:
        with self._lock:
            return key in self._read()

    def _delete_sync(self, key: str) -> None:
        with self._lock:
            data = self._read()
            if key in data:
                del data[key]
                self._write(data)

    def _encode(self, value: str):
        return value

    def _decode(self, stored) -> str:
        return stored

    async def put(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._put_sync, key, value)

    async def get(self, key: str) -> Optional[str]:
        return await asyncio.to_thread(self._get_sync, key)

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self._delete_sync, key)

    async def contains(self, key: str) -> bool:
        """Presence check that never decodes the stored value."""
        return await asyncio.to_thread(self._contains_sync, key)


class EncryptedFileKeystore(JsonFileStore):
    """
    JSON file store whose values are AES-256-GCM encrypted.

    Each value gets its own salt and IV. A wrong device passphrase surfaces
    as DecryptionFailed on the first read.
    """

    def __init__(self, filepath: str | Path, passphrase: str):
        super().__init__(filepath)
        if not passphrase:
            raise ValueError("Keystore passphrase must not be empty")
        self._passphrase = passphrase

    def _encode(self, value: str) -> dict:
        return encrypt_secret(value, self._passphrase).to_dict()

    def _decode(self, stored) -> str:
        return decrypt_secret(stored, self._passphrase)

    def lock(self) -> None:
        """Drop the passphrase; further access fails."""
        self._passphrase = None
