"""
Tests for passphrase encryption of secrets (Argon2id + AES-256-GCM).
"""

import dataclasses
import json

import pytest

from errors import DecryptionFailed
from wallet import crypto
from wallet.crypto import EncryptedBlob, decrypt_secret, encrypt_secret

from conftest import ABANDON_MNEMONIC

PASSPHRASE = "correct horse battery"


class TestEncryptSecret:

    def test_round_trip(self):
        blob = encrypt_secret(ABANDON_MNEMONIC, PASSPHRASE)
        assert decrypt_secret(blob, PASSPHRASE) == ABANDON_MNEMONIC

    def test_unicode_round_trip(self):
        blob = encrypt_secret("ключ 🔑", PASSPHRASE)
        assert decrypt_secret(blob, PASSPHRASE) == "ключ 🔑"

    def test_fresh_salt_and_iv(self):
        a = encrypt_secret(ABANDON_MNEMONIC, PASSPHRASE)
        b = encrypt_secret(ABANDON_MNEMONIC, PASSPHRASE)
        assert a.salt != b.salt
        assert a.iv != b.iv
        assert a.ciphertext != b.ciphertext

    def test_sizes(self):
        blob = encrypt_secret("x", PASSPHRASE)
        assert len(blob.iv) == crypto.AES_IV_SIZE
        assert len(blob.tag) == crypto.AES_TAG_SIZE
        assert len(blob.salt) == crypto.SALT_SIZE

    def test_kdf_params_recorded(self):
        blob = encrypt_secret("x", PASSPHRASE)
        assert (blob.time_cost, blob.memory_cost, blob.parallelism) == (1, 1024, 1)

    def test_plaintext_not_in_output(self):
        text = encrypt_secret(ABANDON_MNEMONIC, PASSPHRASE).to_json()
        assert "abandon" not in text
        assert PASSPHRASE not in text

    @pytest.mark.parametrize("passphrase", ["", None])
    def test_empty_passphrase_rejected(self, passphrase):
        with pytest.raises(ValueError):
            encrypt_secret("x", passphrase)


class TestDecryptSecret:

    def test_wrong_passphrase(self):
        blob = encrypt_secret(ABANDON_MNEMONIC, PASSPHRASE)
        with pytest.raises(DecryptionFailed):
            decrypt_secret(blob, "wrong passphrase")

    def test_failure_has_no_cause(self):
        blob = encrypt_secret("x", PASSPHRASE)
        with pytest.raises(DecryptionFailed) as exc_info:
            decrypt_secret(blob, "nope")
        assert exc_info.value.__cause__ is None
        assert exc_info.value.__suppress_context__

    @pytest.mark.parametrize("field", ["ciphertext", "iv", "tag", "salt"])
    def test_tampered_bytes(self, field):
        blob = encrypt_secret(ABANDON_MNEMONIC, PASSPHRASE)
        original = getattr(blob, field)
        flipped = bytes([original[0] ^ 0x01]) + original[1:]
        with pytest.raises(DecryptionFailed):
            decrypt_secret(dataclasses.replace(blob, **{field: flipped}), PASSPHRASE)

    @pytest.mark.parametrize("change", [
        {"time_cost": 0},
        {"time_cost": 1000},
        {"memory_cost": 10 ** 9},
        {"parallelism": 0},
        {"version": 99},
        {"iv": b"\x00" * 8},
    ])
    def test_out_of_range_params(self, change):
        blob = encrypt_secret("x", PASSPHRASE)
        with pytest.raises(DecryptionFailed):
            decrypt_secret(dataclasses.replace(blob, **change), PASSPHRASE)

    @pytest.mark.parametrize("blob", ["", "{not json", "[]", {}, {"kdf": {}}, 42])
    def test_malformed_input(self, blob):
        with pytest.raises(DecryptionFailed):
            decrypt_secret(blob, PASSPHRASE)

    def test_same_error_for_every_cause(self):
        blob = encrypt_secret("x", PASSPHRASE)
        messages = set()
        for bad in (lambda: decrypt_secret(blob, "wrong"),
                    lambda: decrypt_secret("garbage", PASSPHRASE),
                    lambda: decrypt_secret(dataclasses.replace(blob, version=2), PASSPHRASE)):
            with pytest.raises(DecryptionFailed) as exc_info:
                bad()
            messages.add(str(exc_info.value))
        assert len(messages) == 1


class TestEncryptedBlob:

    def test_json_round_trip_decrypts(self):
        blob = encrypt_secret(ABANDON_MNEMONIC, PASSPHRASE)
        restored = EncryptedBlob.from_json(blob.to_json())
        assert restored == blob
        assert decrypt_secret(blob.to_json(), PASSPHRASE) == ABANDON_MNEMONIC
        assert decrypt_secret(blob.to_dict(), PASSPHRASE) == ABANDON_MNEMONIC

    def test_document_layout(self):
        doc = json.loads(encrypt_secret("x", PASSPHRASE).to_json())
        assert doc["version"] == crypto.ENVELOPE_VERSION
        assert doc["cipher"] == "aes-256-gcm"
        assert doc["kdf"]["algorithm"] == "argon2id"
        assert set(doc["kdf"]) == {"algorithm", "salt", "time_cost", "memory_cost", "parallelism"}

    def test_production_defaults(self):
        assert crypto.ARGON2_HASH_LEN == 32
        assert crypto.SALT_SIZE == 16
        assert crypto.AES_IV_SIZE == 12
