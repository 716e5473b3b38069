"""
Transaction Signer - Canonical encoding, signing and verification.

Encoding (RLP):
    unsigned = [to(20 bytes), amount_units, fee_units, nonce, data]
    signed   = [to(20 bytes), amount_units, fee_units, nonce, data, v, r, s]

Amounts are converted to integer base units, so "1.5" and "1.50" encode the
same. The signature is an EIP-191 personal-message signature over the
unsigned encoding (secp256k1 ECDSA with RFC 6979 nonces, so re-signing the
same transaction gives the same signature). The content hash is keccak-256 of
the signed encoding.
"""

import logging
from typing import Union

import rlp
from eth_account import Account
from eth_account.messages import encode_defunct
from eth_utils import keccak, to_hex

from errors import SigningFailure
from models.transaction import UnsignedTransaction, SignedTransaction
from networks import NATIVE_DECIMALS, addresses_equal, to_base_units
from .crypto import KeyMaterial

logger = logging.getLogger(__name__)

SIGNATURE_LENGTH = 65


# ============================================
# Encoding
# ============================================

def _unsigned_fields(tx: UnsignedTransaction) -> list:
    return [
        bytes.fromhex(tx.to[2:]),
        to_base_units(tx.amount, NATIVE_DECIMALS, field="amount"),
        to_base_units(tx.fee, NATIVE_DECIMALS, field="fee"),
        tx.nonce,
        bytes.fromhex(tx.data[2:]),
    ]


def encode_transaction(tx: UnsignedTransaction) -> bytes:
    """Canonical byte encoding of the unsigned fields."""
    return rlp.encode(_unsigned_fields(tx))


def _signed_encoding(tx: UnsignedTransaction, v: int, r: int, s: int) -> bytes:
    return rlp.encode(_unsigned_fields(tx) + [v, r, s])


# ============================================
# Signing
# ============================================

def sign_transaction(tx: UnsignedTransaction, key: KeyMaterial) -> SignedTransaction:
    """
    Sign a transaction with the given key.

    The key is only read here; wiping it is the caller's job.

    Raises:
        SigningFailure: If the primitive fails or its output does not verify
    """
    if key.is_wiped:
        raise SigningFailure("Key material has been wiped")

    message = encode_transaction(tx)
    try:
        signed = Account.sign_message(encode_defunct(primitive=message), private_key=key.private_key)
    except Exception as e:
        # Never include the exception text: some backends echo their inputs
        logger.error(f"Signature primitive failed ({type(e).__name__})")
        raise SigningFailure("Failed to sign transaction") from None

    signature = to_hex(bytes(signed.signature))
    if not verify_signature(message, signature, key.address):
        raise SigningFailure("Signature does not match the signing key")

    raw = _signed_encoding(tx, signed.v, signed.r, signed.s)
    return SignedTransaction(
        to=tx.to,
        amount=tx.amount,
        fee=tx.fee,
        nonce=tx.nonce,
        data=tx.data,
        signature=signature,
        hash=to_hex(keccak(raw)),
        sender=key.address,
        raw=to_hex(raw),
    )


# ============================================
# Verification
# ============================================

def recover_signer(message: Union[bytes, str], signature: Union[str, bytes]) -> str:
    """Recover the address that produced an EIP-191 signature over ``message``."""
    if isinstance(message, str):
        message = message.encode('utf-8')
    if isinstance(signature, str):
        sig_hex = signature[2:] if signature.startswith(("0x", "0X")) else signature
        signature = bytes.fromhex(sig_hex)
    if len(signature) != SIGNATURE_LENGTH:
        raise ValueError("Signature must be 65 bytes")
    return Account.recover_message(encode_defunct(primitive=message), signature=signature)


def verify_signature(message: Union[bytes, str], signature: Union[str, bytes], address: str) -> bool:
    """
    Check that ``signature`` over ``message`` was made by ``address``.

    Address comparison is case-insensitive. Malformed input returns False.
    """
    try:
        recovered = recover_signer(message, signature)
        return addresses_equal(recovered, address)
    except Exception:
        return False


def verify_transaction(signed: SignedTransaction) -> bool:
    """Check signature, content hash and raw encoding of a signed transaction."""
    try:
        unsigned = signed.unsigned
        if not verify_signature(encode_transaction(unsigned), signed.signature, signed.sender):
            return False
        raw = bytes.fromhex(signed.raw[2:])
        decoded = rlp.decode(raw)
        if rlp.encode(decoded[:5]) != encode_transaction(unsigned):
            return False
        v, r, s = (int.from_bytes(item, "big") for item in decoded[5:8])
        sig = bytes.fromhex(signed.signature[2:])
        if (r, s, v) != (int.from_bytes(sig[:32], "big"), int.from_bytes(sig[32:64], "big"), sig[64]):
            return False
        return to_hex(keccak(raw)) == signed.hash.lower()
    except Exception:
        return False
