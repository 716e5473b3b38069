"""
Transaction models.

UnsignedTransaction is what the user asks to send; SignedTransaction is what
gets broadcast. Both are immutable once constructed.

Amounts and fees are decimal strings ("1.5", "0.0001") and are never parsed
as float. The nonce is supplied by the ledger.
"""

import re
from dataclasses import dataclass, asdict
from typing import Optional

from errors import InvalidTransaction
from networks import normalize_address, to_base_units

HEX_DATA_PATTERN = re.compile(r"^0x([0-9a-fA-F]{2})*$")


def _check_decimal(value, field: str) -> str:
    """Validate a decimal amount string; returns it stripped."""
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise InvalidTransaction(f"{field} must be a decimal string, got {type(value).__name__}")
    to_base_units(value, field=field)
    return value.strip() if isinstance(value, str) else str(value)


@dataclass(frozen=True)
class UnsignedTransaction:
    """A transfer request before signing."""
    to: str                 # Recipient address (0x + 40 hex)
    amount: str             # Decimal string in native units
    fee: str                # Decimal string in native units
    nonce: int              # Per-address counter from the ledger
    data: str = "0x"        # Optional opaque payload (hex)

    def __post_init__(self):
        # Recipient is validated first so a bad address is reported as such
        object.__setattr__(self, "to", normalize_address(self.to))
        object.__setattr__(self, "amount", _check_decimal(self.amount, "amount"))
        object.__setattr__(self, "fee", _check_decimal(self.fee, "fee"))

        if isinstance(self.nonce, bool) or not isinstance(self.nonce, int) or self.nonce < 0:
            raise InvalidTransaction(f"nonce must be a non-negative integer, got {self.nonce!r}")

        data = self.data if self.data is not None else "0x"
        if not isinstance(data, str) or not HEX_DATA_PATTERN.match(data):
            raise InvalidTransaction("data must be a 0x-prefixed hex string")
        object.__setattr__(self, "data", data.lower())

    @classmethod
    def create(cls, to: str, amount: str, fee: str, nonce: int,
               data: Optional[str] = None) -> "UnsignedTransaction":
        """Create a transaction, treating a missing payload as empty."""
        return cls(to=to, amount=amount, fee=fee, nonce=nonce, data=data or "0x")

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "UnsignedTransaction":
        return cls.create(
            to=data["to"],
            amount=data["amount"],
            fee=data["fee"],
            nonce=data["nonce"],
            data=data.get("data"),
        )


@dataclass(frozen=True)
class SignedTransaction:
    """An UnsignedTransaction plus signature, content hash and sender."""
    to: str
    amount: str
    fee: str
    nonce: int
    data: str
    signature: str          # 0x + 65 bytes (r || s || v)
    hash: str               # 0x + keccak-256 of the signed encoding
    sender: str             # Checksummed signer address
    raw: str                # 0x + signed encoding

    @property
    def unsigned(self) -> UnsignedTransaction:
        """The unsigned fields this signature covers."""
        return UnsignedTransaction(
            to=self.to, amount=self.amount, fee=self.fee, nonce=self.nonce, data=self.data
        )

    def to_dict(self) -> dict:
        """Broadcast body. The sender goes out as 'from'."""
        return {
            "to": self.to,
            "amount": self.amount,
            "fee": self.fee,
            "nonce": self.nonce,
            "data": self.data,
            "signature": self.signature,
            "hash": self.hash,
            "from": self.sender,
            "raw": self.raw,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SignedTransaction":
        return cls(
            to=data["to"],
            amount=data["amount"],
            fee=data["fee"],
            nonce=data["nonce"],
            data=data.get("data") or "0x",
            signature=data["signature"],
            hash=data["hash"],
            sender=data["from"],
            raw=data["raw"],
        )
