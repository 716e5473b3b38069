"""
Ledger response models.

Mirrors the JSON the ledger API returns inside {success, data, error}.
"""

from dataclasses import dataclass, asdict, field
from datetime import datetime, timezone
from typing import Optional


# Valid status values
STATUS_PENDING = "pending"
STATUS_CONFIRMED = "confirmed"
STATUS_FAILED = "failed"


@dataclass
class Balance:
    """Account balance as reported by the ledger."""
    address: str
    balance: str        # Decimal string
    currency: str

    @classmethod
    def from_dict(cls, data: dict) -> "Balance":
        return cls(
            address=data["address"],
            balance=str(data["balance"]),
            currency=data.get("currency", ""),
        )


@dataclass
class TransactionRecord:
    """A historical transaction."""
    id: str
    sender: str
    to: str
    amount: str
    fee: str
    timestamp: int      # Milliseconds since epoch
    status: str         # pending | confirmed | failed
    hash: Optional[str] = None

    VALID_STATUSES = (STATUS_PENDING, STATUS_CONFIRMED, STATUS_FAILED)

    @classmethod
    def from_dict(cls, data: dict) -> "TransactionRecord":
        """Create from API JSON with input validation."""
        status = data.get("status", "")
        if status not in cls.VALID_STATUSES:
            raise ValueError(f"Invalid status: {status}. Must be one of {cls.VALID_STATUSES}")

        return cls(
            id=str(data["id"]),
            sender=data["from"],
            to=data["to"],
            amount=str(data["amount"]),
            fee=str(data["fee"]),
            timestamp=int(data["timestamp"]),
            status=status,
            hash=data.get("hash"),
        )

    def to_dict(self) -> dict:
        d = asdict(self)
        d["from"] = d.pop("sender")
        return d

    def is_outgoing(self, address: str) -> bool:
        return self.sender.lower() == address.lower()

    @property
    def is_pending(self) -> bool:
        return self.status == STATUS_PENDING

    def format_datetime(self) -> str:
        """Format timestamp as YYYY-MM-DD HH:MM:SS (UTC)."""
        try:
            dt = datetime.fromtimestamp(self.timestamp / 1000, tz=timezone.utc)
            return dt.strftime("%Y-%m-%d %H:%M:%S")
        except (ValueError, OverflowError, OSError):
            return str(self.timestamp)


@dataclass
class TransactionPage:
    """One page of transaction history."""
    transactions: list[TransactionRecord] = field(default_factory=list)
    total: int = 0
    page: int = 1

    @classmethod
    def from_dict(cls, data: dict) -> "TransactionPage":
        return cls(
            transactions=[TransactionRecord.from_dict(t) for t in data.get("transactions", [])],
            total=int(data.get("total", 0)),
            page=int(data.get("page", 1)),
        )


@dataclass
class BroadcastResult:
    """Ledger reply to a broadcast."""
    tx_hash: str
    success: bool
    message: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "BroadcastResult":
        return cls(
            tx_hash=data["txHash"],
            success=bool(data.get("success", True)),
            message=data.get("message"),
        )
