"""
Models package - Data models for Gauss Wallet.

Contains:
- UnsignedTransaction, SignedTransaction: Transfer requests and their signed form
- Balance, TransactionRecord, TransactionPage, BroadcastResult: Ledger API replies
"""

from .transaction import UnsignedTransaction, SignedTransaction
from .ledger import (
    Balance,
    TransactionRecord,
    TransactionPage,
    BroadcastResult,
    STATUS_PENDING,
    STATUS_CONFIRMED,
    STATUS_FAILED,
)

__all__ = [
    "UnsignedTransaction",
    "SignedTransaction",
    "Balance",
    "TransactionRecord",
    "TransactionPage",
    "BroadcastResult",
    "STATUS_PENDING",
    "STATUS_CONFIRMED",
    "STATUS_FAILED",
]
