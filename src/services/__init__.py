"""
Services package - Backend services for Gauss Wallet.

Contains:
- LedgerClient: Async client for the ledger REST API
- WalletService: Balance/history refresh and the send flow
"""

from .ledger import LedgerClient, LedgerError
from .wallet_service import WalletService, WalletInfo

__all__ = [
    "LedgerClient",
    "LedgerError",
    "WalletService",
    "WalletInfo",
]
