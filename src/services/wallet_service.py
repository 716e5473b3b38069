"""
Wallet Service - Session state around the active wallet.

Holds what the UI displays (address, name, last-known balance and history)
and runs the send flow: fetch nonce, sign locally, broadcast.

Balance and history refreshes are best-effort: a failure is logged and the
last-known value is kept. Send failures always propagate.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from config import Settings
from errors import WalletNotFound
from models.ledger import BroadcastResult, TransactionRecord
from models.transaction import UnsignedTransaction, SignedTransaction
from networks import format_address, normalize_address
from wallet import WalletManager
from .ledger import LedgerClient, LedgerError

logger = logging.getLogger(__name__)


@dataclass
class WalletInfo:
    """Display state for the active wallet. Never holds secrets."""
    address: str
    name: Optional[str] = None
    balance: Optional[str] = None       # Last-known, decimal string
    currency: Optional[str] = None
    transactions: list[TransactionRecord] = field(default_factory=list)


class WalletService:
    """
    Ties the wallet manager to the ledger API.

    The manager and ledger client are passed in; nothing is global.
    """

    def __init__(self, manager: WalletManager, ledger: LedgerClient,
                 settings: Optional[Settings] = None):
        self.manager = manager
        self.ledger = ledger
        self.settings = settings or Settings()
        self._wallet: Optional[WalletInfo] = None

    @property
    def wallet(self) -> Optional[WalletInfo]:
        return self._wallet

    async def load(self) -> Optional[WalletInfo]:
        """Load the stored wallet (if any) and refresh its balance."""
        address = await self.manager.get_address()
        if not address:
            self._wallet = None
            return None
        self._wallet = WalletInfo(address=address, name=await self.manager.get_name())
        await self.refresh_balance()
        return self._wallet

    async def create_wallet(self, name: Optional[str] = None) -> WalletInfo:
        await self.manager.create(name)
        return await self.load()

    async def import_wallet(self, mnemonic: str, name: Optional[str] = None) -> WalletInfo:
        await self.manager.import_mnemonic(mnemonic, name)
        return await self.load()

    async def delete_wallet(self) -> None:
        await self.manager.destroy()
        self._wallet = None

    async def refresh_balance(self) -> Optional[str]:
        """
        Fetch the balance. On failure, log and keep the last-known value.

        Returns:
            The balance now shown (possibly stale), or None
        """
        if self._wallet is None:
            return None
        try:
            balance = await self.ledger.get_balance(self._wallet.address)
        except LedgerError as e:
            logger.warning(f"Failed to refresh balance: {e}")
            return self._wallet.balance
        self._wallet.balance = balance.balance
        self._wallet.currency = balance.currency
        return self._wallet.balance

    async def refresh_history(self, page: int = 1, limit: int = 50) -> list[TransactionRecord]:
        """Fetch transaction history. On failure, log and keep the last-known list."""
        if self._wallet is None:
            return []
        try:
            result = await self.ledger.get_transaction_history(self._wallet.address, page, limit)
        except LedgerError as e:
            logger.warning(f"Failed to refresh transaction history: {e}")
            return list(self._wallet.transactions)
        self._wallet.transactions = result.transactions
        return list(result.transactions)

    async def build_transaction(self, to: str, amount: str, fee: Optional[str] = None,
                                data: Optional[str] = None) -> UnsignedTransaction:
        """
        Validate the recipient and build an unsigned transaction with the ledger nonce.

        Raises:
            InvalidAddress: Before any network call
            LedgerError: If the nonce cannot be fetched
        """
        recipient = normalize_address(to)
        address = await self.manager.get_address()
        if not address:
            raise WalletNotFound()
        nonce = await self.ledger.get_nonce(address)
        return UnsignedTransaction.create(
            to=recipient,
            amount=amount,
            fee=fee or self.settings.effective_fee,
            nonce=nonce,
            data=data,
        )

    async def send(self, to: str, amount: str, fee: Optional[str] = None,
                   data: Optional[str] = None) -> tuple[SignedTransaction, BroadcastResult]:
        """Build, sign locally, and broadcast a transfer."""
        unsigned = await self.build_transaction(to, amount, fee, data)
        signed = await self.manager.sign(unsigned)
        result = await self.ledger.broadcast_transaction(signed)
        logger.info(f"Broadcast {result.tx_hash[:10]}... to {format_address(unsigned.to)}")
        await self.refresh_balance()
        return signed, result
