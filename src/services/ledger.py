"""
Ledger API client.

Talks to the Gauss ledger REST API. Every response is wrapped as
{success, data, error}; anything other than success with data raises
LedgerError.

Endpoints:
    GET  /balance/{address}
    GET  /transactions/{address}?page=&limit=
    GET  /nonce/{address}
    GET  /gas-price
    POST /broadcast
"""

import asyncio
import logging
from typing import Any, Optional

import aiohttp

from config import Settings
from models.ledger import Balance, TransactionPage, BroadcastResult
from models.transaction import SignedTransaction

logger = logging.getLogger(__name__)


ENDPOINT_BALANCE = "/balance"
ENDPOINT_TRANSACTIONS = "/transactions"
ENDPOINT_BROADCAST = "/broadcast"
ENDPOINT_NONCE = "/nonce"
ENDPOINT_GAS_PRICE = "/gas-price"


class LedgerError(Exception):
    """Ledger API request failed or returned an error."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class LedgerClient:
    """
    Async client for the ledger API.

    Usage:
        async with LedgerClient("https://api.gauss.network") as ledger:
            nonce = await ledger.get_nonce(address)
    """

    def __init__(self, base_url: str, timeout: float = 30.0,
                 session: Optional[aiohttp.ClientSession] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None

    @classmethod
    def from_settings(cls, settings: Settings) -> "LedgerClient":
        return cls(settings.effective_api_url, timeout=settings.api_timeout)

    async def _get_session(self) -> aiohttp.ClientSession:
        """Gets or creates the HTTP session."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            self._session = aiohttp.ClientSession(
                timeout=timeout,
                headers={"Content-Type": "application/json"},
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "LedgerClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        """Send a request and unwrap {success, data, error}."""
        session = await self._get_session()
        url = f"{self.base_url}{path}"
        logger.debug(f"[API Request] {method} {path}")

        try:
            async with session.request(method, url, **kwargs) as resp:
                logger.debug(f"[API Response] {resp.status} {path}")
                try:
                    body = await resp.json(content_type=None)
                except ValueError:
                    body = None
                status = resp.status
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"[API Error] {method} {path}: {type(e).__name__}")
            raise LedgerError(f"Ledger request failed: {type(e).__name__}") from e

        if not isinstance(body, dict):
            raise LedgerError(f"Unexpected response from ledger (HTTP {status})", status)

        if body.get("success") and body.get("data") is not None:
            return body["data"]

        message = body.get("error") or body.get("message") or f"Request failed (HTTP {status})"
        logger.error(f"[API Error] {method} {path}: {message}")
        raise LedgerError(message, status)

    @staticmethod
    def _parse(model, data):
        try:
            return model.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise LedgerError(f"Malformed ledger response: {e}") from e

    async def get_balance(self, address: str) -> Balance:
        data = await self._request("GET", f"{ENDPOINT_BALANCE}/{address}")
        return self._parse(Balance, data)

    async def get_transaction_history(self, address: str, page: int = 1,
                                      limit: int = 50) -> TransactionPage:
        data = await self._request(
            "GET",
            f"{ENDPOINT_TRANSACTIONS}/{address}",
            params={"page": page, "limit": limit},
        )
        return self._parse(TransactionPage, data)

    async def get_nonce(self, address: str) -> int:
        """Next nonce to use for ``address``."""
        data = await self._request("GET", f"{ENDPOINT_NONCE}/{address}")
        nonce = data.get("nonce") if isinstance(data, dict) else None
        if isinstance(nonce, bool) or not isinstance(nonce, int) or nonce < 0:
            raise LedgerError(f"Ledger returned an invalid nonce: {nonce!r}")
        return nonce

    async def get_gas_price(self) -> str:
        data = await self._request("GET", ENDPOINT_GAS_PRICE)
        if not isinstance(data, dict) or "gasPrice" not in data:
            raise LedgerError("Malformed ledger response: missing gasPrice")
        return str(data["gasPrice"])

    async def broadcast_transaction(self, signed: SignedTransaction) -> BroadcastResult:
        """Submit a signed transaction. The returned hash is passed through as-is."""
        data = await self._request("POST", ENDPOINT_BROADCAST, json=signed.to_dict())
        return self._parse(BroadcastResult, data)
