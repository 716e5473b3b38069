"""
Gauss Networks - Network configurations, address and amount helpers.

Amounts travel as decimal strings and are converted to integer base units
with exact string arithmetic. They never pass through float.
"""

import re
from dataclasses import dataclass
from typing import Optional

from web3 import Web3

from errors import InvalidAddress, InvalidTransaction

# ============================================
# Network Configurations
# ============================================

@dataclass
class NetworkConfig:
    """Configuration for a Gauss ledger network."""
    name: str
    display_name: str
    api_url: str
    explorer_url: str
    is_testnet: bool
    native_symbol: str
    native_decimals: int = 18
    display_decimals: int = 8   # Decimal places shown for balances
    default_fee: str = "0.0001"


NETWORKS = {
    "gauss": NetworkConfig(
        name="gauss",
        display_name="Gauss",
        api_url="https://api.gauss.network",
        explorer_url="https://explorer.gauss.network",
        is_testnet=False,
        native_symbol="GAUSS",
    ),
    "gauss-testnet": NetworkConfig(
        name="gauss-testnet",
        display_name="Gauss Testnet",
        api_url="https://testnet-api.gauss.network",
        explorer_url="https://testnet-explorer.gauss.network",
        is_testnet=True,
        native_symbol="tGAUSS",
    ),
}

DEFAULT_NETWORK = "gauss"

# Decimals used by the transaction codec; part of the signed encoding
NATIVE_DECIMALS = 18


def get_network(name: str) -> Optional[NetworkConfig]:
    """Get network config by name."""
    return NETWORKS.get(name)


# ============================================
# Addresses
# ============================================

ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")


def is_valid_address(address) -> bool:
    """Check for 0x + 40 hex digits. Case is not significant."""
    return isinstance(address, str) and bool(ADDRESS_PATTERN.match(address))


def normalize_address(address: str) -> str:
    """
    Return the EIP-55 checksummed form of an address.

    Raises:
        InvalidAddress: If the address does not have the expected shape
    """
    if not is_valid_address(address):
        raise InvalidAddress(address)
    return Web3.to_checksum_address(address.lower())


def addresses_equal(a: str, b: str) -> bool:
    """Case-insensitive address comparison."""
    return a.lower() == b.lower()


def format_address(address: str, chars: int = 4) -> str:
    """Format address as 0x1234...5678"""
    if len(address) <= chars * 2 + 2:
        return address
    return f"{address[:chars+2]}...{address[-chars:]}"


# ============================================
# Amounts
# ============================================

AMOUNT_PATTERN = re.compile(r"^[0-9]+(\.[0-9]+)?$")


def to_base_units(amount: str, decimals: int = NATIVE_DECIMALS, field: str = "amount") -> int:
    """
    Convert a decimal string to integer base units exactly.

    "1.5" with 18 decimals -> 1500000000000000000. Ints are accepted as whole
    units; floats are rejected outright.

    Raises:
        InvalidTransaction: On negative, malformed, or over-precise values
    """
    if isinstance(amount, bool) or not isinstance(amount, (str, int)):
        raise InvalidTransaction(f"{field} must be a decimal string, got {type(amount).__name__}")
    if isinstance(amount, int):
        if amount < 0:
            raise InvalidTransaction(f"{field} must not be negative")
        return amount * 10 ** decimals

    text = amount.strip()
    if not AMOUNT_PATTERN.match(text):
        raise InvalidTransaction(f"{field} is not a valid decimal amount: {amount!r}")

    whole, _, frac = text.partition(".")
    frac = frac.rstrip("0")
    if len(frac) > decimals:
        raise InvalidTransaction(f"{field} has more than {decimals} decimal places")

    return int(whole) * 10 ** decimals + int(frac.ljust(decimals, "0") or "0")


def format_units(raw: int, decimals: int = NATIVE_DECIMALS, places: Optional[int] = None) -> str:
    """
    Render integer base units as a decimal string.

    Trailing zeros are dropped; ``places`` truncates (never rounds up).
    """
    whole, frac = divmod(raw, 10 ** decimals)
    frac_str = str(frac).rjust(decimals, "0") if decimals else ""
    if places is not None:
        frac_str = frac_str[:places]
    frac_str = frac_str.rstrip("0")
    return f"{whole}.{frac_str}" if frac_str else str(whole)


def format_amount(amount: str, network: NetworkConfig) -> str:
    """Format a decimal amount string for display, e.g. '1.5 GAUSS'."""
    raw = to_base_units(amount, network.native_decimals)
    shown = format_units(raw, network.native_decimals, network.display_decimals)
    return f"{shown} {network.native_symbol}"
