"""Pure types, constants, and formatting helpers (stdlib only)."""

from __future__ import annotations

import re
from decimal import Decimal
from typing import Final

# native currencies on every network we support use 18 decimals
WEI_PER_ETHER: Final = Decimal(10) ** 18

ADDRESS_RE: Final = re.compile(r"^0x[0-9a-fA-F]{40}$")


def formatEther(wei: int | str) -> str:
    """Convert an integer wei amount into an ether-denominated decimal string.

    Always keeps at least one fractional digit so "0" renders as "0.0"
    and whole amounts look like "2.0" instead of "2".

    Accepts hex strings ("0x...") directly since that is what JSON-RPC returns.
    """
    if isinstance(wei, str):
        wei = int(wei, 16) if wei.lower().startswith("0x") else int(wei)

    amount = Decimal(wei) / WEI_PER_ETHER
    text = format(amount, "f")

    if "." not in text:
        return f"{text}.0"

    whole, frac = text.split(".")
    frac = frac.rstrip("0") or "0"
    return f"{whole}.{frac}"


def formatAddress(address: str | None, length: int = 4) -> str:
    """Shorten an address for display: 0x1234...5678"""
    if not address:
        return ""

    if len(address) <= length * 2 + 2:
        return address

    return f"{address[: length + 2]}...{address[-length:]}"


def formatBalance(balance: str | None, decimals: int = 4) -> str:
    if not balance:
        return "0"

    return f"{float(balance):.{decimals}f}"


def normalizeAddress(address: str) -> str:
    """Return the lowercase form of a hex account address.

    Raises ValueError if 'address' isn't a 0x-prefixed 20-byte hex string.
    """
    if not isinstance(address, str) or not ADDRESS_RE.match(address):
        raise ValueError(f"Not a valid account address: {address!r}")

    return address.lower()


def toHexChainId(chainId: int) -> str:
    return f"0x{chainId:x}"


def fromHexChainId(chainId: str | int) -> int:
    # providers are inconsistent: most send "0x61" but some send the decimal int
    if isinstance(chainId, int):
        return chainId

    if chainId.lower().startswith("0x"):
        return int(chainId, 16)

    return int(chainId)
