"""Wallet identifiers.

Hex addresses are case-insensitive and stored lowercased. Any other
identifier is kept verbatim after trimming whitespace.
"""

from __future__ import annotations

ADDRESS_SIZE = 20


def normalize_wallet(wallet: str) -> str:
    """Return the canonical form of a wallet identifier.

    Raises ValueError on a blank identifier.
    """
    if not isinstance(wallet, str) or not wallet.strip():
        raise ValueError("Wallet identifier must be a non-empty string")
    cleaned = wallet.strip()
    if cleaned[:2].lower() == "0x":
        return cleaned.lower()
    return cleaned


def address_bytes(wallet: str) -> bytes:
    """Raw bytes of a 20-byte hex address, the preimage of an allowlist leaf.

    Raises ValueError for anything else. A longer preimage could be two
    concatenated tree nodes and would verify as an inner node.
    """
    canonical = normalize_wallet(wallet)
    body = canonical[2:] if canonical.startswith("0x") else ""
    if len(body) != ADDRESS_SIZE * 2:
        raise ValueError(f"Not a {ADDRESS_SIZE}-byte hex address: {wallet!r}")
    try:
        return bytes.fromhex(body)
    except ValueError:
        raise ValueError(f"Not a {ADDRESS_SIZE}-byte hex address: {wallet!r}") from None
