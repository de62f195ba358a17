"""Claim tracker: per-wallet bookkeeping that prevents double claiming.

Community sale: one claim per wallet, whichever tier it used. The flag
is shared by the Alpha, Hypelister and Hypemember entry points.

Public sale: a cumulative count per wallet, checked against the public
per-wallet maximum. Never reset at runtime.

Both record_* methods check and update in one step. The mint
orchestrator calls them only after every other precondition has passed,
so a claim is never recorded without its tokens.
"""

from __future__ import annotations

from hypehaus.errors import AlreadyClaimed
from hypehaus.models.wallet import normalize_wallet
from hypehaus.state import LedgerState


class ClaimTracker:

    def __init__(self, state: LedgerState) -> None:
        self._state = state

    def has_community_claim(self, wallet: str) -> bool:
        return normalize_wallet(wallet) in self._state.community_claimed

    def public_count(self, wallet: str) -> int:
        return self._state.public_counts.get(normalize_wallet(wallet), 0)

    def can_claim_public(self, wallet: str, amount: int, max_per_wallet: int) -> bool:
        return self.public_count(wallet) + amount <= max_per_wallet

    def record_community_claim(self, wallet: str) -> None:
        wallet = normalize_wallet(wallet)
        if wallet in self._state.community_claimed:
            raise AlreadyClaimed(
                AlreadyClaimed.COMMUNITY_CLAIMED,
                f"{wallet} already claimed in the community sale",
            )
        self._state.community_claimed.add(wallet)

    def record_public_claim(self, wallet: str, amount: int, max_per_wallet: int) -> int:
        """Add amount to the wallet's public count. Returns the new count."""
        wallet = normalize_wallet(wallet)
        current = self._state.public_counts.get(wallet, 0)
        if current + amount > max_per_wallet:
            raise AlreadyClaimed(
                AlreadyClaimed.PUBLIC_QUOTA_EXCEEDED,
                f"{wallet} has minted {current} of {max_per_wallet} in the public sale",
            )
        self._state.public_counts[wallet] = current + amount
        return current + amount
