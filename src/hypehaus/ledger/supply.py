"""Supply ledger: sequential token ids under a hard supply cap.

Token ids start at 0 and are handed out consecutively. total_minted
only ever grows, never exceeds max_supply, and owner records exist for
exactly the ids in [0, total_minted). There is no burn.
"""

from __future__ import annotations

from hypehaus.errors import NotOwner, SupplyExhausted, UnknownToken
from hypehaus.models.wallet import normalize_wallet
from hypehaus.state import LedgerState


class SupplyLedger:
    """Allocation and ownership records.

    Usage:
        supply = SupplyLedger(state)
        ids = supply.allocate("0xabc...", 2)   # [0, 1]
        supply.transfer("0xabc...", "0xdef...", 0)
    """

    def __init__(self, state: LedgerState) -> None:
        self._state = state

    @property
    def max_supply(self) -> int:
        return self._state.max_supply

    @property
    def total_minted(self) -> int:
        return self._state.total_minted

    @property
    def remaining(self) -> int:
        return self._state.max_supply - self._state.total_minted

    def has_capacity(self, amount: int) -> bool:
        return self._state.total_minted + amount <= self._state.max_supply

    def allocate(self, wallet: str, amount: int) -> list[int]:
        """Assign amount consecutive ids to wallet.

        Raises SupplyExhausted if the cap would be exceeded.
        """
        if amount < 1:
            raise ValueError("Allocation amount must be at least 1")
        wallet = normalize_wallet(wallet)
        if not self.has_capacity(amount):
            raise SupplyExhausted(
                f"Cannot allocate {amount}: {self.remaining} of "
                f"{self._state.max_supply} remaining"
            )
        start = self._state.total_minted
        token_ids = list(range(start, start + amount))
        for token_id in token_ids:
            self._state.owners[token_id] = wallet
        self._state.total_minted = start + amount
        return token_ids

    def owner_of(self, token_id: int) -> str:
        if not self.exists(token_id):
            raise UnknownToken(f"Token {token_id} has not been minted")
        return self._state.owners[token_id]

    def exists(self, token_id: int) -> bool:
        return 0 <= token_id < self._state.total_minted

    def transfer(self, from_wallet: str, to_wallet: str, token_id: int) -> None:
        """Reassign a token. from_wallet must be its current owner."""
        owner = self.owner_of(token_id)
        from_wallet = normalize_wallet(from_wallet)
        if owner != from_wallet:
            raise NotOwner(f"{from_wallet} does not own token {token_id}")
        self._state.owners[token_id] = normalize_wallet(to_wallet)

    def balance_of(self, wallet: str) -> int:
        wallet = normalize_wallet(wallet)
        return sum(1 for owner in self._state.owners.values() if owner == wallet)

    def tokens_of_owner(self, wallet: str) -> list[int]:
        wallet = normalize_wallet(wallet)
        return sorted(t for t, owner in self._state.owners.items() if owner == wallet)
