"""Treasury: accumulated mint payments and their withdrawal.

The full attached payment of every committed mint is deposited, any
overpayment included. Withdrawal moves the whole balance to the payout
wallet fixed at construction. Withdrawing an empty treasury is a no-op.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from hypehaus.access.registry import AccessControlRegistry
from hypehaus.models.roles import Role
from hypehaus.state import LedgerState


class TreasuryWithdrawal:
    """Payment balance and the Withdrawer-gated payout.

    Usage:
        treasury = TreasuryWithdrawal(state)
        treasury.deposit(Decimal("0.16"))
        paid = treasury.withdraw(withdrawer)   # Decimal("0.16")
    """

    def __init__(
        self,
        state: LedgerState,
        access: Optional[AccessControlRegistry] = None,
    ) -> None:
        self._state = state
        self._access = access or AccessControlRegistry(state)

    @property
    def balance(self) -> Decimal:
        return self._state.treasury_balance

    @property
    def payout_wallet(self) -> str:
        return self._state.payout_wallet

    def paid_out(self, wallet: Optional[str] = None) -> Decimal:
        """Cumulative amount withdrawn to a wallet (default: the payout wallet)."""
        return self._state.paid_out.get(wallet or self._state.payout_wallet, Decimal("0"))

    def deposit(self, amount: Decimal) -> None:
        if amount < Decimal("0"):
            raise ValueError("Deposit amount cannot be negative")
        self._state.treasury_balance += amount

    def withdraw(self, caller: str) -> Decimal:
        """Pay the entire balance out. Returns the amount moved."""
        self._access.require_role(Role.WITHDRAWER, caller)
        amount = self._state.treasury_balance
        if amount == Decimal("0"):
            return amount
        payout = self._state.payout_wallet
        self._state.paid_out[payout] = self._state.paid_out.get(payout, Decimal("0")) + amount
        self._state.treasury_balance = Decimal("0")
        return amount
