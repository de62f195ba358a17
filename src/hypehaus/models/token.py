"""Token models: transfer notices and mint receipts."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from hypehaus.models.sale import SalePhase, Tier


@dataclass(frozen=True)
class TransferNotice:
    """Ownership change of a single token.

    Issuance is a transfer from nobody: from_wallet is None.
    """
    from_wallet: Optional[str]
    to_wallet: str
    token_id: int

    @property
    def is_issuance(self) -> bool:
        return self.from_wallet is None


@dataclass(frozen=True)
class MintReceipt:
    """Result of a committed issuance request."""
    wallet: str
    token_ids: tuple[int, ...]
    amount_paid: Decimal
    phase: Optional[SalePhase] = None
    tier: Optional[Tier] = None
    notices: tuple[TransferNotice, ...] = field(default_factory=tuple)

    @property
    def amount(self) -> int:
        return len(self.token_ids)
