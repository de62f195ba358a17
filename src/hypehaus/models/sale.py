"""Sale models: phases, tiers, and the per-tier commercial terms.

All monetary values use Decimal (denominated in ether). No floats in
pricing.

A community claim is one-shot, so a tier's per-wallet maximum is also
its per-transaction maximum. The public sale carries both limits
separately because a wallet may mint several times within its budget.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from decimal import Decimal


ZERO_ROOT = "0x" + "00" * 32


class SalePhase(str, enum.Enum):
    """The currently active sale mode. Exactly one is active at a time."""
    CLOSED = "closed"
    COMMUNITY = "community"
    PUBLIC = "public"

    @classmethod
    def parse(cls, value: str) -> SalePhase:
        """Parse a phase name, ignoring case and surrounding whitespace."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(f'Invalid sale: "{value}"') from None


class Tier(str, enum.Enum):
    """Community allowlist classes, each proven against its own root."""
    ALPHA = "alpha"
    HYPELISTER = "hypelister"
    HYPEMEMBER = "hypemember"

    @classmethod
    def parse(cls, value: str) -> Tier:
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(f'Invalid tier: "{value}"') from None


@dataclass
class TierConfig:
    """Commercial terms and allowlist commitment for one community tier."""
    root: str = ZERO_ROOT
    price: Decimal = Decimal("0")
    max_per_wallet: int = 1

    @property
    def is_open(self) -> bool:
        """False while the root is unset, since no proof can verify."""
        return self.root != ZERO_ROOT


@dataclass
class PublicSaleConfig:
    """Terms for the public sale."""
    price: Decimal = Decimal("0")
    max_per_tx: int = 1
    max_per_wallet: int = 1


@dataclass
class MetadataConfig:
    """Base URI and reveal switch. Token URIs are derived from this pair."""
    base_uri: str = ""
    is_revealed: bool = False
