"""Sale state machine: active phase and per-tier terms.

Sale lifecycle:
    CLOSED ⇄ COMMUNITY ⇄ PUBLIC ⇄ CLOSED

Every phase is reachable from every other; there is no terminal state.
Re-asserting the current phase is accepted and changes nothing.

Every setter is Operator-gated (Admin passes) and takes effect at once.
Changing a tier root mid-sale leaves issued tokens alone and only
affects later proof checks.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from hypehaus.access.registry import AccessControlRegistry
from hypehaus.crypto.merkle import parse_hash
from hypehaus.models.roles import Role
from hypehaus.models.sale import (
    ZERO_ROOT,
    PublicSaleConfig,
    SalePhase,
    Tier,
    TierConfig,
)
from hypehaus.state import LedgerState


# Valid transitions: {from_phase: {allowed_to_phases}}
_TRANSITIONS: dict[SalePhase, set[SalePhase]] = {
    SalePhase.CLOSED: {SalePhase.COMMUNITY, SalePhase.PUBLIC},
    SalePhase.COMMUNITY: {SalePhase.CLOSED, SalePhase.PUBLIC},
    SalePhase.PUBLIC: {SalePhase.CLOSED, SalePhase.COMMUNITY},
}


class SaleStateMachine:
    """Validates and applies sale configuration changes.

    Usage:
        sale = SaleStateMachine(state, access)
        sale.set_tier_root(operator, Tier.ALPHA, root)
        sale.set_active_sale(operator, SalePhase.COMMUNITY)
    """

    def __init__(
        self,
        state: LedgerState,
        access: Optional[AccessControlRegistry] = None,
    ) -> None:
        self._state = state
        self._access = access or AccessControlRegistry(state)

    @property
    def active_sale(self) -> SalePhase:
        return self._state.active_sale

    def tier_config(self, tier: Tier) -> TierConfig:
        return self._state.tiers[tier]

    @property
    def public_config(self) -> PublicSaleConfig:
        return self._state.public

    @staticmethod
    def validate_transition(current: SalePhase, target: SalePhase) -> list[str]:
        """Check if a transition is valid. Returns errors (empty = OK)."""
        if target == current or target in _TRANSITIONS.get(current, set()):
            return []
        return [f"Invalid sale transition: {current.value} → {target.value}"]

    @staticmethod
    def valid_transitions(phase: SalePhase) -> set[SalePhase]:
        return set(_TRANSITIONS.get(phase, set()))

    def set_active_sale(self, caller: str, phase: SalePhase) -> SalePhase:
        """Switch the active phase. Returns the previous phase."""
        self._access.require_role(Role.OPERATOR, caller)
        phase = SalePhase(phase)
        errors = self.validate_transition(self._state.active_sale, phase)
        if errors:
            raise ValueError("; ".join(errors))
        previous = self._state.active_sale
        self._state.active_sale = phase
        return previous

    def set_tier_root(self, caller: str, tier: Tier, root: str) -> str:
        """Commit a new allowlist root for a tier. Returns the old root.

        The zero root closes the tier.
        """
        self._access.require_role(Role.OPERATOR, caller)
        parsed = parse_hash(root)
        if parsed is None:
            raise ValueError(f"Merkle root must be a 32-byte hex hash: {root!r}")
        config = self._state.tiers[tier]
        previous = config.root
        config.root = "0x" + parsed.hex()
        return previous

    def close_tier(self, caller: str, tier: Tier) -> str:
        return self.set_tier_root(caller, tier, ZERO_ROOT)

    def set_tier_price(self, caller: str, tier: Tier, price: Decimal) -> None:
        self._access.require_role(Role.OPERATOR, caller)
        self._state.tiers[tier].price = _validate_price(price)

    def set_tier_max_per_wallet(self, caller: str, tier: Tier, max_per_wallet: int) -> None:
        self._access.require_role(Role.OPERATOR, caller)
        self._state.tiers[tier].max_per_wallet = _validate_limit(max_per_wallet)

    def set_public_price(self, caller: str, price: Decimal) -> None:
        self._access.require_role(Role.OPERATOR, caller)
        self._state.public.price = _validate_price(price)

    def set_public_limits(self, caller: str, max_per_tx: int, max_per_wallet: int) -> None:
        self._access.require_role(Role.OPERATOR, caller)
        max_per_tx = _validate_limit(max_per_tx)
        max_per_wallet = _validate_limit(max_per_wallet)
        if max_per_tx > max_per_wallet:
            raise ValueError(
                f"max_per_tx ({max_per_tx}) cannot exceed max_per_wallet ({max_per_wallet})"
            )
        self._state.public.max_per_tx = max_per_tx
        self._state.public.max_per_wallet = max_per_wallet


def _validate_price(price: Decimal) -> Decimal:
    if not isinstance(price, Decimal):
        raise TypeError(f"Price must be a Decimal, got {type(price).__name__}")
    if not price.is_finite() or price < Decimal("0"):
        raise ValueError(f"Price must be a non-negative amount, got {price}")
    return price


def _validate_limit(limit: int) -> int:
    if isinstance(limit, bool) or not isinstance(limit, int):
        raise TypeError(f"Limit must be an integer, got {type(limit).__name__}")
    if limit < 1:
        raise ValueError(f"Limit must be at least 1, got {limit}")
    return limit
