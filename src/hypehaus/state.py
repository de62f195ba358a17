"""Ledger state: the single owned object behind every component.

Components never keep state of their own. They are constructed around
a LedgerState and read or mutate it by reference, so a test can take a
snapshot before a rejected request and assert the state is unchanged
afterwards.

Serialisation is JSON-safe: Decimals become strings, sets become sorted
lists, enums become their values.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Optional, Set

from hypehaus.models.roles import Role
from hypehaus.models.sale import (
    MetadataConfig,
    PublicSaleConfig,
    SalePhase,
    Tier,
    TierConfig,
)
from hypehaus.models.wallet import normalize_wallet


def _default_tiers() -> Dict[Tier, TierConfig]:
    return {tier: TierConfig() for tier in Tier}


def _default_roles() -> Dict[Role, Set[str]]:
    return {role: set() for role in Role}


@dataclass
class LedgerState:
    """Every mutable field of the issuance ledger."""
    max_supply: int
    payout_wallet: str
    owner: str
    total_minted: int = 0
    owners: Dict[int, str] = field(default_factory=dict)
    community_claimed: Set[str] = field(default_factory=set)
    public_counts: Dict[str, int] = field(default_factory=dict)
    roles: Dict[Role, Set[str]] = field(default_factory=_default_roles)
    active_sale: SalePhase = SalePhase.CLOSED
    tiers: Dict[Tier, TierConfig] = field(default_factory=_default_tiers)
    public: PublicSaleConfig = field(default_factory=PublicSaleConfig)
    metadata: MetadataConfig = field(default_factory=MetadataConfig)
    treasury_balance: Decimal = Decimal("0")
    paid_out: Dict[str, Decimal] = field(default_factory=dict)

    @classmethod
    def create(
        cls,
        max_supply: int,
        deployer: str,
        payout_wallet: str,
        base_uri: str = "",
        tiers: Optional[Dict[Tier, TierConfig]] = None,
        public: Optional[PublicSaleConfig] = None,
    ) -> LedgerState:
        """Fresh ledger: deployer holds Admin and is the designated owner."""
        if max_supply <= 0:
            raise ValueError("max_supply must be positive")
        deployer = normalize_wallet(deployer)
        state = cls(
            max_supply=max_supply,
            payout_wallet=normalize_wallet(payout_wallet),
            owner=deployer,
            metadata=MetadataConfig(base_uri=base_uri, is_revealed=False),
        )
        if tiers:
            for tier, config in tiers.items():
                state.tiers[tier] = copy.deepcopy(config)
        if public is not None:
            state.public = copy.deepcopy(public)
        state.roles[Role.ADMIN].add(deployer)
        return state

    def snapshot(self) -> dict[str, Any]:
        """Deep, comparable copy of the state."""
        return self.to_dict()

    def restore(self, snapshot: dict[str, Any]) -> None:
        """Roll back in place to a snapshot.

        Components hold a reference to this object, so the fields are
        replaced rather than the object.
        """
        restored = LedgerState.from_dict(snapshot)
        self.__dict__.update(restored.__dict__)

    def to_dict(self) -> dict[str, Any]:
        return {
            "max_supply": self.max_supply,
            "payout_wallet": self.payout_wallet,
            "owner": self.owner,
            "total_minted": self.total_minted,
            "owners": {str(k): v for k, v in sorted(self.owners.items())},
            "community_claimed": sorted(self.community_claimed),
            "public_counts": dict(sorted(self.public_counts.items())),
            "roles": {r.value: sorted(m) for r, m in self.roles.items()},
            "active_sale": self.active_sale.value,
            "tiers": {
                t.value: {
                    "root": c.root,
                    "price": str(c.price),
                    "max_per_wallet": c.max_per_wallet,
                }
                for t, c in self.tiers.items()
            },
            "public": {
                "price": str(self.public.price),
                "max_per_tx": self.public.max_per_tx,
                "max_per_wallet": self.public.max_per_wallet,
            },
            "metadata": {
                "base_uri": self.metadata.base_uri,
                "is_revealed": self.metadata.is_revealed,
            },
            "treasury_balance": str(self.treasury_balance),
            "paid_out": {k: str(v) for k, v in sorted(self.paid_out.items())},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LedgerState:
        state = cls(
            max_supply=int(data["max_supply"]),
            payout_wallet=data["payout_wallet"],
            owner=data["owner"],
            total_minted=int(data["total_minted"]),
            owners={int(k): v for k, v in data["owners"].items()},
            community_claimed=set(data["community_claimed"]),
            public_counts={k: int(v) for k, v in data["public_counts"].items()},
            active_sale=SalePhase(data["active_sale"]),
            public=PublicSaleConfig(
                price=Decimal(data["public"]["price"]),
                max_per_tx=int(data["public"]["max_per_tx"]),
                max_per_wallet=int(data["public"]["max_per_wallet"]),
            ),
            metadata=MetadataConfig(
                base_uri=data["metadata"]["base_uri"],
                is_revealed=bool(data["metadata"]["is_revealed"]),
            ),
            treasury_balance=Decimal(data["treasury_balance"]),
            paid_out={k: Decimal(v) for k, v in data["paid_out"].items()},
        )
        for role_value, members in data["roles"].items():
            state.roles[Role(role_value)] = set(members)
        for tier_value, tier_data in data["tiers"].items():
            state.tiers[Tier(tier_value)] = TierConfig(
                root=tier_data["root"],
                price=Decimal(tier_data["price"]),
                max_per_wallet=int(tier_data["max_per_wallet"]),
            )
        if len(state.owners) != state.total_minted:
            raise ValueError(
                f"Corrupt state: {len(state.owners)} owners recorded "
                f"for {state.total_minted} minted tokens"
            )
        return state
