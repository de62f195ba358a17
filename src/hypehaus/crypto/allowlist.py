"""Allowlist verifier: proves a wallet belongs to a community tier.

The ledger never issues proofs. An out-of-band service looks up a
wallet's tier and hands the minter a sibling path; this module only
checks that path against the root an Operator committed for the tier.
"""

from __future__ import annotations

from typing import Sequence

from hypehaus.crypto.merkle import verify_proof, wallet_leaf
from hypehaus.models.sale import Tier
from hypehaus.state import LedgerState


class AllowlistVerifier:
    """Stateless Merkle membership checks, shared by all three tiers."""

    @staticmethod
    def verify(tier: Tier, root: str, proof: Sequence[str], wallet: str) -> bool:
        """True if proof reconstructs root from the wallet's leaf.

        tier only labels the check; the root decides the outcome. An
        unset root closes the tier.
        """
        try:
            leaf = wallet_leaf(wallet)
        except ValueError:
            return False
        return verify_proof(leaf, proof, root)

    @classmethod
    def verify_tier(
        cls,
        state: LedgerState,
        tier: Tier,
        proof: Sequence[str],
        wallet: str,
    ) -> bool:
        """Check against the root currently stored for tier."""
        return cls.verify(tier, state.tiers[tier].root, proof, wallet)
