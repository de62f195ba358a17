"""Mint orchestrator: validates and commits issuance requests.

Three request shapes share one algorithm:

    community (tier, amount, proof, payment)
        1. phase is COMMUNITY              else CommunitySaleNotActive
        2. 1 <= amount <= tier max         else InvalidMintAmount
        3. proof reconstructs tier root    else VerificationFailure
        4. payment >= tier price * amount  else InsufficientFunds
        5. wallet has no community claim   else AlreadyClaimed
        6. supply has room for amount      else SupplyExhausted
        7. commit

    public (amount, payment)
        phase is PUBLIC, amount within max_per_tx, payment covers
        public price, cumulative count stays within max_per_wallet,
        supply has room, commit.

    unchecked (wallet, amount)
        Operator only. Skips phase, price, proof and claim checks;
        still bounded by supply. Used for reserved allocations.

The order of checks is fixed so that a request violating several
preconditions always reports the same error. Steps 1–6 are pure reads.
Step 7 records the claim, allocates ids, and deposits the payment;
nothing in it can fail once the checks have passed, so a rejected
request leaves the ledger exactly as it found it.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional, Sequence

from hypehaus.access.registry import AccessControlRegistry
from hypehaus.crypto.allowlist import AllowlistVerifier
from hypehaus.errors import (
    AlreadyClaimed,
    CommunitySaleNotActive,
    InsufficientFunds,
    InvalidMintAmount,
    PublicSaleNotActive,
    SupplyExhausted,
    VerificationFailure,
)
from hypehaus.ledger.claims import ClaimTracker
from hypehaus.ledger.supply import SupplyLedger
from hypehaus.models.roles import Role
from hypehaus.models.sale import SalePhase, Tier
from hypehaus.models.token import MintReceipt, TransferNotice
from hypehaus.models.wallet import normalize_wallet
from hypehaus.state import LedgerState
from hypehaus.treasury.withdrawal import TreasuryWithdrawal


class MintOrchestrator:
    """Top-level issuance use case.

    Usage:
        minter = MintOrchestrator(state)
        receipt = minter.mint_alpha(wallet, 2, proof, Decimal("0.10"))
        receipt = minter.mint_public(wallet, 1, Decimal("0.08"))
        receipt = minter.mint_unchecked(operator, team_wallet, 5)
    """

    def __init__(
        self,
        state: LedgerState,
        access: Optional[AccessControlRegistry] = None,
    ) -> None:
        self._state = state
        self._access = access or AccessControlRegistry(state)
        self._verifier = AllowlistVerifier()
        self._claims = ClaimTracker(state)
        self._supply = SupplyLedger(state)
        self._treasury = TreasuryWithdrawal(state, self._access)

    # ------------------------------------------------------------------
    # Community sale
    # ------------------------------------------------------------------

    def mint_community(
        self,
        caller: str,
        tier: Tier,
        amount: int,
        proof: Sequence[str],
        payment: Decimal,
    ) -> MintReceipt:
        caller = normalize_wallet(caller)
        tier = Tier(tier)
        config = self._state.tiers[tier]

        if self._state.active_sale != SalePhase.COMMUNITY:
            raise CommunitySaleNotActive()
        self._check_amount(amount, config.max_per_wallet)
        if not self._verifier.verify(tier, config.root, proof, caller):
            raise VerificationFailure(
                f"{caller} could not be proved to be {tier.value}"
            )
        self._check_payment(payment, config.price, amount)
        if self._claims.has_community_claim(caller):
            raise AlreadyClaimed(
                AlreadyClaimed.COMMUNITY_CLAIMED,
                f"{caller} already claimed in the community sale",
            )
        self._check_supply(amount)

        self._claims.record_community_claim(caller)
        return self._commit(caller, amount, payment, SalePhase.COMMUNITY, tier)

    def mint_alpha(self, caller: str, amount: int, proof: Sequence[str], payment: Decimal) -> MintReceipt:
        return self.mint_community(caller, Tier.ALPHA, amount, proof, payment)

    def mint_hypelister(self, caller: str, amount: int, proof: Sequence[str], payment: Decimal) -> MintReceipt:
        return self.mint_community(caller, Tier.HYPELISTER, amount, proof, payment)

    def mint_hypemember(self, caller: str, amount: int, proof: Sequence[str], payment: Decimal) -> MintReceipt:
        return self.mint_community(caller, Tier.HYPEMEMBER, amount, proof, payment)

    # ------------------------------------------------------------------
    # Public sale
    # ------------------------------------------------------------------

    def mint_public(self, caller: str, amount: int, payment: Decimal) -> MintReceipt:
        caller = normalize_wallet(caller)
        config = self._state.public

        if self._state.active_sale != SalePhase.PUBLIC:
            raise PublicSaleNotActive()
        self._check_amount(amount, config.max_per_tx)
        self._check_payment(payment, config.price, amount)
        if not self._claims.can_claim_public(caller, amount, config.max_per_wallet):
            raise AlreadyClaimed(
                AlreadyClaimed.PUBLIC_QUOTA_EXCEEDED,
                f"{caller} has minted {self._claims.public_count(caller)} "
                f"of {config.max_per_wallet} in the public sale",
            )
        self._check_supply(amount)

        self._claims.record_public_claim(caller, amount, config.max_per_wallet)
        return self._commit(caller, amount, payment, SalePhase.PUBLIC, None)

    # ------------------------------------------------------------------
    # Reserved allocations
    # ------------------------------------------------------------------

    def mint_unchecked(self, caller: str, wallet: str, amount: int) -> MintReceipt:
        self._access.require_role(Role.OPERATOR, caller)
        wallet = normalize_wallet(wallet)
        if isinstance(amount, bool) or not isinstance(amount, int) or amount < 1:
            raise InvalidMintAmount(f"Amount must be at least 1, got {amount}")
        self._check_supply(amount)
        return self._commit(wallet, amount, Decimal("0"), None, None)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _check_amount(amount: int, maximum: int) -> None:
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise InvalidMintAmount(f"Amount must be an integer, got {amount!r}")
        if not 1 <= amount <= maximum:
            raise InvalidMintAmount(f"Amount must be between 1 and {maximum}, got {amount}")

    @staticmethod
    def _check_payment(payment: Decimal, price: Decimal, amount: int) -> None:
        required = price * amount
        if payment < Decimal("0") or payment < required:
            raise InsufficientFunds(f"Payment {payment} below required {required}")

    def _check_supply(self, amount: int) -> None:
        if not self._supply.has_capacity(amount):
            raise SupplyExhausted(
                f"Cannot mint {amount}: {self._supply.remaining} of "
                f"{self._supply.max_supply} remaining"
            )

    def _commit(
        self,
        wallet: str,
        amount: int,
        payment: Decimal,
        phase: Optional[SalePhase],
        tier: Optional[Tier],
    ) -> MintReceipt:
        token_ids = self._supply.allocate(wallet, amount)
        if payment > Decimal("0"):
            self._treasury.deposit(payment)
        notices = tuple(
            TransferNotice(from_wallet=None, to_wallet=wallet, token_id=token_id)
            for token_id in token_ids
        )
        return MintReceipt(
            wallet=wallet,
            token_ids=tuple(token_ids),
            amount_paid=payment,
            phase=phase,
            tier=tier,
            notices=notices,
        )
