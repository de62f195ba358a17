"""HYPEHAUS service: unified facade for the issuance ledger.

This is the primary interface for programmatic access. It composes all
components over one LedgerState:
- Access control (roles, designated owner)
- Sale configuration (phase, tier roots, prices, limits)
- Issuance (community, public, unchecked mints)
- Ownership (transfers, balances)
- Metadata (token URIs, reveal)
- Treasury (withdrawal)
- Persistence (event log, state store)

Every write returns a ServiceResult. Ledger rejections come back as
failed results carrying the error code; anything else propagates.
Every committed write is recorded in the event log before the state
snapshot is saved. If the audit record cannot be written, the in-memory
state is rolled back and the write fails closed.

The service executes one request at a time. Callers that accept
requests concurrently must serialize them before they reach it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Optional, Sequence, Union

from hypehaus.access.registry import AccessControlRegistry
from hypehaus.errors import HypeHausError, NotOwner, describe_error
from hypehaus.ledger.claims import ClaimTracker
from hypehaus.ledger.supply import SupplyLedger
from hypehaus.metadata.resolver import MetadataResolver
from hypehaus.mint.orchestrator import MintOrchestrator
from hypehaus.models.roles import Role
from hypehaus.models.sale import PublicSaleConfig, SalePhase, Tier, TierConfig
from hypehaus.models.token import MintReceipt, TransferNotice
from hypehaus.models.wallet import normalize_wallet
from hypehaus.persistence.event_log import EventKind, EventLog, EventRecord
from hypehaus.persistence.state_store import StateStore
from hypehaus.policy.resolver import PolicyResolver
from hypehaus.sale.state_machine import SaleStateMachine
from hypehaus.state import LedgerState
from hypehaus.treasury.withdrawal import TreasuryWithdrawal

logger = logging.getLogger(__name__)

Amount = Union[Decimal, str, int]


@dataclass(frozen=True)
class ServiceResult:
    """Result of a service operation."""
    success: bool
    errors: list[str] = field(default_factory=list)
    data: dict[str, Any] = field(default_factory=dict)
    error_code: Optional[str] = None

    @property
    def message(self) -> str:
        """Minter-facing message for a failed result."""
        if self.success:
            return ""
        return describe_error(self.error_code)


class HypeHausService:
    """Issuance ledger facade.

    Usage:
        resolver = PolicyResolver.from_config_dir(config_dir)
        service = HypeHausService.create(resolver, deployer, team_wallet)

        service.set_tier_root(deployer, Tier.ALPHA, root)
        service.set_active_sale(deployer, SalePhase.COMMUNITY)
        result = service.mint_alpha(wallet, 2, proof, "0.10")
        result.data["token_ids"]   # [0, 1]

    Persistence (optional):
        service = HypeHausService.create(
            resolver, deployer, team_wallet,
            event_log=EventLog(data_dir / "events.jsonl"),
            state_store=StateStore(data_dir / "state.json"),
        )
        # later
        service = HypeHausService.load(state_store, event_log)
    """

    def __init__(
        self,
        state: LedgerState,
        event_log: Optional[EventLog] = None,
        state_store: Optional[StateStore] = None,
    ) -> None:
        self._state = state
        self._event_log = event_log
        self._state_store = state_store
        self._persistence_degraded = False

        self._access = AccessControlRegistry(state)
        self._sale = SaleStateMachine(state, self._access)
        self._supply = SupplyLedger(state)
        self._claims = ClaimTracker(state)
        self._metadata = MetadataResolver(state, self._access)
        self._treasury = TreasuryWithdrawal(state, self._access)
        self._minter = MintOrchestrator(state, self._access)

    @classmethod
    def create(
        cls,
        resolver: PolicyResolver,
        deployer: str,
        payout_wallet: str,
        event_log: Optional[EventLog] = None,
        state_store: Optional[StateStore] = None,
    ) -> HypeHausService:
        """Deploy a fresh ledger from sale parameters."""
        state = LedgerState.create(
            max_supply=resolver.max_supply(),
            deployer=deployer,
            payout_wallet=payout_wallet,
            base_uri=resolver.base_token_uri(),
            tiers=resolver.tier_configs(),
            public=resolver.public_config(),
        )
        service = cls(state, event_log=event_log, state_store=state_store)
        if state_store is not None:
            state_store.save(state)
        logger.info(
            "Deployed %s ledger: max_supply=%d deployer=%s payout=%s",
            resolver.collection_name(), state.max_supply, state.owner, state.payout_wallet,
        )
        return service

    @classmethod
    def load(
        cls,
        state_store: StateStore,
        event_log: Optional[EventLog] = None,
    ) -> HypeHausService:
        state = state_store.load()
        if state is None:
            raise FileNotFoundError("No ledger state found; deploy one first")
        return cls(state, event_log=event_log, state_store=state_store)

    @property
    def state(self) -> LedgerState:
        return self._state

    @property
    def event_log(self) -> Optional[EventLog]:
        return self._event_log

    # ------------------------------------------------------------------
    # Issuance
    # ------------------------------------------------------------------

    def mint_community(
        self,
        caller: str,
        tier: Tier,
        amount: int,
        proof: Sequence[str],
        payment: Amount,
    ) -> ServiceResult:
        return self._mint(
            caller,
            lambda: self._minter.mint_community(caller, tier, amount, proof, _as_decimal(payment)),
        )

    def mint_alpha(self, caller: str, amount: int, proof: Sequence[str], payment: Amount) -> ServiceResult:
        return self.mint_community(caller, Tier.ALPHA, amount, proof, payment)

    def mint_hypelister(self, caller: str, amount: int, proof: Sequence[str], payment: Amount) -> ServiceResult:
        return self.mint_community(caller, Tier.HYPELISTER, amount, proof, payment)

    def mint_hypemember(self, caller: str, amount: int, proof: Sequence[str], payment: Amount) -> ServiceResult:
        return self.mint_community(caller, Tier.HYPEMEMBER, amount, proof, payment)

    def mint_public(self, caller: str, amount: int, payment: Amount) -> ServiceResult:
        return self._mint(
            caller,
            lambda: self._minter.mint_public(caller, amount, _as_decimal(payment)),
        )

    def mint_unchecked(self, caller: str, wallet: str, amount: int) -> ServiceResult:
        """Reserved allocation: Operator only, bounded by supply."""
        return self._mint(caller, lambda: self._minter.mint_unchecked(caller, wallet, amount))

    def _mint(self, caller: str, operation: Callable[[], MintReceipt]) -> ServiceResult:
        def events(receipt: MintReceipt) -> list[EventRecord]:
            return [EventRecord.transfer(n, normalize_wallet(caller)) for n in receipt.notices]

        def data(receipt: MintReceipt) -> dict[str, Any]:
            return {
                "wallet": receipt.wallet,
                "token_ids": list(receipt.token_ids),
                "amount_paid": str(receipt.amount_paid),
                "phase": receipt.phase.value if receipt.phase else None,
                "tier": receipt.tier.value if receipt.tier else None,
                "total_minted": self._supply.total_minted,
            }

        return self._execute("mint", operation, events, data)

    # ------------------------------------------------------------------
    # Ownership
    # ------------------------------------------------------------------

    def transfer(self, caller: str, from_wallet: str, to_wallet: str, token_id: int) -> ServiceResult:
        """Move a token. Only the current owner may send it."""
        def operation() -> TransferNotice:
            if normalize_wallet(caller) != normalize_wallet(from_wallet):
                raise NotOwner(f"{caller} may not transfer tokens held by {from_wallet}")
            self._supply.transfer(from_wallet, to_wallet, token_id)
            return TransferNotice(
                from_wallet=normalize_wallet(from_wallet),
                to_wallet=normalize_wallet(to_wallet),
                token_id=token_id,
            )

        return self._execute(
            "transfer",
            operation,
            lambda notice: [EventRecord.transfer(notice, normalize_wallet(caller))],
            lambda notice: {
                "token_id": notice.token_id,
                "from_wallet": notice.from_wallet,
                "to_wallet": notice.to_wallet,
            },
        )

    def owner_of(self, token_id: int) -> str:
        return self._supply.owner_of(token_id)

    def balance_of(self, wallet: str) -> int:
        return self._supply.balance_of(wallet)

    def tokens_of_owner(self, wallet: str) -> list[int]:
        return self._supply.tokens_of_owner(wallet)

    # ------------------------------------------------------------------
    # Access control
    # ------------------------------------------------------------------

    def grant_role(self, caller: str, role: Role, wallet: str) -> ServiceResult:
        return self._execute(
            "grant_role",
            lambda: self._access.grant_role(caller, role, wallet),
            lambda changed: [self._event(EventKind.ROLE_GRANTED, caller, {
                "role": role.value, "wallet": normalize_wallet(wallet),
            })] if changed else [],
            lambda changed: {"role": role.value, "wallet": normalize_wallet(wallet), "changed": changed},
        )

    def revoke_role(self, caller: str, role: Role, wallet: str) -> ServiceResult:
        return self._execute(
            "revoke_role",
            lambda: self._access.revoke_role(caller, role, wallet),
            lambda changed: [self._event(EventKind.ROLE_REVOKED, caller, {
                "role": role.value, "wallet": normalize_wallet(wallet),
            })] if changed else [],
            lambda changed: {"role": role.value, "wallet": normalize_wallet(wallet), "changed": changed},
        )

    def has_role(self, role: Role, wallet: str) -> bool:
        return self._access.has_role(role, wallet)

    def role_members(self, role: Role) -> list[str]:
        return self._access.members(role)

    @property
    def owner(self) -> str:
        return self._access.owner

    def transfer_ownership(self, caller: str, new_owner: str) -> ServiceResult:
        return self._execute(
            "transfer_ownership",
            lambda: self._access.transfer_ownership(caller, new_owner),
            lambda previous: [self._event(EventKind.OWNERSHIP_TRANSFERRED, caller, {
                "previous_owner": previous, "new_owner": self._access.owner,
            })],
            lambda previous: {"previous_owner": previous, "owner": self._access.owner},
        )

    # ------------------------------------------------------------------
    # Sale configuration
    # ------------------------------------------------------------------

    @property
    def active_sale(self) -> SalePhase:
        return self._sale.active_sale

    def tier_config(self, tier: Tier) -> TierConfig:
        return self._sale.tier_config(tier)

    @property
    def public_config(self) -> PublicSaleConfig:
        return self._sale.public_config

    def set_active_sale(self, caller: str, phase: SalePhase) -> ServiceResult:
        return self._execute(
            "set_active_sale",
            lambda: self._sale.set_active_sale(caller, phase),
            lambda previous: [self._event(EventKind.SALE_CHANGED, caller, {
                "previous": previous.value, "active_sale": self._sale.active_sale.value,
            })],
            lambda previous: {"previous": previous.value, "active_sale": self._sale.active_sale.value},
        )

    def set_tier_root(self, caller: str, tier: Tier, root: str) -> ServiceResult:
        return self._execute(
            "set_tier_root",
            lambda: self._sale.set_tier_root(caller, tier, root),
            lambda previous: [self._event(EventKind.TIER_ROOT_SET, caller, {
                "tier": tier.value, "previous": previous, "root": self._sale.tier_config(tier).root,
            })],
            lambda previous: {"tier": tier.value, "root": self._sale.tier_config(tier).root},
        )

    def set_tier_price(self, caller: str, tier: Tier, price: Amount) -> ServiceResult:
        return self._execute(
            "set_tier_price",
            lambda: self._sale.set_tier_price(caller, tier, _as_decimal(price)),
            lambda _: [self._event(EventKind.TIER_PRICE_SET, caller, {
                "tier": tier.value, "price": str(self._sale.tier_config(tier).price),
            })],
            lambda _: {"tier": tier.value, "price": str(self._sale.tier_config(tier).price)},
        )

    def set_tier_max_per_wallet(self, caller: str, tier: Tier, max_per_wallet: int) -> ServiceResult:
        return self._execute(
            "set_tier_max_per_wallet",
            lambda: self._sale.set_tier_max_per_wallet(caller, tier, max_per_wallet),
            lambda _: [self._event(EventKind.TIER_LIMIT_SET, caller, {
                "tier": tier.value, "max_per_wallet": max_per_wallet,
            })],
            lambda _: {"tier": tier.value, "max_per_wallet": max_per_wallet},
        )

    def set_public_price(self, caller: str, price: Amount) -> ServiceResult:
        return self._execute(
            "set_public_price",
            lambda: self._sale.set_public_price(caller, _as_decimal(price)),
            lambda _: [self._event(EventKind.PUBLIC_CONFIG_SET, caller, self._public_payload())],
            lambda _: self._public_payload(),
        )

    def set_public_limits(self, caller: str, max_per_tx: int, max_per_wallet: int) -> ServiceResult:
        return self._execute(
            "set_public_limits",
            lambda: self._sale.set_public_limits(caller, max_per_tx, max_per_wallet),
            lambda _: [self._event(EventKind.PUBLIC_CONFIG_SET, caller, self._public_payload())],
            lambda _: self._public_payload(),
        )

    def _public_payload(self) -> dict[str, Any]:
        config = self._sale.public_config
        return {
            "price": str(config.price),
            "max_per_tx": config.max_per_tx,
            "max_per_wallet": config.max_per_wallet,
        }

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    def token_uri(self, token_id: int) -> str:
        return self._metadata.token_uri(token_id)

    def set_base_token_uri(self, caller: str, base_uri: str, revealed: bool) -> ServiceResult:
        return self._execute(
            "set_base_token_uri",
            lambda: self._metadata.set_base_token_uri(caller, base_uri, revealed),
            lambda _: [self._event(EventKind.BASE_URI_SET, caller, {
                "base_uri": base_uri, "revealed": bool(revealed),
            })],
            lambda _: {"base_uri": base_uri, "revealed": bool(revealed)},
        )

    # ------------------------------------------------------------------
    # Treasury
    # ------------------------------------------------------------------

    @property
    def treasury_balance(self) -> Decimal:
        return self._treasury.balance

    def paid_out(self, wallet: Optional[str] = None) -> Decimal:
        return self._treasury.paid_out(wallet)

    def withdraw(self, caller: str) -> ServiceResult:
        return self._execute(
            "withdraw",
            lambda: self._treasury.withdraw(caller),
            lambda amount: [self._event(EventKind.WITHDRAWAL, caller, {
                "amount": str(amount), "payout_wallet": self._treasury.payout_wallet,
            })] if amount > 0 else [],
            lambda amount: {"amount": str(amount), "payout_wallet": self._treasury.payout_wallet},
        )

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    @property
    def total_minted(self) -> int:
        return self._supply.total_minted

    @property
    def max_supply(self) -> int:
        return self._supply.max_supply

    def has_community_claim(self, wallet: str) -> bool:
        return self._claims.has_community_claim(wallet)

    def public_minted(self, wallet: str) -> int:
        return self._claims.public_count(wallet)

    def status(self) -> dict[str, Any]:
        """Return a read-only summary for front ends."""
        return {
            "active_sale": self._sale.active_sale.value,
            "supply": {
                "total_minted": self._supply.total_minted,
                "max_supply": self._supply.max_supply,
                "remaining": self._supply.remaining,
            },
            "tiers": {
                tier.value: {
                    "price": str(config.price),
                    "max_per_wallet": config.max_per_wallet,
                    "open": config.is_open,
                }
                for tier, config in self._state.tiers.items()
            },
            "public": self._public_payload(),
            "metadata": {
                "base_uri": self._metadata.config.base_uri,
                "revealed": self._metadata.config.is_revealed,
            },
            "treasury": {
                "balance": str(self._treasury.balance),
                "payout_wallet": self._treasury.payout_wallet,
            },
            "owner": self._access.owner,
            "events": self._event_log.count if self._event_log is not None else 0,
            "persistence_degraded": self._persistence_degraded,
        }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _execute(
        self,
        action: str,
        operation: Callable[[], Any],
        events: Callable[[Any], list[EventRecord]],
        data: Callable[[Any], dict[str, Any]],
    ) -> ServiceResult:
        """Run one request: apply, audit, persist.

        Ledger rejections and invalid input come back as failed results
        with the state untouched.
        """
        before = self._state.snapshot()
        try:
            outcome = operation()
        except HypeHausError as e:
            logger.info("%s rejected: %s", action, e)
            return ServiceResult(success=False, errors=[str(e)], error_code=e.code)
        except ValueError as e:
            logger.info("%s rejected: %s", action, e)
            return ServiceResult(success=False, errors=[str(e)])

        err = self._record_events(events(outcome))
        if err:
            self._state.restore(before)
            logger.error("%s rolled back: %s", action, err)
            return ServiceResult(success=False, errors=[err])

        result_data = data(outcome)
        warning = self._safe_persist_post_audit()
        if warning:
            result_data["warning"] = warning
        logger.debug("%s committed: %s", action, result_data)
        return ServiceResult(success=True, data=result_data)

    def _event(self, kind: EventKind, caller: str, payload: dict[str, Any]) -> EventRecord:
        return EventRecord.create(kind, normalize_wallet(caller), payload)

    def _record_events(self, events: list[EventRecord]) -> Optional[str]:
        """Append audit events. Returns error string or None."""
        if self._event_log is None:
            return None
        try:
            self._event_log.append_all(events)
        except (ValueError, OSError) as e:
            return f"Event log failure: {e}"
        return None

    def _safe_persist_post_audit(self) -> Optional[str]:
        """Persist state after audit events have been committed.

        Does not roll back: the audit trail is already durable. On
        failure the in-memory state stays correct, the StateStore is
        stale, and the degraded flag is raised.
        """
        if self._state_store is None:
            return None
        try:
            self._state_store.save(self._state)
            return None
        except OSError as e:
            self._persistence_degraded = True
            logger.warning("State snapshot failed: %s", e)
            return f"Persistence degraded: {e}; audit trail is current but the state snapshot is stale"


def _as_decimal(value: Amount) -> Decimal:
    """Parse a payment or price. Floats are refused."""
    if isinstance(value, float):
        raise TypeError("Monetary amounts must not be floats; pass a Decimal or string")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Not a decimal amount: {value!r}") from None
    if not amount.is_finite():
        raise ValueError(f"Not a finite amount: {value!r}")
    return amount
