"""Tests for HypeHausService: proves the facade orchestrates correctly."""

from decimal import Decimal
from pathlib import Path

import pytest

from hypehaus.crypto.merkle import MerkleTree
from hypehaus.models.roles import Role
from hypehaus.models.sale import SalePhase, Tier
from hypehaus.persistence.event_log import EventKind, EventLog
from hypehaus.persistence.state_store import StateStore
from hypehaus.policy.resolver import PolicyResolver
from hypehaus.service import HypeHausService


CONFIG_DIR = Path(__file__).resolve().parents[1] / "config"

DEPLOYER = "0xf39fd6e51aad88f6f4ce6ab8827279cfffb92266"
TEAM = "0x70997970c51812dc3a010c7d01b50e0d17dc79c8"
OPERATOR = "0x15d34aaf54267db7d7c367839aaf71a00a2c6a65"
WITHDRAWER = "0x9965507d1a55bcc2695c58ba16fb37d819b0a4dc"
ALICE = "0x3c44cdddb6a900fa2b585dd299e03d12fa4293bc"
BOB = "0x90f79bf6eb2c4f870365e785982e1f101e93b906"
CAROL = "0x976ea74026e726554db657fa54763abd0c3a0aa9"


@pytest.fixture
def resolver() -> PolicyResolver:
    return PolicyResolver.from_config_dir(CONFIG_DIR)


@pytest.fixture
def service(resolver: PolicyResolver) -> HypeHausService:
    return HypeHausService.create(resolver, DEPLOYER, TEAM, event_log=EventLog())


@pytest.fixture
def tree() -> MerkleTree:
    return MerkleTree.from_wallets([ALICE, BOB])


def _open_community(service: HypeHausService, tree: MerkleTree) -> None:
    assert service.set_tier_root(DEPLOYER, Tier.ALPHA, tree.compute_root()).success
    assert service.set_active_sale(DEPLOYER, SalePhase.COMMUNITY).success


class FailingEventLog(EventLog):
    def append_all(self, events) -> None:
        raise OSError("disk full")


class PartialWriteEventLog(EventLog):
    """Writes the first line of a batch, then fails."""

    def _write_lines(self, lines) -> None:
        with self._storage_path.open("a", encoding="utf-8") as f:
            f.write(lines[0])
        raise OSError("disk full")


class FailingStateStore(StateStore):
    def save(self, state) -> None:
        raise OSError("read-only filesystem")


class TestDeployment:
    def test_parameters_applied(self, service: HypeHausService) -> None:
        assert service.max_supply == 1000
        assert service.total_minted == 0
        assert service.active_sale == SalePhase.CLOSED
        assert service.tier_config(Tier.ALPHA).price == Decimal("0.05")
        assert service.tier_config(Tier.ALPHA).max_per_wallet == 3
        assert service.public_config.max_per_tx == 2
        assert service.owner == DEPLOYER
        assert service.has_role(Role.ADMIN, DEPLOYER)

    def test_status_summary(self, service: HypeHausService) -> None:
        status = service.status()
        assert status["active_sale"] == "closed"
        assert status["supply"] == {"total_minted": 0, "max_supply": 1000, "remaining": 1000}
        assert status["tiers"]["alpha"]["open"] is False
        assert status["metadata"]["base_uri"] == "ipfs://hypehaus-mask/"
        assert status["persistence_degraded"] is False


class TestMinting:
    def test_community_mint(self, service: HypeHausService, tree: MerkleTree) -> None:
        _open_community(service, tree)
        result = service.mint_alpha(ALICE, 2, tree.wallet_proof(ALICE), "0.10")
        assert result.success
        assert result.data["token_ids"] == [0, 1]
        assert result.data["tier"] == "alpha"
        assert result.data["phase"] == "community"
        assert result.data["amount_paid"] == "0.10"
        assert service.balance_of(ALICE) == 2
        assert service.has_community_claim(ALICE)
        assert service.treasury_balance == Decimal("0.10")

    def test_rejection_carries_code_and_message(self, service: HypeHausService, tree: MerkleTree) -> None:
        _open_community(service, tree)
        result = service.mint_alpha(CAROL, 1, tree.wallet_proof(ALICE), "0.05")
        assert not result.success
        assert result.error_code == "HH_VERIFICATION_FAILURE"
        assert "allow list" in result.message
        assert service.total_minted == 0

    def test_rejection_leaves_state_and_log_untouched(self, service: HypeHausService, tree: MerkleTree) -> None:
        _open_community(service, tree)
        before = service.state.snapshot()
        events_before = service.event_log.count
        result = service.mint_alpha(ALICE, 1, tree.wallet_proof(ALICE), "0.01")
        assert result.error_code == "HH_INSUFFICIENT_FUNDS"
        assert service.state.snapshot() == before
        assert service.event_log.count == events_before

    def test_issuance_events_per_token(self, service: HypeHausService) -> None:
        service.set_active_sale(DEPLOYER, SalePhase.PUBLIC)
        service.mint_public(BOB, 2, Decimal("0.16"))
        issuances = service.event_log.issuances()
        assert [e.payload["token_id"] for e in issuances] == [0, 1]
        assert all(e.payload["to_wallet"] == BOB for e in issuances)
        assert service.public_minted(BOB) == 2

    def test_public_quota(self, service: HypeHausService) -> None:
        service.set_active_sale(DEPLOYER, SalePhase.PUBLIC)
        assert service.mint_public(BOB, 2, "0.16").success
        result = service.mint_public(BOB, 1, "0.08")
        assert result.error_code == "HH_ALREADY_CLAIMED"

    def test_float_payment_refused(self, service: HypeHausService) -> None:
        service.set_active_sale(DEPLOYER, SalePhase.PUBLIC)
        with pytest.raises(TypeError):
            service.mint_public(BOB, 1, 0.08)

    def test_garbage_payment_fails(self, service: HypeHausService) -> None:
        service.set_active_sale(DEPLOYER, SalePhase.PUBLIC)
        result = service.mint_public(BOB, 1, "lots")
        assert not result.success
        assert result.error_code is None

    def test_unchecked_mint(self, service: HypeHausService) -> None:
        result = service.mint_unchecked(DEPLOYER, TEAM, 5)
        assert result.success
        assert result.data["token_ids"] == [0, 1, 2, 3, 4]
        assert result.data["phase"] is None
        assert service.tokens_of_owner(TEAM) == [0, 1, 2, 3, 4]

    def test_unchecked_mint_unauthorized(self, service: HypeHausService) -> None:
        result = service.mint_unchecked(ALICE, ALICE, 1)
        assert result.error_code == "HH_CALLER_NOT_OPERATOR"
        assert "operator" in result.message


class TestTransfers:
    def test_owner_transfers(self, service: HypeHausService) -> None:
        service.mint_unchecked(DEPLOYER, ALICE, 1)
        result = service.transfer(ALICE, ALICE, BOB, 0)
        assert result.success
        assert service.owner_of(0) == BOB
        event = service.event_log.last_event
        assert event.event_kind == EventKind.TRANSFER
        assert event.payload["from_wallet"] == ALICE

    def test_third_party_cannot_send(self, service: HypeHausService) -> None:
        service.mint_unchecked(DEPLOYER, ALICE, 1)
        result = service.transfer(BOB, ALICE, BOB, 0)
        assert result.error_code == "HH_NOT_OWNER"
        assert service.owner_of(0) == ALICE

    def test_unknown_token(self, service: HypeHausService) -> None:
        result = service.transfer(ALICE, ALICE, BOB, 0)
        assert result.error_code == "HH_UNKNOWN_TOKEN"

    def test_transfers_leave_issuance_feed_alone(self, service: HypeHausService) -> None:
        service.mint_unchecked(DEPLOYER, ALICE, 1)
        service.transfer(ALICE, ALICE, BOB, 0)
        assert len(service.event_log.issuances()) == 1
        assert len(service.event_log.events(EventKind.TRANSFER)) == 2


class TestAdministration:
    def test_roles(self, service: HypeHausService) -> None:
        result = service.grant_role(DEPLOYER, Role.OPERATOR, OPERATOR)
        assert result.success and result.data["changed"]
        assert service.role_members(Role.OPERATOR) == [OPERATOR]
        assert service.set_public_price(OPERATOR, "0.1").success
        assert service.revoke_role(DEPLOYER, Role.OPERATOR, OPERATOR).success
        assert service.set_public_price(OPERATOR, "0.2").error_code == "HH_CALLER_NOT_OPERATOR"
        assert service.public_config.price == Decimal("0.1")

    def test_noop_grant_records_nothing(self, service: HypeHausService) -> None:
        service.grant_role(DEPLOYER, Role.OPERATOR, OPERATOR)
        count = service.event_log.count
        result = service.grant_role(DEPLOYER, Role.OPERATOR, OPERATOR)
        assert result.success and not result.data["changed"]
        assert service.event_log.count == count

    def test_ownership(self, service: HypeHausService) -> None:
        assert service.transfer_ownership(ALICE, BOB).error_code == "HH_CALLER_NOT_OWNER"
        result = service.transfer_ownership(DEPLOYER, ALICE)
        assert result.data == {"previous_owner": DEPLOYER, "owner": ALICE}
        assert service.owner == ALICE

    def test_tier_terms(self, service: HypeHausService) -> None:
        assert service.set_tier_price(DEPLOYER, Tier.HYPEMEMBER, "0.03").success
        assert service.set_tier_max_per_wallet(DEPLOYER, Tier.HYPEMEMBER, 2).success
        config = service.tier_config(Tier.HYPEMEMBER)
        assert (config.price, config.max_per_wallet) == (Decimal("0.03"), 2)

    def test_invalid_limits_fail(self, service: HypeHausService) -> None:
        result = service.set_public_limits(DEPLOYER, 5, 1)
        assert not result.success
        assert service.public_config.max_per_tx == 2

    def test_malformed_root_fails(self, service: HypeHausService) -> None:
        result = service.set_tier_root(DEPLOYER, Tier.ALPHA, "0xnope")
        assert not result.success
        assert service.event_log.count == 0

    def test_reveal(self, service: HypeHausService) -> None:
        service.mint_unchecked(DEPLOYER, ALICE, 2)
        assert service.token_uri(1) == "ipfs://hypehaus-mask/1"
        assert service.set_base_token_uri(DEPLOYER, "ipfs://real/", True).success
        assert service.token_uri(0) == "ipfs://real/0.json"

    def test_withdraw(self, service: HypeHausService) -> None:
        service.grant_role(DEPLOYER, Role.WITHDRAWER, WITHDRAWER)
        service.set_active_sale(DEPLOYER, SalePhase.PUBLIC)
        service.mint_public(BOB, 2, "0.16")
        result = service.withdraw(WITHDRAWER)
        assert result.data == {"amount": "0.16", "payout_wallet": TEAM}
        assert service.paid_out() == Decimal("0.16")
        assert service.treasury_balance == Decimal("0")
        assert service.event_log.last_event.event_kind == EventKind.WITHDRAWAL

    def test_empty_withdraw_records_nothing(self, service: HypeHausService) -> None:
        count = service.event_log.count
        result = service.withdraw(DEPLOYER)
        assert result.success and result.data["amount"] == "0"
        assert service.event_log.count == count


class TestAuditAndPersistence:
    def test_event_log_failure_rolls_back(self, resolver: PolicyResolver) -> None:
        service = HypeHausService.create(resolver, DEPLOYER, TEAM, event_log=FailingEventLog())
        before = service.state.snapshot()
        result = service.mint_unchecked(DEPLOYER, ALICE, 2)
        assert not result.success
        assert "Event log failure" in result.errors[0]
        assert service.state.snapshot() == before
        assert service.total_minted == 0

    def test_partial_event_write_leaves_no_trace(self, resolver: PolicyResolver, tmp_path: Path) -> None:
        path = tmp_path / "events.jsonl"
        service = HypeHausService.create(resolver, DEPLOYER, TEAM, event_log=PartialWriteEventLog(path))
        before = service.state.snapshot()
        result = service.mint_unchecked(DEPLOYER, ALICE, 3)
        assert not result.success
        assert "Event log failure" in result.errors[0]
        assert service.state.snapshot() == before
        assert service.total_minted == 0
        assert service.event_log.issuances() == []
        assert EventLog(path).count == 0

    def test_state_store_failure_degrades(self, resolver: PolicyResolver, tmp_path: Path) -> None:
        service = HypeHausService.create(resolver, DEPLOYER, TEAM, event_log=EventLog())
        service = HypeHausService(
            service.state,
            event_log=service.event_log,
            state_store=FailingStateStore(tmp_path / "state.json"),
        )
        result = service.mint_unchecked(DEPLOYER, ALICE, 1)
        assert result.success
        assert "Persistence degraded" in result.data["warning"]
        assert service.status()["persistence_degraded"] is True
        assert service.total_minted == 1

    def test_reload_from_disk(self, resolver: PolicyResolver, tmp_path: Path) -> None:
        store = StateStore(tmp_path / "state.json")
        log = EventLog(tmp_path / "events.jsonl")
        service = HypeHausService.create(resolver, DEPLOYER, TEAM, event_log=log, state_store=store)
        service.mint_unchecked(DEPLOYER, ALICE, 3)
        service.set_active_sale(DEPLOYER, SalePhase.PUBLIC)

        reloaded = HypeHausService.load(
            StateStore(tmp_path / "state.json"),
            EventLog(tmp_path / "events.jsonl"),
        )
        assert reloaded.total_minted == 3
        assert reloaded.owner_of(2) == ALICE
        assert reloaded.active_sale == SalePhase.PUBLIC
        assert reloaded.event_log.count == service.event_log.count

    def test_load_without_state(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            HypeHausService.load(StateStore(tmp_path / "state.json"))
